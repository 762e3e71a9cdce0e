from flask_wtf import FlaskForm
from wtforms import BooleanField, DateField, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, Optional, Regexp

from smartclass.auth.forms import REGEX_NOME, REGEX_TELEFONE
from smartclass.core.security import EntradaSegura


class FichaAlunoForm(FlaskForm):
    """Campos da ficha do aluno (também usados como `metadata` do create-access)."""
    nome = StringField('Nome', validators=[
        Optional(),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
        Regexp(REGEX_NOME, message="Nome deve conter apenas letras")
    ])
    telefone = StringField('Telefone', validators=[Optional(), Regexp(REGEX_TELEFONE, message="Telefone inválido")])
    endereco = StringField('Endereço', validators=[Optional(), Length(max=200), EntradaSegura()])
    data_nascimento = DateField('Data de nascimento', validators=[Optional()])
    responsavel = StringField('Responsável', validators=[
        Optional(),
        Length(max=100),
        Regexp(REGEX_NOME, message="Nome do responsável deve conter apenas letras")
    ])
    telefone_responsavel = StringField('Telefone do responsável', validators=[
        Optional(),
        Regexp(REGEX_TELEFONE, message="Telefone do responsável inválido")
    ])
    instrumento = StringField('Instrumento', validators=[Optional(), Length(max=60), EntradaSegura()])
    turma_id = StringField('Turma', validators=[Optional()])
    ativo = BooleanField('Ativo', default=True)


class AlunoForm(FichaAlunoForm):
    nome = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
        Regexp(REGEX_NOME, message="Nome deve conter apenas letras")
    ])
    email = StringField('E-mail', validators=[
        DataRequired(message="E-mail é obrigatório"),
        Email(message="E-mail inválido"),
        Length(max=120)
    ])
    senha = PasswordField('Senha', validators=[Optional()])
