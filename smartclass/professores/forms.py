from flask_wtf import FlaskForm
from wtforms import BooleanField, FloatField, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, Regexp

from smartclass.auth.forms import REGEX_NOME, REGEX_TELEFONE


class FichaProfessorForm(FlaskForm):
    """Campos da ficha do professor. `especialidades` (lista) é validada no service."""
    nome = StringField('Nome', validators=[
        Optional(),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
        Regexp(REGEX_NOME, message="Nome deve conter apenas letras")
    ])
    telefone = StringField('Telefone', validators=[Optional(), Regexp(REGEX_TELEFONE, message="Telefone inválido")])
    valor_hora = FloatField('Valor da hora', validators=[
        Optional(),
        NumberRange(min=0, message="Valor da hora não pode ser negativo")
    ])
    ativo = BooleanField('Ativo', default=True)


class ProfessorForm(FichaProfessorForm):
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
