from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import AnyOf, DataRequired, Email, Length, Optional, Regexp

from smartclass.auth.forms import REGEX_NOME, REGEX_TELEFONE
from smartclass.core.constants import PAPEIS, PAPEIS_CONVITE, PAPEIS_CRIACAO_ACESSO
from smartclass.core.security import EntradaSegura


class _UsuarioBaseForm(FlaskForm):
    email = StringField('E-mail', validators=[
        DataRequired(message="E-mail é obrigatório"),
        Email(message="E-mail inválido"),
        Length(max=120)
    ])
    nome_completo = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
        Regexp(REGEX_NOME, message="Nome deve conter apenas letras")
    ])
    telefone = StringField('Telefone', validators=[Optional(), Regexp(REGEX_TELEFONE, message="Telefone inválido")])
    school_id = StringField('Escola', validators=[Optional()])


class ConviteForm(_UsuarioBaseForm):
    tipo_usuario = StringField('Tipo', validators=[
        DataRequired(message="Tipo de usuário é obrigatório"),
        AnyOf(PAPEIS_CONVITE, message="Tipo de usuário inválido")
    ])


class AcessoForm(_UsuarioBaseForm):
    tipo_usuario = StringField('Tipo', validators=[
        DataRequired(message="Tipo de usuário é obrigatório"),
        AnyOf(PAPEIS_CRIACAO_ACESSO, message="Tipo de usuário inválido")
    ])
    senha = PasswordField('Senha', validators=[Optional()])


class PapelForm(FlaskForm):
    tipo_usuario = StringField('Tipo', validators=[
        DataRequired(message="Tipo de usuário é obrigatório"),
        AnyOf(PAPEIS, message="Tipo de usuário inválido")
    ])


class EscolaForm(FlaskForm):
    name = StringField('Nome', validators=[
        DataRequired(message="Nome da escola é obrigatório"),
        Length(min=3, max=120, message="Nome da escola deve ter entre 3 e 120 caracteres"),
        EntradaSegura()
    ])
    telefone = StringField('Telefone', validators=[Optional(), Regexp(REGEX_TELEFONE, message="Telefone inválido")])
    email = StringField('E-mail', validators=[Optional(), Email(message="E-mail inválido")])
    cep = StringField('CEP', validators=[Optional(), Regexp(r'^\d{5}-?\d{3}$', message="CEP inválido")])
    endereco = StringField('Endereço', validators=[Optional(), Length(max=200)])
    cidade = StringField('Cidade', validators=[Optional(), Length(max=100)])
    estado = StringField('Estado', validators=[Optional(), Length(min=2, max=2, message="Use a sigla do estado")])
