from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, Optional, Regexp, URL

from smartclass.core.security import EntradaSegura

REGEX_NOME = r'^[A-Za-zÀ-ÖØ-öø-ÿ\s\.\']+$'
REGEX_TELEFONE = r'^[\d\s\(\)\+\-]{8,20}$'


class RegistroForm(FlaskForm):
    nome_completo = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
        Regexp(REGEX_NOME, message="Nome deve conter apenas letras")
    ])
    email = StringField('E-mail', validators=[
        DataRequired(message="E-mail é obrigatório"),
        Email(message="E-mail inválido"),
        Length(max=120)
    ])
    senha = PasswordField('Senha', validators=[DataRequired(message="Senha é obrigatória")])
    nome_escola = StringField('Escola', validators=[
        DataRequired(message="Nome da escola é obrigatório"),
        Length(min=3, max=120, message="Nome da escola deve ter entre 3 e 120 caracteres"),
        EntradaSegura()
    ])


class LoginForm(FlaskForm):
    email = StringField('E-mail', validators=[DataRequired(message="E-mail é obrigatório"), Email(message="E-mail inválido")])
    senha = PasswordField('Senha', validators=[DataRequired(message="Senha é obrigatória")])


class PerfilForm(FlaskForm):
    nome_completo = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
        Regexp(REGEX_NOME, message="Nome deve conter apenas letras")
    ])
    telefone = StringField('Telefone', validators=[
        Optional(),
        Regexp(REGEX_TELEFONE, message="Telefone inválido")
    ])
    avatar_url = StringField('Avatar', validators=[Optional(), URL(message="URL do avatar inválida"), Length(max=500)])


class AceiteConviteForm(FlaskForm):
    senha = PasswordField('Senha', validators=[DataRequired(message="Senha é obrigatória")])
