from flask_wtf import FlaskForm
from wtforms import BooleanField, StringField
from wtforms.validators import DataRequired, Length, Optional

from smartclass.core.security import EntradaSegura


class CursoForm(FlaskForm):
    nome = StringField('Nome', validators=[
        DataRequired(message="Nome do curso é obrigatório"),
        Length(min=2, max=100, message="Nome deve ter entre 2 e 100 caracteres"),
        EntradaSegura()
    ])
    descricao = StringField('Descrição', validators=[Optional(), Length(max=500), EntradaSegura()])
    ativo = BooleanField('Ativo', default=True)
