from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length, Optional

from smartclass.core.security import EntradaSegura


class ConversaForm(FlaskForm):
    """Informe `profile_id` (conversa direta) ou `turma_id` (grupo da turma)."""
    profile_id = StringField('Destinatário', validators=[Optional()])
    turma_id = StringField('Turma', validators=[Optional()])


class MensagemForm(FlaskForm):
    texto = StringField('Mensagem', validators=[
        Optional(),
        Length(max=2000, message="Mensagem deve ter no máximo 2000 caracteres"),
        EntradaSegura()
    ])


class EnqueteForm(FlaskForm):
    pergunta = StringField('Pergunta', validators=[
        DataRequired(message="A pergunta da enquete é obrigatória"),
        Length(max=300),
        EntradaSegura()
    ])


class VotoForm(FlaskForm):
    option_id = StringField('Opção', validators=[DataRequired(message="Opção é obrigatória")])
