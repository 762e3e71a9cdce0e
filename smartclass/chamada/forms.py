from flask_wtf import FlaskForm
from wtforms import DateField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, Optional, Regexp

from smartclass.core.constants import STATUS_AULA
from smartclass.core.security import EntradaSegura

REGEX_HORARIO = r'^([01]\d|2[0-3]):[0-5]\d$'


class AulaForm(FlaskForm):
    turma_id = StringField('Turma', validators=[DataRequired(message="Turma é obrigatória")])
    professor_id = StringField('Professor', validators=[Optional()])
    data_aula = DateField('Data', format='%Y-%m-%d', validators=[DataRequired(message="Data da aula inválida (use AAAA-MM-DD)")])
    horario_inicio = StringField('Início', validators=[
        DataRequired(message="Horário de início é obrigatório"),
        Regexp(REGEX_HORARIO, message="Horário deve estar no formato HH:MM")
    ])
    horario_fim = StringField('Fim', validators=[
        DataRequired(message="Horário de término é obrigatório"),
        Regexp(REGEX_HORARIO, message="Horário deve estar no formato HH:MM")
    ])
    observacoes = StringField('Observações', validators=[Optional(), Length(max=500), EntradaSegura()])


class AtualizarAulaForm(FlaskForm):
    status = StringField('Status', validators=[
        DataRequired(message="Status é obrigatório"),
        AnyOf(STATUS_AULA, message="Status de aula inválido")
    ])
    observacoes = StringField('Observações', validators=[Optional(), Length(max=500), EntradaSegura()])
