from flask_wtf import FlaskForm
from wtforms import BooleanField, FloatField, IntegerField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional, Regexp

from smartclass.chamada.forms import REGEX_HORARIO
from smartclass.core.constants import DIAS_SEMANA, NIVEIS
from smartclass.core.security import EntradaSegura


class TurmaForm(FlaskForm):
    nome = StringField('Nome', validators=[
        DataRequired(message="Nome da turma é obrigatório"),
        Length(min=2, max=100, message="Nome deve ter entre 2 e 100 caracteres"),
        EntradaSegura()
    ])
    instrumento = StringField('Instrumento', validators=[
        DataRequired(message="Instrumento é obrigatório"),
        Length(max=60),
        EntradaSegura()
    ])
    nivel = StringField('Nível', default='iniciante', validators=[
        Optional(),
        AnyOf(NIVEIS, message="Nível inválido")
    ])
    dia_semana = StringField('Dia da semana', validators=[
        DataRequired(message="Dia da semana é obrigatório"),
        AnyOf(DIAS_SEMANA, message="Dia da semana inválido")
    ])
    horario_inicio = StringField('Início', validators=[
        DataRequired(message="Horário de início é obrigatório"),
        Regexp(REGEX_HORARIO, message="Horário deve estar no formato HH:MM")
    ])
    horario_fim = StringField('Fim', validators=[
        DataRequired(message="Horário de término é obrigatório"),
        Regexp(REGEX_HORARIO, message="Horário deve estar no formato HH:MM")
    ])
    valor_mensal = FloatField('Mensalidade', validators=[
        Optional(),
        NumberRange(min=0, message="Valor mensal não pode ser negativo")
    ])
    vagas_total = IntegerField('Vagas', default=10, validators=[
        Optional(),
        NumberRange(min=1, max=500, message="Número de vagas deve estar entre 1 e 500")
    ])
    ativa = BooleanField('Ativa', default=True)
    curso_id = StringField('Curso', validators=[Optional()])


class ProfessorTurmaForm(FlaskForm):
    professor_id = StringField('Professor', validators=[DataRequired(message="Professor é obrigatório")])


class MatriculaForm(FlaskForm):
    aluno_id = StringField('Aluno', validators=[DataRequired(message="Aluno é obrigatório")])
