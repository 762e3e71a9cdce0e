from flask_wtf import FlaskForm
from wtforms import DateField, FloatField, IntegerField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional, Regexp

from smartclass.core.constants import METODOS_PAGAMENTO, STATUS_PAGAMENTO, TIPOS_LANCAMENTO
from smartclass.core.security import EntradaSegura


class LancamentoForm(FlaskForm):
    tipo = StringField('Tipo', validators=[
        DataRequired(message="Tipo é obrigatório"),
        AnyOf(TIPOS_LANCAMENTO, message="Tipo deve ser 'receita' ou 'despesa'")
    ])
    categoria = StringField('Categoria', validators=[
        DataRequired(message="Categoria é obrigatória"),
        Length(max=60),
        EntradaSegura()
    ])
    descricao = StringField('Descrição', validators=[
        DataRequired(message="Descrição é obrigatória"),
        Length(max=200),
        EntradaSegura()
    ])
    valor = FloatField('Valor', validators=[
        DataRequired(message="Valor é obrigatório"),
        NumberRange(min=0.01, message="Valor deve ser maior que zero")
    ])
    data_vencimento = DateField('Vencimento', validators=[DataRequired(message="Data de vencimento é obrigatória")])
    data_pagamento = DateField('Pagamento', validators=[Optional()])
    status = StringField('Status', default='pendente', validators=[
        Optional(),
        AnyOf(STATUS_PAGAMENTO, message="Status inválido")
    ])
    metodo_pagamento = StringField('Método', validators=[
        Optional(),
        AnyOf(METODOS_PAGAMENTO, message="Método de pagamento inválido")
    ])
    observacoes = StringField('Observações', validators=[Optional(), Length(max=500), EntradaSegura()])
    aluno_id = StringField('Aluno', validators=[Optional()])
    professor_id = StringField('Professor', validators=[Optional()])


class PagamentoForm(FlaskForm):
    metodo_pagamento = StringField('Método', validators=[
        DataRequired(message="Método de pagamento é obrigatório"),
        AnyOf(METODOS_PAGAMENTO, message="Método de pagamento inválido")
    ])
    data_pagamento = DateField('Pagamento', validators=[Optional()])


class MensalidadesForm(FlaskForm):
    turma_id = StringField('Turma', validators=[DataRequired(message="Turma é obrigatória")])
    mes = StringField('Mês', validators=[
        DataRequired(message="Mês de referência é obrigatório"),
        Regexp(r'^\d{4}-(0[1-9]|1[0-2])$', message="Mês deve estar no formato AAAA-MM")
    ])
    dia_vencimento = IntegerField('Dia do vencimento', default=10, validators=[
        Optional(),
        NumberRange(min=1, max=31, message="Dia do vencimento deve estar entre 1 e 31")
    ])
