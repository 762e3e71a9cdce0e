"""
Rotas do Módulo Financeiro
"""

from flask import g, jsonify, request

from . import financeiro_bp
from . import services as financeiro_services
from .forms import LancamentoForm, MensalidadesForm, PagamentoForm
from smartclass.auth.decorators import gestao_obrigatoria
from smartclass.core.constants import COLECAO_FINANCEIRO, STATUS_PAGAMENTO, TIPOS_LANCAMENTO
from smartclass.core.errors import DadosInvalidos
from smartclass.core.formularios import validar_formulario


@financeiro_bp.route('', methods=['GET'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def listar_lancamentos():
    """Filtros opcionais: ?tipo=receita|despesa&status=pendente|pago|atrasado|cancelado."""
    tipo = request.args.get('tipo')
    status = request.args.get('status')
    if tipo and tipo not in TIPOS_LANCAMENTO:
        raise DadosInvalidos("Tipo de lançamento inválido.")
    if status and status not in STATUS_PAGAMENTO:
        raise DadosInvalidos("Status de pagamento inválido.")
    return jsonify(financeiro_services.listar_lancamentos(g.school_id, tipo=tipo, status=status))


@financeiro_bp.route('', methods=['POST'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def criar_lancamento():
    dados = validar_formulario(LancamentoForm)
    return jsonify(financeiro_services.criar_lancamento(g.school_id, dados)), 201


@financeiro_bp.route('/resumo', methods=['GET'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def resumo():
    return jsonify(financeiro_services.resumo(g.school_id))


@financeiro_bp.route('/mensalidades', methods=['POST'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def gerar_mensalidades():
    dados = validar_formulario(MensalidadesForm)
    resultado = financeiro_services.gerar_mensalidades(
        g.school_id, dados['turma_id'], dados['mes'], dados.get('dia_vencimento') or 10
    )
    return jsonify(resultado), 201


@financeiro_bp.route('/<lancamento_id>', methods=['PUT'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def atualizar_lancamento(lancamento_id):
    dados = validar_formulario(LancamentoForm, parcial=True)
    return jsonify(financeiro_services.atualizar_lancamento(g.school_id, lancamento_id, dados))


@financeiro_bp.route('/<lancamento_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def excluir_lancamento(lancamento_id):
    financeiro_services.excluir_lancamento(g.school_id, lancamento_id)
    return jsonify({'mensagem': 'Lançamento excluído.'})


@financeiro_bp.route('/<lancamento_id>/pagar', methods=['POST'])
@gestao_obrigatoria(COLECAO_FINANCEIRO)
def pagar(lancamento_id):
    dados = validar_formulario(PagamentoForm)
    lancamento = financeiro_services.pagar(
        g.school_id, lancamento_id, dados['metodo_pagamento'], dados.get('data_pagamento')
    )
    return jsonify(lancamento)
