"""
Rotas do Módulo de Chamada
"""

from flask import g, jsonify

from . import chamada_bp
from . import services as chamada_services
from .forms import AtualizarAulaForm, AulaForm
from smartclass.auth.decorators import gestao_obrigatoria, login_obrigatorio
from smartclass.core.constants import COLECAO_AULAS, COLECAO_CHAMADAS
from smartclass.core.errors import DadosInvalidos
from smartclass.core.formularios import corpo_json, validar_formulario


@chamada_bp.route('/turmas/<turma_id>/aulas', methods=['GET'])
@login_obrigatorio
def listar_aulas(turma_id):
    return jsonify(chamada_services.listar_aulas(g.school_id, turma_id))


@chamada_bp.route('/aulas', methods=['POST'])
@gestao_obrigatoria(COLECAO_AULAS)
def criar_aula():
    dados = validar_formulario(AulaForm)
    return jsonify(chamada_services.criar_aula(g.school_id, dados)), 201


@chamada_bp.route('/aulas/<aula_id>/status', methods=['PUT'])
@gestao_obrigatoria(COLECAO_AULAS)
def atualizar_aula(aula_id):
    dados = validar_formulario(AtualizarAulaForm, parcial=True)
    return jsonify(chamada_services.atualizar_aula(g.school_id, aula_id, dados))


@chamada_bp.route('/aulas/<aula_id>/cancelar', methods=['POST'])
@gestao_obrigatoria(COLECAO_AULAS)
def cancelar_aula(aula_id):
    return jsonify(chamada_services.cancelar_aula(g.school_id, aula_id))


@chamada_bp.route('/aulas/<aula_id>', methods=['GET'])
@login_obrigatorio
def obter_chamada(aula_id):
    return jsonify(chamada_services.obter_chamada(g.school_id, aula_id))


@chamada_bp.route('/aulas/<aula_id>', methods=['POST'])
@gestao_obrigatoria(COLECAO_CHAMADAS)
def registrar_chamada(aula_id):
    """
    Corpo: {"presencas": {"<aluno_id>": "presente" | "ausente" | "justificado"}}
    ou {"presencas": ["<aluno_id presente>", ...]}.
    """
    corpo = corpo_json()
    if 'presencas' not in corpo:
        raise DadosInvalidos("Informe as presenças da chamada.")
    resultado = chamada_services.registrar_chamada(g.school_id, aula_id, corpo['presencas'])
    return jsonify(resultado), 201
