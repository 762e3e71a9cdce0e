"""
Rotas do Módulo de Turmas
"""

from flask import g, jsonify

from . import turmas_bp
from . import services as turmas_services
from .forms import MatriculaForm, ProfessorTurmaForm, TurmaForm
from smartclass.auth.decorators import gestao_obrigatoria, login_obrigatorio
from smartclass.core.constants import COLECAO_TURMAS
from smartclass.core.formularios import validar_formulario


@turmas_bp.route('', methods=['GET'])
@login_obrigatorio
def listar_turmas():
    return jsonify(turmas_services.listar_turmas(g.school_id))


@turmas_bp.route('', methods=['POST'])
@gestao_obrigatoria(COLECAO_TURMAS)
def criar_turma():
    dados = validar_formulario(TurmaForm)
    return jsonify(turmas_services.criar_turma(g.school_id, dados)), 201


@turmas_bp.route('/<turma_id>', methods=['GET'])
@login_obrigatorio
def obter_turma(turma_id):
    return jsonify(turmas_services.obter_turma(g.school_id, turma_id))


@turmas_bp.route('/<turma_id>', methods=['PUT'])
@gestao_obrigatoria(COLECAO_TURMAS)
def atualizar_turma(turma_id):
    dados = validar_formulario(TurmaForm, parcial=True)
    return jsonify(turmas_services.atualizar_turma(g.school_id, turma_id, dados))


@turmas_bp.route('/<turma_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_TURMAS)
def excluir_turma(turma_id):
    turmas_services.excluir_turma(g.school_id, turma_id)
    return jsonify({'mensagem': 'Turma excluída.'})


@turmas_bp.route('/<turma_id>/professores', methods=['POST'])
@gestao_obrigatoria(COLECAO_TURMAS)
def adicionar_professor(turma_id):
    dados = validar_formulario(ProfessorTurmaForm)
    return jsonify(turmas_services.adicionar_professor(g.school_id, turma_id, dados['professor_id']))


@turmas_bp.route('/<turma_id>/professores/<professor_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_TURMAS)
def remover_professor(turma_id, professor_id):
    return jsonify(turmas_services.remover_professor(g.school_id, turma_id, professor_id))


@turmas_bp.route('/<turma_id>/matriculas', methods=['POST'])
@gestao_obrigatoria(COLECAO_TURMAS)
def matricular(turma_id):
    dados = validar_formulario(MatriculaForm)
    return jsonify(turmas_services.matricular(g.school_id, turma_id, dados['aluno_id']))


@turmas_bp.route('/<turma_id>/matriculas/<aluno_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_TURMAS)
def desmatricular(turma_id, aluno_id):
    return jsonify(turmas_services.desmatricular(g.school_id, turma_id, aluno_id))
