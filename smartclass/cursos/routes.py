"""
Rotas do Módulo de Cursos
"""

from flask import g, jsonify

from . import cursos_bp
from . import services as cursos_services
from .forms import CursoForm
from smartclass.auth.decorators import gestao_obrigatoria, login_obrigatorio
from smartclass.core.constants import COLECAO_CURSOS
from smartclass.core.formularios import validar_formulario


@cursos_bp.route('', methods=['GET'])
@login_obrigatorio
def listar_cursos():
    return jsonify(cursos_services.listar_cursos(g.school_id))


@cursos_bp.route('', methods=['POST'])
@gestao_obrigatoria(COLECAO_CURSOS)
def criar_curso():
    dados = validar_formulario(CursoForm)
    return jsonify(cursos_services.criar_curso(g.school_id, dados)), 201


@cursos_bp.route('/<curso_id>', methods=['GET'])
@login_obrigatorio
def obter_curso(curso_id):
    return jsonify(cursos_services.obter_curso(g.school_id, curso_id))


@cursos_bp.route('/<curso_id>', methods=['PUT'])
@gestao_obrigatoria(COLECAO_CURSOS)
def atualizar_curso(curso_id):
    dados = validar_formulario(CursoForm, parcial=True)
    return jsonify(cursos_services.atualizar_curso(g.school_id, curso_id, dados))


@cursos_bp.route('/<curso_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_CURSOS)
def excluir_curso(curso_id):
    cursos_services.excluir_curso(g.school_id, curso_id)
    return jsonify({'mensagem': 'Curso excluído.'})
