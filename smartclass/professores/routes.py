"""
Rotas do Módulo de Professores
"""

from flask import g, jsonify

from . import professores_bp
from . import services as professores_services
from .forms import FichaProfessorForm, ProfessorForm
from smartclass.admin import services as admin_services
from smartclass.auth.decorators import gestao_obrigatoria, login_obrigatorio
from smartclass.core.constants import COLECAO_PROFESSORES, PAPEL_PROFESSOR
from smartclass.core.formularios import corpo_json, validar_dados


@professores_bp.route('', methods=['GET'])
@login_obrigatorio
def listar_professores():
    return jsonify(professores_services.listar_professores(g.school_id))


@professores_bp.route('', methods=['POST'])
@gestao_obrigatoria(COLECAO_PROFESSORES)
def criar_professor():
    """Cria o acesso do professor (perfil + ficha) pelo fluxo de create-access."""
    corpo = corpo_json()
    dados = validar_dados(ProfessorForm, corpo)
    acesso = {
        'email': dados.pop('email'),
        'nome_completo': dados['nome'],
        'telefone': dados.get('telefone'),
        'senha': dados.pop('senha', None),
        'tipo_usuario': PAPEL_PROFESSOR,
    }
    metadata = {k: v for k, v in dados.items() if v is not None}
    metadata['especialidades'] = corpo.get('especialidades')
    resultado = admin_services.criar_acesso(acesso, metadata, g.perfil)
    return jsonify(resultado), 201


@professores_bp.route('/<professor_id>', methods=['GET'])
@login_obrigatorio
def obter_professor(professor_id):
    return jsonify(professores_services.obter_professor(g.school_id, professor_id))


@professores_bp.route('/<professor_id>', methods=['PUT'])
@gestao_obrigatoria(COLECAO_PROFESSORES)
def atualizar_professor(professor_id):
    corpo = corpo_json()
    dados = validar_dados(FichaProfessorForm, corpo, parcial=True)
    professor = professores_services.atualizar_professor(
        g.school_id, professor_id, dados, especialidades=corpo.get('especialidades')
    )
    return jsonify(professor)


@professores_bp.route('/<professor_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_PROFESSORES)
def excluir_professor(professor_id):
    professores_services.excluir_professor(g.school_id, professor_id)
    return jsonify({'mensagem': 'Professor excluído.'})
