"""
Rotas do Módulo de Alunos
"""

from flask import g, jsonify, request

from . import alunos_bp
from . import services as alunos_services
from .forms import AlunoForm, FichaAlunoForm
from smartclass.admin import services as admin_services
from smartclass.auth.decorators import gestao_obrigatoria, login_obrigatorio
from smartclass.core.constants import COLECAO_ALUNOS, PAPEL_ALUNO
from smartclass.core.errors import DadosInvalidos
from smartclass.core.formularios import validar_formulario


@alunos_bp.route('', methods=['GET'])
@login_obrigatorio
def listar_alunos():
    return jsonify(alunos_services.listar_alunos(g.school_id))


@alunos_bp.route('', methods=['POST'])
@gestao_obrigatoria(COLECAO_ALUNOS)
def criar_aluno():
    """Cria o acesso do aluno (perfil + ficha) pelo fluxo de create-access."""
    dados = validar_formulario(AlunoForm)
    acesso = {
        'email': dados.pop('email'),
        'nome_completo': dados['nome'],
        'telefone': dados.get('telefone'),
        'senha': dados.pop('senha', None),
        'tipo_usuario': PAPEL_ALUNO,
    }
    metadata = {k: v for k, v in dados.items() if v is not None}
    resultado = admin_services.criar_acesso(acesso, metadata, g.perfil)
    return jsonify(resultado), 201


@alunos_bp.route('/<aluno_id>', methods=['GET'])
@login_obrigatorio
def obter_aluno(aluno_id):
    return jsonify(alunos_services.obter_aluno(g.school_id, aluno_id))


@alunos_bp.route('/<aluno_id>', methods=['PUT'])
@gestao_obrigatoria(COLECAO_ALUNOS)
def atualizar_aluno(aluno_id):
    dados = validar_formulario(FichaAlunoForm, parcial=True)
    return jsonify(alunos_services.atualizar_aluno(g.school_id, aluno_id, dados))


@alunos_bp.route('/<aluno_id>', methods=['DELETE'])
@gestao_obrigatoria(COLECAO_ALUNOS)
def excluir_aluno(aluno_id):
    alunos_services.excluir_aluno(g.school_id, aluno_id)
    return jsonify({'mensagem': 'Aluno excluído.'})


@alunos_bp.route('/<aluno_id>/foto', methods=['POST'])
@gestao_obrigatoria(COLECAO_ALUNOS)
def upload_foto(aluno_id):
    """multipart/form-data com o arquivo no campo 'foto'."""
    arquivo = request.files.get('foto')
    if not arquivo or not arquivo.filename:
        raise DadosInvalidos("Nenhuma imagem enviada.")
    aluno = alunos_services.upload_foto(g.school_id, aluno_id, arquivo.read(), arquivo.filename)
    return jsonify(aluno)


@alunos_bp.route('/<aluno_id>/presencas', methods=['GET'])
@login_obrigatorio
def historico_presenca(aluno_id):
    return jsonify(alunos_services.historico_presenca(g.school_id, aluno_id))
