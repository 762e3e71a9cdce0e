"""
Rotas do Módulo de Chat
"""

from flask import g, jsonify, request

from . import chat_bp
from . import services as chat_services
from .forms import ConversaForm, EnqueteForm, MensagemForm, VotoForm
from smartclass.auth.decorators import login_obrigatorio
from smartclass.core.constants import PAPEIS_PEDAGOGICOS
from smartclass.core.errors import AcessoNegado, DadosInvalidos
from smartclass.core.extensions import limiter
from smartclass.core.formularios import corpo_json, validar_dados, validar_formulario
from smartclass.core.logger import get_logger

logger = get_logger(__name__)


@chat_bp.route('/conversas', methods=['GET'])
@login_obrigatorio
def listar_conversas():
    return jsonify(chat_services.listar_conversas(g.school_id, g.perfil['id']))


@chat_bp.route('/conversas', methods=['POST'])
@login_obrigatorio
def criar_conversa():
    """Corpo: {"profile_id": "..."} para conversa direta ou {"turma_id": "..."} para o grupo da turma."""
    dados = validar_formulario(ConversaForm)
    if dados.get('turma_id'):
        if g.perfil.get('tipo_usuario') not in PAPEIS_PEDAGOGICOS:
            raise AcessoNegado("Apenas a equipe da escola pode criar grupos de turma.")
        conversa, criada = chat_services.criar_conversa_turma(g.school_id, g.perfil, dados['turma_id'])
    elif dados.get('profile_id'):
        conversa, criada = chat_services.criar_conversa_direta(g.school_id, g.perfil, dados['profile_id'])
    else:
        raise DadosInvalidos("Informe o destinatário (profile_id) ou a turma (turma_id).")
    return jsonify(conversa), 201 if criada else 200


@chat_bp.route('/conversas/<conversa_id>/mensagens', methods=['GET'])
@login_obrigatorio
def listar_mensagens(conversa_id):
    return jsonify(chat_services.listar_mensagens(g.school_id, conversa_id, g.perfil['id']))


@chat_bp.route('/conversas/<conversa_id>/mensagens', methods=['POST'])
@login_obrigatorio
@limiter.limit("60 per minute")
def enviar_mensagem(conversa_id):
    """Corpo: {"texto": "...", "anexo": {"type", "fileName", "blobName"}?}."""
    corpo = corpo_json()
    dados = validar_dados(MensagemForm, corpo)
    mensagem = chat_services.enviar_mensagem(
        g.school_id, conversa_id, g.perfil, texto=dados.get('texto'), anexo=corpo.get('anexo')
    )
    return jsonify(mensagem), 201


@chat_bp.route('/conversas/<conversa_id>/enquetes', methods=['POST'])
@login_obrigatorio
def criar_enquete(conversa_id):
    """Corpo: {"pergunta": "...", "opcoes": ["...", "..."]}."""
    corpo = corpo_json()
    dados = validar_dados(EnqueteForm, corpo)
    mensagem = chat_services.criar_enquete(
        g.school_id, conversa_id, g.perfil, dados['pergunta'], corpo.get('opcoes')
    )
    return jsonify(mensagem), 201


@chat_bp.route('/enquetes/<poll_id>/votos', methods=['POST'])
@login_obrigatorio
def votar(poll_id):
    dados = validar_formulario(VotoForm)
    return jsonify(chat_services.votar(g.school_id, poll_id, dados['option_id'], g.perfil)), 201


@chat_bp.route('/anexos', methods=['POST'])
@login_obrigatorio
@limiter.limit("30 per minute")
def upload_anexo():
    """multipart/form-data com o arquivo no campo 'arquivo'."""
    arquivo = request.files.get('arquivo')
    if not arquivo or not arquivo.filename:
        raise DadosInvalidos("Nenhum arquivo enviado.")
    conteudo = arquivo.read()
    resultado = chat_services.upload_anexo(
        g.school_id, conteudo, arquivo.filename, arquivo.mimetype or 'application/octet-stream'
    )
    logger.info(f"Anexo enviado por {g.perfil['id']}: {arquivo.filename}")
    return jsonify(resultado), 201
