"""
Camada de Serviço do Chat

Conversas guardam os participantes em `participant_ids`; só participantes
leem ou escrevem numa conversa. Enquetes ficam em 'polls' com as opções
embutidas, e cada voto é um documento com id `<opcao>__<perfil>`, o que
impede votar duas vezes na mesma opção.
"""

from typing import Optional, Tuple
from urllib.parse import quote

from flask import current_app
from google.api_core.exceptions import AlreadyExists
from google.cloud import firestore

from smartclass.core.constants import (
    COLECAO_ALUNOS,
    COLECAO_CONVERSAS,
    COLECAO_ENQUETES,
    COLECAO_MENSAGENS,
    COLECAO_PERFIS,
    COLECAO_PROFESSORES,
    COLECAO_TURMAS,
    COLECAO_VOTOS,
    PAPEL_ALUNO,
    PAPEL_PROFESSOR,
    TIPOS_ANEXO,
)
from smartclass.core.crypto import gerar_id_aleatorio
from smartclass.core.errors import AcessoNegado, Conflito, DadosInvalidos
from smartclass.core.logger import get_logger
from smartclass.core.security import validador
from smartclass.core.storage import gerar_url_assinada, montar_caminho, upload_arquivo
from smartclass.core.tenancy import TenantRepository, ordenar

logger = get_logger(__name__)

URL_AVATAR = "https://ui-avatars.com/api/?name={nome}&background={cor}&color=fff"
COR_GRUPO = '3b82f6'
COR_CONTATO = '10b981'
COR_DESCONHECIDO = '6b7280'

MIN_OPCOES = 2
MAX_OPCOES = 10

TIPO_DESTINATARIO = {PAPEL_ALUNO: 'student', PAPEL_PROFESSOR: 'teacher'}


def url_avatar(nome: str, cor: str = COR_GRUPO) -> str:
    return URL_AVATAR.format(nome=quote(nome or 'U'), cor=cor)


# === CONVERSAS ===

def obter_conversa(school_id: str, conversa_id: str, profile_id: str) -> dict:
    conversa = TenantRepository(COLECAO_CONVERSAS, school_id).obter_ou_404(conversa_id, "Conversa não encontrada.")
    if profile_id not in (conversa.get('participant_ids') or []):
        logger.warning(f"Perfil {profile_id} tentou acessar a conversa {conversa_id} sem participar dela.")
        raise AcessoNegado("Você não participa desta conversa.")
    return conversa


def _destinatario(conversa: dict, profile_id: str, perfis: dict, turmas: dict) -> dict:
    if conversa.get('is_group_chat') and conversa.get('group_chat_class_id'):
        turma = turmas.get(conversa['group_chat_class_id']) or {}
        nome = turma.get('nome') or conversa.get('title') or 'Grupo'
        return {
            'id': conversa['group_chat_class_id'],
            'name': nome,
            'avatarUrl': url_avatar(nome, COR_GRUPO),
            'type': 'class',
            'school_id': conversa.get('school_id'),
        }

    outros = [pid for pid in conversa.get('participant_ids') or [] if pid != profile_id]
    perfil = perfis.get(outros[0]) if outros else None
    if not perfil:
        return {
            'id': 'unknown',
            'name': 'Usuário Desconhecido',
            'avatarUrl': url_avatar('?', COR_DESCONHECIDO),
            'type': 'director',
            'school_id': conversa.get('school_id'),
        }

    nome = perfil.get('nome_completo') or 'Usuário'
    return {
        'id': perfil['id'],
        'name': nome,
        'avatarUrl': perfil.get('avatar_url') or url_avatar(nome, COR_CONTATO),
        'type': TIPO_DESTINATARIO.get(perfil.get('tipo_usuario'), 'director'),
        'school_id': conversa.get('school_id'),
    }


def _resumo_mensagem(mensagem: Optional[dict]) -> str:
    if not mensagem:
        return 'Nenhuma mensagem'
    if mensagem.get('text_content'):
        return mensagem['text_content']
    if mensagem.get('attachment_type'):
        return f"📎 {mensagem.get('attachment_file_name') or mensagem['attachment_type']}"
    return 'Nenhuma mensagem'


def listar_conversas(school_id: str, profile_id: str) -> list:
    conversas = TenantRepository(COLECAO_CONVERSAS, school_id).contem('participant_ids', profile_id)
    repo_mensagens = TenantRepository(COLECAO_MENSAGENS, school_id)
    perfis = TenantRepository(COLECAO_PERFIS, school_id).mapa_por_id(
        pid for c in conversas for pid in c.get('participant_ids') or [] if pid != profile_id
    )
    turmas = TenantRepository(COLECAO_TURMAS, school_id).mapa_por_id(c.get('group_chat_class_id') for c in conversas)

    resultado = []
    for conversa in conversas:
        mensagens = repo_mensagens.listar(order_by='created_at', conversation_id=conversa['id'])
        ultima = mensagens[-1] if mensagens else None
        conversa['recipient'] = _destinatario(conversa, profile_id, perfis, turmas)
        conversa['lastMessage'] = _resumo_mensagem(ultima)
        conversa['lastMessageTimestamp'] = (ultima or {}).get('created_at') or conversa.get('updated_at')
        conversa['unreadCount'] = 0
        resultado.append(conversa)
    return ordenar(resultado, 'lastMessageTimestamp', descending=True)


def criar_conversa_direta(school_id: str, solicitante: dict, profile_id: str) -> Tuple[dict, bool]:
    """
    Conversa entre o solicitante e outro perfil da escola. Se já existir,
    retorna a existente. O segundo valor indica se a conversa foi criada.
    """
    if profile_id == solicitante['id']:
        raise DadosInvalidos("Não é possível iniciar uma conversa consigo mesmo.")
    TenantRepository(COLECAO_PERFIS, school_id).obter_ou_404(profile_id, "Usuário não encontrado.")

    repo = TenantRepository(COLECAO_CONVERSAS, school_id)
    participantes = {solicitante['id'], profile_id}
    for conversa in repo.contem('participant_ids', solicitante['id']):
        if not conversa.get('is_group_chat') and set(conversa.get('participant_ids') or []) == participantes:
            return conversa, False

    conversa = repo.criar({
        'title': None,
        'is_group_chat': False,
        'group_chat_class_id': None,
        'participant_ids': [solicitante['id'], profile_id],
    })
    logger.info(f"Conversa direta criada: {conversa['id']}")
    return conversa, True


def criar_conversa_turma(school_id: str, solicitante: dict, turma_id: str) -> Tuple[dict, bool]:
    """
    Grupo da turma: perfis dos alunos e professores da turma mais o
    solicitante. Uma turma tem um único grupo.
    """
    turma = TenantRepository(COLECAO_TURMAS, school_id).obter_ou_404(turma_id, "Turma não encontrada.")

    repo = TenantRepository(COLECAO_CONVERSAS, school_id)
    existentes = repo.listar(group_chat_class_id=turma_id)
    if existentes:
        return existentes[0], False

    alunos = TenantRepository(COLECAO_ALUNOS, school_id).listar(turma_id=turma_id)
    professores = TenantRepository(COLECAO_PROFESSORES, school_id).mapa_por_id(turma.get('professor_ids') or [])
    participantes = [solicitante['id']]
    for registro in list(alunos) + list(professores.values()):
        user_id = registro.get('user_id')
        if user_id and user_id not in participantes:
            participantes.append(user_id)

    conversa = repo.criar({
        'title': turma.get('nome'),
        'is_group_chat': True,
        'group_chat_class_id': turma_id,
        'participant_ids': participantes,
    })
    logger.info(f"Grupo da turma {turma_id} criado com {len(participantes)} participantes")
    return conversa, True


# === MENSAGENS ===

def _votos_por_opcao(school_id: str, poll_id: str) -> dict:
    contagem = {}
    for voto in TenantRepository(COLECAO_VOTOS, school_id).listar(poll_id=poll_id):
        contagem[voto['poll_option_id']] = contagem.get(voto['poll_option_id'], 0) + 1
    return contagem


def dados_enquete(school_id: str, enquete: dict) -> dict:
    votos = _votos_por_opcao(school_id, enquete['id'])
    return {
        'id': enquete['id'],
        'question': enquete.get('question'),
        'options': [
            {'id': o['id'], 'text': o['text'], 'votes': votos.get(o['id'], 0)}
            for o in enquete.get('options') or []
        ],
        'school_id': enquete.get('school_id'),
    }


def _apresentar_mensagem(school_id: str, mensagem: dict, profile_id: str, perfis: dict, enquetes: dict) -> dict:
    remetente = perfis.get(mensagem.get('sender_profile_id')) or {}
    nome = remetente.get('nome_completo')
    mensagem['isSender'] = mensagem.get('sender_profile_id') == profile_id
    mensagem['senderName'] = nome
    mensagem['senderAvatar'] = remetente.get('avatar_url') or url_avatar(nome or 'U')

    mensagem['attachment'] = None
    if mensagem.get('attachment_type'):
        enquete = enquetes.get(mensagem.get('poll_id'))
        mensagem['attachment'] = {
            'type': mensagem['attachment_type'],
            'fileName': mensagem.get('attachment_file_name'),
            'fileUrl': gerar_url_assinada(mensagem.get('attachment_blob')),
            'pollData': dados_enquete(school_id, enquete) if enquete else None,
        }
    return mensagem


def listar_mensagens(school_id: str, conversa_id: str, profile_id: str) -> list:
    obter_conversa(school_id, conversa_id, profile_id)
    mensagens = TenantRepository(COLECAO_MENSAGENS, school_id).listar(
        order_by='created_at', conversation_id=conversa_id
    )
    perfis = TenantRepository(COLECAO_PERFIS, school_id).mapa_por_id(m.get('sender_profile_id') for m in mensagens)
    enquetes = TenantRepository(COLECAO_ENQUETES, school_id).mapa_por_id(m.get('poll_id') for m in mensagens)
    return [_apresentar_mensagem(school_id, m, profile_id, perfis, enquetes) for m in mensagens]


def _validar_anexo(school_id: str, anexo) -> dict:
    if not isinstance(anexo, dict):
        raise DadosInvalidos("Anexo inválido.")
    tipo = anexo.get('type')
    if tipo not in TIPOS_ANEXO:
        raise DadosInvalidos("Tipo de anexo inválido.", detalhes={'tipos_validos': list(TIPOS_ANEXO)})
    if tipo == 'poll':
        TenantRepository(COLECAO_ENQUETES, school_id).obter_ou_404(anexo.get('pollId'), "Enquete não encontrada.")
    else:
        blob = anexo.get('blobName')
        if not blob:
            raise DadosInvalidos("Anexo sem arquivo. Envie o arquivo antes da mensagem.")
        # Só aceita arquivos enviados por /chat/anexos para esta escola
        prefixo = current_app.config.get('STORAGE_PREFIXO_ANEXOS', 'chat-attachments')
        if not isinstance(blob, str) or not blob.startswith(f"{prefixo}/{school_id}/") or '..' in blob:
            raise DadosInvalidos("Anexo inválido.")
    return anexo


def enviar_mensagem(school_id: str, conversa_id: str, remetente: dict, texto: str = None, anexo: dict = None) -> dict:
    """Texto em branco só é aceito quando há anexo."""
    obter_conversa(school_id, conversa_id, remetente['id'])
    texto = (texto or '').strip()
    if not texto and not anexo:
        raise DadosInvalidos("A mensagem não pode estar vazia.")
    if anexo:
        anexo = _validar_anexo(school_id, anexo)

    mensagem = TenantRepository(COLECAO_MENSAGENS, school_id).criar({
        'conversation_id': conversa_id,
        'sender_profile_id': remetente['id'],
        'text_content': texto or None,
        'attachment_type': (anexo or {}).get('type'),
        'attachment_file_name': (anexo or {}).get('fileName'),
        'attachment_blob': (anexo or {}).get('blobName'),
        'poll_id': (anexo or {}).get('pollId'),
    })
    TenantRepository(COLECAO_CONVERSAS, school_id).atualizar(conversa_id, {})

    perfis = {remetente['id']: remetente}
    enquetes = TenantRepository(COLECAO_ENQUETES, school_id).mapa_por_id([mensagem.get('poll_id')])
    return _apresentar_mensagem(school_id, mensagem, remetente['id'], perfis, enquetes)


# === ENQUETES ===

def _normalizar_opcoes(opcoes) -> list:
    if not isinstance(opcoes, list):
        raise DadosInvalidos("Informe as opções da enquete como uma lista.")
    textos = []
    for opcao in opcoes:
        texto = (opcao.get('text') if isinstance(opcao, dict) else opcao)
        if not isinstance(texto, str) or not texto.strip():
            continue
        texto = texto.strip()
        if len(texto) > 200 or not validador.validar_entrada(texto, contexto='enquete').valido:
            raise DadosInvalidos(f"Opção inválida: {texto[:60]}")
        textos.append(texto)

    if len(textos) < MIN_OPCOES:
        raise DadosInvalidos(f"A enquete precisa de pelo menos {MIN_OPCOES} opções preenchidas.")
    if len(textos) > MAX_OPCOES:
        raise DadosInvalidos(f"A enquete pode ter no máximo {MAX_OPCOES} opções.")
    return [{'id': gerar_id_aleatorio(12), 'text': t} for t in textos]


def criar_enquete(school_id: str, conversa_id: str, autor: dict, pergunta: str, opcoes) -> dict:
    """Cria a enquete e a publica na conversa como '📊 Nova enquete: <pergunta>'."""
    obter_conversa(school_id, conversa_id, autor['id'])
    opcoes = _normalizar_opcoes(opcoes)

    enquete = TenantRepository(COLECAO_ENQUETES, school_id).criar({
        'question': pergunta.strip(),
        'options': opcoes,
        'conversation_id': conversa_id,
        'created_by': autor['id'],
    })
    logger.info(f"Enquete criada: {enquete['id']} na conversa {conversa_id}")
    return enviar_mensagem(
        school_id, conversa_id, autor,
        texto=f"📊 Nova enquete: {enquete['question']}",
        anexo={'type': 'poll', 'pollId': enquete['id']},
    )


def votar(school_id: str, poll_id: str, option_id: str, eleitor: dict) -> dict:
    repo_enquetes = TenantRepository(COLECAO_ENQUETES, school_id)
    enquete = repo_enquetes.obter_ou_404(poll_id, "Enquete não encontrada.")
    obter_conversa(school_id, enquete.get('conversation_id'), eleitor['id'])

    if option_id not in {o['id'] for o in enquete.get('options') or []}:
        raise DadosInvalidos("Opção inválida para esta enquete.")

    repo_votos = TenantRepository(COLECAO_VOTOS, school_id)
    ref = repo_votos.referencia.document(f"{option_id}__{eleitor['id']}")
    try:
        ref.create({
            'school_id': school_id,
            'poll_id': poll_id,
            'poll_option_id': option_id,
            'voter_profile_id': eleitor['id'],
            'created_at': firestore.SERVER_TIMESTAMP,
        })
    except AlreadyExists:
        raise Conflito("Você já votou nesta opção")

    logger.info(f"Voto registrado na enquete {poll_id}")
    return dados_enquete(school_id, enquete)


# === ANEXOS ===

def tipo_anexo(content_type: str) -> str:
    if content_type.startswith('image/'):
        return 'image'
    if content_type.startswith('audio/'):
        return 'audio'
    return 'document'


def upload_anexo(school_id: str, conteudo: bytes, nome_arquivo: str, content_type: str) -> dict:
    if not conteudo:
        raise DadosInvalidos("Nenhum arquivo enviado.")
    violacoes = validador.validar_arquivo(nome_arquivo, content_type, len(conteudo))
    if violacoes:
        raise DadosInvalidos(violacoes[0].mensagem, detalhes={'arquivo': [v.mensagem for v in violacoes]})

    prefixo = current_app.config.get('STORAGE_PREFIXO_ANEXOS', 'chat-attachments')
    blob_name = upload_arquivo(conteudo, montar_caminho(prefixo, school_id, nome_arquivo), content_type)
    return {
        'fileName': nome_arquivo,
        'blobName': blob_name,
        'fileUrl': gerar_url_assinada(blob_name),
        'type': tipo_anexo(content_type),
    }
