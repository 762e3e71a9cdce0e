"""
Trilha de Auditoria

Registra no Firestore ações sensíveis (provisionamento de acessos, troca
de papéis, violações críticas de segurança). A gravação nunca interrompe
a operação principal: falhas são apenas logadas.
"""

from typing import Optional

from flask import g, has_app_context, has_request_context, request
from google.cloud import firestore

from smartclass.core.constants import COLECAO_AUDITORIA
from smartclass.core.database import get_db
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import doc_para_dict, ordenar

logger = get_logger(__name__)

ACAO_ACESSO_CRIADO = 'ACESSO_CRIADO'
ACAO_CONVITE_ENVIADO = 'CONVITE_ENVIADO'
ACAO_CONVITE_ACEITO = 'CONVITE_ACEITO'
ACAO_PAPEL_ALTERADO = 'PAPEL_ALTERADO'
ACAO_ESCOLA_CRIADA = 'ESCOLA_CRIADA'
ACAO_ESCOLA_ATUALIZADA = 'ESCOLA_ATUALIZADA'
ACAO_LOGIN_BLOQUEADO = 'LOGIN_BLOQUEADO'
ACAO_VIOLACAO_SEGURANCA = 'VIOLACAO_SEGURANCA'


def registrar_evento(acao: str, descricao: str, detalhes: dict = None,
                     school_id: Optional[str] = None, profile_id: Optional[str] = None) -> None:
    """
    Grava um evento de auditoria. Usa a escola/perfil da requisição atual
    quando não informados explicitamente.
    """
    if not has_app_context():
        logger.warning(f"Auditoria fora do contexto da aplicação: {acao} - {descricao}")
        return

    perfil = getattr(g, 'perfil', None) or {}
    registro = {
        'acao': acao,
        'descricao': descricao,
        'detalhes': detalhes or {},
        'school_id': school_id or getattr(g, 'school_id', None),
        'profile_id': profile_id or perfil.get('id'),
        'ip': request.remote_addr if has_request_context() else None,
        'created_at': firestore.SERVER_TIMESTAMP,
    }

    try:
        get_db().collection(COLECAO_AUDITORIA).add(registro)
        logger.info(f"Auditoria: {acao} - {descricao}")
    except Exception as e:
        logger.error(f"Falha ao gravar auditoria ({acao}): {e}", exc_info=True)


def listar_eventos(school_id: str, limite: int = 50) -> list:
    docs = get_db().collection(COLECAO_AUDITORIA).where('school_id', '==', school_id).stream()
    eventos = [doc_para_dict(doc) for doc in docs]
    return ordenar(eventos, 'created_at', descending=True)[:limite]
