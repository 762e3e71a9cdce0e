"""
Módulo de Conexão com o Banco de Dados (Core)

Inicializa o cliente do Google Firestore, usado pelos "Service Layers"
da aplicação. O cliente é criado sob demanda e reutilizado pelo processo.
"""

import threading
from typing import Optional

from flask import current_app, has_app_context
from google.cloud import firestore

from smartclass.core.errors import ServicoIndisponivel
from smartclass.core.logger import get_logger

logger = get_logger(__name__)

_client: Optional[firestore.Client] = None
_client_lock = threading.Lock()


def get_db() -> firestore.Client:
    """
    Retorna o cliente do Firestore, criando-o na primeira chamada.

    O SDK busca as credenciais em 'GOOGLE_APPLICATION_CREDENTIALS' (ou nas
    credenciais padrão do ambiente, no Cloud Run).
    """
    global _client
    if _client is not None:
        return _client

    with _client_lock:
        if _client is None:
            projeto = current_app.config.get('GOOGLE_CLOUD_PROJECT') if has_app_context() else None
            try:
                _client = firestore.Client(project=projeto)
                logger.info("Conexão com o Firestore estabelecida com sucesso.")
            except Exception as e:
                logger.critical(f"Erro ao conectar com o Firestore: {e}", exc_info=True)
                raise ServicoIndisponivel("Não foi possível conectar ao banco de dados.") from e
    return _client


def set_db(client) -> None:
    """Substitui o cliente em uso (scripts de manutenção e testes)."""
    global _client
    with _client_lock:
        _client = client
