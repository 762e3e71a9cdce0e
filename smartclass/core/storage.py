"""
Módulo de Integração com Google Cloud Storage (Service Layer)

Guarda fotos de alunos e anexos do chat em um único bucket, separados por
prefixo ('alunos-fotos/', 'chat-attachments/'). Os objetos não são
públicos: o acesso é feito por Signed URL.
"""

import re
import unicodedata
import uuid
from datetime import timedelta
from typing import Optional

from flask import current_app
from google.cloud import storage

from smartclass.core.errors import ServicoIndisponivel
from smartclass.core.logger import get_logger

logger = get_logger(__name__)

# Validade das Signed URLs (7 dias é o máximo do V4)
EXPIRACAO_URL_PADRAO = 7 * 24 * 3600


def _get_client() -> storage.Client:
    return storage.Client(project=current_app.config['GOOGLE_CLOUD_PROJECT'])


def _get_bucket():
    bucket_name = current_app.config.get('GCS_BUCKET_NAME')
    if not bucket_name:
        raise ServicoIndisponivel("Armazenamento de arquivos não configurado.")
    return _get_client().bucket(bucket_name)


def limpar_nome_arquivo(nome: str) -> str:
    """Remove acentos e caracteres fora de [a-zA-Z0-9._-]."""
    if not nome:
        return "arquivo"
    nfkd = unicodedata.normalize('NFKD', nome)
    texto_ascii = "".join(c for c in nfkd if not unicodedata.combining(c))
    return re.sub(r'[^a-zA-Z0-9\.\-_]', '_', texto_ascii)


def montar_caminho(prefixo: str, school_id: str, nome_original: str) -> str:
    """Ex: 'alunos-fotos/<escola>/<uuid>_foto.jpg'."""
    return f"{prefixo}/{school_id}/{uuid.uuid4().hex}_{limpar_nome_arquivo(nome_original)}"


def upload_arquivo(conteudo: bytes, caminho: str, content_type: str) -> str:
    """
    Faz o upload e retorna o NOME DO BLOB (ID interno).
    NÃO torna o arquivo público.
    """
    try:
        blob = _get_bucket().blob(caminho)
        blob.upload_from_string(conteudo, content_type=content_type)
    except ServicoIndisponivel:
        raise
    except Exception as e:
        logger.error(f"Erro no upload para o Storage ({caminho}): {e}", exc_info=True)
        raise ServicoIndisponivel("Falha ao enviar o arquivo. Tente novamente.") from e

    logger.info(f"Arquivo enviado ao Storage: {caminho} ({len(conteudo)} bytes)")
    return caminho


def gerar_url_assinada(blob_name: str, expiration: int = EXPIRACAO_URL_PADRAO) -> Optional[str]:
    """
    Gera uma Signed URL temporária para acesso seguro ao arquivo.
    Args:
        blob_name: ID interno do arquivo no GCS.
        expiration: Tempo em segundos.
    """
    if not blob_name:
        return None
    try:
        blob = _get_bucket().blob(blob_name)
        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=expiration),
            method="GET"
        )
    except Exception as e:
        logger.error(f"Erro ao gerar Signed URL para {blob_name}: {e}", exc_info=True)
        return None


def excluir_arquivo(blob_name: str) -> None:
    """Remove arquivo do Bucket pelo nome do blob. Falhas são apenas logadas."""
    bucket_name = current_app.config.get('GCS_BUCKET_NAME')
    if not bucket_name or not blob_name:
        return

    try:
        _get_bucket().blob(blob_name).delete()
        logger.info(f"Arquivo removido do Storage: {blob_name}")
    except Exception as e:
        logger.warning(f"Erro ao deletar arquivo {blob_name}: {e}")
