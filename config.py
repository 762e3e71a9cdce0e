"""
Módulo de Configuração (Blindado)

Define a classe de configuração principal. Implementa o padrão 'Fail Fast':
se uma variável crítica estiver faltando, a aplicação nem inicia.
"""

import os
from dotenv import load_dotenv

# Carrega variáveis do arquivo .env
load_dotenv()

if os.environ.get('FLASK_DEBUG') == '1':
    os.environ['OAUTHLIB_INSECURE_TRANSPORT'] = '1'


def _env_int(nome: str, padrao: int) -> int:
    valor = os.environ.get(nome)
    if not valor:
        return padrao
    try:
        return int(valor)
    except ValueError:
        raise ValueError(f"ERRO CRÍTICO: '{nome}' deve ser um número inteiro (recebido: {valor!r}).")


class Config:
    """
    Classe de configuração base da aplicação.
    """

    # === SEGURANÇA CRÍTICA (Fail Fast) ===
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("ERRO CRÍTICO: 'SECRET_KEY' não encontrada no .env. A aplicação não pode iniciar insegura.")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'True').lower() in ('true', '1')

    # === GOOGLE CLOUD (Firestore & Storage) ===
    GOOGLE_CLOUD_PROJECT = os.environ.get('GOOGLE_CLOUD_PROJECT')
    GCS_BUCKET_NAME = os.environ.get('GCS_BUCKET_NAME')

    if not GCS_BUCKET_NAME:
        print("AVISO: 'GCS_BUCKET_NAME' não configurado. Fotos e anexos do chat não poderão ser enviados.")

    # Prefixos dos "buckets" lógicos dentro do bucket do GCS
    STORAGE_PREFIXO_FOTOS = 'alunos-fotos'
    STORAGE_PREFIXO_ANEXOS = 'chat-attachments'
    MAX_UPLOAD_MB = _env_int('MAX_UPLOAD_MB', 10)
    MAX_CONTENT_LENGTH = MAX_UPLOAD_MB * 1024 * 1024

    # === FLASK ===
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # === OAUTH (LOGIN COM GOOGLE, OPCIONAL) ===
    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET')

    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        print("AVISO: Credenciais OAuth (CLIENT_ID/SECRET) ausentes. Login com Google desativado.")

    # === RATE LIMITING ===
    # Em produção, use Redis (ex: redis://localhost:6379). Memória serve para dev.
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True

    # === REGRAS DE NEGÓCIO ===
    CONVITE_VALIDADE_DIAS = _env_int('CONVITE_VALIDADE_DIAS', 7)
    DASHBOARD_CACHE_TTL = _env_int('DASHBOARD_CACHE_TTL', 60)
    VIACEP_URL = os.environ.get('VIACEP_URL', 'https://viacep.com.br/ws/{cep}/json/')
