"""
Módulo Principal da Aplicação (Application Factory)
"""

from datetime import date, datetime

from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_wtf.csrf import CSRFError, generate_csrf
from google.api_core.exceptions import Conflict
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix # Importação necessária para o Cloud Run

from config import Config
from .core.async_state import FalhaDeBusca
from .core.errors import SmartClassError
from .core.extensions import csrf, limiter, oauth
from .core.logger import configurar_nivel, get_logger

logger = get_logger(__name__)

MENSAGENS_HTTP = {
    404: "Página não encontrada",
    405: "Método não permitido.",
    413: "Arquivo muito grande.",
    429: "Muitas requisições. Tente novamente em instantes.",
}


class JSONProvider(DefaultJSONProvider):
    """Datas em ISO 8601 e acentos sem escape."""

    ensure_ascii = False
    sort_keys = False

    @staticmethod
    def default(o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config_class=Config):
    """
    Cria e configura uma instância da aplicação Flask.
    """

    app = Flask(__name__, instance_relative_config=True)

    # === CORREÇÃO HTTPS (Cloud Run) ===
    # Ajusta o Flask para entender que está atrás de um Proxy (Cloud Run)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # 1. Carrega a configuração
    app.config.from_object(config_class)
    app.json = JSONProvider(app)
    configurar_nivel(app.config.get('LOG_LEVEL'))

    # 2. Extensões (CSRF, Rate Limiting, OAuth)
    csrf.init_app(app)
    limiter.init_app(app)
    oauth.init_app(app)

    google_client_id = app.config.get('GOOGLE_CLIENT_ID')
    google_client_secret = app.config.get('GOOGLE_CLIENT_SECRET')

    if google_client_id and google_client_secret:
        oauth.register(
            name='google',
            client_id=google_client_id,
            client_secret=google_client_secret,
            server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
            client_kwargs={
                'scope': 'openid email profile'
            }
        )

    # 3. Usuário da sessão (g.perfil / g.school_id) em toda requisição
    from .auth.services import carregar_usuario_da_sessao
    app.before_request(carregar_usuario_da_sessao)

    # 4. Configura os Blueprints (Módulos)
    from .auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/')

    # O url_prefix de cada módulo abaixo já está definido no seu __init__.py
    from .admin import admin_bp
    from .cursos import cursos_bp
    from .turmas import turmas_bp
    from .alunos import alunos_bp
    from .professores import professores_bp
    from .chamada import chamada_bp
    from .financeiro import financeiro_bp
    from .chat import chat_bp
    from .relatorios import relatorios_bp

    for blueprint in (admin_bp, cursos_bp, turmas_bp, alunos_bp, professores_bp,
                      chamada_bp, financeiro_bp, chat_bp, relatorios_bp):
        app.register_blueprint(blueprint)

    _registrar_tratamento_de_erros(app)

    # 5. Rotas utilitárias
    @app.route("/health")
    def health_check():
        return jsonify({'status': 'ok', 'servico': 'SmartClass'}), 200

    @app.route("/csrf-token")
    def csrf_token():
        """Token a ser enviado no header X-CSRFToken em POST/PUT/DELETE."""
        return jsonify({'csrf_token': generate_csrf()})

    logger.info("Aplicação SmartClass inicializada.")
    return app


def _registrar_tratamento_de_erros(app):
    """Toda resposta de erro sai como JSON: {"erro": "..."}."""

    @app.errorhandler(SmartClassError)
    def erro_de_dominio(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(CSRFError)
    def erro_csrf(e):
        logger.warning(f"Requisição rejeitada por CSRF: {e.description}")
        return jsonify({'erro': 'Token CSRF inválido ou ausente. Recarregue a página.'}), 400

    @app.errorhandler(Conflict)
    def erro_conflito(e):
        return jsonify({'erro': 'O registro já existe.'}), 409

    @app.errorhandler(FalhaDeBusca)
    def erro_busca(e):
        return jsonify({'erro': 'Não foi possível carregar os dados. Tente novamente.'}), 503

    @app.errorhandler(HTTPException)
    def erro_http(e):
        mensagem = MENSAGENS_HTTP.get(e.code, e.description)
        return jsonify({'erro': mensagem}), e.code

    @app.errorhandler(Exception)
    def erro_inesperado(e):
        logger.error(f"Erro não tratado: {e}", exc_info=True)
        return jsonify({'erro': 'Erro interno do servidor.'}), 500
