"""
Módulo Admin (Blueprint)

Provisionamento de acessos (convites e criação direta), papéis dos
usuários, dados da escola e trilha de auditoria.
"""

from flask import Blueprint

admin_bp = Blueprint(
    'admin_bp',
    __name__,
    url_prefix='/admin' # Todas as rotas começarão com /admin
)

from . import routes
