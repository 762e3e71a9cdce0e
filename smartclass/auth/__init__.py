"""
Módulo de Autenticação (Blueprint)

Cadastro da escola, login (senha ou Google), sessão, perfil do usuário
logado e aceite de convites.
"""

from flask import Blueprint

# Cria uma instância do Blueprint para 'auth'
auth_bp = Blueprint('auth_bp', __name__)

# Importa as rotas no final para evitar dependência circular
from . import routes
