"""
Módulo do Chat (Blueprint)

Conversas diretas e de turma, mensagens, enquetes e anexos.
"""

from flask import Blueprint

chat_bp = Blueprint('chat_bp', __name__, url_prefix='/chat')

# Importa as rotas no final
from . import routes
