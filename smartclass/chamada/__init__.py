"""
Módulo de Chamada (Blueprint)

Aulas das turmas e registro de presença.
"""

from flask import Blueprint

chamada_bp = Blueprint('chamada_bp', __name__, url_prefix='/chamada')

from . import routes
