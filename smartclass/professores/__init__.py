"""
Módulo de Professores (Blueprint)
"""

from flask import Blueprint

professores_bp = Blueprint('professores_bp', __name__, url_prefix='/professores')

from . import routes
