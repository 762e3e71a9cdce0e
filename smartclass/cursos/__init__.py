"""
Módulo de Cursos (Blueprint)
"""

from flask import Blueprint

cursos_bp = Blueprint('cursos_bp', __name__, url_prefix='/cursos')

from . import routes
