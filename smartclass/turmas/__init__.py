"""
Módulo de Turmas (Blueprint)

Cadastro das turmas, professores da turma e matrículas.
"""

from flask import Blueprint

turmas_bp = Blueprint('turmas_bp', __name__, url_prefix='/turmas')

from . import routes
