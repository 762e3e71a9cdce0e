"""
Módulo de Relatórios (Blueprint)

Dashboard da escola, relatório por período e exportação em CSV.
"""

from flask import Blueprint

relatorios_bp = Blueprint('relatorios_bp', __name__, url_prefix='/relatorios')

from . import routes
