"""
Módulo Financeiro (Blueprint)

Lançamentos de receitas e despesas, pagamentos e mensalidades.
"""

from flask import Blueprint

financeiro_bp = Blueprint('financeiro_bp', __name__, url_prefix='/financeiro')

from . import routes
