"""
Decoradores de acesso (equivalentes ao ProtectedRoute).

Dependem de g.perfil e g.school_id, carregados a cada requisição por
services.carregar_usuario_da_sessao (registrado na factory).
"""

from functools import wraps

from flask import g

from smartclass.core.errors import AcessoNegado, NaoAutenticado
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import exigir_gestao

logger = get_logger(__name__)


def login_obrigatorio(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not getattr(g, 'perfil', None):
            raise NaoAutenticado()
        return view(*args, **kwargs)
    return wrapper


def perfil_obrigatorio(*papeis):
    """Exige login e um dos papéis informados (tipo_usuario)."""
    def decorator(view):
        @wraps(view)
        @login_obrigatorio
        def wrapper(*args, **kwargs):
            papel = g.perfil.get('tipo_usuario')
            if papel not in papeis:
                logger.warning(f"Acesso negado a {view.__name__}: papel '{papel}' (perfil {g.perfil.get('id')})")
                raise AcessoNegado()
            return view(*args, **kwargs)
        return wrapper
    return decorator


def gestao_obrigatoria(colecao):
    """Exige login e permissão de escrita na coleção (tabela POLITICA_GESTAO)."""
    def decorator(view):
        @wraps(view)
        @login_obrigatorio
        def wrapper(*args, **kwargs):
            exigir_gestao(colecao, g.perfil.get('tipo_usuario'))
            return view(*args, **kwargs)
        return wrapper
    return decorator
