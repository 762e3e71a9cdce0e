"""
Módulo Central de Extensões.
Evita importações circulares centralizando as instâncias das extensões.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect
from authlib.integrations.flask_client import OAuth

# 1. Limiter (Rate Limiting)
# O storage vem de RATELIMIT_STORAGE_URI na configuração (Redis em produção).
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)

# 2. CSRF Protection
csrf = CSRFProtect()

# 3. OAuth (Authlib), registrado na factory apenas se houver credenciais
oauth = OAuth()
