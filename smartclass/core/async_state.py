"""
Estado de Busca com Cache e Retentativas

Envolve uma função de busca (ex: uma consulta ao Firestore ou a uma API
externa) com:
- cache em memória por chave, com TTL;
- validação e transformação do resultado;
- retentativas com backoff exponencial (delay * 2^(tentativa-1)).

Uso:
    estado = AsyncState(lambda: consultar(), cache_key='dashboard_x', cache_ttl=60)
    dados = estado.fetch()
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Generic, Optional, TypeVar

from smartclass.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

MAX_CACHE = 100
TTL_PADRAO = 300
TENTATIVAS_PADRAO = 3
DELAY_PADRAO = 1.0

# chave -> (dados, timestamp, ttl)
_cache: 'OrderedDict[str, tuple]' = OrderedDict()
_cache_lock = threading.Lock()


class FalhaDeBusca(Exception):
    """Todas as tentativas de busca falharam."""

    def __init__(self, mensagem: str, tentativas: int, causa: Exception = None):
        super().__init__(mensagem)
        self.tentativas = tentativas
        self.causa = causa


def _expirado(timestamp: float, ttl: float, agora: float = None) -> bool:
    return ((agora or time.time()) - timestamp) > ttl


def ler_cache(chave: str) -> Optional[Any]:
    with _cache_lock:
        item = _cache.get(chave)
        if item is None:
            return None
        dados, timestamp, ttl = item
        if _expirado(timestamp, ttl):
            del _cache[chave]
            return None
        return dados


def gravar_cache(chave: str, dados: Any, ttl: float) -> None:
    with _cache_lock:
        _cache[chave] = (dados, time.time(), ttl)
        _cache.move_to_end(chave)
        while len(_cache) > MAX_CACHE:
            _cache.popitem(last=False)


def remover(chave: str) -> None:
    with _cache_lock:
        _cache.pop(chave, None)


def invalidar(prefixo: str = '') -> int:
    """Remove do cache as chaves que começam com o prefixo (todas, se vazio)."""
    with _cache_lock:
        chaves = [c for c in _cache if c.startswith(prefixo)]
        for chave in chaves:
            del _cache[chave]
    if chaves:
        logger.debug(f"Cache invalidado: {len(chaves)} chave(s) com prefixo '{prefixo}'")
    return len(chaves)


def limpar_expirados() -> int:
    agora = time.time()
    with _cache_lock:
        expiradas = [c for c, (_, ts, ttl) in _cache.items() if _expirado(ts, ttl, agora)]
        for chave in expiradas:
            del _cache[chave]
    return len(expiradas)


class AsyncState(Generic[T]):
    """
    Estado de uma busca: data, loading, error e last_fetch.
    """

    def __init__(
        self,
        fetcher: Callable[[], T],
        cache_key: str = None,
        cache_ttl: float = TTL_PADRAO,
        validator: Callable[[T], bool] = None,
        retry_attempts: int = TENTATIVAS_PADRAO,
        retry_delay: float = DELAY_PADRAO,
        transform: Callable[[T], T] = None,
        on_success: Callable[[T], None] = None,
        on_error: Callable[[Exception], None] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher
        self.cache_key = cache_key
        self.cache_ttl = cache_ttl
        self.validator = validator
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.transform = transform
        self.on_success = on_success
        self.on_error = on_error
        self._sleep = sleep

        self.data: Optional[T] = None
        self.loading = False
        self.error: Optional[Exception] = None
        self.last_fetch: Optional[float] = None

    def _valido(self, dados: T) -> bool:
        return self.validator is None or bool(self.validator(dados))

    def _concluir(self, dados: T) -> T:
        self.data = dados
        self.error = None
        self.last_fetch = time.time()
        if self.on_success:
            self.on_success(dados)
        return dados

    def _do_cache(self) -> Optional[T]:
        if not self.cache_key:
            return None
        cacheado = ler_cache(self.cache_key)
        if cacheado is None:
            return None

        dados = self.transform(cacheado) if self.transform else cacheado
        if self._valido(dados):
            logger.debug(f"Dados encontrados no cache: {self.cache_key}")
            return dados

        logger.warning(f"Dados do cache falharam na validação: {self.cache_key}")
        remover(self.cache_key)
        return None

    def fetch(self) -> T:
        self.loading = True
        self.error = None
        try:
            cacheado = self._do_cache()
            if cacheado is not None:
                return self._concluir(cacheado)

            ultimo_erro = None
            for tentativa in range(1, self.retry_attempts + 1):
                try:
                    resultado = self.fetcher()
                    dados = self.transform(resultado) if self.transform else resultado
                    if not self._valido(dados):
                        raise ValueError("Dados recebidos falharam na validação")

                    if self.cache_key:
                        gravar_cache(self.cache_key, dados, self.cache_ttl)
                    return self._concluir(dados)

                except Exception as e:
                    ultimo_erro = e
                    logger.warning(
                        f"Erro na busca '{self.cache_key or 'sem-chave'}' "
                        f"(tentativa {tentativa}/{self.retry_attempts}): {e}"
                    )
                    if tentativa < self.retry_attempts:
                        self._sleep(self.retry_delay * (2 ** (tentativa - 1)))

            logger.error(
                f"Todas as tentativas de busca falharam: '{self.cache_key or 'sem-chave'}'",
                exc_info=ultimo_erro,
            )
            self.error = ultimo_erro
            if self.on_error:
                self.on_error(ultimo_erro)
            raise FalhaDeBusca(str(ultimo_erro), self.retry_attempts, ultimo_erro) from ultimo_erro
        finally:
            self.loading = False

    def refetch(self) -> T:
        if self.cache_key:
            remover(self.cache_key)
        return self.fetch()

    def reset(self) -> None:
        self.data = None
        self.loading = False
        self.error = None
        self.last_fetch = None
        if self.cache_key:
            remover(self.cache_key)

    def set_data(self, dados: Optional[T]) -> None:
        self.data = dados
        if dados is not None and self.cache_key:
            gravar_cache(self.cache_key, dados, self.cache_ttl)
        self.last_fetch = time.time()
        self.error = None
