"""
Módulo de Logging Centralizado.

Todo módulo obtém seu logger via get_logger(__name__). A saída vai para
stdout (padrão para containers/Cloud Run) com formato único.
"""

import logging
import os
import sys

FORMATO_LOG = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'

_nivel_padrao = os.environ.get('LOG_LEVEL', 'INFO').upper()


def get_logger(name: str) -> logging.Logger:
    """
    Configura e retorna uma instância de logger com formatação padronizada.

    Args:
        name (str): O nome do módulo que está chamando o log (geralmente __name__).

    Returns:
        logging.Logger: Instância configurada do logger.
    """
    logger = logging.getLogger(name)

    # Evita adicionar múltiplos handlers se o logger já estiver configurado
    if not logger.handlers:
        logger.setLevel(_nivel_padrao)

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMATO_LOG))
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def configurar_nivel(nivel: str) -> None:
    """
    Ajusta o nível de todos os loggers do pacote (chamado pela factory com LOG_LEVEL).
    """
    global _nivel_padrao
    _nivel_padrao = (nivel or 'INFO').upper()

    for nome, logger in logging.Logger.manager.loggerDict.items():
        if nome.startswith('smartclass') and isinstance(logger, logging.Logger):
            logger.setLevel(_nivel_padrao)
