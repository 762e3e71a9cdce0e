"""
Consulta de Endereço por CEP (ViaCEP)

A busca passa por AsyncState: resultado em cache por um dia e uma
retentativa em caso de falha de rede.
"""

from typing import Optional

import requests
from flask import current_app, has_app_context

from smartclass.core.async_state import AsyncState, FalhaDeBusca
from smartclass.core.formatos import formatar_cep, somente_digitos
from smartclass.core.logger import get_logger

logger = get_logger(__name__)

URL_PADRAO = 'https://viacep.com.br/ws/{cep}/json/'
CACHE_TTL = 24 * 60 * 60
TIMEOUT = 5


class CepNaoEncontrado(Exception):
    """O ViaCEP respondeu, mas o CEP não existe."""


def _url(cep: str) -> str:
    modelo = current_app.config.get('VIACEP_URL', URL_PADRAO) if has_app_context() else URL_PADRAO
    return modelo.format(cep=cep)


def _consultar_viacep(cep: str) -> dict:
    resposta = requests.get(_url(cep), timeout=TIMEOUT)
    resposta.raise_for_status()
    dados = resposta.json()
    if dados.get('erro'):
        raise CepNaoEncontrado(cep)
    return {
        'cep': formatar_cep(cep),
        'logradouro': dados.get('logradouro', ''),
        'complemento': dados.get('complemento', ''),
        'bairro': dados.get('bairro', ''),
        'cidade': dados.get('localidade', ''),
        'estado': dados.get('uf', ''),
    }


def buscar_endereco(cep: str, sleep=None) -> Optional[dict]:
    """
    Retorna o endereço do CEP ou None se o CEP for inválido, inexistente
    ou se o serviço estiver fora do ar.
    """
    digitos = somente_digitos(cep)
    if len(digitos) != 8:
        return None

    opcoes = {'sleep': sleep} if sleep else {}
    estado = AsyncState(
        lambda: _consultar_viacep(digitos),
        cache_key=f"cep:{digitos}",
        cache_ttl=CACHE_TTL,
        retry_attempts=2,
        retry_delay=0.5,
        validator=lambda d: bool(d.get('cidade')),
        **opcoes,
    )
    try:
        return estado.fetch()
    except FalhaDeBusca as e:
        if isinstance(e.causa, CepNaoEncontrado):
            logger.info(f"CEP não encontrado: {digitos}")
        else:
            logger.warning(f"Falha ao consultar ViaCEP para {digitos}: {e}")
        return None
