"""
Validação de corpos JSON com WTForms.

Os formulários de cada módulo (forms.py) são FlaskForms comuns; aqui eles
são alimentados com o JSON da requisição em vez de request.form. Campos
ausentes não são validados em atualizações parciais (PUT).
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Type

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from smartclass.core.errors import DadosInvalidos


def corpo_json() -> Dict[str, Any]:
    """Retorna o corpo JSON da requisição (objeto vazio se não houver corpo)."""
    dados = request.get_json(silent=True)
    if dados is None:
        return {}
    if not isinstance(dados, dict):
        raise DadosInvalidos("O corpo da requisição deve ser um objeto JSON.")
    return dados


def _valor_firestore(valor: Any) -> Any:
    if isinstance(valor, datetime):
        return valor
    if isinstance(valor, date):
        return valor.isoformat()
    if isinstance(valor, time):
        return valor.strftime('%H:%M')
    if isinstance(valor, Decimal):
        return float(valor)
    if isinstance(valor, str):
        return valor.strip()
    return valor


def validar_dados(form_cls: Type[FlaskForm], dados: Dict[str, Any], parcial: bool = False) -> Dict[str, Any]:
    """
    Valida `dados` com o formulário e retorna apenas os campos do formulário
    enviados pelo cliente, já convertidos para tipos aceitos pelo Firestore.
    Listas e objetos aninhados não passam pelo WTForms; o service os valida.
    """
    # null equivale a campo omitido: na edição não troca o valor salvo
    enviados = {k: v for k, v in dados.items() if v is not None}
    escalares = {k: v for k, v in enviados.items() if not isinstance(v, (list, dict))}
    form = form_cls(formdata=MultiDict(escalares), meta={'csrf': False})
    form.validate()

    erros = {
        nome: campo.errors
        for nome, campo in form._fields.items()
        if campo.errors and (not parcial or nome in enviados)
    }
    if erros:
        primeira = next(iter(erros.values()))
        raise DadosInvalidos(str(primeira[0]), detalhes=erros)

    resultado = {}
    for nome, campo in form._fields.items():
        if nome == 'csrf_token':
            continue
        if nome in enviados:
            resultado[nome] = _valor_firestore(campo.data)
        elif not parcial:
            # Campo omitido na criação: vale o default declarado no formulário
            resultado[nome] = campo.default
    return resultado


def validar_formulario(form_cls: Type[FlaskForm], parcial: bool = False) -> Dict[str, Any]:
    return validar_dados(form_cls, corpo_json(), parcial=parcial)


def argumento_int(nome: str, padrao: int, minimo: int = 1, maximo: int = 500) -> int:
    try:
        valor = int(request.args.get(nome, padrao))
    except (TypeError, ValueError):
        raise DadosInvalidos(f"Parâmetro '{nome}' deve ser um número inteiro.")
    return max(minimo, min(maximo, valor))
