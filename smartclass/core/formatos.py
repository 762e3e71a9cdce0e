"""
Utilitários de Formatação (pt-BR)

Moeda, percentuais, documentos (CPF/CNPJ/CEP), telefones, nomes e rótulos
de status exibidos pelos relatórios e exportações.
"""

import math
import re
import unicodedata

PARTICULAS = {'da', 'de', 'do', 'dos', 'das', 'e'}

ROTULOS_STATUS = {
    'ativo': 'Ativo',
    'inativo': 'Inativo',
    'convidado': 'Convidado',
    'pendente': 'Pendente',
    'pago': 'Pago',
    'atrasado': 'Atrasado',
    'cancelado': 'Cancelado',
    'agendada': 'Agendada',
    'realizada': 'Realizada',
    'cancelada': 'Cancelada',
    'presente': 'Presente',
    'ausente': 'Ausente',
    'justificado': 'Justificado',
    'receita': 'Receita',
    'despesa': 'Despesa',
}


def somente_digitos(valor) -> str:
    return re.sub(r'\D', '', str(valor or ''))


def formatar_moeda(valor) -> str:
    """Ex: 1234.5 -> 'R$ 1.234,50'."""
    numero = float(valor or 0)
    sinal = '-' if numero < 0 else ''
    texto = f"{abs(numero):,.2f}".replace(',', 'X').replace('.', ',').replace('X', '.')
    return f"{sinal}R$ {texto}"


def arredondar(valor) -> int:
    """Arredonda metades para cima (2.5 -> 3), como os percentuais exibidos no painel."""
    return int(math.floor(float(valor) + 0.5))


def formatar_numero(valor, casas: int = 0) -> str:
    texto = f"{float(valor or 0):,.{casas}f}"
    return texto.replace(',', 'X').replace('.', ',').replace('X', '.')


def formatar_percentual(valor, casas: int = 0) -> str:
    return f"{formatar_numero(valor, casas)}%"


def formatar_telefone(valor) -> str:
    d = somente_digitos(valor)
    if len(d) == 11:
        return f"({d[:2]}) {d[2:7]}-{d[7:]}"
    if len(d) == 10:
        return f"({d[:2]}) {d[2:6]}-{d[6:]}"
    return str(valor or '')


def formatar_cpf(valor) -> str:
    d = somente_digitos(valor)
    if len(d) != 11:
        return str(valor or '')
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def formatar_cnpj(valor) -> str:
    d = somente_digitos(valor)
    if len(d) != 14:
        return str(valor or '')
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"


def formatar_cep(valor) -> str:
    d = somente_digitos(valor)
    if len(d) != 8:
        return str(valor or '')
    return f"{d[:5]}-{d[5:]}"


def cpf_valido(valor) -> bool:
    d = somente_digitos(valor)
    if len(d) != 11 or d == d[0] * 11:
        return False
    for tamanho in (9, 10):
        soma = sum(int(d[i]) * (tamanho + 1 - i) for i in range(tamanho))
        digito = (soma * 10) % 11 % 10
        if digito != int(d[tamanho]):
            return False
    return True


def formatar_nome(nome: str) -> str:
    """Capitaliza mantendo partículas em minúsculas: 'MARIA DA SILVA' -> 'Maria da Silva'."""
    partes = (nome or '').strip().lower().split()
    return ' '.join(
        p if (i > 0 and p in PARTICULAS) else p.capitalize()
        for i, p in enumerate(partes)
    )


def iniciais(nome: str, maximo: int = 2) -> str:
    partes = [p for p in (nome or '').split() if p.lower() not in PARTICULAS]
    return ''.join(p[0].upper() for p in partes[:maximo])


def primeiro_nome(nome: str) -> str:
    partes = (nome or '').split()
    return partes[0] if partes else ''


def capitalizar(texto: str) -> str:
    texto = (texto or '').strip()
    return texto[:1].upper() + texto[1:].lower() if texto else ''


def gerar_slug(texto: str) -> str:
    normalizado = unicodedata.normalize('NFKD', texto or '')
    ascii_ = ''.join(c for c in normalizado if not unicodedata.combining(c))
    return re.sub(r'[^a-z0-9]+', '-', ascii_.lower()).strip('-')


def truncar(texto: str, tamanho: int = 50, sufixo: str = '...') -> str:
    texto = texto or ''
    if len(texto) <= tamanho:
        return texto
    return texto[:max(0, tamanho - len(sufixo))].rstrip() + sufixo


def formatar_bytes(tamanho: int) -> str:
    """Ex: 1536 -> '1,5 KB'."""
    valor = float(tamanho or 0)
    for unidade in ('B', 'KB', 'MB', 'GB'):
        if valor < 1024 or unidade == 'GB':
            casas = 0 if unidade == 'B' else 1
            return f"{formatar_numero(valor, casas)} {unidade}"
        valor /= 1024
    return f"{formatar_numero(valor, 1)} GB"


def rotulo_status(status: str) -> str:
    return ROTULOS_STATUS.get(status, capitalizar(status or ''))
