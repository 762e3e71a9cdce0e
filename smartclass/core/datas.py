"""
Utilitários de Data (pt-BR)

Formatação, parsing e cálculos de datas usados pelos relatórios, pela
chamada e pelo financeiro. Datas de negócio trafegam como strings ISO
(YYYY-MM-DD); estas funções aceitam `date`, `datetime` ou string.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union

DataLike = Union[date, datetime, str]

NOMES_MESES = (
    'Janeiro', 'Fevereiro', 'Março', 'Abril', 'Maio', 'Junho',
    'Julho', 'Agosto', 'Setembro', 'Outubro', 'Novembro', 'Dezembro',
)
NOMES_MESES_CURTOS = tuple(m[:3] for m in NOMES_MESES)

# Índice 0 = segunda-feira (date.weekday())
NOMES_DIAS = ('Segunda-feira', 'Terça-feira', 'Quarta-feira', 'Quinta-feira', 'Sexta-feira', 'Sábado', 'Domingo')
NOMES_DIAS_CURTOS = ('Seg', 'Ter', 'Qua', 'Qui', 'Sex', 'Sáb', 'Dom')

PERIODOS_MESES = {'1m': 1, '3m': 3, '6m': 6, '1y': 12}


def hoje() -> date:
    return date.today()


def para_datetime(valor: DataLike) -> Optional[datetime]:
    """Converte date/datetime/str (ISO ou dd/mm/aaaa) em datetime. Retorna None se inválido."""
    if valor is None or valor == '':
        return None
    if isinstance(valor, datetime):
        return valor
    if isinstance(valor, date):
        return datetime.combine(valor, time.min)
    if isinstance(valor, str):
        texto = valor.strip()
        if re.fullmatch(r'\d{2}/\d{2}/\d{4}', texto):
            try:
                return datetime.strptime(texto, '%d/%m/%Y')
            except ValueError:
                return None
        try:
            return datetime.fromisoformat(texto.replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


def para_date(valor: DataLike) -> Optional[date]:
    dt = para_datetime(valor)
    return dt.date() if dt else None


def para_iso(valor: DataLike) -> Optional[str]:
    d = para_date(valor)
    return d.isoformat() if d else None


def data_valida(valor: DataLike) -> bool:
    return para_datetime(valor) is not None


# === FORMATAÇÃO ===

def formatar_data(valor: DataLike) -> str:
    dt = para_datetime(valor)
    return dt.strftime('%d/%m/%Y') if dt else ''


def formatar_data_hora(valor: DataLike) -> str:
    dt = para_datetime(valor)
    return dt.strftime('%d/%m/%Y %H:%M') if dt else ''


def formatar_hora(valor: DataLike) -> str:
    dt = para_datetime(valor)
    return dt.strftime('%H:%M') if dt else ''


def formatar_data_extenso(valor: DataLike) -> str:
    """Ex: 'Segunda-feira, 3 de Março de 2025'."""
    d = para_date(valor)
    if not d:
        return ''
    return f"{NOMES_DIAS[d.weekday()]}, {d.day} de {NOMES_MESES[d.month - 1]} de {d.year}"


def formatar_mes_ano(valor: DataLike) -> str:
    d = para_date(valor)
    return f"{NOMES_MESES_CURTOS[d.month - 1]}/{d.year}" if d else ''


def tempo_relativo(valor: DataLike, agora: datetime = None) -> str:
    """Ex: 'agora mesmo', 'há 5 minutos', 'há 2 dias'."""
    dt = para_datetime(valor)
    if not dt:
        return ''
    if agora is None:
        agora = datetime.now(dt.tzinfo) if dt.tzinfo else datetime.now()
    segundos = int((agora - dt).total_seconds())

    if segundos < 60:
        return 'agora mesmo'
    unidades = (
        (365 * 24 * 3600, 'ano', 'anos'),
        (30 * 24 * 3600, 'mês', 'meses'),
        (7 * 24 * 3600, 'semana', 'semanas'),
        (24 * 3600, 'dia', 'dias'),
        (3600, 'hora', 'horas'),
        (60, 'minuto', 'minutos'),
    )
    for tamanho, singular, plural in unidades:
        quantidade = segundos // tamanho
        if quantidade >= 1:
            return f"há {quantidade} {singular if quantidade == 1 else plural}"
    return 'agora mesmo'


def formatar_duracao(minutos: int) -> str:
    """Ex: 90 -> '1h 30min'."""
    if not minutos or minutos <= 0:
        return '0min'
    horas, resto = divmod(int(minutos), 60)
    if horas and resto:
        return f"{horas}h {resto}min"
    if horas:
        return f"{horas}h"
    return f"{resto}min"


def duracao_em_minutos(inicio: str, fim: str) -> int:
    """Diferença entre dois horários 'HH:MM'. Retorna 0 se inválidos ou invertidos."""
    try:
        h1, m1 = (int(p) for p in inicio.split(':')[:2])
        h2, m2 = (int(p) for p in fim.split(':')[:2])
    except (AttributeError, ValueError):
        return 0
    return max(0, (h2 * 60 + m2) - (h1 * 60 + m1))


# === INÍCIO / FIM DE PERÍODOS ===

def inicio_do_dia(valor: DataLike) -> datetime:
    return datetime.combine(para_date(valor), time.min)


def fim_do_dia(valor: DataLike) -> datetime:
    return datetime.combine(para_date(valor), time.max)


def inicio_da_semana(valor: DataLike) -> date:
    """Semana começando na segunda-feira."""
    d = para_date(valor)
    return d - timedelta(days=d.weekday())


def fim_da_semana(valor: DataLike) -> date:
    return inicio_da_semana(valor) + timedelta(days=6)


def inicio_do_mes(valor: DataLike) -> date:
    return para_date(valor).replace(day=1)


def fim_do_mes(valor: DataLike) -> date:
    d = para_date(valor)
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def inicio_do_ano(valor: DataLike) -> date:
    return para_date(valor).replace(month=1, day=1)


def fim_do_ano(valor: DataLike) -> date:
    return para_date(valor).replace(month=12, day=31)


# === ARITMÉTICA ===

def adicionar_dias(valor: DataLike, dias: int) -> date:
    return para_date(valor) + timedelta(days=dias)


def adicionar_meses(valor: DataLike, meses: int) -> date:
    """Soma meses ajustando o dia ao último dia do mês de destino (31/01 + 1 = 28/02)."""
    d = para_date(valor)
    indice = d.month - 1 + meses
    ano, mes = d.year + indice // 12, indice % 12 + 1
    dia = min(d.day, calendar.monthrange(ano, mes)[1])
    return date(ano, mes, dia)


def diferenca_em_dias(inicio: DataLike, fim: DataLike) -> int:
    return (para_date(fim) - para_date(inicio)).days


def calcular_idade(nascimento: DataLike, referencia: DataLike = None) -> Optional[int]:
    d = para_date(nascimento)
    if not d:
        return None
    ref = para_date(referencia) if referencia else hoje()
    idade = ref.year - d.year - ((ref.month, ref.day) < (d.month, d.day))
    return max(0, idade)


def esta_vencido(vencimento: DataLike, referencia: DataLike = None) -> bool:
    d = para_date(vencimento)
    if not d:
        return False
    return d < (para_date(referencia) if referencia else hoje())


def eh_fim_de_semana(valor: DataLike) -> bool:
    return para_date(valor).weekday() >= 5


def nome_do_mes(mes: int, curto: bool = False) -> str:
    return (NOMES_MESES_CURTOS if curto else NOMES_MESES)[mes - 1]


def nome_do_dia(valor: DataLike, curto: bool = False) -> str:
    return (NOMES_DIAS_CURTOS if curto else NOMES_DIAS)[para_date(valor).weekday()]


def chave_mes(valor: DataLike) -> Optional[str]:
    """'YYYY-MM', usado para agrupar por mês."""
    d = para_date(valor)
    return f"{d.year:04d}-{d.month:02d}" if d else None


def intervalo_periodo(periodo: str, referencia: DataLike = None) -> Tuple[date, date]:
    """
    Intervalo (início, fim) de um período de relatório: '1m', '3m', '6m' ou '1y'.
    O início é o primeiro dia do mês mais antigo incluído.
    """
    if periodo not in PERIODOS_MESES:
        raise ValueError(f"Período inválido: {periodo!r}. Use {', '.join(PERIODOS_MESES)}.")
    fim = para_date(referencia) if referencia else hoje()
    inicio = adicionar_meses(inicio_do_mes(fim), -(PERIODOS_MESES[periodo] - 1))
    return inicio, fim


def meses_do_intervalo(inicio: DataLike, fim: DataLike) -> list:
    """Lista de chaves 'YYYY-MM' de inicio a fim, inclusive."""
    atual, ultimo = inicio_do_mes(inicio), inicio_do_mes(fim)
    meses = []
    while atual <= ultimo:
        meses.append(chave_mes(atual))
        atual = adicionar_meses(atual, 1)
    return meses


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)
