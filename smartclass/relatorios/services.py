"""
Camada de Serviço dos Relatórios

- Dashboard: totais da escola, cacheado por escola com AsyncState. Toda
  escrita pelo TenantRepository invalida o cache da escola.
- Relatório por período: presença, receitas e despesas mês a mês, alunos
  por instrumento, novas matrículas e retenção.
- Exportação do relatório mensal em CSV.
"""

import csv
import io
from collections import Counter

from flask import current_app

from smartclass.chamada.services import agrupar_por, percentual_presenca
from smartclass.core.async_state import AsyncState
from smartclass.core.constants import (
    COLECAO_ALUNOS,
    COLECAO_CHAMADAS,
    COLECAO_FINANCEIRO,
    COLECAO_PRESENCAS,
    COLECAO_PROFESSORES,
)
from smartclass.core.datas import chave_mes, formatar_mes_ano, intervalo_periodo, meses_do_intervalo, para_date
from smartclass.core.errors import DadosInvalidos
from smartclass.core.formatos import arredondar, capitalizar, formatar_numero
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import TenantRepository, chave_cache
from smartclass.turmas import services as turmas_services

logger = get_logger(__name__)

TOTAL_TURMAS_RECENTES = 4
TOTAL_TOP_INSTRUMENTOS = 4


# === DASHBOARD ===

def top_instrumentos(turmas: list, limite: int = TOTAL_TOP_INSTRUMENTOS) -> list:
    contagem = Counter(t.get('instrumento') for t in turmas if t.get('instrumento'))
    ranking = [{
        'nome': capitalizar(nome),
        'turmas': total,
        'percentual': arredondar(total / len(turmas) * 100),
    } for nome, total in contagem.items()]
    ranking.sort(key=lambda i: i['turmas'], reverse=True)
    return ranking[:limite]


def montar_dashboard(school_id: str) -> dict:
    turmas = turmas_services.listar_turmas(school_id)
    alunos = TenantRepository(COLECAO_ALUNOS, school_id).listar()
    professores = TenantRepository(COLECAO_PROFESSORES, school_id).listar()

    media_presenca = arredondar(sum(t.get('presenca') or 0 for t in turmas) / len(turmas)) if turmas else 0
    return {
        'total_alunos': len(alunos),
        'total_turmas': len(turmas),
        'professores_ativos': sum(1 for p in professores if p.get('ativo', True)),
        'media_presenca': media_presenca,
        'turmas_recentes': [{
            'id': t['id'],
            'nome': t.get('nome'),
            'horario': f"{t.get('horario_inicio') or ''} - {t.get('horario_fim') or ''}",
            'alunos': t.get('alunos', 0),
            'presenca': t.get('presenca', 0),
            'professores': t.get('professores', []),
        } for t in turmas[:TOTAL_TURMAS_RECENTES]],
        'top_instrumentos': top_instrumentos(turmas),
    }


def dashboard(school_id: str) -> dict:
    estado = AsyncState(
        lambda: montar_dashboard(school_id),
        cache_key=chave_cache(school_id, 'dashboard'),
        cache_ttl=current_app.config.get('DASHBOARD_CACHE_TTL', 60),
        validator=lambda dados: isinstance(dados, dict),
        retry_attempts=2,
        retry_delay=0.5,
    )
    return estado.fetch()


# === RELATÓRIO POR PERÍODO ===

def _no_intervalo(valor, inicio, fim) -> bool:
    d = para_date(valor)
    return d is not None and inicio <= d <= fim


def relatorio_periodo(school_id: str, periodo: str = '6m', referencia=None) -> dict:
    try:
        inicio, fim = intervalo_periodo(periodo, referencia)
    except ValueError as e:
        raise DadosInvalidos(str(e))
    meses = meses_do_intervalo(inicio, fim)

    # Presença por mês (pela data da chamada)
    chamadas = {
        c['id']: c for c in TenantRepository(COLECAO_CHAMADAS, school_id).listar()
        if _no_intervalo(c.get('data_chamada'), inicio, fim)
    }
    presencas = [
        dict(p, mes=chave_mes(chamadas[p['chamada_id']]['data_chamada']))
        for p in TenantRepository(COLECAO_PRESENCAS, school_id).listar()
        if p.get('chamada_id') in chamadas
    ]
    presencas_por_mes = agrupar_por(presencas, 'mes')

    # Receitas e despesas pagas por mês (pela data de pagamento)
    pagos = [
        lanc for lanc in TenantRepository(COLECAO_FINANCEIRO, school_id).listar(status='pago')
        if _no_intervalo(lanc.get('data_pagamento'), inicio, fim)
    ]
    receitas_por_mes, despesas_por_mes = Counter(), Counter()
    for lanc in pagos:
        destino = receitas_por_mes if lanc.get('tipo') == 'receita' else despesas_por_mes
        destino[chave_mes(lanc['data_pagamento'])] += float(lanc.get('valor') or 0)

    alunos = TenantRepository(COLECAO_ALUNOS, school_id).listar()
    por_instrumento = Counter(capitalizar(a.get('instrumento') or '') or 'Não informado' for a in alunos)
    ativos = sum(1 for a in alunos if a.get('ativo', True))

    return {
        'periodo': periodo,
        'inicio': inicio.isoformat(),
        'fim': fim.isoformat(),
        'meses': [{
            'mes': mes,
            'rotulo': formatar_mes_ano(f"{mes}-01"),
            'presenca': percentual_presenca(presencas_por_mes.get(mes, [])),
            'receitas': round(receitas_por_mes.get(mes, 0.0), 2),
            'despesas': round(despesas_por_mes.get(mes, 0.0), 2),
        } for mes in meses],
        'alunos_por_instrumento': [
            {'instrumento': nome, 'alunos': total} for nome, total in por_instrumento.most_common()
        ],
        'novas_matriculas': sum(1 for a in alunos if _no_intervalo(a.get('created_at'), inicio, fim)),
        'total_alunos': len(alunos),
        'alunos_ativos': ativos,
        'retencao': arredondar(ativos / len(alunos) * 100) if alunos else 0,
    }


def exportar_csv(relatorio: dict) -> str:
    """Relatório mensal em CSV (separador ';', números no formato pt-BR)."""
    saida = io.StringIO()
    writer = csv.writer(saida, delimiter=';')
    writer.writerow(['Mês', 'Presença (%)', 'Receitas (R$)', 'Despesas (R$)', 'Saldo (R$)'])
    for linha in relatorio['meses']:
        writer.writerow([
            linha['rotulo'],
            linha['presenca'],
            formatar_numero(linha['receitas'], 2),
            formatar_numero(linha['despesas'], 2),
            formatar_numero(linha['receitas'] - linha['despesas'], 2),
        ])
    writer.writerow([])
    writer.writerow(['Novas matrículas', relatorio['novas_matriculas']])
    writer.writerow(['Retenção (%)', relatorio['retencao']])
    return saida.getvalue()
