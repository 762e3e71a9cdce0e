"""
Camada de Serviço do Financeiro

Lançamentos de receitas e despesas da escola. O status 'atrasado' não é
gravado: um lançamento pendente com vencimento passado é apresentado como
atrasado na leitura.
"""

import calendar
from datetime import date
from typing import Optional

from smartclass.chamada.services import agrupar_por
from smartclass.core.constants import (
    COLECAO_ALUNOS,
    COLECAO_FINANCEIRO,
    COLECAO_PROFESSORES,
    COLECAO_TURMAS,
)
from smartclass.core.datas import esta_vencido, formatar_mes_ano, hoje
from smartclass.core.errors import Conflito, DadosInvalidos
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import TenantRepository, invalidar_cache_escola

logger = get_logger(__name__)

CATEGORIA_MENSALIDADE = 'mensalidade'


def status_efetivo(lancamento: dict, referencia: date = None) -> Optional[str]:
    status = lancamento.get('status') or 'pendente'
    if status == 'pendente' and esta_vencido(lancamento.get('data_vencimento'), referencia):
        return 'atrasado'
    return status


def _valor(lancamento: dict) -> float:
    return float(lancamento.get('valor') or 0)


def listar_lancamentos(school_id: str, tipo: str = None, status: str = None) -> list:
    filtros = {'tipo': tipo} if tipo else {}
    lancamentos = TenantRepository(COLECAO_FINANCEIRO, school_id).listar(
        order_by='created_at', descending=True, **filtros
    )
    alunos = TenantRepository(COLECAO_ALUNOS, school_id).mapa_por_id(lanc.get('aluno_id') for lanc in lancamentos)
    professores = TenantRepository(COLECAO_PROFESSORES, school_id).mapa_por_id(
        lanc.get('professor_id') for lanc in lancamentos
    )

    for lancamento in lancamentos:
        aluno = alunos.get(lancamento.get('aluno_id'))
        professor = professores.get(lancamento.get('professor_id'))
        lancamento['aluno'] = {'nome': aluno['nome']} if aluno else None
        lancamento['professor'] = {'nome': professor['nome']} if professor else None
        lancamento['status'] = status_efetivo(lancamento)

    if status:
        lancamentos = [lanc for lanc in lancamentos if lanc['status'] == status]
    return lancamentos


def _validar_vinculos(school_id: str, dados: dict) -> None:
    if dados.get('aluno_id'):
        TenantRepository(COLECAO_ALUNOS, school_id).obter_ou_404(dados['aluno_id'], "Aluno não encontrado.")
    if dados.get('professor_id'):
        TenantRepository(COLECAO_PROFESSORES, school_id).obter_ou_404(
            dados['professor_id'], "Professor não encontrado."
        )


def criar_lancamento(school_id: str, dados: dict) -> dict:
    _validar_vinculos(school_id, dados)
    dados = dict(dados)
    dados['status'] = dados.get('status') or 'pendente'
    if dados['status'] == 'atrasado':
        dados['status'] = 'pendente'
    if dados['status'] == 'pago' and not dados.get('data_pagamento'):
        dados['data_pagamento'] = hoje().isoformat()

    lancamento = TenantRepository(COLECAO_FINANCEIRO, school_id).criar(dados)
    logger.info(f"Lançamento criado: {lancamento['id']} ({lancamento['tipo']}, {lancamento['valor']})")
    return lancamento


def atualizar_lancamento(school_id: str, lancamento_id: str, dados: dict) -> dict:
    _validar_vinculos(school_id, dados)
    dados = dict(dados)
    if dados.get('status') == 'atrasado':
        dados['status'] = 'pendente'
    lancamento = TenantRepository(COLECAO_FINANCEIRO, school_id).atualizar(lancamento_id, dados)
    lancamento['status'] = status_efetivo(lancamento)
    return lancamento


def excluir_lancamento(school_id: str, lancamento_id: str) -> None:
    TenantRepository(COLECAO_FINANCEIRO, school_id).excluir(lancamento_id)
    logger.info(f"Lançamento excluído: {lancamento_id}")


def pagar(school_id: str, lancamento_id: str, metodo_pagamento: str, data_pagamento: str = None) -> dict:
    repo = TenantRepository(COLECAO_FINANCEIRO, school_id)
    lancamento = repo.obter_ou_404(lancamento_id, "Lançamento não encontrado.")
    if lancamento.get('status') == 'pago':
        raise Conflito("Este lançamento já foi pago.")
    if lancamento.get('status') == 'cancelado':
        raise DadosInvalidos("Não é possível pagar um lançamento cancelado.")

    pago = repo.atualizar(lancamento_id, {
        'status': 'pago',
        'metodo_pagamento': metodo_pagamento,
        'data_pagamento': data_pagamento or hoje().isoformat(),
    })
    logger.info(f"Lançamento pago: {lancamento_id} ({metodo_pagamento})")
    return pago


def resumo(school_id: str, referencia: date = None) -> dict:
    """
    Totais do financeiro. Receitas e despesas contam apenas lançamentos
    pagos; pendente e atrasado somam receitas ainda não recebidas.
    """
    lancamentos = TenantRepository(COLECAO_FINANCEIRO, school_id).listar()
    receitas = despesas = pendente = atrasado = 0.0

    for lancamento in lancamentos:
        status = status_efetivo(lancamento, referencia)
        valor = _valor(lancamento)
        if lancamento.get('tipo') == 'receita':
            if status == 'pago':
                receitas += valor
            elif status == 'pendente':
                pendente += valor
            elif status == 'atrasado':
                atrasado += valor
        elif lancamento.get('tipo') == 'despesa' and status == 'pago':
            despesas += valor

    return {
        'receitas': round(receitas, 2),
        'despesas': round(despesas, 2),
        'saldo': round(receitas - despesas, 2),
        'pendente': round(pendente, 2),
        'atrasado': round(atrasado, 2),
        'receita_por_turma': receita_por_turma(school_id, lancamentos),
    }


def receita_por_turma(school_id: str, lancamentos: list) -> list:
    """Receita recebida (pela turma do aluno) e esperada (valor_mensal * vagas_ocupadas)."""
    turmas = TenantRepository(COLECAO_TURMAS, school_id).listar(order_by='nome')
    alunos = TenantRepository(COLECAO_ALUNOS, school_id).mapa_por_id(lanc.get('aluno_id') for lanc in lancamentos)

    recebidas = [lanc for lanc in lancamentos if lanc.get('tipo') == 'receita' and lanc.get('status') == 'pago']
    por_turma = agrupar_por((
        {'turma_id': (alunos.get(lanc.get('aluno_id')) or {}).get('turma_id'), 'valor': _valor(lanc)}
        for lanc in recebidas
    ), 'turma_id')
    return [{
        'turma_id': turma['id'],
        'nome': turma.get('nome'),
        'recebido': round(sum(i['valor'] for i in por_turma.get(turma['id'], [])), 2),
        'esperado': round(float(turma.get('valor_mensal') or 0) * turma.get('vagas_ocupadas', 0), 2),
    } for turma in turmas]


def gerar_mensalidades(school_id: str, turma_id: str, mes: str, dia_vencimento: int = 10) -> dict:
    """
    Gera a mensalidade do mês ('AAAA-MM') para cada aluno ativo da turma.
    Alunos que já têm a mensalidade do mês são ignorados.
    """
    turma = TenantRepository(COLECAO_TURMAS, school_id).obter_ou_404(turma_id, "Turma não encontrada.")
    valor = float(turma.get('valor_mensal') or 0)
    if valor <= 0:
        raise DadosInvalidos("A turma não tem valor de mensalidade definido.")

    ano, numero_mes = (int(p) for p in mes.split('-'))
    dia = min(dia_vencimento or 10, calendar.monthrange(ano, numero_mes)[1])
    vencimento = date(ano, numero_mes, dia)

    repo = TenantRepository(COLECAO_FINANCEIRO, school_id)
    existentes = {
        lanc.get('aluno_id')
        for lanc in repo.listar(categoria=CATEGORIA_MENSALIDADE, referencia=mes)
    }
    alunos = [
        a for a in TenantRepository(COLECAO_ALUNOS, school_id).listar(order_by='nome', turma_id=turma_id)
        if a.get('ativo', True)
    ]

    batch = repo.db.batch()
    criados = []
    for aluno in alunos:
        if aluno['id'] in existentes:
            continue
        ref = repo.novo_documento()
        batch.set(ref, repo.payload_criacao({
            'tipo': 'receita',
            'categoria': CATEGORIA_MENSALIDADE,
            'descricao': f"Mensalidade {formatar_mes_ano(vencimento)} - {turma.get('nome')}",
            'valor': valor,
            'data_vencimento': vencimento.isoformat(),
            'data_pagamento': None,
            'status': 'pendente',
            'metodo_pagamento': None,
            'aluno_id': aluno['id'],
            'professor_id': None,
            'referencia': mes,
        }))
        criados.append(ref.id)

    if criados:
        batch.commit()
        invalidar_cache_escola(school_id)
    logger.info(f"Mensalidades de {mes} da turma {turma_id}: {len(criados)} geradas, "
                f"{len(alunos) - len(criados)} já existentes")
    return {'criados': len(criados), 'ignorados': len(alunos) - len(criados), 'ids': criados}
