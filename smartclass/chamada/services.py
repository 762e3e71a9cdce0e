"""
Camada de Serviço da Chamada

Aulas de uma turma e o registro de presença. Uma chamada por aula: ao
registrar de novo, a chamada anterior e suas presenças são substituídas
na mesma escrita em lote.
"""

from typing import Dict, Iterable, List

from google.cloud import firestore

from smartclass.core.constants import (
    AUSENTE,
    COLECAO_ALUNOS,
    COLECAO_AULAS,
    COLECAO_CHAMADAS,
    COLECAO_PRESENCAS,
    COLECAO_PROFESSORES,
    COLECAO_TURMAS,
    PRESENTE,
    STATUS_PRESENCA,
)
from smartclass.core.datas import duracao_em_minutos, hoje
from smartclass.core.errors import DadosInvalidos
from smartclass.core.formatos import arredondar
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import TenantRepository, gravar_em_lotes, invalidar_cache_escola, ordenar

logger = get_logger(__name__)


def percentual_presenca(presencas: Iterable[dict]) -> int:
    """presentes / total * 100, arredondado; 0 quando não há registros."""
    presencas = list(presencas)
    if not presencas:
        return 0
    presentes = sum(1 for p in presencas if p.get('status') == PRESENTE)
    return arredondar(presentes / len(presencas) * 100)


def agrupar_por(itens: Iterable[dict], campo: str) -> Dict[str, List[dict]]:
    grupos: Dict[str, List[dict]] = {}
    for item in itens:
        grupos.setdefault(item.get(campo), []).append(item)
    return grupos


# === AULAS ===

def listar_aulas(school_id: str, turma_id: str) -> list:
    TenantRepository(COLECAO_TURMAS, school_id).obter_ou_404(turma_id, "Turma não encontrada.")
    aulas = TenantRepository(COLECAO_AULAS, school_id).listar(order_by='data_aula', turma_id=turma_id)
    professores = TenantRepository(COLECAO_PROFESSORES, school_id).mapa_por_id(a.get('professor_id') for a in aulas)

    for aula in aulas:
        professor = professores.get(aula.get('professor_id'))
        aula['professor'] = {'nome': professor['nome']} if professor else None
    return aulas


def criar_aula(school_id: str, dados: dict) -> dict:
    TenantRepository(COLECAO_TURMAS, school_id).obter_ou_404(dados.get('turma_id'), "Turma não encontrada.")
    if dados.get('professor_id'):
        TenantRepository(COLECAO_PROFESSORES, school_id).obter_ou_404(dados['professor_id'], "Professor não encontrado.")
    if duracao_em_minutos(dados['horario_inicio'], dados['horario_fim']) <= 0:
        raise DadosInvalidos("O horário de término deve ser posterior ao de início.")

    dados = dict(dados, status='agendada')
    aula = TenantRepository(COLECAO_AULAS, school_id).criar(dados)
    logger.info(f"Aula criada: {aula['id']} (turma {aula['turma_id']}, {aula['data_aula']})")
    return aula


def atualizar_aula(school_id: str, aula_id: str, dados: dict) -> dict:
    return TenantRepository(COLECAO_AULAS, school_id).atualizar(aula_id, dados)


def cancelar_aula(school_id: str, aula_id: str) -> dict:
    return atualizar_aula(school_id, aula_id, {'status': 'cancelada'})


# === CHAMADA ===

def _normalizar_presencas(entrada, alunos_da_turma: List[dict]) -> Dict[str, str]:
    """
    Aceita {aluno_id: status} ou uma lista de ids presentes (os demais
    alunos da turma ficam ausentes).
    """
    if isinstance(entrada, list):
        presentes = set(entrada)
        return {a['id']: (PRESENTE if a['id'] in presentes else AUSENTE) for a in alunos_da_turma} | {
            aluno_id: PRESENTE for aluno_id in presentes
        }
    if isinstance(entrada, dict):
        resultado = {}
        for aluno_id, status in entrada.items():
            if isinstance(status, bool):
                status = PRESENTE if status else AUSENTE
            if status not in STATUS_PRESENCA:
                raise DadosInvalidos(f"Status de presença inválido: {status}",
                                     detalhes={'status_validos': list(STATUS_PRESENCA)})
            resultado[aluno_id] = status
        return resultado
    raise DadosInvalidos("Informe 'presencas' como objeto {aluno_id: status} ou lista de alunos presentes.")


def registrar_chamada(school_id: str, aula_id: str, entrada) -> dict:
    """
    Grava a chamada da aula e as presenças em lotes e marca a aula como
    realizada. Todos os alunos precisam pertencer à turma da aula.
    """
    repo_aulas = TenantRepository(COLECAO_AULAS, school_id)
    aula = repo_aulas.obter_ou_404(aula_id, "Aula não encontrada.")
    if aula.get('status') == 'cancelada':
        raise DadosInvalidos("Não é possível registrar chamada de uma aula cancelada.")

    turma_id = aula['turma_id']
    alunos = TenantRepository(COLECAO_ALUNOS, school_id).listar(turma_id=turma_id)
    presencas = _normalizar_presencas(entrada, alunos)
    if not presencas:
        raise DadosInvalidos("Nenhum aluno informado na chamada.")

    ids_da_turma = {a['id'] for a in alunos}
    estranhos = sorted(set(presencas) - ids_da_turma)
    if estranhos:
        raise DadosInvalidos("Há alunos que não pertencem a esta turma.", detalhes={'alunos': estranhos})

    repo_chamadas = TenantRepository(COLECAO_CHAMADAS, school_id)
    repo_presencas = TenantRepository(COLECAO_PRESENCAS, school_id)
    operacoes = []

    # Substitui a chamada anterior da mesma aula
    for anterior in repo_chamadas.listar(aula_id=aula_id):
        for presenca in repo_presencas.listar(chamada_id=anterior['id']):
            operacoes.append(('delete', repo_presencas.referencia.document(presenca['id']), None))
        operacoes.append(('delete', repo_chamadas.referencia.document(anterior['id']), None))

    ref_chamada = repo_chamadas.novo_documento()
    operacoes.append(('set', ref_chamada, repo_chamadas.payload_criacao({
        'aula_id': aula_id,
        'turma_id': turma_id,
        'professor_id': aula.get('professor_id'),
        'data_chamada': aula.get('data_aula') or hoje().isoformat(),
    })))
    for aluno_id, status in presencas.items():
        operacoes.append(('set', repo_presencas.novo_documento(), repo_presencas.payload_criacao({
            'chamada_id': ref_chamada.id,
            'turma_id': turma_id,
            'aluno_id': aluno_id,
            'status': status,
        })))
    # A aula só vira 'realizada' no último lote
    operacoes.append(('update', repo_aulas.referencia.document(aula_id), {
        'status': 'realizada',
        'updated_at': firestore.SERVER_TIMESTAMP,
    }))
    gravar_em_lotes(repo_chamadas.db, operacoes)
    invalidar_cache_escola(school_id)

    presentes = sum(1 for s in presencas.values() if s == PRESENTE)
    logger.info(f"Chamada registrada: aula {aula_id}, {presentes}/{len(presencas)} presentes")
    return {
        'chamada_id': ref_chamada.id,
        'aula_id': aula_id,
        'turma_id': turma_id,
        'total_alunos': len(presencas),
        'presentes': presentes,
        'ausentes': len(presencas) - presentes,
        'percentual_presenca': percentual_presenca({'status': s} for s in presencas.values()),
    }


def obter_chamada(school_id: str, aula_id: str) -> dict:
    """Chamada da aula com nome e status de cada aluno."""
    TenantRepository(COLECAO_AULAS, school_id).obter_ou_404(aula_id, "Aula não encontrada.")
    chamadas = TenantRepository(COLECAO_CHAMADAS, school_id).listar(aula_id=aula_id)
    if not chamadas:
        return {'aula_id': aula_id, 'chamada': None, 'presencas': [], 'percentual_presenca': 0}

    chamada = chamadas[0]
    presencas = TenantRepository(COLECAO_PRESENCAS, school_id).listar(chamada_id=chamada['id'])
    alunos = TenantRepository(COLECAO_ALUNOS, school_id).mapa_por_id(p['aluno_id'] for p in presencas)

    itens = [{
        'aluno_id': p['aluno_id'],
        'nome': (alunos.get(p['aluno_id']) or {}).get('nome', 'Aluno removido'),
        'status': p['status'],
    } for p in presencas]
    return {
        'aula_id': aula_id,
        'chamada': chamada,
        'presencas': ordenar(itens, 'nome'),
        'percentual_presenca': percentual_presenca(presencas),
    }
