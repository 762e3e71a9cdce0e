"""
Camada de Serviço das Turmas

Listagem com os agregados exibidos nos cards (alunos matriculados,
presença média e professores), cadastro, exclusão em cascata,
professores da turma e matrículas respeitando as vagas.
"""

from google.cloud import firestore

from smartclass.chamada.services import agrupar_por, percentual_presenca
from smartclass.core.constants import (
    COLECAO_ALUNOS,
    COLECAO_AULAS,
    COLECAO_CHAMADAS,
    COLECAO_CURSOS,
    COLECAO_PRESENCAS,
    COLECAO_PROFESSORES,
    COLECAO_TURMAS,
)
from smartclass.core.datas import duracao_em_minutos
from smartclass.core.errors import Conflito, DadosInvalidos
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import TenantRepository, gravar_em_lotes, invalidar_cache_escola

logger = get_logger(__name__)


def _enriquecer(turmas: list, school_id: str) -> list:
    alunos_por_turma = agrupar_por(TenantRepository(COLECAO_ALUNOS, school_id).listar(), 'turma_id')
    presencas_por_turma = agrupar_por(TenantRepository(COLECAO_PRESENCAS, school_id).listar(), 'turma_id')
    professores = {p['id']: p for p in TenantRepository(COLECAO_PROFESSORES, school_id).listar()}

    for turma in turmas:
        turma['alunos'] = len(alunos_por_turma.get(turma['id'], []))
        turma['presenca'] = percentual_presenca(presencas_por_turma.get(turma['id'], []))
        turma['professores'] = [
            professores[pid]['nome'] for pid in turma.get('professor_ids') or [] if pid in professores
        ]
    return turmas


def listar_turmas(school_id: str) -> list:
    turmas = TenantRepository(COLECAO_TURMAS, school_id).listar(order_by='created_at', descending=True)
    return _enriquecer(turmas, school_id)


def obter_turma(school_id: str, turma_id: str) -> dict:
    turma = TenantRepository(COLECAO_TURMAS, school_id).obter_ou_404(turma_id, "Turma não encontrada.")
    _enriquecer([turma], school_id)

    alunos = TenantRepository(COLECAO_ALUNOS, school_id).listar(order_by='nome', turma_id=turma_id)
    professores = TenantRepository(COLECAO_PROFESSORES, school_id).mapa_por_id(turma.get('professor_ids') or [])
    turma['lista_alunos'] = [{'id': a['id'], 'nome': a.get('nome')} for a in alunos]
    turma['lista_professores'] = [{'id': p['id'], 'nome': p.get('nome')} for p in professores.values()]
    return turma


def _validar(school_id: str, dados: dict, atual: dict = None) -> None:
    if dados.get('curso_id'):
        TenantRepository(COLECAO_CURSOS, school_id).obter_ou_404(dados['curso_id'], "Curso não encontrado.")

    inicio = dados.get('horario_inicio', (atual or {}).get('horario_inicio'))
    fim = dados.get('horario_fim', (atual or {}).get('horario_fim'))
    if inicio and fim and duracao_em_minutos(inicio, fim) <= 0:
        raise DadosInvalidos("O horário de término deve ser posterior ao de início.")

    if atual and 'vagas_total' in dados and dados['vagas_total'] is not None:
        if dados['vagas_total'] < atual.get('vagas_ocupadas', 0):
            raise DadosInvalidos("O total de vagas não pode ser menor que o número de alunos matriculados.")


def criar_turma(school_id: str, dados: dict) -> dict:
    _validar(school_id, dados)
    dados = dict(dados)
    dados['vagas_total'] = dados.get('vagas_total') or 10
    dados['nivel'] = dados.get('nivel') or 'iniciante'
    dados['ativa'] = True if dados.get('ativa') is None else dados['ativa']
    dados['curso_id'] = dados.get('curso_id') or None
    dados['vagas_ocupadas'] = 0
    dados['professor_ids'] = []

    turma = TenantRepository(COLECAO_TURMAS, school_id).criar(dados)
    logger.info(f"Turma criada: {turma['id']} ({turma['nome']})")
    return turma


def atualizar_turma(school_id: str, turma_id: str, dados: dict) -> dict:
    repo = TenantRepository(COLECAO_TURMAS, school_id)
    atual = repo.obter_ou_404(turma_id, "Turma não encontrada.")
    _validar(school_id, dados, atual)
    dados = {k: v for k, v in dados.items() if k not in ('vagas_ocupadas', 'professor_ids')}
    return repo.atualizar(turma_id, dados)


def excluir_turma(school_id: str, turma_id: str) -> None:
    """
    Remove a turma, desvincula seus alunos e apaga aulas, chamadas e
    presenças da turma.
    """
    repo = TenantRepository(COLECAO_TURMAS, school_id)
    repo.obter_ou_404(turma_id, "Turma não encontrada.")

    db = repo.db
    operacoes = []
    for aluno in TenantRepository(COLECAO_ALUNOS, school_id).listar(turma_id=turma_id):
        operacoes.append(('update', db.collection(COLECAO_ALUNOS).document(aluno['id']),
                          {'turma_id': None, 'updated_at': firestore.SERVER_TIMESTAMP}))
    for colecao in (COLECAO_PRESENCAS, COLECAO_CHAMADAS, COLECAO_AULAS):
        for item in TenantRepository(colecao, school_id).listar(turma_id=turma_id):
            operacoes.append(('delete', db.collection(colecao).document(item['id']), None))
    operacoes.append(('delete', repo.referencia.document(turma_id), None))

    gravar_em_lotes(db, operacoes)

    invalidar_cache_escola(school_id)
    logger.info(f"Turma excluída: {turma_id} ({len(operacoes) - 1} registros relacionados)")


# === PROFESSORES DA TURMA ===

def adicionar_professor(school_id: str, turma_id: str, professor_id: str) -> dict:
    repo = TenantRepository(COLECAO_TURMAS, school_id)
    turma = repo.obter_ou_404(turma_id, "Turma não encontrada.")
    TenantRepository(COLECAO_PROFESSORES, school_id).obter_ou_404(professor_id, "Professor não encontrado.")

    if professor_id in (turma.get('professor_ids') or []):
        raise Conflito("Este professor já está vinculado à turma.")
    return repo.atualizar(turma_id, {'professor_ids': firestore.ArrayUnion([professor_id])})


def remover_professor(school_id: str, turma_id: str, professor_id: str) -> dict:
    repo = TenantRepository(COLECAO_TURMAS, school_id)
    repo.obter_ou_404(turma_id, "Turma não encontrada.")
    return repo.atualizar(turma_id, {'professor_ids': firestore.ArrayRemove([professor_id])})


# === MATRÍCULAS ===

def matricular(school_id: str, turma_id: str, aluno_id: str) -> dict:
    """
    Matricula o aluno na turma. Se ele estava em outra turma, a vaga de lá
    é liberada.

    Vagas e turma do aluno são lidas e gravadas na mesma transação; o
    Firestore repete a função se algum documento lido mudar antes do commit.
    """
    repo_turmas = TenantRepository(COLECAO_TURMAS, school_id)
    repo_alunos = TenantRepository(COLECAO_ALUNOS, school_id)

    @firestore.transactional
    def _matricular(transaction):
        turma = repo_turmas.obter_ou_404(turma_id, "Turma não encontrada.", transaction=transaction)
        aluno = repo_alunos.obter_ou_404(aluno_id, "Aluno não encontrado.", transaction=transaction)

        if aluno.get('turma_id') == turma_id:
            raise Conflito("O aluno já está matriculado nesta turma.")
        if turma.get('vagas_ocupadas', 0) >= turma.get('vagas_total', 0):
            raise Conflito("Não há vagas disponíveis nesta turma.")

        anterior = aluno.get('turma_id')
        turma_anterior = repo_turmas.obter(anterior, transaction=transaction)

        transaction.update(repo_turmas.referencia.document(turma_id), {
            'vagas_ocupadas': turma.get('vagas_ocupadas', 0) + 1,
            'updated_at': firestore.SERVER_TIMESTAMP,
        })
        transaction.update(repo_alunos.referencia.document(aluno_id), {
            'turma_id': turma_id,
            'updated_at': firestore.SERVER_TIMESTAMP,
        })
        if turma_anterior and turma_anterior.get('vagas_ocupadas', 0) > 0:
            transaction.update(repo_turmas.referencia.document(anterior), {
                'vagas_ocupadas': turma_anterior['vagas_ocupadas'] - 1,
                'updated_at': firestore.SERVER_TIMESTAMP,
            })

    _matricular(repo_turmas.db.transaction())

    invalidar_cache_escola(school_id)
    logger.info(f"Aluno {aluno_id} matriculado na turma {turma_id}")
    return obter_turma(school_id, turma_id)


def desmatricular(school_id: str, turma_id: str, aluno_id: str) -> dict:
    repo_turmas = TenantRepository(COLECAO_TURMAS, school_id)
    repo_alunos = TenantRepository(COLECAO_ALUNOS, school_id)
    turma = repo_turmas.obter_ou_404(turma_id, "Turma não encontrada.")
    aluno = repo_alunos.obter_ou_404(aluno_id, "Aluno não encontrado.")
    if aluno.get('turma_id') != turma_id:
        raise DadosInvalidos("O aluno não está matriculado nesta turma.")

    repo_alunos.atualizar(aluno_id, {'turma_id': None})
    if turma.get('vagas_ocupadas', 0) > 0:
        repo_turmas.atualizar(turma_id, {'vagas_ocupadas': firestore.Increment(-1)})
    logger.info(f"Aluno {aluno_id} removido da turma {turma_id}")
    return obter_turma(school_id, turma_id)
