"""
Camada de Serviço dos Cursos
"""

from google.cloud import firestore

from smartclass.chamada.services import agrupar_por
from smartclass.core.constants import COLECAO_CURSOS, COLECAO_TURMAS
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import TenantRepository, invalidar_cache_escola

logger = get_logger(__name__)


def listar_cursos(school_id: str) -> list:
    cursos = TenantRepository(COLECAO_CURSOS, school_id).listar(order_by='nome')
    turmas_por_curso = agrupar_por(TenantRepository(COLECAO_TURMAS, school_id).listar(), 'curso_id')
    for curso in cursos:
        curso['total_turmas'] = len(turmas_por_curso.get(curso['id'], []))
    return cursos


def obter_curso(school_id: str, curso_id: str) -> dict:
    curso = TenantRepository(COLECAO_CURSOS, school_id).obter_ou_404(curso_id, "Curso não encontrado.")
    turmas = TenantRepository(COLECAO_TURMAS, school_id).listar(order_by='nome', curso_id=curso_id)
    curso['turmas'] = [{'id': t['id'], 'nome': t.get('nome')} for t in turmas]
    curso['total_turmas'] = len(turmas)
    return curso


def criar_curso(school_id: str, dados: dict) -> dict:
    dados = dict(dados)
    dados['ativo'] = True if dados.get('ativo') is None else dados['ativo']
    curso = TenantRepository(COLECAO_CURSOS, school_id).criar(dados)
    logger.info(f"Curso criado: {curso['id']} ({curso['nome']})")
    return curso


def atualizar_curso(school_id: str, curso_id: str, dados: dict) -> dict:
    return TenantRepository(COLECAO_CURSOS, school_id).atualizar(curso_id, dados)


def excluir_curso(school_id: str, curso_id: str) -> None:
    """Remove o curso; suas turmas continuam existindo, sem curso."""
    repo = TenantRepository(COLECAO_CURSOS, school_id)
    repo.obter_ou_404(curso_id, "Curso não encontrado.")

    repo_turmas = TenantRepository(COLECAO_TURMAS, school_id)
    batch = repo.db.batch()
    for turma in repo_turmas.listar(curso_id=curso_id):
        batch.update(repo_turmas.referencia.document(turma['id']), {
            'curso_id': None,
            'updated_at': firestore.SERVER_TIMESTAMP,
        })
    batch.delete(repo.referencia.document(curso_id))
    batch.commit()

    invalidar_cache_escola(school_id)
    logger.info(f"Curso excluído: {curso_id}")
