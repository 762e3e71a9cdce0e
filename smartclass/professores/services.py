"""
Camada de Serviço dos Professores

Além do cadastro, calcula as estatísticas exibidas na listagem a partir das
chamadas das turmas do professor:
- total_aulas: chamadas com ao menos uma presença registrada;
- presenca_media: média dos percentuais de cada chamada, arredondada no fim;
- avaliacao_media: nota da TABELA_AVALIACAO para a presença média.
"""

from google.cloud import firestore

from smartclass.chamada.services import agrupar_por
from smartclass.core.constants import (
    AVALIACAO_ABAIXO_DE_60,
    AVALIACAO_SEM_AULAS,
    COLECAO_CHAMADAS,
    COLECAO_PRESENCAS,
    COLECAO_PROFESSORES,
    COLECAO_TURMAS,
    PRESENTE,
    TABELA_AVALIACAO,
)
from smartclass.core.errors import DadosInvalidos
from smartclass.core.formatos import arredondar
from smartclass.core.formularios import validar_dados
from smartclass.core.logger import get_logger
from smartclass.core.security import validador
from smartclass.core.tenancy import TenantRepository, invalidar_cache_escola

from .forms import FichaProfessorForm

logger = get_logger(__name__)

MAX_ESPECIALIDADES = 20


def avaliacao_por_presenca(presenca_media: int, total_aulas: int) -> float:
    if not total_aulas:
        return AVALIACAO_SEM_AULAS
    for limite, nota in TABELA_AVALIACAO:
        if presenca_media >= limite:
            return nota
    return AVALIACAO_ABAIXO_DE_60


def estatisticas(turma_ids, chamadas_por_turma: dict, presencas_por_chamada: dict) -> dict:
    percentuais = []
    for turma_id in turma_ids:
        for chamada in chamadas_por_turma.get(turma_id, []):
            presencas = presencas_por_chamada.get(chamada['id'], [])
            if presencas:
                presentes = sum(1 for p in presencas if p.get('status') == PRESENTE)
                percentuais.append(presentes / len(presencas) * 100)

    # Arredonda só a média, não cada chamada
    total_aulas = len(percentuais)
    presenca_media = arredondar(sum(percentuais) / total_aulas) if total_aulas else 0
    return {
        'total_aulas': total_aulas,
        'presenca_media': presenca_media,
        'avaliacao_media': avaliacao_por_presenca(presenca_media, total_aulas),
    }


def normalizar_especialidades(valor) -> list:
    if valor is None:
        return []
    if isinstance(valor, str):
        valor = valor.split(',')
    if not isinstance(valor, list):
        raise DadosInvalidos("Especialidades devem ser uma lista de textos.")

    especialidades = []
    for item in valor:
        if not isinstance(item, str):
            raise DadosInvalidos("Especialidades devem ser uma lista de textos.")
        item = item.strip()
        if not item or item in especialidades:
            continue
        if len(item) > 60 or not validador.validar_entrada(item, contexto='especialidades').valido:
            raise DadosInvalidos(f"Especialidade inválida: {item[:60]}")
        especialidades.append(item)

    if len(especialidades) > MAX_ESPECIALIDADES:
        raise DadosInvalidos(f"Informe no máximo {MAX_ESPECIALIDADES} especialidades.")
    return especialidades


def listar_professores(school_id: str) -> list:
    professores = TenantRepository(COLECAO_PROFESSORES, school_id).listar(order_by='created_at', descending=True)
    if not professores:
        return []

    turmas = TenantRepository(COLECAO_TURMAS, school_id).listar()
    chamadas_por_turma = agrupar_por(TenantRepository(COLECAO_CHAMADAS, school_id).listar(), 'turma_id')
    presencas_por_chamada = agrupar_por(TenantRepository(COLECAO_PRESENCAS, school_id).listar(), 'chamada_id')

    for professor in professores:
        turma_ids = [t['id'] for t in turmas if professor['id'] in (t.get('professor_ids') or [])]
        professor['turmas'] = [{'id': t['id'], 'nome': t.get('nome')} for t in turmas if t['id'] in turma_ids]
        professor.update(estatisticas(turma_ids, chamadas_por_turma, presencas_por_chamada))
    return professores


def obter_professor(school_id: str, professor_id: str) -> dict:
    professor = TenantRepository(COLECAO_PROFESSORES, school_id).obter_ou_404(professor_id, "Professor não encontrado.")
    turmas = TenantRepository(COLECAO_TURMAS, school_id).contem('professor_ids', professor_id)
    turma_ids = [t['id'] for t in turmas]

    chamadas = TenantRepository(COLECAO_CHAMADAS, school_id).listar_onde('turma_id', turma_ids)
    presencas = TenantRepository(COLECAO_PRESENCAS, school_id).listar_onde('chamada_id', [c['id'] for c in chamadas])

    professor['turmas'] = [{'id': t['id'], 'nome': t.get('nome')} for t in turmas]
    professor.update(estatisticas(
        turma_ids, agrupar_por(chamadas, 'turma_id'), agrupar_por(presencas, 'chamada_id')
    ))
    return professor


def criar_para_perfil(perfil: dict, metadata: dict) -> dict:
    """
    Cria a ficha do professor para o perfil. Se o perfil já tem ficha, ela
    é retornada sem alterações.
    """
    repo = TenantRepository(COLECAO_PROFESSORES, perfil['school_id'])
    existentes = repo.listar(user_id=perfil['id'])
    if existentes:
        return existentes[0]

    metadata = metadata or {}
    ficha = validar_dados(FichaProfessorForm, metadata, parcial=True)
    dados = {
        'user_id': perfil['id'],
        'nome': ficha.pop('nome', None) or perfil.get('nome_completo'),
        'email': perfil.get('email'),
        'telefone': ficha.pop('telefone', None) or perfil.get('telefone'),
        'especialidades': normalizar_especialidades(metadata.get('especialidades')),
        'valor_hora': None,
        'ativo': True,
    }
    dados.update(ficha)
    professor = repo.criar(dados)
    logger.info(f"Ficha de professor criada: {professor['id']} (perfil {perfil['id']})")
    return professor


def atualizar_professor(school_id: str, professor_id: str, dados: dict, especialidades=None) -> dict:
    dados = {k: v for k, v in dados.items() if k not in ('user_id', 'email')}
    if especialidades is not None:
        dados['especialidades'] = normalizar_especialidades(especialidades)
    TenantRepository(COLECAO_PROFESSORES, school_id).atualizar(professor_id, dados)
    return obter_professor(school_id, professor_id)


def excluir_professor(school_id: str, professor_id: str) -> None:
    """Remove a ficha e desvincula o professor de todas as turmas."""
    repo = TenantRepository(COLECAO_PROFESSORES, school_id)
    repo.obter_ou_404(professor_id, "Professor não encontrado.")

    repo_turmas = TenantRepository(COLECAO_TURMAS, school_id)
    batch = repo.db.batch()
    for turma in repo_turmas.contem('professor_ids', professor_id):
        batch.update(repo_turmas.referencia.document(turma['id']), {
            'professor_ids': firestore.ArrayRemove([professor_id]),
            'updated_at': firestore.SERVER_TIMESTAMP,
        })
    batch.delete(repo.referencia.document(professor_id))
    batch.commit()

    invalidar_cache_escola(school_id)
    logger.info(f"Professor excluído: {professor_id}")
