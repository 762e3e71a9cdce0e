"""
Camada de Serviço dos Alunos

A ficha do aluno é criada junto com o acesso (create-access ou aceite de
convite) e fica ligada ao perfil por `user_id`. A troca de turma passa
sempre pelas matrículas de turmas.services para manter as vagas corretas.
"""

from typing import Optional

from flask import current_app

from smartclass.chamada.services import percentual_presenca
from smartclass.core.constants import (
    COLECAO_ALUNOS,
    COLECAO_CHAMADAS,
    COLECAO_PRESENCAS,
    COLECAO_TURMAS,
    PRESENTE,
)
from smartclass.core.datas import calcular_idade
from smartclass.core.errors import Conflito, DadosInvalidos
from smartclass.core.formularios import validar_dados
from smartclass.core.logger import get_logger
from smartclass.core.security import validador
from smartclass.core.storage import excluir_arquivo, gerar_url_assinada, montar_caminho, upload_arquivo
from smartclass.core.tenancy import TenantRepository, ordenar
from smartclass.turmas import services as turmas_services

from .forms import FichaAlunoForm

logger = get_logger(__name__)

# Assinaturas (magic bytes) das imagens aceitas como foto
ASSINATURAS_IMAGEM = {
    'image/jpeg': (b'\xff\xd8\xff',),
    'image/png': (b'\x89PNG\r\n\x1a\n',),
}


def detectar_tipo_imagem(conteudo: bytes) -> Optional[str]:
    """Tipo real da imagem pelo conteúdo, ignorando a extensão enviada."""
    for content_type, assinaturas in ASSINATURAS_IMAGEM.items():
        if any(conteudo.startswith(a) for a in assinaturas):
            return content_type
    if len(conteudo) >= 12 and conteudo[:4] == b'RIFF' and conteudo[8:12] == b'WEBP':
        return 'image/webp'
    return None


def _apresentar(aluno: dict, turmas: dict) -> dict:
    turma = turmas.get(aluno.get('turma_id'))
    aluno['turma'] = {'nome': turma['nome']} if turma else None
    # A URL assinada expira; o banco guarda só o blob
    aluno['foto_url'] = gerar_url_assinada(aluno.get('foto_blob')) or ""
    aluno['instrumento'] = aluno.get('instrumento') or ""
    aluno['idade'] = calcular_idade(aluno.get('data_nascimento'))
    aluno.pop('foto_blob', None)
    return aluno


def listar_alunos(school_id: str) -> list:
    alunos = TenantRepository(COLECAO_ALUNOS, school_id).listar(order_by='nome')
    turmas = TenantRepository(COLECAO_TURMAS, school_id).mapa_por_id(a.get('turma_id') for a in alunos)
    return [_apresentar(a, turmas) for a in alunos]


def obter_aluno(school_id: str, aluno_id: str) -> dict:
    aluno = TenantRepository(COLECAO_ALUNOS, school_id).obter_ou_404(aluno_id, "Aluno não encontrado.")
    turmas = TenantRepository(COLECAO_TURMAS, school_id).mapa_por_id([aluno.get('turma_id')])
    return _apresentar(aluno, turmas)


def criar_para_perfil(perfil: dict, metadata: dict) -> dict:
    """
    Cria a ficha do aluno para o perfil. Se o perfil já tem ficha, ela é
    retornada sem alterações.
    """
    school_id = perfil['school_id']
    repo = TenantRepository(COLECAO_ALUNOS, school_id)
    existentes = repo.listar(user_id=perfil['id'])
    if existentes:
        return existentes[0]

    ficha = validar_dados(FichaAlunoForm, metadata or {}, parcial=True)
    turma_id = ficha.pop('turma_id', None)
    if turma_id:
        turma = TenantRepository(COLECAO_TURMAS, school_id).obter_ou_404(turma_id, "Turma não encontrada.")
        if turma.get('vagas_ocupadas', 0) >= turma.get('vagas_total', 0):
            raise Conflito("Não há vagas disponíveis nesta turma.")

    dados = {
        'user_id': perfil['id'],
        'nome': ficha.pop('nome', None) or perfil.get('nome_completo'),
        'email': perfil.get('email'),
        'telefone': ficha.pop('telefone', None) or perfil.get('telefone'),
        'ativo': True,
        'turma_id': None,
        'foto_blob': None,
    }
    dados.update(ficha)
    aluno = repo.criar(dados)
    logger.info(f"Ficha de aluno criada: {aluno['id']} (perfil {perfil['id']})")

    if turma_id:
        try:
            turmas_services.matricular(school_id, turma_id, aluno['id'])
        except Exception:
            # Sem matrícula a ficha não fica órfã
            repo.excluir(aluno['id'])
            logger.warning(f"Matrícula falhou; ficha {aluno['id']} removida")
            raise
        aluno = repo.obter(aluno['id'])
    return aluno


def atualizar_aluno(school_id: str, aluno_id: str, dados: dict) -> dict:
    """Atualiza a ficha. Mudança de `turma_id` vira matrícula/desmatrícula."""
    repo = TenantRepository(COLECAO_ALUNOS, school_id)
    atual = repo.obter_ou_404(aluno_id, "Aluno não encontrado.")

    dados = dict(dados)
    if 'turma_id' in dados:
        nova_turma = dados.pop('turma_id') or None
        if nova_turma and nova_turma != atual.get('turma_id'):
            turmas_services.matricular(school_id, nova_turma, aluno_id)
        elif not nova_turma and atual.get('turma_id'):
            turmas_services.desmatricular(school_id, atual['turma_id'], aluno_id)

    dados = {k: v for k, v in dados.items() if k not in ('user_id', 'email', 'foto_url', 'foto_blob')}
    if dados:
        repo.atualizar(aluno_id, dados)
    return obter_aluno(school_id, aluno_id)


def excluir_aluno(school_id: str, aluno_id: str) -> None:
    repo = TenantRepository(COLECAO_ALUNOS, school_id)
    aluno = repo.obter_ou_404(aluno_id, "Aluno não encontrado.")
    if aluno.get('turma_id'):
        turmas_services.desmatricular(school_id, aluno['turma_id'], aluno_id)
    repo.excluir(aluno_id)
    excluir_arquivo(aluno.get('foto_blob'))
    logger.info(f"Aluno excluído: {aluno_id}")


def upload_foto(school_id: str, aluno_id: str, conteudo: bytes, nome_arquivo: str) -> dict:
    """
    Envia a foto ao Storage e grava só o nome do blob; a Signed URL é
    gerada a cada leitura. A foto anterior é removida.
    """
    repo = TenantRepository(COLECAO_ALUNOS, school_id)
    aluno = repo.obter_ou_404(aluno_id, "Aluno não encontrado.")

    if not conteudo:
        raise DadosInvalidos("Nenhuma imagem enviada.")
    content_type = detectar_tipo_imagem(conteudo)
    if not content_type:
        raise DadosInvalidos("A foto deve ser uma imagem JPEG, PNG ou WEBP.")

    violacoes = validador.validar_arquivo(nome_arquivo or 'foto', content_type, len(conteudo))
    if violacoes:
        raise DadosInvalidos(violacoes[0].mensagem, detalhes={'arquivo': [v.mensagem for v in violacoes]})

    prefixo = current_app.config.get('STORAGE_PREFIXO_FOTOS', 'alunos-fotos')
    blob_name = upload_arquivo(conteudo, montar_caminho(prefixo, school_id, nome_arquivo), content_type)
    repo.atualizar(aluno_id, {'foto_blob': blob_name})
    if aluno.get('foto_blob'):
        excluir_arquivo(aluno['foto_blob'])
    return obter_aluno(school_id, aluno_id)


def historico_presenca(school_id: str, aluno_id: str) -> dict:
    TenantRepository(COLECAO_ALUNOS, school_id).obter_ou_404(aluno_id, "Aluno não encontrado.")
    presencas = TenantRepository(COLECAO_PRESENCAS, school_id).listar(aluno_id=aluno_id)
    chamadas = TenantRepository(COLECAO_CHAMADAS, school_id).mapa_por_id(p.get('chamada_id') for p in presencas)
    turmas = TenantRepository(COLECAO_TURMAS, school_id).mapa_por_id(p.get('turma_id') for p in presencas)

    registros = []
    for p in presencas:
        chamada = chamadas.get(p.get('chamada_id')) or {}
        turma = turmas.get(p.get('turma_id')) or {}
        registros.append({
            'data': chamada.get('data_chamada'),
            'turma': turma.get('nome'),
            'status': p.get('status'),
        })

    return {
        'aluno_id': aluno_id,
        'total': len(presencas),
        'presentes': sum(1 for p in presencas if p.get('status') == PRESENTE),
        'percentual_presenca': percentual_presenca(presencas),
        'registros': ordenar(registros, 'data', descending=True),
    }
