"""
Camada de Serviço do Admin

Provisionamento privilegiado de usuários:
- convidar_usuario (invite-user): cria perfil 'convidado' e um link assinado;
- criar_acesso (create-access): cria perfil ativo com senha e a ficha de
  professor/aluno; se a ficha falhar, o perfil é removido.
Também: papéis, dados da escola e auditoria.
"""

from datetime import datetime, timedelta, timezone

from flask import url_for
from google.cloud import firestore

from smartclass.auth import services as auth_services
from smartclass.core.audit import (
    ACAO_ACESSO_CRIADO,
    ACAO_CONVITE_ENVIADO,
    ACAO_ESCOLA_ATUALIZADA,
    ACAO_PAPEL_ALTERADO,
    listar_eventos,
    registrar_evento,
)
from smartclass.core.cep import buscar_endereco
from smartclass.core.constants import (
    COLECAO_ESCOLAS,
    COLECAO_PERFIS,
    PAPEIS_DIRECAO,
    PAPEL_DIRETOR,
    STATUS_PERFIL_ATIVO,
    STATUS_PERFIL_CONVIDADO,
)
from smartclass.core.crypto import gerar_senha_temporaria, mascarar_email
from smartclass.core.database import get_db
from smartclass.core.errors import AcessoNegado, DadosInvalidos, RegistroNaoEncontrado
from smartclass.core.logger import get_logger
from smartclass.core.tenancy import TenantRepository, doc_para_dict, invalidar_cache_escola

logger = get_logger(__name__)


def _exigir_mesma_escola(school_id_informado, solicitante: dict) -> None:
    if school_id_informado and school_id_informado != solicitante.get('school_id'):
        logger.warning(
            f"Tentativa de provisionar usuário em outra escola por {solicitante.get('id')} "
            f"(escola informada: {school_id_informado})"
        )
        raise AcessoNegado("Você só pode gerenciar usuários da sua própria escola.")


# === INVITE-USER ===

def convidar_usuario(dados: dict, solicitante: dict) -> dict:
    """
    Cria o perfil convidado e retorna a URL de aceite do convite.
    """
    _exigir_mesma_escola(dados.get('school_id'), solicitante)

    perfil = auth_services.criar_perfil(
        school_id=solicitante['school_id'],
        email=dados['email'],
        nome_completo=dados['nome_completo'],
        tipo_usuario=dados['tipo_usuario'],
        telefone=dados.get('telefone'),
        status=STATUS_PERFIL_CONVIDADO,
    )

    token = auth_services.gerar_token_convite(perfil)
    validade = auth_services.validade_convite_segundos()
    expira_em = datetime.now(timezone.utc) + timedelta(seconds=validade)

    registrar_evento(
        ACAO_CONVITE_ENVIADO,
        f"Convite enviado para {mascarar_email(perfil['email'])} ({perfil['tipo_usuario']})",
        {'perfil_convidado': perfil['id']},
    )
    return {
        'perfil': auth_services.perfil_publico(perfil),
        'convite_url': url_for('auth_bp.aceitar_convite', token=token, _external=True),
        'expira_em': expira_em,
    }


# === CREATE-ACCESS ===

def criar_acesso(dados: dict, metadata: dict, solicitante: dict) -> dict:
    """
    Cria um acesso ativo. Sem senha informada, gera uma senha temporária
    que é devolvida uma única vez na resposta.
    """
    _exigir_mesma_escola(dados.get('school_id'), solicitante)

    if dados['tipo_usuario'] == PAPEL_DIRETOR and solicitante.get('tipo_usuario') not in PAPEIS_DIRECAO:
        raise AcessoNegado("Apenas a direção pode criar acessos de diretor.")

    senha = dados.get('senha')
    senha_gerada = None
    if senha:
        auth_services.exigir_senha_forte(senha)
    else:
        senha = senha_gerada = gerar_senha_temporaria()

    perfil = auth_services.criar_perfil(
        school_id=solicitante['school_id'],
        email=dados['email'],
        nome_completo=dados['nome_completo'],
        tipo_usuario=dados['tipo_usuario'],
        telefone=dados.get('telefone'),
        senha=senha,
        status=STATUS_PERFIL_ATIVO,
    )

    try:
        registro = auth_services.criar_registro_vinculado(perfil, metadata or {})
    except Exception as e:
        # Rollback: sem ficha, o perfil não pode existir sozinho
        logger.error(f"Falha ao criar ficha de {mascarar_email(perfil['email'])}; desfazendo perfil: {e}",
                     exc_info=True)
        auth_services.excluir_perfil(perfil['id'])
        raise

    registrar_evento(
        ACAO_ACESSO_CRIADO,
        f"Acesso criado para {mascarar_email(perfil['email'])} ({perfil['tipo_usuario']})",
        {'perfil_criado': perfil['id'], 'registro': registro.get('id') if registro else None},
    )

    resposta = {'perfil': auth_services.perfil_publico(perfil), 'registro': registro}
    if senha_gerada:
        resposta['senha_temporaria'] = senha_gerada
    return resposta


# === USUÁRIOS E PAPÉIS ===

def listar_usuarios(school_id: str) -> list:
    perfis = TenantRepository(COLECAO_PERFIS, school_id).listar(order_by='nome_completo')
    return [auth_services.perfil_publico(p) for p in perfis]


def alterar_papel(school_id: str, profile_id: str, novo_papel: str, solicitante: dict) -> dict:
    repo = TenantRepository(COLECAO_PERFIS, school_id)
    alvo = repo.obter_ou_404(profile_id, "Usuário não encontrado.")

    if alvo['id'] == solicitante.get('id'):
        raise DadosInvalidos("Você não pode alterar o seu próprio papel.")

    escola = auth_services.obter_escola(school_id) or {}
    if escola.get('owner_id') == alvo['id']:
        raise AcessoNegado("O papel do responsável pela escola não pode ser alterado.")

    papel_anterior = alvo.get('tipo_usuario')
    atualizado = repo.atualizar(profile_id, {'tipo_usuario': novo_papel})
    registrar_evento(
        ACAO_PAPEL_ALTERADO,
        f"Papel de {mascarar_email(alvo.get('email'))} alterado de {papel_anterior} para {novo_papel}",
        {'perfil': profile_id, 'de': papel_anterior, 'para': novo_papel},
    )
    return auth_services.perfil_publico(atualizado)


# === ESCOLA ===

def obter_escola(school_id: str) -> dict:
    escola = auth_services.obter_escola(school_id)
    if not escola:
        raise RegistroNaoEncontrado("Escola não encontrada.")
    return escola


def atualizar_escola(school_id: str, dados: dict, solicitante: dict) -> dict:
    """Somente o dono da escola (owner_id) altera seus dados."""
    escola = obter_escola(school_id)
    if escola.get('owner_id') != solicitante.get('id'):
        raise AcessoNegado("Apenas o responsável pela escola pode alterar seus dados.")

    # Completa o endereço pelo CEP quando ele não foi informado
    if dados.get('cep') and not dados.get('endereco'):
        endereco = buscar_endereco(dados['cep'])
        if endereco:
            dados['endereco'] = ', '.join(p for p in (endereco['logradouro'], endereco['bairro']) if p)
            dados.setdefault('cidade', endereco['cidade'])
            dados.setdefault('estado', endereco['estado'])

    dados = {k: v for k, v in dados.items() if k not in ('id', 'owner_id', 'created_at')}
    dados['updated_at'] = firestore.SERVER_TIMESTAMP

    ref = get_db().collection(COLECAO_ESCOLAS).document(school_id)
    ref.update(dados)
    invalidar_cache_escola(school_id)
    registrar_evento(ACAO_ESCOLA_ATUALIZADA, "Dados da escola atualizados",
                     {'campos': sorted(k for k in dados if k != 'updated_at')})
    return doc_para_dict(ref.get())


def listar_auditoria(school_id: str, limite: int = 50) -> list:
    return listar_eventos(school_id, limite)
