"""
Camada de Serviço (Service Layer) da Autenticação

Perfis de usuário, escolas, login por senha ou Google, sessão e convites.
Senhas são guardadas com werkzeug.security; convites são tokens assinados
(itsdangerous) com validade.
"""

from typing import Optional

from flask import current_app, g, session
from google.cloud import firestore
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from smartclass.alunos import services as alunos_services
from smartclass.core.audit import (
    ACAO_CONVITE_ACEITO,
    ACAO_ESCOLA_CRIADA,
    ACAO_LOGIN_BLOQUEADO,
    registrar_evento,
)
from smartclass.core.constants import (
    COLECAO_ESCOLAS,
    COLECAO_PERFIS,
    PAPEL_ALUNO,
    PAPEL_DIRETOR,
    PAPEL_PROFESSOR,
    STATUS_PERFIL_ATIVO,
    STATUS_PERFIL_CONVIDADO,
)
from smartclass.core.crypto import mascarar_email
from smartclass.core.database import get_db
from smartclass.core.errors import AcessoNegado, Conflito, DadosInvalidos, MuitasTentativas, NaoAutenticado
from smartclass.core.logger import get_logger
from smartclass.core.security import validador
from smartclass.core.tenancy import TenantRepository, doc_para_dict
from smartclass.professores import services as professores_services

# Inicializa o logger para este módulo
logger = get_logger(__name__)

ACAO_LOGIN = 'login'
SALT_CONVITE = 'smartclass-convite'
CHAVE_SESSAO = 'profile_id'


# === PERFIS ===

def perfil_publico(perfil: Optional[dict]) -> Optional[dict]:
    """Remove campos que nunca saem do servidor."""
    if perfil is None:
        return None
    return {k: v for k, v in perfil.items() if k != 'password_hash'}


def obter_perfil(profile_id: str) -> Optional[dict]:
    if not profile_id:
        return None
    doc = get_db().collection(COLECAO_PERFIS).document(profile_id).get()
    return doc_para_dict(doc) if doc.exists else None


def buscar_perfil_por_email(email: str) -> Optional[dict]:
    email = (email or '').strip().lower()
    if not email:
        return None
    docs = get_db().collection(COLECAO_PERFIS).where('email', '==', email).limit(1).stream()
    for doc in docs:
        return doc_para_dict(doc)
    return None


def exigir_senha_forte(senha: str) -> None:
    violacoes = validador.validar_senha(senha or '')
    if violacoes:
        raise DadosInvalidos(violacoes[0].mensagem, detalhes={'senha': [v.mensagem for v in violacoes]})


def criar_perfil(school_id: str, email: str, nome_completo: str, tipo_usuario: str,
                 senha: str = None, status: str = STATUS_PERFIL_ATIVO, telefone: str = None) -> dict:
    """
    Cria um perfil na escola. O e-mail é único em todo o sistema.
    """
    email = email.strip().lower()
    if buscar_perfil_por_email(email):
        raise Conflito("Já existe um usuário com este e-mail.")

    dados = {
        'email': email,
        'nome_completo': nome_completo.strip(),
        'tipo_usuario': tipo_usuario,
        'telefone': telefone,
        'avatar_url': None,
        'status': status,
        'password_hash': generate_password_hash(senha) if senha else None,
    }
    perfil = TenantRepository(COLECAO_PERFIS, school_id).criar(dados)
    logger.info(f"Perfil criado: {mascarar_email(email)} ({tipo_usuario}, {status})")
    return perfil


def excluir_perfil(profile_id: str) -> None:
    get_db().collection(COLECAO_PERFIS).document(profile_id).delete()
    logger.info(f"Perfil excluído: {profile_id}")


def atualizar_perfil(perfil: dict, dados: dict) -> dict:
    """Atualiza o próprio perfil (nome, telefone, avatar)."""
    permitidos = {k: v for k, v in dados.items() if k in ('nome_completo', 'telefone', 'avatar_url')}
    if not permitidos:
        return perfil_publico(perfil)
    atualizado = TenantRepository(COLECAO_PERFIS, perfil['school_id']).atualizar(perfil['id'], permitidos)
    return perfil_publico(atualizado)


# === ESCOLAS ===

def obter_escola(school_id: str) -> Optional[dict]:
    if not school_id:
        return None
    doc = get_db().collection(COLECAO_ESCOLAS).document(school_id).get()
    return doc_para_dict(doc) if doc.exists else None


def registrar_escola(nome_escola: str, nome_completo: str, email: str, senha: str) -> dict:
    """
    Cadastro inicial: cria a escola e o perfil do diretor, que passa a ser
    o dono (owner_id) da escola.
    """
    exigir_senha_forte(senha)
    if buscar_perfil_por_email(email):
        raise Conflito("Já existe um usuário com este e-mail.")

    ref_escola = get_db().collection(COLECAO_ESCOLAS).document()
    ref_escola.set({
        'name': nome_escola.strip(),
        'owner_id': None,
        'created_at': firestore.SERVER_TIMESTAMP,
        'updated_at': firestore.SERVER_TIMESTAMP,
    })

    try:
        perfil = criar_perfil(ref_escola.id, email, nome_completo, PAPEL_DIRETOR, senha=senha)
    except Exception:
        ref_escola.delete()
        raise

    ref_escola.update({'owner_id': perfil['id']})
    escola = doc_para_dict(ref_escola.get())
    registrar_evento(ACAO_ESCOLA_CRIADA, f"Escola '{escola['name']}' cadastrada",
                     school_id=escola['id'], profile_id=perfil['id'])
    return {'perfil': perfil_publico(perfil), 'escola': escola}


def criar_registro_vinculado(perfil: dict, metadata: dict) -> Optional[dict]:
    """
    Cria a ficha de professor ou aluno ligada ao perfil (user_id). Outros
    papéis não têm ficha. Se a ficha já existir, ela é retornada.
    """
    tipo = perfil.get('tipo_usuario')
    if tipo == PAPEL_PROFESSOR:
        return professores_services.criar_para_perfil(perfil, metadata)
    if tipo == PAPEL_ALUNO:
        return alunos_services.criar_para_perfil(perfil, metadata)
    return None


# === SESSÃO ===

def iniciar_sessao(perfil: dict) -> None:
    session.clear()
    session[CHAVE_SESSAO] = perfil['id']
    session.permanent = True


def encerrar_sessao() -> None:
    session.clear()


def carregar_usuario_da_sessao() -> None:
    """
    before_request: carrega g.perfil e g.school_id a partir da sessão.
    Perfis removidos ou desativados derrubam a sessão.
    """
    g.perfil = None
    g.school_id = None

    profile_id = session.get(CHAVE_SESSAO)
    if not profile_id:
        return

    perfil = obter_perfil(profile_id)
    if not perfil or perfil.get('status') != STATUS_PERFIL_ATIVO:
        logger.warning(f"Sessão inválida descartada (perfil {profile_id}).")
        session.clear()
        return

    g.perfil = perfil_publico(perfil)
    g.school_id = perfil.get('school_id')


# === LOGIN ===

def autenticar(email: str, senha: str) -> dict:
    """
    Login por e-mail e senha. Cada falha conta para a detecção de força
    bruta; um login bem-sucedido zera o contador.
    """
    chave = (email or '').strip().lower()

    if validador.esta_bloqueado(chave, ACAO_LOGIN):
        logger.warning(f"Login bloqueado por excesso de tentativas: {mascarar_email(chave)}")
        registrar_evento(ACAO_LOGIN_BLOQUEADO, f"Login bloqueado para {mascarar_email(chave)}")
        raise MuitasTentativas()

    perfil = buscar_perfil_por_email(chave)
    if not perfil or not perfil.get('password_hash') or not check_password_hash(perfil['password_hash'], senha):
        validador.validar_forca_bruta(chave, ACAO_LOGIN)
        logger.info(f"Falha de login: {mascarar_email(chave)}")
        raise NaoAutenticado("E-mail ou senha inválidos.")

    if perfil.get('status') != STATUS_PERFIL_ATIVO:
        raise AcessoNegado("Seu acesso ainda não foi ativado. Verifique o convite recebido.")

    validador.limpar_tentativas(chave, ACAO_LOGIN)
    logger.info(f"Login efetuado: {mascarar_email(chave)} (Papel: {perfil.get('tipo_usuario')})")
    return perfil


def autenticar_google(user_info: dict) -> dict:
    """
    Login pelo Google. Só entra quem já tem perfil ativo com o mesmo e-mail;
    o Google não cria escolas nem perfis.
    """
    email = (user_info or {}).get('email')
    if not email:
        logger.error("Perfil do Google recebido sem e-mail.")
        raise DadosInvalidos("Perfil do Google não contém e-mail.")

    perfil = buscar_perfil_por_email(email)
    if not perfil or perfil.get('status') != STATUS_PERFIL_ATIVO:
        logger.warning(f"Login Google recusado (sem perfil ativo): {mascarar_email(email)}")
        raise AcessoNegado("Nenhum acesso ativo encontrado para este e-mail.")

    if not perfil.get('avatar_url') and user_info.get('picture'):
        get_db().collection(COLECAO_PERFIS).document(perfil['id']).update({'avatar_url': user_info['picture']})
        perfil['avatar_url'] = user_info['picture']

    logger.info(f"Login Google efetuado: {mascarar_email(email)}")
    return perfil


# === CONVITES ===

def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=SALT_CONVITE)


def gerar_token_convite(perfil: dict) -> str:
    return _serializer().dumps({'profile_id': perfil['id'], 'school_id': perfil['school_id']})


def validade_convite_segundos() -> int:
    return current_app.config.get('CONVITE_VALIDADE_DIAS', 7) * 24 * 3600


def ler_convite(token: str) -> dict:
    """Retorna o perfil convidado do token, ou levanta DadosInvalidos/Conflito."""
    try:
        dados = _serializer().loads(token, max_age=validade_convite_segundos())
    except SignatureExpired:
        raise DadosInvalidos("Este convite expirou. Peça um novo convite à escola.")
    except BadSignature:
        raise DadosInvalidos("Convite inválido.")

    perfil = obter_perfil(dados.get('profile_id'))
    if not perfil or perfil.get('school_id') != dados.get('school_id'):
        raise DadosInvalidos("Convite inválido.")
    if perfil.get('status') != STATUS_PERFIL_CONVIDADO:
        raise Conflito("Este convite já foi utilizado.")
    return perfil


def aceitar_convite(token: str, senha: str) -> dict:
    """
    Define a senha, ativa o perfil e cria a ficha de aluno/professor
    vinculada, se ainda não existir.
    """
    perfil = ler_convite(token)
    exigir_senha_forte(senha)

    repo = TenantRepository(COLECAO_PERFIS, perfil['school_id'])
    perfil = repo.atualizar(perfil['id'], {
        'password_hash': generate_password_hash(senha),
        'status': STATUS_PERFIL_ATIVO,
    })

    criar_registro_vinculado(perfil, {})

    registrar_evento(ACAO_CONVITE_ACEITO, f"Convite aceito por {mascarar_email(perfil['email'])}",
                     school_id=perfil['school_id'], profile_id=perfil['id'])
    return perfil
