"""
Rotas do Módulo de Autenticação

Cadastro da escola, login/logout, login com Google, perfil e convites.
Todas as respostas são JSON.
"""

from flask import current_app, g, jsonify, url_for

from . import auth_bp
from . import services as auth_services
from .decorators import login_obrigatorio
from .forms import AceiteConviteForm, LoginForm, PerfilForm, RegistroForm
from smartclass.core.errors import DadosInvalidos, ServicoIndisponivel
from smartclass.core.extensions import limiter, oauth
from smartclass.core.formularios import validar_formulario
from smartclass.core.logger import get_logger

logger = get_logger(__name__)


# === CADASTRO E LOGIN ===

@auth_bp.route('/registrar', methods=['POST'])
@limiter.limit("10 per hour")
def registrar():
    """Cria a escola e o perfil do diretor e já inicia a sessão."""
    dados = validar_formulario(RegistroForm)
    resultado = auth_services.registrar_escola(
        nome_escola=dados['nome_escola'],
        nome_completo=dados['nome_completo'],
        email=dados['email'],
        senha=dados['senha'],
    )
    auth_services.iniciar_sessao(resultado['perfil'])
    return jsonify(resultado), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    dados = validar_formulario(LoginForm)
    perfil = auth_services.autenticar(dados['email'], dados['senha'])
    auth_services.iniciar_sessao(perfil)
    return jsonify({'perfil': auth_services.perfil_publico(perfil)})


@auth_bp.route('/google/login')
def google_login():
    """ Redireciona para o Google. """
    if not current_app.config.get('GOOGLE_CLIENT_ID'):
        raise ServicoIndisponivel("Login com Google não está configurado.")
    redirect_uri = url_for('auth_bp.google_callback', _external=True)
    return oauth.google.authorize_redirect(redirect_uri)


@auth_bp.route('/google/callback')
def google_callback():
    """ Retorno do Google após login. """
    if not current_app.config.get('GOOGLE_CLIENT_ID'):
        raise ServicoIndisponivel("Login com Google não está configurado.")

    token = oauth.google.authorize_access_token()
    user_info = token.get('userinfo') or oauth.google.userinfo(token=token)
    if not user_info:
        raise DadosInvalidos("Falha ao obter dados do Google.")

    perfil = auth_services.autenticar_google(user_info)
    auth_services.iniciar_sessao(perfil)
    return jsonify({'perfil': auth_services.perfil_publico(perfil)})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    auth_services.encerrar_sessao()
    return jsonify({'mensagem': 'Sessão encerrada.'})


# === PERFIL (usuário logado e sua escola) ===

@auth_bp.route('/perfil', methods=['GET'])
@login_obrigatorio
def perfil():
    return jsonify({
        'perfil': g.perfil,
        'escola': auth_services.obter_escola(g.school_id),
    })


@auth_bp.route('/perfil', methods=['PUT'])
@login_obrigatorio
def atualizar_perfil():
    dados = validar_formulario(PerfilForm, parcial=True)
    perfil = auth_services.atualizar_perfil(g.perfil, dados)
    return jsonify({'perfil': perfil})


# === CONVITES ===

@auth_bp.route('/convite/<token>', methods=['GET'])
def ver_convite(token):
    perfil = auth_services.ler_convite(token)
    escola = auth_services.obter_escola(perfil['school_id']) or {}
    return jsonify({
        'email': perfil['email'],
        'nome_completo': perfil['nome_completo'],
        'tipo_usuario': perfil['tipo_usuario'],
        'escola': escola.get('name'),
    })


@auth_bp.route('/convite/<token>', methods=['POST'])
@limiter.limit("10 per hour")
def aceitar_convite(token):
    dados = validar_formulario(AceiteConviteForm)
    perfil = auth_services.aceitar_convite(token, dados['senha'])
    auth_services.iniciar_sessao(perfil)
    return jsonify({'perfil': auth_services.perfil_publico(perfil)})
