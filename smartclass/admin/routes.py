"""
Rotas do Módulo Admin

Equivalentes às funções privilegiadas 'invite-user' e 'create-access',
mais a gestão de papéis, dos dados da escola e a consulta à auditoria.
"""

from flask import g, jsonify

from . import admin_bp
from . import services as admin_services
from .forms import AcessoForm, ConviteForm, EscolaForm, PapelForm
from smartclass.auth.decorators import login_obrigatorio, perfil_obrigatorio
from smartclass.core.cep import buscar_endereco
from smartclass.core.constants import PAPEIS_DIRECAO, PAPEIS_GESTAO
from smartclass.core.errors import DadosInvalidos, RegistroNaoEncontrado
from smartclass.core.extensions import limiter
from smartclass.core.formularios import argumento_int, corpo_json, validar_dados, validar_formulario
from smartclass.core.logger import get_logger

logger = get_logger(__name__)


@admin_bp.route('/convites', methods=['POST'])
@perfil_obrigatorio(*PAPEIS_DIRECAO)
@limiter.limit("30 per hour")
def convidar_usuario():
    dados = validar_formulario(ConviteForm)
    resultado = admin_services.convidar_usuario(dados, g.perfil)
    return jsonify(resultado), 201


@admin_bp.route('/acessos', methods=['POST'])
@perfil_obrigatorio(*PAPEIS_GESTAO)
@limiter.limit("60 per hour")
def criar_acesso():
    """
    Corpo: {email, nome_completo, tipo_usuario, senha?, telefone?, metadata?}.
    `metadata` traz os campos da ficha de professor ou aluno.
    """
    corpo = corpo_json()
    dados = validar_dados(AcessoForm, corpo)
    metadata = corpo.get('metadata') or {}
    if not isinstance(metadata, dict):
        raise DadosInvalidos("O campo 'metadata' deve ser um objeto.")

    resultado = admin_services.criar_acesso(dados, metadata, g.perfil)
    return jsonify(resultado), 201


@admin_bp.route('/usuarios', methods=['GET'])
@perfil_obrigatorio(*PAPEIS_GESTAO)
def listar_usuarios():
    return jsonify(admin_services.listar_usuarios(g.school_id))


@admin_bp.route('/usuarios/<profile_id>/papel', methods=['PUT'])
@perfil_obrigatorio(*PAPEIS_DIRECAO)
def alterar_papel(profile_id):
    dados = validar_formulario(PapelForm)
    perfil = admin_services.alterar_papel(g.school_id, profile_id, dados['tipo_usuario'], g.perfil)
    return jsonify(perfil)


@admin_bp.route('/escola', methods=['GET'])
@login_obrigatorio
def obter_escola():
    return jsonify(admin_services.obter_escola(g.school_id))


@admin_bp.route('/escola', methods=['PUT'])
@login_obrigatorio
def atualizar_escola():
    dados = validar_formulario(EscolaForm, parcial=True)
    escola = admin_services.atualizar_escola(g.school_id, dados, g.perfil)
    return jsonify(escola)


@admin_bp.route('/cep/<cep>', methods=['GET'])
@login_obrigatorio
def consultar_cep(cep):
    endereco = buscar_endereco(cep)
    if not endereco:
        raise RegistroNaoEncontrado("CEP não encontrado.")
    return jsonify(endereco)


@admin_bp.route('/auditoria', methods=['GET'])
@perfil_obrigatorio(*PAPEIS_DIRECAO)
def auditoria():
    limite = argumento_int('limite', 50, maximo=200)
    return jsonify(admin_services.listar_auditoria(g.school_id, limite))
