"""
Rotas do Módulo de Relatórios
"""

from flask import Response, g, jsonify, request

from . import relatorios_bp
from . import services as relatorios_services
from smartclass.auth.decorators import login_obrigatorio, perfil_obrigatorio
from smartclass.core.constants import PAPEIS_GESTAO


@relatorios_bp.route('/dashboard', methods=['GET'])
@login_obrigatorio
def dashboard():
    return jsonify(relatorios_services.dashboard(g.school_id))


@relatorios_bp.route('', methods=['GET'])
@perfil_obrigatorio(*PAPEIS_GESTAO)
def relatorio_periodo():
    periodo = request.args.get('periodo', '6m')
    return jsonify(relatorios_services.relatorio_periodo(g.school_id, periodo))


@relatorios_bp.route('/exportar', methods=['GET'])
@perfil_obrigatorio(*PAPEIS_GESTAO)
def exportar():
    periodo = request.args.get('periodo', '6m')
    relatorio = relatorios_services.relatorio_periodo(g.school_id, periodo)
    conteudo = relatorios_services.exportar_csv(relatorio)
    return Response(
        conteudo,
        mimetype='text/csv; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename=relatorio_{periodo}.csv'},
    )
