from datetime import date, datetime, timezone

import pytest

from smartclass.core.constants import (
    COLECAO_ALUNOS,
    COLECAO_CHAMADAS,
    COLECAO_FINANCEIRO,
    COLECAO_PRESENCAS,
    COLECAO_TURMAS,
)
from smartclass.core.errors import DadosInvalidos
from smartclass.relatorios.services import exportar_csv, relatorio_periodo, top_instrumentos

from tests.conftest import criar_acesso, criar_turma, login

ESCOLA = 'escola-relatorio'
REFERENCIA = date(2024, 3, 20)


@pytest.fixture
def dados_do_trimestre(db):
    db.inserir(COLECAO_CHAMADAS, {'school_id': ESCOLA, 'data_chamada': '2024-02-05'}, 'c-fev')
    db.inserir(COLECAO_CHAMADAS, {'school_id': ESCOLA, 'data_chamada': '2024-03-04'}, 'c-mar')
    db.inserir(COLECAO_CHAMADAS, {'school_id': ESCOLA, 'data_chamada': '2023-11-06'}, 'c-antiga')
    for chamada_id, status in (('c-fev', 'presente'), ('c-fev', 'ausente'),
                               ('c-mar', 'presente'), ('c-antiga', 'ausente')):
        db.inserir(COLECAO_PRESENCAS, {'school_id': ESCOLA, 'chamada_id': chamada_id, 'status': status})

    for tipo, valor, status, data_pagamento in (
        ('receita', 150.0, 'pago', '2024-03-05'),
        ('receita', 150.0, 'pago', '2024-01-10'),
        ('receita', 150.0, 'pendente', None),
        ('despesa', 1200.5, 'pago', '2024-03-01'),
    ):
        db.inserir(COLECAO_FINANCEIRO, {
            'school_id': ESCOLA, 'tipo': tipo, 'valor': valor, 'status': status, 'data_pagamento': data_pagamento,
        })

    for instrumento, ativo, criado in (
        ('violão', True, datetime(2024, 2, 1, tzinfo=timezone.utc)),
        ('Violão', True, datetime(2023, 6, 1, tzinfo=timezone.utc)),
        ('piano', False, datetime(2024, 3, 1, tzinfo=timezone.utc)),
        (None, True, datetime(2022, 1, 1, tzinfo=timezone.utc)),
    ):
        db.inserir(COLECAO_ALUNOS, {
            'school_id': ESCOLA, 'instrumento': instrumento, 'ativo': ativo, 'created_at': criado,
        })

    # Outra escola não entra no relatório
    db.inserir(COLECAO_ALUNOS, {'school_id': 'outra', 'instrumento': 'bateria', 'ativo': True})


def test_relatorio_do_periodo(dados_do_trimestre):
    relatorio = relatorio_periodo(ESCOLA, '3m', REFERENCIA)

    assert relatorio['inicio'] == '2024-01-01'
    assert relatorio['fim'] == '2024-03-20'
    assert relatorio['meses'] == [
        {'mes': '2024-01', 'rotulo': 'Jan/2024', 'presenca': 0, 'receitas': 150.0, 'despesas': 0.0},
        {'mes': '2024-02', 'rotulo': 'Fev/2024', 'presenca': 50, 'receitas': 0.0, 'despesas': 0.0},
        {'mes': '2024-03', 'rotulo': 'Mar/2024', 'presenca': 100, 'receitas': 150.0, 'despesas': 1200.5},
    ]
    assert relatorio['alunos_por_instrumento'] == [
        {'instrumento': 'Violão', 'alunos': 2},
        {'instrumento': 'Piano', 'alunos': 1},
        {'instrumento': 'Não informado', 'alunos': 1},
    ]
    assert relatorio['novas_matriculas'] == 2
    assert relatorio['total_alunos'] == 4
    assert relatorio['alunos_ativos'] == 3
    assert relatorio['retencao'] == 75


def test_relatorio_periodo_invalido(db):
    with pytest.raises(DadosInvalidos):
        relatorio_periodo(ESCOLA, '2w', REFERENCIA)


def test_relatorio_sem_dados(db):
    relatorio = relatorio_periodo(ESCOLA, '1m', REFERENCIA)
    assert [m['mes'] for m in relatorio['meses']] == ['2024-03']
    assert relatorio['retencao'] == 0
    assert relatorio['alunos_por_instrumento'] == []


def test_exportar_csv(dados_do_trimestre):
    linhas = exportar_csv(relatorio_periodo(ESCOLA, '3m', REFERENCIA)).splitlines()

    assert linhas[0] == 'Mês;Presença (%);Receitas (R$);Despesas (R$);Saldo (R$)'
    assert linhas[1] == 'Jan/2024;0;150,00;0,00;150,00'
    assert linhas[3] == 'Mar/2024;100;150,00;1.200,50;-1.050,50'
    assert linhas[-2] == 'Novas matrículas;2'
    assert linhas[-1] == 'Retenção (%);75'


def test_top_instrumentos():
    turmas = [{'instrumento': 'violão'}, {'instrumento': 'violão'}, {'instrumento': 'piano'}, {}]
    assert top_instrumentos(turmas) == [
        {'nome': 'Violão', 'turmas': 2, 'percentual': 50},
        {'nome': 'Piano', 'turmas': 1, 'percentual': 25},
    ]


def test_top_instrumentos_arredonda_metade_para_cima():
    turmas = [{'instrumento': 'violão'}] + [{'instrumento': 'piano'}] * 7
    assert top_instrumentos(turmas) == [
        {'nome': 'Piano', 'turmas': 7, 'percentual': 88},
        {'nome': 'Violão', 'turmas': 1, 'percentual': 13},
    ]


def test_dashboard(client, diretor):
    turma = criar_turma(client)
    criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor')
    criar_acesso(client, 'ana@escola.com.br', 'Ana Lima', 'aluno', metadata={'turma_id': turma['id']})

    painel = client.get('/relatorios/dashboard').get_json()
    assert painel['total_alunos'] == 1
    assert painel['total_turmas'] == 1
    assert painel['professores_ativos'] == 1
    assert painel['media_presenca'] == 0
    assert painel['turmas_recentes'][0]['horario'] == '14:00 - 15:00'
    assert painel['turmas_recentes'][0]['alunos'] == 1
    assert painel['top_instrumentos'] == [{'nome': 'Violão', 'turmas': 1, 'percentual': 100}]


def test_dashboard_cacheado_ate_nova_escrita(client, db, diretor):
    criar_turma(client)
    assert client.get('/relatorios/dashboard').get_json()['total_turmas'] == 1

    # Escrita direta no banco não passa pelo repositório: o cache continua valendo
    db.inserir(COLECAO_TURMAS, {'school_id': diretor['escola']['id'], 'nome': 'Fora do cache'})
    assert client.get('/relatorios/dashboard').get_json()['total_turmas'] == 1

    # Escrita pelo repositório invalida o cache da escola
    criar_turma(client, nome='Piano Avançado', instrumento='piano')
    assert client.get('/relatorios/dashboard').get_json()['total_turmas'] == 3


def test_relatorio_pela_api(client, diretor):
    relatorio = client.get('/relatorios?periodo=1y').get_json()
    assert len(relatorio['meses']) == 12
    assert relatorio['periodo'] == '1y'

    assert client.get('/relatorios?periodo=5y').status_code == 400


def test_exportar_pela_api(client, diretor):
    response = client.get('/relatorios/exportar?periodo=3m')
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert response.headers['Content-Disposition'] == 'attachment; filename=relatorio_3m.csv'
    assert response.get_data(as_text=True).startswith('Mês;Presença (%)')


def test_aluno_ve_dashboard_mas_nao_relatorios(client, diretor):
    criar_acesso(client, 'ana@escola.com.br', 'Ana Lima', 'aluno')
    aluno = client.application.test_client()
    login(aluno, 'ana@escola.com.br')

    assert aluno.get('/relatorios/dashboard').status_code == 200
    assert aluno.get('/relatorios').status_code == 403
    assert aluno.get('/relatorios/exportar').status_code == 403


def test_relatorios_exigem_login(client):
    assert client.get('/relatorios/dashboard').status_code == 401
