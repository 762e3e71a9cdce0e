"""Dados de uma escola nunca aparecem para usuários de outra."""

import pytest

from smartclass.core.constants import COLECAO_TURMAS

from tests.conftest import criar_acesso, criar_turma, registrar_escola


@pytest.fixture
def duas_escolas(app, db):
    cliente_a = app.test_client()
    escola_a = registrar_escola(cliente_a)
    turma_a = criar_turma(cliente_a)
    aluno_a = criar_acesso(cliente_a, 'ana@escola.com.br', 'Ana Lima', 'aluno',
                           metadata={'turma_id': turma_a['id']})

    cliente_b = app.test_client()
    escola_b = registrar_escola(cliente_b, email='joao@escola.com.br', nome='João Pereira',
                                escola='Conservatório Melodia')
    return {
        'a': {'client': cliente_a, 'escola': escola_a, 'turma': turma_a, 'aluno': aluno_a},
        'b': {'client': cliente_b, 'escola': escola_b},
    }


def test_escolas_distintas(duas_escolas):
    assert duas_escolas['a']['escola']['escola']['id'] != duas_escolas['b']['escola']['escola']['id']


def test_turma_de_outra_escola_parece_inexistente(duas_escolas):
    cliente_b = duas_escolas['b']['client']
    turma_a = duas_escolas['a']['turma']

    assert cliente_b.get(f"/turmas/{turma_a['id']}").status_code == 404
    assert cliente_b.put(f"/turmas/{turma_a['id']}", json={'nome': 'Invadida'}).status_code == 404
    assert cliente_b.delete(f"/turmas/{turma_a['id']}").status_code == 404


def test_listagens_so_trazem_a_propria_escola(duas_escolas):
    cliente_b = duas_escolas['b']['client']

    assert cliente_b.get('/turmas').get_json() == []
    assert cliente_b.get('/alunos').get_json() == []
    assert cliente_b.get('/professores').get_json() == []
    assert cliente_b.get('/financeiro').get_json() == []
    assert [u['email'] for u in cliente_b.get('/admin/usuarios').get_json()] == ['joao@escola.com.br']

    painel = cliente_b.get('/relatorios/dashboard').get_json()
    assert painel['total_turmas'] == 0
    assert painel['total_alunos'] == 0


def test_nao_matricula_aluno_de_outra_escola(duas_escolas):
    cliente_b = duas_escolas['b']['client']
    turma_b = criar_turma(cliente_b)
    aluno_a = duas_escolas['a']['aluno']['registro']

    response = cliente_b.post(f"/turmas/{turma_b['id']}/matriculas", json={'aluno_id': aluno_a['id']})
    assert response.status_code == 404


def test_nao_conversa_com_perfil_de_outra_escola(duas_escolas):
    cliente_b = duas_escolas['b']['client']
    aluno_a = duas_escolas['a']['aluno']['perfil']

    assert cliente_b.post('/chat/conversas', json={'profile_id': aluno_a['id']}).status_code == 404


def test_cache_do_dashboard_e_por_escola(duas_escolas, db):
    cliente_a = duas_escolas['a']['client']
    cliente_b = duas_escolas['b']['client']

    assert cliente_a.get('/relatorios/dashboard').get_json()['total_turmas'] == 1
    assert cliente_b.get('/relatorios/dashboard').get_json()['total_turmas'] == 0

    criar_turma(cliente_b)
    assert cliente_b.get('/relatorios/dashboard').get_json()['total_turmas'] == 1
    assert cliente_a.get('/relatorios/dashboard').get_json()['total_turmas'] == 1

    escolas = {t['school_id'] for t in db.documentos(COLECAO_TURMAS).values()}
    assert escolas == {duas_escolas['a']['escola']['escola']['id'], duas_escolas['b']['escola']['escola']['id']}
