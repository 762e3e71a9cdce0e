import pytest

from smartclass.core.constants import COLECAO_PROFESSORES, COLECAO_TURMAS
from smartclass.core.errors import DadosInvalidos
from smartclass.professores.services import avaliacao_por_presenca, estatisticas, normalizar_especialidades

from tests.conftest import criar_acesso, criar_turma


def _novo_professor(client, **campos):
    dados = {'nome': 'Carlos Souza', 'email': 'carlos@escola.com.br'}
    dados.update(campos)
    response = client.post('/professores', json=dados)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['registro']


def _registrar_aula(client, turma_id, professor_id, presencas, data_aula='2024-03-04'):
    aula = client.post('/chamada/aulas', json={
        'turma_id': turma_id, 'professor_id': professor_id, 'data_aula': data_aula,
        'horario_inicio': '14:00', 'horario_fim': '15:00',
    }).get_json()
    response = client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': presencas})
    assert response.status_code == 201, response.get_json()


@pytest.mark.parametrize('presenca, total, nota', [
    (100, 4, 5.0),
    (95, 4, 5.0),
    (92, 4, 4.8),
    (80, 4, 4.2),
    (60, 4, 3.2),
    (59, 4, 2.8),
    (0, 0, 3.0),
])
def test_avaliacao_por_presenca(presenca, total, nota):
    assert avaliacao_por_presenca(presenca, total) == nota


def test_estatisticas_ignoram_chamadas_sem_presencas():
    chamadas = {'t1': [{'id': 'c1'}, {'id': 'c2'}, {'id': 'c3'}]}
    presencas = {
        'c1': [{'status': 'presente'}, {'status': 'presente'}],
        'c2': [{'status': 'presente'}, {'status': 'ausente'}],
    }
    assert estatisticas(['t1'], chamadas, presencas) == {
        'total_aulas': 2,
        'presenca_media': 75,
        'avaliacao_media': 4.0,
    }


def test_presenca_media_arredonda_so_no_fim():
    chamadas = {'t1': [{'id': 'c1'}, {'id': 'c2'}]}
    um_terco = {'c1': [{'status': 'presente'}, {'status': 'ausente'}, {'status': 'ausente'}],
                'c2': [{'status': 'presente'}] * 3}
    assert estatisticas(['t1'], chamadas, um_terco)['presenca_media'] == 67

    # 16,67% e 50% dão 33,3%; arredondando cada chamada antes daria 34
    um_sexto = {'c1': [{'status': 'presente'}] + [{'status': 'ausente'}] * 5,
                'c2': [{'status': 'presente'}, {'status': 'ausente'}]}
    assert estatisticas(['t1'], chamadas, um_sexto)['presenca_media'] == 33


def test_normalizar_especialidades():
    assert normalizar_especialidades('Violão, Guitarra ,Violão,') == ['Violão', 'Guitarra']
    assert normalizar_especialidades(None) == []
    with pytest.raises(DadosInvalidos):
        normalizar_especialidades([1, 2])
    with pytest.raises(DadosInvalidos):
        normalizar_especialidades([f"Instrumento {i}" for i in range(21)])


def test_criar_professor(client, diretor):
    professor = _novo_professor(client, especialidades=['Piano', 'Teoria'], valor_hora=90.5)

    assert professor['nome'] == 'Carlos Souza'
    assert professor['email'] == 'carlos@escola.com.br'
    assert professor['especialidades'] == ['Piano', 'Teoria']
    assert professor['valor_hora'] == 90.5
    assert professor['ativo'] is True


def test_professor_sem_aulas_tem_nota_padrao(client, diretor):
    _novo_professor(client)
    professores = client.get('/professores').get_json()

    assert professores[0]['total_aulas'] == 0
    assert professores[0]['presenca_media'] == 0
    assert professores[0]['avaliacao_media'] == 3.0
    assert professores[0]['turmas'] == []


def test_estatisticas_pelas_chamadas_das_turmas(client, diretor):
    professor = _novo_professor(client)
    turma = criar_turma(client)
    client.post(f"/turmas/{turma['id']}/professores", json={'professor_id': professor['id']})
    ana = criar_acesso(client, 'ana@escola.com.br', 'Ana Lima', 'aluno', metadata={'turma_id': turma['id']})['registro']
    bruno = criar_acesso(client, 'bruno@escola.com.br', 'Bruno Dias', 'aluno',
                         metadata={'turma_id': turma['id']})['registro']

    _registrar_aula(client, turma['id'], professor['id'], {ana['id']: 'presente', bruno['id']: 'presente'})
    _registrar_aula(client, turma['id'], professor['id'], {ana['id']: 'presente', bruno['id']: 'ausente'},
                    data_aula='2024-03-11')

    detalhe = client.get(f"/professores/{professor['id']}").get_json()
    assert detalhe['turmas'] == [{'id': turma['id'], 'nome': 'Violão Iniciante'}]
    assert detalhe['total_aulas'] == 2
    assert detalhe['presenca_media'] == 75
    assert detalhe['avaliacao_media'] == 4.0

    listado = client.get('/professores').get_json()[0]
    assert listado['avaliacao_media'] == 4.0


def test_atualizar_professor(client, diretor):
    professor = _novo_professor(client)
    response = client.put(f"/professores/{professor['id']}", json={
        'valor_hora': 100, 'especialidades': 'Canto, Coral', 'email': 'outro@escola.com.br',
    })
    assert response.status_code == 200
    atualizado = response.get_json()
    assert atualizado['valor_hora'] == 100
    assert atualizado['especialidades'] == ['Canto', 'Coral']
    assert atualizado['email'] == 'carlos@escola.com.br'


def test_excluir_professor_desvincula_turmas(client, db, diretor):
    professor = _novo_professor(client)
    turma = criar_turma(client)
    client.post(f"/turmas/{turma['id']}/professores", json={'professor_id': professor['id']})

    assert client.delete(f"/professores/{professor['id']}").status_code == 200
    assert db.documentos(COLECAO_PROFESSORES) == {}
    assert db.documentos(COLECAO_TURMAS)[turma['id']]['professor_ids'] == []
    assert client.get(f"/professores/{professor['id']}").status_code == 404
