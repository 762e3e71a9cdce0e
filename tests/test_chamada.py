from unittest.mock import patch

from smartclass.chamada.services import percentual_presenca
from smartclass.core.constants import COLECAO_AULAS, COLECAO_CHAMADAS, COLECAO_PRESENCAS

from tests.conftest import criar_acesso, criar_turma, login


def _aula(client, turma_id, **campos):
    dados = {
        'turma_id': turma_id, 'data_aula': '2024-03-04',
        'horario_inicio': '14:00', 'horario_fim': '15:00',
    }
    dados.update(campos)
    return client.post('/chamada/aulas', json=dados)


def _turma_com_alunos(client):
    turma = criar_turma(client)
    ana = criar_acesso(client, 'ana@escola.com.br', 'Ana Lima', 'aluno', metadata={'turma_id': turma['id']})['registro']
    bruno = criar_acesso(client, 'bruno@escola.com.br', 'Bruno Dias', 'aluno',
                         metadata={'turma_id': turma['id']})['registro']
    return turma, ana, bruno


def test_criar_e_listar_aulas(client, diretor):
    turma = criar_turma(client)
    professor = criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor')['registro']

    response = _aula(client, turma['id'], professor_id=professor['id'])
    assert response.status_code == 201
    aula = response.get_json()
    assert aula['status'] == 'agendada'
    assert aula['data_aula'] == '2024-03-04'

    _aula(client, turma['id'], data_aula='2024-03-01')
    aulas = client.get(f"/chamada/turmas/{turma['id']}/aulas").get_json()
    assert [a['data_aula'] for a in aulas] == ['2024-03-01', '2024-03-04']
    assert aulas[0]['professor'] is None
    assert aulas[1]['professor'] == {'nome': 'Carlos Souza'}


def test_criar_aula_invalida(client, diretor):
    turma = criar_turma(client)
    assert _aula(client, turma['id'], data_aula='04/03/2024').status_code == 400
    assert _aula(client, turma['id'], horario_fim='13:00').status_code == 400
    assert _aula(client, 'turma-inexistente').status_code == 404
    assert _aula(client, turma['id'], professor_id='nao-existe').status_code == 404


def test_registrar_chamada(client, db, diretor):
    turma, ana, bruno = _turma_com_alunos(client)
    aula = _aula(client, turma['id']).get_json()

    response = client.post(f"/chamada/aulas/{aula['id']}", json={
        'presencas': {ana['id']: 'presente', bruno['id']: 'justificado'},
    })
    assert response.status_code == 201
    resultado = response.get_json()
    assert resultado['total_alunos'] == 2
    assert resultado['presentes'] == 1
    assert resultado['ausentes'] == 1
    assert resultado['percentual_presenca'] == 50

    assert db.documentos(COLECAO_AULAS)[aula['id']]['status'] == 'realizada'

    chamada = client.get(f"/chamada/aulas/{aula['id']}").get_json()
    assert chamada['percentual_presenca'] == 50
    assert chamada['presencas'] == [
        {'aluno_id': ana['id'], 'nome': 'Ana Lima', 'status': 'presente'},
        {'aluno_id': bruno['id'], 'nome': 'Bruno Dias', 'status': 'justificado'},
    ]


def test_lista_de_presentes_marca_os_demais_ausentes(client, diretor):
    turma, ana, bruno = _turma_com_alunos(client)
    aula = _aula(client, turma['id']).get_json()

    resultado = client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id']]}).get_json()
    assert resultado['total_alunos'] == 2
    assert resultado['presentes'] == 1

    status = {p['aluno_id']: p['status'] for p in client.get(f"/chamada/aulas/{aula['id']}").get_json()['presencas']}
    assert status == {ana['id']: 'presente', bruno['id']: 'ausente'}


def test_nova_chamada_substitui_a_anterior(client, db, diretor):
    turma, ana, bruno = _turma_com_alunos(client)
    aula = _aula(client, turma['id']).get_json()

    client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id']]})
    client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id'], bruno['id']]})

    assert len(db.documentos(COLECAO_CHAMADAS)) == 1
    assert len(db.documentos(COLECAO_PRESENCAS)) == 2
    assert client.get(f"/chamada/aulas/{aula['id']}").get_json()['percentual_presenca'] == 100


def test_chamada_sem_registro(client, diretor):
    turma = criar_turma(client)
    aula = _aula(client, turma['id']).get_json()
    chamada = client.get(f"/chamada/aulas/{aula['id']}").get_json()
    assert chamada['chamada'] is None
    assert chamada['presencas'] == []


def test_chamada_rejeita_aluno_de_outra_turma(client, diretor):
    turma, ana, _ = _turma_com_alunos(client)
    outra = criar_turma(client, nome='Outra turma')
    carla = criar_acesso(client, 'carla@escola.com.br', 'Carla Melo', 'aluno',
                         metadata={'turma_id': outra['id']})['registro']
    aula = _aula(client, turma['id']).get_json()

    response = client.post(f"/chamada/aulas/{aula['id']}", json={
        'presencas': {ana['id']: 'presente', carla['id']: 'presente'},
    })
    assert response.status_code == 400
    assert response.get_json()['detalhes'] == {'alunos': [carla['id']]}


def test_chamada_com_status_invalido(client, diretor):
    turma, ana, _ = _turma_com_alunos(client)
    aula = _aula(client, turma['id']).get_json()
    response = client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': {ana['id']: 'talvez'}})
    assert response.status_code == 400


def test_chamada_de_aula_cancelada(client, diretor):
    turma, ana, _ = _turma_com_alunos(client)
    aula = _aula(client, turma['id']).get_json()

    response = client.post(f"/chamada/aulas/{aula['id']}/cancelar")
    assert response.get_json()['status'] == 'cancelada'

    response = client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id']]})
    assert response.status_code == 400


def test_chamada_sem_presencas(client, diretor):
    turma = criar_turma(client)
    aula = _aula(client, turma['id']).get_json()
    assert client.post(f"/chamada/aulas/{aula['id']}", json={}).status_code == 400
    assert client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': []}).status_code == 400


def test_atualizar_status_da_aula(client, diretor):
    turma = criar_turma(client)
    aula = _aula(client, turma['id']).get_json()

    response = client.put(f"/chamada/aulas/{aula['id']}/status", json={'status': 'realizada', 'observacoes': 'Escalas'})
    assert response.get_json()['status'] == 'realizada'
    assert client.put(f"/chamada/aulas/{aula['id']}/status", json={'status': 'adiada'}).status_code == 400


def test_professor_faz_chamada_e_aluno_nao(client, diretor):
    turma, ana, _ = _turma_com_alunos(client)
    criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor')
    aula = _aula(client, turma['id']).get_json()

    professor = client.application.test_client()
    login(professor, 'carlos@escola.com.br')
    assert professor.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id']]}).status_code == 201

    aluno = client.application.test_client()
    login(aluno, 'ana@escola.com.br')
    assert aluno.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id']]}).status_code == 403
    assert aluno.get(f"/chamada/aulas/{aula['id']}").status_code == 200


def test_percentual_arredonda_metade_para_cima():
    # 1 de 8 = 12,5%
    presencas = [{'status': 'presente'}] + [{'status': 'ausente'}] * 7
    assert percentual_presenca(presencas) == 13
    assert percentual_presenca([]) == 0


def test_chamada_grava_em_varios_lotes(client, db, diretor):
    turma, ana, bruno = _turma_com_alunos(client)
    aula = _aula(client, turma['id']).get_json()
    client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id']]})

    # 3 exclusões + chamada + 2 presenças + aula = 7 escritas
    with patch('smartclass.core.tenancy.LIMITE_LOTE', 2), patch.object(db, 'batch', wraps=db.batch) as mock_batch:
        response = client.post(f"/chamada/aulas/{aula['id']}", json={'presencas': [ana['id'], bruno['id']]})
    assert response.status_code == 201
    assert mock_batch.call_count == 4

    assert len(db.documentos(COLECAO_CHAMADAS)) == 1
    assert len(db.documentos(COLECAO_PRESENCAS)) == 2
    assert db.documentos(COLECAO_AULAS)[aula['id']]['status'] == 'realizada'
