from unittest.mock import patch

from smartclass.core.constants import COLECAO_ALUNOS, COLECAO_AUDITORIA, COLECAO_PERFIS

from tests.conftest import SENHA, criar_acesso, login


def _perfis_por_email(db):
    return {p['email']: p for p in db.documentos(COLECAO_PERFIS).values()}


def test_criar_acesso_professor_com_senha(client, db, diretor):
    resultado = criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor',
                             metadata={'especialidades': ['Violão', 'Guitarra'], 'valor_hora': 80})

    assert resultado['perfil']['status'] == 'ativo'
    assert 'senha_temporaria' not in resultado
    registro = resultado['registro']
    assert registro['user_id'] == resultado['perfil']['id']
    assert registro['nome'] == 'Carlos Souza'
    assert registro['especialidades'] == ['Violão', 'Guitarra']
    assert registro['valor_hora'] == 80

    # O novo acesso já consegue entrar
    outro = client.application.test_client()
    assert login(outro, 'carlos@escola.com.br').status_code == 200


def test_criar_acesso_sem_senha_gera_temporaria(client, diretor):
    response = client.post('/admin/acessos', json={
        'email': 'ana@escola.com.br',
        'nome_completo': 'Ana Lima',
        'tipo_usuario': 'aluno',
    })
    assert response.status_code == 201
    senha = response.get_json()['senha_temporaria']
    assert senha

    outro = client.application.test_client()
    assert login(outro, 'ana@escola.com.br', senha).status_code == 200


def test_criar_acesso_com_senha_fraca(client, db, diretor):
    response = client.post('/admin/acessos', json={
        'email': 'ana@escola.com.br',
        'nome_completo': 'Ana Lima',
        'tipo_usuario': 'aluno',
        'senha': '123456',
    })
    assert response.status_code == 400
    assert 'ana@escola.com.br' not in _perfis_por_email(db)


def test_criar_acesso_email_duplicado(client, diretor):
    criar_acesso(client, 'ana@escola.com.br', 'Ana Lima', 'aluno')
    response = client.post('/admin/acessos', json={
        'email': 'ANA@escola.com.br',
        'nome_completo': 'Ana Maria',
        'tipo_usuario': 'aluno',
        'senha': SENHA,
    })
    assert response.status_code == 409


def test_criar_acesso_desfaz_perfil_quando_ficha_falha(client, db, diretor):
    response = client.post('/admin/acessos', json={
        'email': 'ana@escola.com.br',
        'nome_completo': 'Ana Lima',
        'tipo_usuario': 'aluno',
        'senha': SENHA,
        'metadata': {'turma_id': 'turma-que-nao-existe'},
    })
    assert response.status_code == 404
    assert 'ana@escola.com.br' not in _perfis_por_email(db)
    assert db.documentos(COLECAO_ALUNOS) == {}


def test_criar_acesso_em_outra_escola(client, diretor):
    response = client.post('/admin/acessos', json={
        'email': 'ana@escola.com.br',
        'nome_completo': 'Ana Lima',
        'tipo_usuario': 'aluno',
        'senha': SENHA,
        'school_id': 'outra-escola',
    })
    assert response.status_code == 403


def test_secretario_nao_cria_diretor(client, diretor):
    criar_acesso(client, 'secretaria@escola.com.br', 'Paula Reis', 'secretario')
    secretaria = client.application.test_client()
    login(secretaria, 'secretaria@escola.com.br')

    response = secretaria.post('/admin/acessos', json={
        'email': 'novo@escola.com.br',
        'nome_completo': 'Novo Diretor',
        'tipo_usuario': 'diretor',
        'senha': SENHA,
    })
    assert response.status_code == 403

    # Mas pode criar alunos
    response = secretaria.post('/admin/acessos', json={
        'email': 'ana@escola.com.br',
        'nome_completo': 'Ana Lima',
        'tipo_usuario': 'aluno',
        'senha': SENHA,
    })
    assert response.status_code == 201


def test_aluno_nao_acessa_admin(client, diretor):
    criar_acesso(client, 'ana@escola.com.br', 'Ana Lima', 'aluno')
    aluno = client.application.test_client()
    login(aluno, 'ana@escola.com.br')

    assert aluno.get('/admin/usuarios').status_code == 403
    assert aluno.post('/admin/convites', json={
        'email': 'x@escola.com.br', 'nome_completo': 'Fulano Tal', 'tipo_usuario': 'aluno',
    }).status_code == 403


def test_convite_com_papel_nao_permitido(client, diretor):
    response = client.post('/admin/convites', json={
        'email': 'novo@escola.com.br',
        'nome_completo': 'Novo Diretor',
        'tipo_usuario': 'diretor',
    })
    assert response.status_code == 400
    assert 'tipo_usuario' in response.get_json()['detalhes']


def test_listar_usuarios_sem_hash(client, diretor):
    criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor')
    usuarios = client.get('/admin/usuarios').get_json()
    assert [u['nome_completo'] for u in usuarios] == ['Carlos Souza', 'Maria da Silva']
    assert all('password_hash' not in u for u in usuarios)


def test_alterar_papel(client, diretor):
    professor = criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor')['perfil']

    response = client.put(f"/admin/usuarios/{professor['id']}/papel", json={'tipo_usuario': 'secretario'})
    assert response.status_code == 200
    assert response.get_json()['tipo_usuario'] == 'secretario'

    # O próprio papel não pode ser alterado
    response = client.put(f"/admin/usuarios/{diretor['perfil']['id']}/papel", json={'tipo_usuario': 'aluno'})
    assert response.status_code == 400


def test_papel_do_dono_da_escola_e_protegido(client, diretor):
    criar_acesso(client, 'vice@escola.com.br', 'Joana Prado', 'diretor')
    vice = client.application.test_client()
    login(vice, 'vice@escola.com.br')

    response = vice.put(f"/admin/usuarios/{diretor['perfil']['id']}/papel", json={'tipo_usuario': 'aluno'})
    assert response.status_code == 403


def test_atualizar_escola_somente_dono(client, diretor):
    response = client.put('/admin/escola', json={'name': 'Escola Harmonia Centro', 'estado': 'SP'})
    assert response.status_code == 200
    assert response.get_json()['name'] == 'Escola Harmonia Centro'
    assert response.get_json()['owner_id'] == diretor['perfil']['id']

    criar_acesso(client, 'vice@escola.com.br', 'Joana Prado', 'diretor')
    vice = client.application.test_client()
    login(vice, 'vice@escola.com.br')
    assert vice.put('/admin/escola', json={'name': 'Outro Nome'}).status_code == 403
    assert vice.get('/admin/escola').get_json()['name'] == 'Escola Harmonia Centro'


@patch('smartclass.admin.services.buscar_endereco')
def test_atualizar_escola_completa_endereco_pelo_cep(mock_buscar, client, diretor):
    mock_buscar.return_value = {
        'cep': '01310-100',
        'logradouro': 'Avenida Paulista',
        'complemento': '',
        'bairro': 'Bela Vista',
        'cidade': 'São Paulo',
        'estado': 'SP',
    }
    escola = client.put('/admin/escola', json={'cep': '01310-100'}).get_json()

    assert escola['endereco'] == 'Avenida Paulista, Bela Vista'
    assert escola['cidade'] == 'São Paulo'
    assert escola['estado'] == 'SP'
    mock_buscar.assert_called_once_with('01310-100')


@patch('smartclass.admin.routes.buscar_endereco', return_value=None)
def test_consultar_cep_inexistente(mock_buscar, client, diretor):
    response = client.get('/admin/cep/99999999')
    assert response.status_code == 404


def test_auditoria_registra_acessos(client, db, diretor):
    criar_acesso(client, 'carlos@escola.com.br', 'Carlos Souza', 'professor')

    acoes = [e['acao'] for e in db.documentos(COLECAO_AUDITORIA).values()]
    assert 'ESCOLA_CRIADA' in acoes
    assert 'ACESSO_CRIADO' in acoes

    eventos = client.get('/admin/auditoria').get_json()
    assert eventos[0]['acao'] == 'ACESSO_CRIADO'
    assert all(e['school_id'] == diretor['escola']['id'] for e in eventos)
