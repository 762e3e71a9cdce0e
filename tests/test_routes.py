from smartclass.core.constants import COLECAO_ESCOLAS, COLECAO_PERFIS, COLECAO_PROFESSORES

from tests.conftest import SENHA, login, registrar_escola


def test_health_check(client):
    """Teste da rota de health check."""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json() == {'status': 'ok', 'servico': 'SmartClass'}


def test_404_page(client):
    """Rotas inexistentes respondem JSON com a mensagem em português."""
    response = client.get('/rota-que-nao-existe')
    assert response.status_code == 404
    assert response.get_json()['erro'] == "Página não encontrada"


def test_csrf_token(client):
    response = client.get('/csrf-token')
    assert response.status_code == 200
    assert response.get_json()['csrf_token']


def test_registrar_escola_cria_diretor_dono(client, db):
    resultado = registrar_escola(client)

    perfil, escola = resultado['perfil'], resultado['escola']
    assert perfil['tipo_usuario'] == 'diretor'
    assert perfil['status'] == 'ativo'
    assert 'password_hash' not in perfil
    assert escola['owner_id'] == perfil['id']
    assert perfil['school_id'] == escola['id']
    assert len(db.documentos(COLECAO_ESCOLAS)) == 1

    # Já sai logado
    response = client.get('/perfil')
    assert response.status_code == 200
    assert response.get_json()['escola']['name'] == 'Escola de Música Harmonia'


def test_registrar_com_senha_fraca(client, db):
    response = client.post('/registrar', json={
        'nome_completo': 'Maria da Silva',
        'email': 'maria@escola.com.br',
        'senha': 'abc',
        'nome_escola': 'Escola Harmonia',
    })
    assert response.status_code == 400
    assert 'senha' in response.get_json()['detalhes']
    assert db.documentos(COLECAO_ESCOLAS) == {}


def test_registrar_email_duplicado(client):
    registrar_escola(client)
    client.post('/logout')
    response = client.post('/registrar', json={
        'nome_completo': 'Outra Pessoa',
        'email': 'diretora@escola.com.br',
        'senha': SENHA,
        'nome_escola': 'Outra Escola',
    })
    assert response.status_code == 409


def test_registrar_email_invalido(client):
    response = client.post('/registrar', json={
        'nome_completo': 'Maria da Silva',
        'email': 'nao-e-email',
        'senha': SENHA,
        'nome_escola': 'Escola Harmonia',
    })
    assert response.status_code == 400
    assert 'email' in response.get_json()['detalhes']


def test_login_e_logout(client):
    registrar_escola(client)
    client.post('/logout')
    assert client.get('/perfil').status_code == 401

    response = login(client, 'DIRETORA@escola.com.br')
    assert response.status_code == 200
    assert response.get_json()['perfil']['email'] == 'diretora@escola.com.br'
    assert client.get('/perfil').status_code == 200

    assert client.post('/logout').status_code == 200
    assert client.get('/perfil').status_code == 401


def test_login_senha_errada(client):
    registrar_escola(client)
    client.post('/logout')
    response = login(client, 'diretora@escola.com.br', 'Errada@123456')
    assert response.status_code == 401
    assert response.get_json()['erro'] == "E-mail ou senha inválidos."


def test_login_bloqueado_por_forca_bruta(client):
    registrar_escola(client)
    client.post('/logout')
    for _ in range(10):
        assert login(client, 'diretora@escola.com.br', 'Errada@123456').status_code == 401

    # Nem a senha correta entra enquanto a janela estiver ativa
    assert login(client, 'diretora@escola.com.br').status_code == 429


def test_atualizar_perfil(client, diretor):
    response = client.put('/perfil', json={'telefone': '(11) 98765-4321'})
    assert response.status_code == 200
    perfil = response.get_json()['perfil']
    assert perfil['telefone'] == '(11) 98765-4321'
    assert perfil['nome_completo'] == 'Maria da Silva'


def test_sessao_cai_quando_perfil_e_removido(client, db, diretor):
    db.collection(COLECAO_PERFIS).document(diretor['perfil']['id']).delete()
    assert client.get('/perfil').status_code == 401


def test_login_google_sem_configuracao(client):
    response = client.get('/google/login')
    assert response.status_code == 503


def test_fluxo_de_convite(client, db, diretor):
    response = client.post('/admin/convites', json={
        'email': 'professor@escola.com.br',
        'nome_completo': 'Carlos Souza',
        'tipo_usuario': 'professor',
    })
    assert response.status_code == 201
    convite = response.get_json()
    assert convite['perfil']['status'] == 'convidado'
    token = convite['convite_url'].rsplit('/', 1)[-1]

    client.post('/logout')

    # Convidado ainda não tem senha
    assert login(client, 'professor@escola.com.br').status_code == 401

    response = client.get(f'/convite/{token}')
    assert response.status_code == 200
    assert response.get_json() == {
        'email': 'professor@escola.com.br',
        'nome_completo': 'Carlos Souza',
        'tipo_usuario': 'professor',
        'escola': 'Escola de Música Harmonia',
    }

    response = client.post(f'/convite/{token}', json={'senha': SENHA})
    assert response.status_code == 200
    assert response.get_json()['perfil']['status'] == 'ativo'

    # A ficha de professor é criada no aceite
    professores = list(db.documentos(COLECAO_PROFESSORES).values())
    assert len(professores) == 1
    assert professores[0]['user_id'] == convite['perfil']['id']

    # O convite não pode ser usado duas vezes
    assert client.post(f'/convite/{token}', json={'senha': SENHA}).status_code == 409


def test_convite_com_token_adulterado(client):
    response = client.get('/convite/token-invalido')
    assert response.status_code == 400
    assert response.get_json()['erro'] == "Convite inválido."
