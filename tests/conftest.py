import os

os.environ.setdefault('SECRET_KEY', 'chave-de-teste-nao-usar-em-producao')

import pytest

from config import Config
from smartclass import create_app
from smartclass.core import async_state
from smartclass.core.database import set_db
from smartclass.core.security import validador

from tests.fakes import FakeFirestore

SENHA = 'Senha@Forte123'


class TestConfig(Config):
    __test__ = False

    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    SESSION_COOKIE_SECURE = False
    GCS_BUCKET_NAME = 'smartclass-testes'
    GOOGLE_CLOUD_PROJECT = 'smartclass-testes'
    GOOGLE_CLIENT_ID = None
    GOOGLE_CLIENT_SECRET = None


@pytest.fixture(autouse=True)
def estado_limpo():
    """Cache do AsyncState e histórico do validador não vazam entre testes."""
    async_state.invalidar('')
    validador._historico.clear()
    validador._ips_bloqueados.clear()
    yield
    async_state.invalidar('')
    validador._historico.clear()


@pytest.fixture
def db():
    fake = FakeFirestore()
    set_db(fake)
    yield fake
    set_db(None)


@pytest.fixture
def app(db):
    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def registrar_escola(client, email='diretora@escola.com.br', nome='Maria da Silva', escola='Escola de Música Harmonia'):
    resposta = client.post('/registrar', json={
        'nome_completo': nome,
        'email': email,
        'senha': SENHA,
        'nome_escola': escola,
    })
    assert resposta.status_code == 201, resposta.get_json()
    return resposta.get_json()


def login(client, email, senha=SENHA):
    return client.post('/login', json={'email': email, 'senha': senha})


def criar_acesso(client, email, nome, tipo, senha=SENHA, metadata=None):
    resposta = client.post('/admin/acessos', json={
        'email': email,
        'nome_completo': nome,
        'tipo_usuario': tipo,
        'senha': senha,
        'metadata': metadata or {},
    })
    assert resposta.status_code == 201, resposta.get_json()
    return resposta.get_json()


def criar_turma(client, **campos):
    dados = {
        'nome': 'Violão Iniciante',
        'instrumento': 'violão',
        'nivel': 'iniciante',
        'dia_semana': 'segunda',
        'horario_inicio': '14:00',
        'horario_fim': '15:00',
        'valor_mensal': 150.0,
        'vagas_total': 10,
    }
    dados.update(campos)
    resposta = client.post('/turmas', json=dados)
    assert resposta.status_code == 201, resposta.get_json()
    return resposta.get_json()


@pytest.fixture
def diretor(client):
    """Escola cadastrada e diretora logada no `client`."""
    return registrar_escola(client)
