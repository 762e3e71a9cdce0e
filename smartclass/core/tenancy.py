"""
Isolamento por Escola (Tenant)

Toda leitura passa por um filtro `school_id == escola do usuário` e toda
escrita recebe o `school_id` do usuário logado, nunca o enviado pelo
cliente. Documentos de outra escola se comportam como inexistentes.
A tabela POLITICA_GESTAO define quais papéis podem escrever em cada coleção.
"""

from typing import Any, Dict, Iterable, List, Optional

from flask import g
from google.cloud import firestore

from smartclass.core.async_state import invalidar
from smartclass.core.constants import POLITICA_GESTAO
from smartclass.core.database import get_db
from smartclass.core.errors import AcessoNegado, RegistroNaoEncontrado
from smartclass.core.logger import get_logger

logger = get_logger(__name__)

# Limite do operador 'in' do Firestore
LIMITE_IN = 30
# Escritas por batch, abaixo do máximo de 500
LIMITE_LOTE = 450

CAMPOS_PROTEGIDOS = ('id', 'school_id', 'created_at', 'updated_at')


def doc_para_dict(doc) -> Dict[str, Any]:
    dados = doc.to_dict() or {}
    dados['id'] = doc.id
    return dados


def ordenar(itens: List[dict], campo: str, descending: bool = False) -> List[dict]:
    """Ordena em memória; registros sem o campo ficam sempre no fim."""
    com_valor = [i for i in itens if i.get(campo) is not None]
    sem_valor = [i for i in itens if i.get(campo) is None]
    com_valor.sort(key=lambda i: i[campo], reverse=descending)
    return com_valor + sem_valor


def chave_cache(school_id: str, nome: str) -> str:
    """Chave de cache de dados agregados de uma escola (ex: o dashboard)."""
    return f"escola:{school_id}:{nome}"


def invalidar_cache_escola(school_id: str) -> None:
    invalidar(f"escola:{school_id}:")


def gravar_em_lotes(db, operacoes: List[tuple]) -> int:
    """
    Grava operações ('set' | 'update' | 'delete', ref, dados) em lotes de
    até LIMITE_LOTE. Retorna o número de commits.
    """
    commits = 0
    for inicio in range(0, len(operacoes), LIMITE_LOTE):
        batch = db.batch()
        for tipo, ref, dados in operacoes[inicio:inicio + LIMITE_LOTE]:
            if tipo == 'set':
                batch.set(ref, dados)
            elif tipo == 'update':
                batch.update(ref, dados)
            else:
                batch.delete(ref)
        batch.commit()
        commits += 1
    return commits


def exigir_gestao(colecao: str, papel: Optional[str]) -> None:
    """Levanta AcessoNegado se o papel não pode gerenciar a coleção."""
    permitidos = POLITICA_GESTAO.get(colecao, ())
    if papel not in permitidos:
        logger.warning(f"Acesso negado: papel '{papel}' tentou alterar '{colecao}'.")
        raise AcessoNegado()


class TenantRepository:
    """
    Repositório de uma coleção do Firestore restrito a uma escola.
    """

    def __init__(self, colecao: str, school_id: str, db=None):
        if not school_id:
            raise AcessoNegado("Não foi possível identificar sua escola.")
        self.colecao = colecao
        self.school_id = school_id
        self._db = db

    @property
    def db(self):
        return self._db or get_db()

    @property
    def referencia(self):
        return self.db.collection(self.colecao)

    def consulta(self, **filtros):
        query = self.referencia.where('school_id', '==', self.school_id)
        for campo, valor in filtros.items():
            query = query.where(campo, '==', valor)
        return query

    def listar(self, order_by: str = None, descending: bool = False, limite: int = None, **filtros) -> List[dict]:
        itens = [doc_para_dict(doc) for doc in self.consulta(**filtros).stream()]
        if order_by:
            itens = ordenar(itens, order_by, descending)
        if limite:
            itens = itens[:limite]
        return itens

    def listar_onde(self, campo: str, valores: Iterable[Any]) -> List[dict]:
        """Equivalente a `campo IN valores`, em lotes do tamanho aceito pelo Firestore."""
        valores = [v for v in dict.fromkeys(valores) if v is not None]
        itens: List[dict] = []
        for inicio in range(0, len(valores), LIMITE_IN):
            lote = valores[inicio:inicio + LIMITE_IN]
            query = self.referencia.where('school_id', '==', self.school_id).where(campo, 'in', lote)
            itens.extend(doc_para_dict(doc) for doc in query.stream())
        return itens

    def contem(self, campo: str, valor: Any) -> List[dict]:
        query = self.referencia.where('school_id', '==', self.school_id).where(campo, 'array_contains', valor)
        return [doc_para_dict(doc) for doc in query.stream()]

    def obter(self, doc_id: str, transaction=None) -> Optional[dict]:
        if not doc_id:
            return None
        doc = self.referencia.document(doc_id).get(transaction=transaction)
        if not doc.exists:
            return None
        dados = doc_para_dict(doc)
        if dados.get('school_id') != self.school_id:
            logger.warning(f"Acesso entre escolas bloqueado: {self.colecao}/{doc_id}")
            return None
        return dados

    def mapa_por_id(self, ids: Iterable[Any]) -> Dict[str, dict]:
        """Busca vários documentos pelo id; ignora inexistentes e de outras escolas."""
        resultado = {}
        for doc_id in dict.fromkeys(i for i in ids if i):
            dados = self.obter(doc_id)
            if dados:
                resultado[doc_id] = dados
        return resultado

    def obter_ou_404(self, doc_id: str, mensagem: str = None, transaction=None) -> dict:
        dados = self.obter(doc_id, transaction=transaction)
        if dados is None:
            raise RegistroNaoEncontrado(mensagem)
        return dados

    def payload_criacao(self, dados: dict) -> dict:
        payload = {k: v for k, v in dados.items() if k not in CAMPOS_PROTEGIDOS}
        payload['school_id'] = self.school_id
        payload['created_at'] = firestore.SERVER_TIMESTAMP
        payload['updated_at'] = firestore.SERVER_TIMESTAMP
        return payload

    def payload_atualizacao(self, dados: dict) -> dict:
        payload = {k: v for k, v in dados.items() if k not in CAMPOS_PROTEGIDOS}
        payload['updated_at'] = firestore.SERVER_TIMESTAMP
        return payload

    def novo_documento(self, doc_id: str = None):
        return self.referencia.document(doc_id) if doc_id else self.referencia.document()

    def criar(self, dados: dict, doc_id: str = None) -> dict:
        ref = self.novo_documento(doc_id)
        ref.set(self.payload_criacao(dados))
        invalidar_cache_escola(self.school_id)
        return doc_para_dict(ref.get())

    def atualizar(self, doc_id: str, dados: dict) -> dict:
        self.obter_ou_404(doc_id)
        ref = self.referencia.document(doc_id)
        ref.update(self.payload_atualizacao(dados))
        invalidar_cache_escola(self.school_id)
        return doc_para_dict(ref.get())

    def excluir(self, doc_id: str) -> None:
        self.obter_ou_404(doc_id)
        self.referencia.document(doc_id).delete()
        invalidar_cache_escola(self.school_id)


def repositorio(colecao: str) -> TenantRepository:
    """Repositório da coleção para a escola do usuário da requisição atual."""
    return TenantRepository(colecao, getattr(g, 'school_id', None))
