"""
Firestore em memória para os testes.

Implementa só o que os services usam: coleções, documentos, consultas com
where/order_by/limit, escrita em lote, transações e as transformações
SERVER_TIMESTAMP, ArrayUnion, ArrayRemove e Increment.
"""

import copy
import itertools
import uuid
from datetime import datetime, timedelta, timezone

from google.api_core.exceptions import AlreadyExists, NotFound
from google.cloud import firestore

_relogio = itertools.count()
_inicio = datetime.now(timezone.utc)


def _agora():
    # Estritamente crescente: documentos criados em sequência ficam ordenados
    return _inicio + timedelta(milliseconds=next(_relogio))


def _resolver(valor, atual=None):
    if valor is firestore.SERVER_TIMESTAMP:
        return _agora()
    if isinstance(valor, firestore.ArrayUnion):
        lista = list(atual or [])
        lista.extend(v for v in valor.values if v not in lista)
        return lista
    if isinstance(valor, firestore.ArrayRemove):
        return [v for v in (atual or []) if v not in valor.values]
    if isinstance(valor, firestore.Increment):
        return (atual or 0) + valor.value
    return copy.deepcopy(valor)


class FakeSnapshot:
    def __init__(self, ref, dados):
        self.reference = ref
        self.id = ref.id
        self._dados = dados

    @property
    def exists(self):
        return self._dados is not None

    def to_dict(self):
        return copy.deepcopy(self._dados) if self._dados is not None else None

    def get(self, campo):
        return (self._dados or {}).get(campo)


class FakeDocumentRef:
    def __init__(self, db, colecao, doc_id):
        self._db = db
        self._colecao = colecao
        self.id = doc_id

    @property
    def _docs(self):
        return self._db._dados.setdefault(self._colecao, {})

    def get(self, transaction=None):
        if transaction is not None:
            transaction.lidos.append(f"{self._colecao}/{self.id}")
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, dados, merge=False):
        base = dict(self._docs.get(self.id) or {}) if merge else {}
        for campo, valor in dados.items():
            base[campo] = _resolver(valor, base.get(campo))
        self._docs[self.id] = base

    def create(self, dados):
        if self.id in self._docs:
            raise AlreadyExists(f"Documento já existe: {self._colecao}/{self.id}")
        self.set(dados)

    def update(self, dados):
        if self.id not in self._docs:
            raise NotFound(f"Documento não encontrado: {self._colecao}/{self.id}")
        atual = self._docs[self.id]
        for campo, valor in dados.items():
            atual[campo] = _resolver(valor, atual.get(campo))

    def delete(self):
        self._docs.pop(self.id, None)


def _comparar(valor_doc, operador, valor):
    if operador == '==':
        return valor_doc == valor
    if operador == 'in':
        return valor_doc in valor
    if operador == 'array_contains':
        return isinstance(valor_doc, list) and valor in valor_doc
    if valor_doc is None:
        return False
    if operador == '<':
        return valor_doc < valor
    if operador == '<=':
        return valor_doc <= valor
    if operador == '>':
        return valor_doc > valor
    if operador == '>=':
        return valor_doc >= valor
    raise ValueError(f"Operador não suportado pelo fake: {operador}")


class FakeQuery:
    def __init__(self, db, colecao, filtros=(), ordem=None, limite=None):
        self._db = db
        self._colecao = colecao
        self._filtros = list(filtros)
        self._ordem = ordem
        self._limite = limite

    def where(self, campo, operador, valor):
        return FakeQuery(self._db, self._colecao, self._filtros + [(campo, operador, valor)],
                         self._ordem, self._limite)

    def order_by(self, campo, direction=None):
        return FakeQuery(self._db, self._colecao, self._filtros, (campo, direction), self._limite)

    def limit(self, limite):
        return FakeQuery(self._db, self._colecao, self._filtros, self._ordem, limite)

    def stream(self):
        docs = self._db._dados.get(self._colecao, {})
        resultado = [
            (doc_id, dados) for doc_id, dados in list(docs.items())
            if all(_comparar(dados.get(c), op, v) for c, op, v in self._filtros)
        ]
        if self._ordem:
            campo, direcao = self._ordem
            resultado = [r for r in resultado if r[1].get(campo) is not None]
            resultado.sort(key=lambda r: r[1][campo], reverse=direcao == firestore.Query.DESCENDING)
        if self._limite:
            resultado = resultado[:self._limite]
        for doc_id, dados in resultado:
            yield FakeSnapshot(FakeDocumentRef(self._db, self._colecao, doc_id), copy.deepcopy(dados))

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, db, nome):
        super().__init__(db, nome)
        self.id = nome

    def document(self, doc_id=None):
        return FakeDocumentRef(self._db, self._colecao, doc_id or uuid.uuid4().hex[:20])

    def add(self, dados):
        ref = self.document()
        ref.set(dados)
        return _agora(), ref


class FakeBatch:
    def __init__(self):
        self._operacoes = []

    def set(self, ref, dados, merge=False):
        self._operacoes.append(lambda: ref.set(dados, merge=merge))

    def update(self, ref, dados):
        self._operacoes.append(lambda: ref.update(dados))

    def delete(self, ref):
        self._operacoes.append(ref.delete)

    def commit(self):
        for operacao in self._operacoes:
            operacao()
        self._operacoes = []


class FakeTransaction(FakeBatch):
    """
    Transação compatível com @firestore.transactional: as escritas ficam
    pendentes até o commit e são descartadas no rollback.
    """

    def __init__(self, max_attempts=5):
        super().__init__()
        self._max_attempts = max_attempts
        self._read_only = False
        self._id = None
        self.lidos = []
        self.commits = 0
        self.rollbacks = 0

    def _clean_up(self):
        self._operacoes = []
        self._id = None

    def _begin(self, retry_id=None):
        self._id = uuid.uuid4().bytes

    def _commit(self):
        self.commit()
        self.commits += 1
        self._clean_up()
        return []

    def _rollback(self):
        self.rollbacks += 1
        self._clean_up()


class FakeFirestore:
    def __init__(self):
        self._dados = {}

    def collection(self, nome):
        return FakeCollection(self, nome)

    def batch(self):
        return FakeBatch()

    def transaction(self, **kwargs):
        return FakeTransaction(**kwargs)

    # Atalhos para as asserções dos testes
    def documentos(self, colecao):
        return {doc_id: copy.deepcopy(d) for doc_id, d in self._dados.get(colecao, {}).items()}

    def inserir(self, colecao, dados, doc_id=None):
        ref = self.collection(colecao).document(doc_id)
        ref.set(dados)
        return ref.id
