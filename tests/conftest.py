import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Banco da aplicação nunca é usado nos testes; cada teste recebe o seu
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import main
from estoque.auth import get_validador
from estoque.database import Base, criar_engine, get_db
from estoque.erros import AutenticacaoError
from estoque.schemas.produto import ProdutoCreate
from estoque.services import produtos
from estoque.services.grupos import get_registro, obter_registro

TOKEN_VALIDO = "token-valido"


class ValidadorFake:
    def __init__(self):
        self.sessoes = {TOKEN_VALIDO: {"username": "operador"}}
        self.chamadas = 0

    async def validar(self, token):
        self.chamadas += 1
        if token not in self.sessoes:
            raise AutenticacaoError("Sessão inválida")
        return self.sessoes[token]


@pytest.fixture
def engine(tmp_path):
    engine = criar_engine(f"sqlite:///{tmp_path / 'estoque_teste.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(params=["tabela", "derivado"])
def registro(request):
    return obter_registro(request.param)


@pytest.fixture
def validador():
    return ValidadorFake()


@pytest.fixture
def client(session_factory, registro, validador):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[get_validador] = lambda: validador
    main.app.dependency_overrides[get_registro] = lambda: registro
    yield TestClient(main.app, headers={"X-Session-Token": TOKEN_VALIDO})
    main.app.dependency_overrides.clear()


@pytest.fixture
def novo_produto(db, registro):
    """Cria um produto pelo serviço; cria o grupo se ainda não existir."""
    contador = {"n": 0}

    def _criar(quantidade=10, grupo="FERRAGENS", **campos):
        contador["n"] += 1
        info = registro.buscar_por_nome(db, grupo) or registro.criar(db, grupo)
        dados = {
            "codigo_fornecedor": f"FORN-{contador['n']:04d}",
            "marca": "acme",
            "descricao": "parafuso sextavado",
            "quantidade": quantidade,
            "valor_unitario": 1.5,
            "grupo_codigo": info.codigo,
        }
        dados.update(campos)
        return produtos.criar_produto(db, ProdutoCreate(**dados), registro)

    return _criar
