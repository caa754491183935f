"""Configuração de fixtures para testes."""

import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-with-at-least-32-bytes!!")

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flowify.database import Base, get_db
from flowify.main import app
from flowify.models import PriceCommission, Product, Scheduling, User
from flowify.services.auth import ActorContext, create_access_token
from flowify.services.plan_limits import seed_default_plans


# Banco de dados em memória para testes
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Cria uma sessão de banco de dados para testes."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Cria um cliente de teste com banco de dados isolado."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def plans(db_session):
    """Planos padrão (iniciante, intermediario, bigode)."""
    return seed_default_plans(db_session)


def make_user(db_session, uid: str, plan: str = "intermediario", role: str = "user", **extra) -> User:
    user = User(
        uid=uid,
        nome=extra.pop("nome", f"Usuário {uid}"),
        email=extra.pop("email", f"{uid}@example.com"),
        plan=plan,
        role=role,
        active=True,
        **extra,
    )
    db_session.add(user)
    db_session.commit()
    return user


def auth_headers(user: User, **extra_headers) -> dict:
    token = create_access_token(user.uid, user.email, user.nome)
    return {"Authorization": f"Bearer {token}", **extra_headers}


@pytest.fixture
def user(db_session, plans):
    return make_user(db_session, "user-a", nome="Ana Vendedora")


@pytest.fixture
def other_user(db_session, plans):
    return make_user(db_session, "user-b", nome="Bruno Vendedor")


@pytest.fixture
def admin_user(db_session, plans):
    return make_user(db_session, "admin-1", plan="none", role="admin", nome="Admin")


@pytest.fixture
def headers(user):
    return auth_headers(user)


@pytest.fixture
def actor(user):
    return ActorContext.from_user(user)


@pytest.fixture
def product(db_session, user):
    """Produto com preços para Hyppe (1 e 2 unidades) e Logzz (1 unidade)."""
    product = Product(
        user_id=user.uid,
        nome="Kit Clareador",
        covered_cities=["sao paulo", "osasco"],
        precos_comissoes=[
            PriceCommission(posicao=0, plataforma="Hyppe", quantidade=1, preco=197.0, comissao=60.0),
            PriceCommission(posicao=1, plataforma="Hyppe", quantidade=2, preco=297.0, comissao=90.0),
            PriceCommission(posicao=2, plataforma="Logzz", quantidade=1, preco=187.0, comissao=55.0),
        ],
    )
    db_session.add(product)
    db_session.commit()
    return product


def make_scheduling(db_session, owner: User, product: Product, **overrides) -> Scheduling:
    data = {
        "user_id": owner.uid,
        "cliente_nome": "Carla Souza",
        "cliente_telefone": "11987654321",
        "cep": "01310100",
        "endereco": "Av. Paulista",
        "numero": "1000",
        "bairro": "Bela Vista",
        "cidade": "São Paulo",
        "produto_id": product.id,
        "produto_nome": product.nome,
        "quantidade": 2,
        "plataforma": "Hyppe",
        "status": "Agendar",
        "data_agendamento": datetime.now(UTC) + timedelta(days=1),
    }
    data.update(overrides)
    scheduling = Scheduling(**data)
    db_session.add(scheduling)
    db_session.commit()
    return scheduling


@pytest.fixture
def scheduling(db_session, user, product):
    return make_scheduling(db_session, user, product)
