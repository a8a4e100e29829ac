import os
import sys
from pathlib import Path

# Add project root to Python path FIRST
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# BD en memoria para la app (tiene que estar antes de importar database)
os.environ["DATABASE_URL"] = "sqlite://"

# Now import after path is set
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import database
from models import Base, User
from main import app


@pytest.fixture
def db_session():
    """Create in-memory database for testing"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session):
    """Crea usuarios directamente en la BD (sin pasar por la API)"""
    counter = {"n": 0}

    def _make(username=None, **fields):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash="x",
            coins=fields.pop("coins", 0),
            xp=fields.pop("xp", 0),
            level=fields.pop("level", 1),
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def client():
    """App completa con tablas limpias y el catálogo de accesorios sembrado"""
    Base.metadata.drop_all(bind=database.engine)
    Base.metadata.create_all(bind=database.engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Registra un usuario por la API y devuelve (datos, headers)"""

    def _register(username="ana", password="secreto123"):
        response = client.post("/auth/register", json={
            "email": f"{username}@example.com",
            "username": username,
            "password": password,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        headers = {"Authorization": f"Bearer {body['access_token']}"}
        return body["user"], headers

    return _register
