import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from fastapi.testclient import TestClient

from todolist.core.config import Settings
from todolist.main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-123"


@pytest.fixture
def settings(tmp_path):
    """Settings de test: une base SQLite par test"""
    return Settings(
        APP_ENV="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET=TEST_SECRET,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    application = create_app(settings)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def client(app):
    """Client de test FastAPI"""
    return TestClient(app)


@pytest.fixture
def db(app):
    """Session DB pour les tests"""
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def register_user(client):
    """Inscrit un utilisateur et retourne (token, user)"""

    def _register(email="alice@example.com", password="password123"):
        response = client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data["user"]

    return _register


@pytest.fixture
def auth_token(register_user):
    token, _ = register_user()
    return token


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}
