import io
import os

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from fastapi.testclient import TestClient  # noqa: E402

from task_manager.database import Base, get_db  # noqa: E402
from task_manager.main import app  # noqa: E402


def make_image_bytes(image_format: str = 'PNG', size: tuple[int, int] = (400, 300), mode: str = 'RGB') -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=(200, 80, 40) if mode == 'RGB' else 1).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    def _signup(name: str = 'Ada Lovelace', email: str = 'ada@mail.com', password: str = 'Engine123!', **extra):
        response = client.post(
            '/users/signup',
            json={'name': name, 'email': email, 'password': password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


@pytest.fixture
def make_image():
    return make_image_bytes
