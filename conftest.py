import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DB_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, obtain_db_session
from config import settings
from services import AccountService

engine = create_engine(
    settings.SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[obtain_db_session] = override_get_db

ADMIN_EMAIL = "admin@example.com"
USER_EMAIL = "user@example.com"
PASSWORD = "password123"


@pytest.fixture(autouse=True)
def fresh_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        response = client.post("/api/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login

@pytest.fixture
def admin_header(db, login):
    AccountService(db).seed_admin("Admin", ADMIN_EMAIL, PASSWORD)
    return login(ADMIN_EMAIL)

@pytest.fixture
def user_header(client, login):
    client.post("/api/register", json={"name": "Regular User", "email": USER_EMAIL, "password": PASSWORD})
    return login(USER_EMAIL)

@pytest.fixture
def category(client, admin_header):
    response = client.post("/api/categories", json={"name": "Tech", "description": "desc"}, headers=admin_header)
    return response.json()["category"]

@pytest.fixture
def supplier(client, admin_header):
    supplier_data = {
        "name": "AGSCorp",
        "email": "sales@agscorp.com",
        "phone": "555-0100",
        "address": "1 Main Street",
        "description": "Hardware wholesaler",
    }
    response = client.post("/api/suppliers", json=supplier_data, headers=admin_header)
    return response.json()["supplier"]
