import os

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PAYU_MERCHANT_KEY"] = "testkey"
os.environ["PAYU_SALT"] = "testsalt"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "Admin@1234"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models  # noqa: F401
from app.main import app
from app.core.database import get_db, Base, redis_client
from app.core.security import (
    create_admin_token, create_doctor_token, create_user_token, get_password_hash
)
from app.models.doctor import Doctor, BookedSlot
from app.models.user import User
from app.services.image_service import get_image_uploader

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Passw0rd!"

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

class FakeImageUploader:
    def __init__(self):
        self.uploads = []

    async def upload(self, image):
        self.uploads.append(image.filename)
        return f"https://images.test/{image.filename}"

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    redis_client.flushall()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def image_uploader():
    uploader = FakeImageUploader()
    app.dependency_overrides[get_image_uploader] = lambda: uploader
    yield uploader
    app.dependency_overrides.pop(get_image_uploader, None)

@pytest.fixture
def make_user(db_session):
    def _make_user(email="jane@example.com", name="Jane Patient", phone="5550100"):
        user = User(
            name=name,
            email=email,
            phone=phone,
            password_hash=get_password_hash(PASSWORD),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user

@pytest.fixture
def make_doctor(db_session):
    def _make_doctor(email="house@example.com", name="Gregory House", ledger=None, available=True, fees=500.0):
        doctor = Doctor(
            name=name,
            email=email,
            password_hash=get_password_hash(PASSWORD),
            image="https://images.test/doctor.png",
            speciality="Diagnostics",
            degree="MD",
            experience="10 Years",
            about="Head of diagnostic medicine.",
            fees=fees,
            address={"line1": "Princeton-Plainsboro", "line2": "New Jersey"},
            available=available,
        )
        for slot_date, times in (ledger or {}).items():
            for slot_time in times:
                doctor.booked_slots.append(BookedSlot(slot_date=slot_date, slot_time=slot_time))
        db_session.add(doctor)
        db_session.commit()
        db_session.refresh(doctor)
        return doctor
    return _make_doctor

def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def user_headers():
    return lambda user: auth_headers(create_user_token(user.id))

@pytest.fixture
def doctor_headers():
    return lambda doctor: auth_headers(create_doctor_token(doctor.id))

@pytest.fixture
def admin_headers():
    return auth_headers(create_admin_token("admin@example.com"))
