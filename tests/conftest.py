from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.security import hash_password, utcnow
from storefront.database.base import Base
from storefront.database.session import get_db
from storefront.main import app
from storefront.models.booking import Booking, BookingStatus
from storefront.models.user import User, UserRole

PASSWORD = "secret1"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def make_client(session_factory):
    """Build independent clients (separate cookie jars) against the test database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield lambda: TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def create_user(db_session):
    def _create(username, role=UserRole.CUSTOMER, password=PASSWORD, email=None, hashed=True):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password) if hashed else password,
            first_name=username.capitalize(),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def login_as(make_client):
    def _login(identifier, password=PASSWORD):
        client = make_client()
        response = client.post("/api/auth/login", json={"email": identifier, "password": password})
        assert response.status_code == 200, response.text
        return client
    return _login


@pytest.fixture
def admin(create_user):
    return create_user("admin", UserRole.ADMIN)


@pytest.fixture
def staff(create_user):
    return create_user("staff", UserRole.STAFF)


@pytest.fixture
def customer(create_user):
    return create_user("alice", UserRole.CUSTOMER)


@pytest.fixture
def admin_client(admin, login_as):
    return login_as("admin")


@pytest.fixture
def staff_client(staff, login_as):
    return login_as("staff")


@pytest.fixture
def customer_client(customer, login_as):
    return login_as("alice")


@pytest.fixture
def create_booking(db_session):
    def _create(user, staff=None, status=BookingStatus.PENDING, days_ahead=2, **fields):
        booking = Booking(
            user_id=user.id,
            staff_id=staff.id if staff else None,
            date=utcnow() + timedelta(days=days_ahead),
            location=fields.pop("location", "123 Main St, City"),
            status=status,
            attendees=fields.pop("attendees", 1),
            **fields,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking
    return _create
