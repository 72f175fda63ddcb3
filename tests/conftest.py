import os

# Configure the app for tests before anything imports app.config
os.environ["ENV"] = "test"
os.environ["SQLALCHEMY_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["TIPTOPPAY_PUBLIC_ID"] = "pk_test_public"
os.environ["TIPTOPPAY_API_KEY"] = "test-api-key"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

import app.models  # noqa: F401
from app.config import settings
from app.database import engine, get_session
from app.main import app
from app.models.basket import BasketItem
from app.models.order import Order, OrderStatus, PaymentStatus
from app.models.product import Product, ProductStatus
from app.models.user import User, UserRole
from app.services.tiptoppay_client import TipTopPayClient
from app.utils.token import create_access_token


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.pop(get_session, None)


@pytest.fixture(name="gateway")
def gateway_fixture():
    return TipTopPayClient(settings)


@pytest.fixture
def make_product(session):
    def _make(price_kzt=5000, price_usd=10, status=ProductStatus.AVAILABLE, name="Linen shirt"):
        product = Product(name=name, price_kzt=price_kzt, price_usd=price_usd, status=status)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    return _make


@pytest.fixture
def make_user(session):
    def _make(role=UserRole.USER, email=None, is_guest=False):
        user = User(role=role, email=email, is_guest=is_guest)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user(email="buyer@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, email="admin@example.com")


@pytest.fixture(name="auth_headers")
def auth_headers_fixture():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'user_id': user.id})}"}
    return _headers


@pytest.fixture
def fill_basket(session):
    def _fill(user, product, quantity=1, color_id=None, size_id=None):
        item = BasketItem(
            user_id=user.id,
            product_id=product.id if isinstance(product, Product) else product,
            quantity=quantity,
            selected_color_id=color_id,
            selected_size_id=size_id,
        )
        session.add(item)
        session.commit()
        session.refresh(item)
        return item
    return _fill


@pytest.fixture
def make_order(session):
    def _make(
        total_kzt=10000,
        total_usd=20,
        status=OrderStatus.CREATED,
        payment_status=PaymentStatus.PENDING,
        user_id=None,
    ):
        order = Order(
            user_id=user_id,
            recipient_name="Aigerim",
            recipient_address="Almaty, Abay ave 10",
            recipient_phone="+77010000000",
            recipient_email="guest@example.com",
            status=status,
            payment_status=payment_status,
            total_kzt=total_kzt,
            total_usd=total_usd,
        )
        session.add(order)
        session.commit()
        session.refresh(order)
        return order
    return _make
