import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CART_SYNC_BACKEND"] = "local"

import pytest
from fastapi.testclient import TestClient

import storefront.data.models  # noqa: F401
from storefront.data.database import Base, SessionLocal, engine
from storefront.domain.schemas import ItemIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.local_cart_repo import LocalCartRepo
from storefront.services.cart_service import CartService


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cart_repo():
    return CartRepo(SessionLocal)


@pytest.fixture
def cart_service(cart_repo):
    return CartService(cart_repo)


@pytest.fixture
def local_repo(tmp_path):
    return LocalCartRepo(tmp_path / "local_storage.json")


@pytest.fixture
def client(tmp_path):
    from storefront.api.deps import get_guest_cart_service
    from storefront.main import create_app

    app = create_app()
    app.dependency_overrides[get_guest_cart_service] = lambda: CartService(
        LocalCartRepo(tmp_path / "guest_storage.json")
    )
    return TestClient(app)


def netflix_item(quantity=1) -> ItemIn:
    return ItemIn(
        plan_id="netflix-tier-1",
        service_name="Netflix",
        plan_name="Netflix Standard - 1 month",
        price=2800,
        quantity=quantity,
    )
