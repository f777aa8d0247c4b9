import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from sharing.accounts import UserService, PartnershipService, GratitudeService
from sharing.api import create_app
from sharing.config import Settings
from sharing.database import Database
from sharing.models import CreateUserRequest, CreatePartnershipRequest, ContributeRequest
from sharing.wallet import WalletService


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def wallet(database):
    return WalletService(database)


@pytest.fixture
def users(database):
    return UserService(database)


@pytest.fixture
def partnerships(database):
    return PartnershipService(database)


@pytest.fixture
def gratitude(database):
    return GratitudeService(database)


@pytest.fixture
def partnership(users, partnerships):
    """Two users joined in an active partnership."""
    alice = users.create(CreateUserRequest(email="alice@example.com", name="Alice"))
    bob = users.create(CreateUserRequest(email="bob@example.com", name="Bob"))
    return partnerships.create(CreatePartnershipRequest(user_a_id=alice.id, user_b_id=bob.id))


@pytest.fixture
def contribute(wallet, partnership):
    def _contribute(amount, kind="contribution", user_id=None, description=""):
        return wallet.contribute(ContributeRequest(
            user_id=user_id or partnership.user_a_id,
            partnership_id=partnership.id,
            amount=Decimal(amount),
            description=description,
            type=kind,
        ))
    return _contribute


@pytest.fixture
def client(database):
    app = create_app(Settings(database_url="sqlite://"), database=database)
    return TestClient(app)
