import os
import tempfile

from cryptography.fernet import Fernet

# must be set before budgeteer.config builds its settings
_tmpdir = tempfile.mkdtemp(prefix="budgeteer-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["FERNET_KEY"] = Fernet.generate_key().decode()
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ.pop("GOCARDLESS_LOG_FILE", None)

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from budgeteer.db import Base, engine, sessionlocal  # noqa: E402
from budgeteer.dependencies import get_gocardless_client, get_google_oauth  # noqa: E402
from budgeteer.main import app  # noqa: E402
from budgeteer.models import Account, Bank, Transaction, User  # noqa: E402
from budgeteer.schemas.gocardless_schemas import (  # noqa: E402
    AccountBalances,
    AccountDetails,
    AccountTransactions,
    Institution,
    Requisition,
)
from budgeteer.utils.crypto import encrypt_json  # noqa: E402
from budgeteer.utils.gocardless_client import GoCardlessError  # noqa: E402
from budgeteer.utils.session import SESSION_COOKIE  # noqa: E402


def remote_transaction(tx_id, amount="-10.00", booked="2024-03-01", value=None, info="Card purchase", **extra):
    data = {
        "transactionId": tx_id,
        "bookingDate": booked,
        "valueDate": value or booked,
        "transactionAmount": {"amount": amount, "currency": "NOK"},
        "remittanceInformationUnstructured": info,
    }
    data.update(extra)
    return data


class FakeGoCardless:
    """Stands in for GoCardlessClient; keeps remote state in plain dicts."""

    def __init__(self):
        self.institutions = {
            "DNB_DNBANOKK": Institution(id="DNB_DNBANOKK", name="DNB", bic="DNBANOKK", logo="https://cdn/dnb.png"),
        }
        self.requisitions = {}
        self.details = {}
        self.balances = {}
        self.transactions = {}
        self.failing_accounts = set()
        self.transaction_calls = []
        self.created = 0

    # remote setup helpers
    def add_linked_requisition(self, requisition_id, institution_id="DNB_DNBANOKK", accounts=("acc-1",), status="LN"):
        self.requisitions[requisition_id] = Requisition(
            id=requisition_id,
            status=status,
            link=f"https://ob.gocardless.com/psd2/start/{requisition_id}",
            institution_id=institution_id,
            accounts=list(accounts),
        )
        for account_id in accounts:
            self.details.setdefault(account_id, {"account": {"name": f"Account {account_id}", "ownerName": "Kari Nordmann", "bban": "12345678903"}})
            self.balances.setdefault(account_id, {"balances": [
                {"balanceAmount": {"amount": "1000.00", "currency": "NOK"}, "balanceType": "interimAvailable", "referenceDate": "2024-03-02"},
            ]})
            self.transactions.setdefault(account_id, {"booked": [], "pending": []})
        return self.requisitions[requisition_id]

    # GoCardlessClient surface
    def list_institutions(self, country):
        return list(self.institutions.values())

    def get_institution(self, institution_id):
        return self.institutions.get(institution_id)

    def create_requisition(self, institution_id, redirect):
        self.created += 1
        requisition = Requisition(
            id=f"req-new-{self.created}",
            status="CR",
            link=f"https://ob.gocardless.com/psd2/start/req-new-{self.created}",
            institution_id=institution_id,
            redirect=redirect,
        )
        self.requisitions[requisition.id] = requisition
        return requisition

    def get_requisition(self, requisition_id):
        if not requisition_id:
            return None
        return self.requisitions.get(requisition_id)

    def get_account_details(self, account_id):
        return AccountDetails.model_validate(self.details[account_id])

    def get_account_balances(self, account_id):
        return AccountBalances.model_validate(self.balances[account_id])

    def get_account_transactions(self, account_id, date_from=None):
        self.transaction_calls.append((account_id, date_from))
        if account_id in self.failing_accounts:
            raise GoCardlessError(f"GET /accounts/{account_id}/transactions/ returned 500", 500)
        return AccountTransactions.model_validate(self.transactions[account_id])


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = sessionlocal()
    yield session
    session.close()


@pytest.fixture
def user(db):
    user = User(email="kari@example.com", name="Kari")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def gocardless():
    return FakeGoCardless()


@pytest.fixture
def anonymous_client(gocardless):
    app.dependency_overrides[get_gocardless_client] = lambda: gocardless
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def client(anonymous_client, user):
    anonymous_client.cookies.set(SESSION_COOKIE, encrypt_json({"user_id": user.id, "email": user.email}))
    return anonymous_client


@pytest.fixture
def oauth_override():
    def install(fake):
        app.dependency_overrides[get_google_oauth] = lambda: fake
    return install


@pytest.fixture
def bank(db, user):
    bank = Bank(user_id=user.id, institution_id="DNB_DNBANOKK", name="DNB", requisition_id="req-1")
    db.add(bank)
    db.commit()
    db.refresh(bank)
    return bank


@pytest.fixture
def account(db, user, bank):
    account = Account(user_id=user.id, bank_id=bank.id, gocardless_account_id="acc-1", name="Brukskonto", balances=[])
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def make_transaction(db, user, bank, account):
    counter = {"n": 0}

    def make(description="Card purchase", amount="-10.00", value_date=date(2024, 3, 1), category_id=None):
        counter["n"] += 1
        transaction = Transaction(
            gocardless_transaction_id=f"tx-{counter['n']}",
            user_id=user.id,
            bank_id=bank.id,
            account_id=account.id,
            status="booked",
            amount=Decimal(amount),
            currency="NOK",
            booking_date=value_date,
            value_date=value_date,
            description=description,
            category_id=category_id,
        )
        db.add(transaction)
        db.commit()
        db.refresh(transaction)
        return transaction

    return make
