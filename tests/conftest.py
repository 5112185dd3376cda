import pytest
from django.contrib.auth.models import Group, User

from blockchain import services
from blockchain.records import TransactionRecord, new_record_id
from blockchain.hashing import new_proof_hash, new_transaction_id, utc_now
from blockchain.storage import DatabaseLedgerStore, MemoryLedgerStore
from dashboard.carbon import calculate_carbon_sequestration
from dashboard.models import (
    ROLE_ADMIN, ROLE_BUYER, ROLE_CONTRIBUTOR, ROLE_VERIFIER, STATUS_VERIFIED, Project, UserProfile,
)


def make_transaction(project_id="project-1", user_id="user-1", credits=10.0):
    timestamp = utc_now()
    return TransactionRecord(
        id=new_record_id(),
        tx_id=new_transaction_id(project_id, user_id, credits, timestamp),
        sender="system",
        receiver=user_id,
        credits=credits,
        project_id=project_id,
        timestamp=timestamp,
        proof_hash=new_proof_hash("proofs/report.pdf"),
    )


@pytest.fixture
def memory_store():
    return MemoryLedgerStore()


@pytest.fixture
def memory_service(memory_store):
    return services.LedgerService(memory_store)


@pytest.fixture
def ledger_service(db):
    """Database-backed service installed as the process-wide ledger for the test."""
    previous = services._ledger_service
    service = services.configure_ledger_service(DatabaseLedgerStore())
    yield service
    services._ledger_service = previous


@pytest.fixture
def make_user(db):
    def _make_user(username, role, location=None, **extra):
        user = User.objects.create_user(
            username=username,
            email=f"{username}@gmail.com",
            password="password123",
            **extra
        )
        UserProfile.objects.create(user=user, name=username.title(), location=location)
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
        return user
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user("admin", ROLE_ADMIN)


@pytest.fixture
def verifier(make_user):
    return make_user("verifier1", ROLE_VERIFIER)


@pytest.fixture
def contributor(make_user):
    return make_user("alice", ROLE_CONTRIBUTOR, location="California, USA")


@pytest.fixture
def buyer(make_user):
    return make_user("bob", ROLE_BUYER, location="New York, USA")


@pytest.fixture
def make_project(db):
    def _make_project(owner, name="Mangrove Bay", area=10, ecosystem_type="Mangrove",
                      location="Kenya coast", status=None, plantation_type=None, verifier=None):
        estimate = calculate_carbon_sequestration(area, ecosystem_type, location)
        project = Project.objects.create(
            owner=owner,
            name=name,
            description="Restoring degraded mangrove forest along the estuary.",
            location=location,
            area=area,
            ecosystem_type=ecosystem_type,
            plantation_type=plantation_type,
            annual_co2=estimate.annual_co2,
            lifetime_co2=estimate.lifetime_co2,
            co2_captured=estimate.lifetime_co2,
            verifier=verifier,
        )
        if status == STATUS_VERIFIED:
            project.status = STATUS_VERIFIED
            project.credits_earned = project.lifetime_co2
            project.save()
        elif status:
            project.status = status
            project.save()
        return project
    return _make_project
