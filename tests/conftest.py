"""Shared test fixtures for the DealDesk test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, no bootstrap)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- store: the app's persistence gateway
- seed_data: one organization with a contact and an open deal
"""

import pytest

from dealdesk import create_app
from dealdesk.extensions import db as _db
from dealdesk.extensions import store as _store
from dealdesk.models.organization import Organization
from dealdesk.models.contact import Contact
from dealdesk.models.deal import Deal


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def store(app):
    return _store


@pytest.fixture
def seed_data(db_session):
    """Seed an organization, a contact at it, and a deal in stage "new".

    Returns plain ids: the win cascade closes the session, which detaches
    any ORM objects created here.
    """
    org = Organization(name="Acme", industry="Tech")
    db_session.add(org)
    db_session.flush()

    contact = Contact(
        organization_id=org.id,
        first_name="Wile",
        last_name="Coyote",
        email="wile@acme.example",
    )
    db_session.add(contact)

    deal = Deal(
        organization_id=org.id,
        title="Website",
        amount=5000,
    )
    db_session.add(deal)
    db_session.commit()

    return {
        "org_id": org.id,
        "contact_id": contact.id,
        "deal_id": deal.id,
    }
