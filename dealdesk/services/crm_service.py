"""CRM service: create and list organizations, contacts and deals.

Each create is a single INSERT through the store with a freshly generated
UUID; nothing here spans more than one statement. Free-text fields are
sanitized with bleach.clean() to strip HTML tags, then unescaped so the
stored text reads as sent ("&", not "&amp;").

Errors from the store propagate untouched; the blueprint reports them.
"""

import html
import uuid
from datetime import date, datetime
from decimal import Decimal

import bleach
from sqlalchemy import insert, select

from dealdesk.models.organization import Organization
from dealdesk.models.contact import Contact
from dealdesk.models.deal import Deal
from dealdesk.models.project import Project, Task


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if not isinstance(text, str):
        return text
    return html.unescape(bleach.clean(text, tags=[], strip=True)).strip()


def _to_amount(value):
    if value is None or value == "":
        return None
    return Decimal(str(value))


def create_organization(store, name, industry=None):
    """Insert an organization and return its new id."""
    org_id = str(uuid.uuid4())
    store.execute(
        insert(Organization.__table__).values(
            id=org_id,
            name=_sanitize(name),
            industry=_sanitize(industry),
        )
    )
    return org_id


def create_contact(store, organization_id, first_name, last_name, email, phone=None):
    """Insert a contact and return its new id.

    organization_id may be None; orphan contacts are allowed.
    """
    contact_id = str(uuid.uuid4())
    store.execute(
        insert(Contact.__table__).values(
            id=contact_id,
            organization_id=organization_id or None,
            first_name=_sanitize(first_name),
            last_name=_sanitize(last_name),
            email=_sanitize(email),
            phone=_sanitize(phone),
        )
    )
    return contact_id


def create_deal(store, organization_id, title, amount):
    """Insert a deal in the default stage and return its new id."""
    deal_id = str(uuid.uuid4())
    store.execute(
        insert(Deal.__table__).values(
            id=deal_id,
            organization_id=organization_id,
            title=_sanitize(title),
            amount=_to_amount(amount),
        )
    )
    return deal_id


# ── Dashboard ───────────────────────────────────────────────────


def _jsonable(row):
    """Turn a row mapping into a plain dict that jsonify renders cleanly."""
    out = {}
    for key, value in row.items():
        if isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[key] = value
    return out


def _listing(store, model, with_org_name=True, tie_breakers=None):
    stmt = select(*model.__table__.c)
    if with_org_name:
        stmt = stmt.add_columns(Organization.name.label("org_name")).outerjoin(
            Organization, model.organization_id == Organization.id
        )
    stmt = stmt.order_by(model.created_at.desc(), *(tie_breakers or [model.id]))
    return [_jsonable(row) for row in store.query(stmt)]


def dashboard(store):
    """Everything the dashboard shows, each list newest first.

    Contacts, deals and projects carry the joined organization name as
    ``org_name`` (None for orphans). Tasks created together keep their
    starter-template order.
    """
    return {
        "orgs": _listing(store, Organization, with_org_name=False),
        "contacts": _listing(store, Contact),
        "deals": _listing(store, Deal),
        "projects": _listing(store, Project),
        "tasks": _listing(
            store,
            Task,
            with_org_name=False,
            tie_breakers=[Task.project_id, Task.position, Task.id],
        ),
    }
