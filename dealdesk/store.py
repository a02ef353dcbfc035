"""Persistence gateway: pooled store access, units of work, bootstrap.

The Store is a Flask extension bound in create_app(). Handlers get it from
``current_app.extensions["store"]`` rather than reaching for a module-level
pool. Every statement runs on the request-scoped Flask-SQLAlchemy session,
which checks a connection out of the engine pool and hands it back on close.

Errors from the database are never translated here: they propagate as the
underlying SQLAlchemy exception so the caller decides how to report them.
"""

import logging
import time
from contextlib import contextmanager

from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


def _as_statement(statement):
    """Accept raw SQL strings as well as SQLAlchemy constructs."""
    if isinstance(statement, str):
        return text(statement)
    return statement


class Store:
    """Connection-pooled handle to the relational store."""

    def __init__(self, app=None, db=None):
        self.db = db
        self.retry_delay = 5.0
        self.max_attempts = 0
        if app is not None:
            self.init_app(app, db)

    def init_app(self, app, db):
        self.db = db
        self.retry_delay = app.config.get("DB_BOOTSTRAP_RETRY_DELAY", 5.0)
        self.max_attempts = app.config.get("DB_BOOTSTRAP_MAX_ATTEMPTS", 0)
        app.extensions["store"] = self

    @property
    def session(self):
        return self.db.session

    # ── Statement primitives ──────────────────────────────────────

    def execute(self, statement, params=None):
        """Run a single write statement and commit it.

        Returns the number of affected rows.
        """
        try:
            result = self.session.execute(_as_statement(statement), params or {})
            rowcount = result.rowcount
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return rowcount

    def query(self, statement, params=None):
        """Run a single read statement and return its rows as mappings."""
        result = self.session.execute(_as_statement(statement), params or {})
        return result.mappings().all()

    @contextmanager
    def unit_of_work(self):
        """Scoped transaction on a dedicated pooled connection.

        Commits when the block exits normally, rolls back and re-raises on
        any exception. The session is closed on every path, which returns
        its connection to the pool.
        """
        session = self.session
        try:
            session.connection()
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Health ────────────────────────────────────────────────────

    def ping(self):
        self.session.execute(text("SELECT 1"))

    def is_ready(self):
        """True when the store answers a trivial query."""
        try:
            self.ping()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(f"Store health check failed: {e}")
            return False
        return True

    # ── Bootstrap ─────────────────────────────────────────────────

    def bootstrap(self, seed=False):
        """Make sure the schema exists, optionally seeding demo rows.

        Safe to run on every startup: tables are only created when
        missing. Connectivity failures are retried every ``retry_delay``
        seconds until ``max_attempts`` is exhausted (0 = no limit), after
        which the last error is raised. Anything else fails immediately.

        Returns the number of attempts it took.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                self.ping()
                self.db.create_all()
                if seed:
                    self.seed_demo_data()
            except OperationalError as e:
                self.session.rollback()
                if self.max_attempts and attempt >= self.max_attempts:
                    logger.error(
                        f"Database unavailable after {attempt} attempts, giving up: {e}"
                    )
                    raise
                logger.warning(
                    f"Database not ready (attempt {attempt}): {e}. "
                    f"Retrying in {self.retry_delay}s"
                )
                time.sleep(self.retry_delay)
                continue

            logger.info(f"Database ready after {attempt} attempt(s)")
            return attempt

    def seed_demo_data(self):
        """Insert the demo organization, contact and deal on an empty store.

        Returns True when rows were inserted, False when organizations
        already existed.
        """
        # Imported lazily to avoid a circular import with the models package
        from dealdesk.models.organization import Organization
        from dealdesk.models.contact import Contact
        from dealdesk.models.deal import Deal

        existing = self.session.execute(
            select(func.count()).select_from(Organization)
        ).scalar()
        if existing:
            return False

        with self.unit_of_work() as session:
            org = Organization(name="Acme Corporation", industry="Manufacturing")
            session.add(org)
            session.flush()
            session.add(Contact(
                organization_id=org.id,
                first_name="Jane",
                last_name="Doe",
                email="jane.doe@acme.example",
                phone="555-0100",
            ))
            session.add(Deal(
                organization_id=org.id,
                title="Website Redesign",
                amount=12500,
            ))

        logger.info("Seeded demo organization, contact and deal")
        return True
