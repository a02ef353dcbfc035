import os

from sqlalchemy.engine import URL


DEFAULT_STARTER_TASKS = (
    "Kick-off meeting",
    "Strategy & Design",
    "Development",
)

REWIN_POLICIES = ("reject", "noop", "rerun")


def build_database_uri(environ=None):
    """Resolve the SQLAlchemy URI from the environment.

    DATABASE_URL wins when set. Otherwise the URI is assembled from the
    MYSQL* variables that Railway's MySQL plugin exposes.
    """
    environ = os.environ if environ is None else environ

    # Some PaaS providers (Railway, Heroku) use "postgres://" which
    # SQLAlchemy 1.4+ doesn't accept.
    db_url = environ.get("DATABASE_URL", "")
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url:
        return db_url

    return URL.create(
        "mysql+pymysql",
        username=environ.get("MYSQLUSER", "mim_user"),
        password=environ.get("MYSQLPASSWORD", "mim_password"),
        host=environ.get("MYSQLHOST", "localhost"),
        port=int(environ.get("MYSQLPORT", 3306)),
        database=environ.get("MYSQLDATABASE", "railway"),
    ).render_as_string(hide_password=False)


def parse_starter_tasks(raw):
    """Split a ';'-separated STARTER_TASKS value into an ordered tuple."""
    if not raw:
        return DEFAULT_STARTER_TASKS
    return tuple(t.strip() for t in raw.split(";") if t.strip())


def _env_flag(name, default=""):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Database ---
    SQLALCHEMY_DATABASE_URI = build_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 10,
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # --- HTTP ---
    PORT = int(os.environ.get("PORT", 3000))

    # --- Startup bootstrap ---
    DB_BOOTSTRAP_ON_STARTUP = _env_flag("DB_BOOTSTRAP_ON_STARTUP", "true")
    DB_BOOTSTRAP_RETRY_DELAY = float(os.environ.get("DB_BOOTSTRAP_RETRY_DELAY", 5))
    # 0 = retry forever
    DB_BOOTSTRAP_MAX_ATTEMPTS = int(os.environ.get("DB_BOOTSTRAP_MAX_ATTEMPTS", 12))
    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA")

    # --- Deal win cascade ---
    STARTER_TASKS = parse_starter_tasks(os.environ.get("STARTER_TASKS"))
    # reject | noop | rerun
    DEAL_REWIN_POLICY = os.environ.get("DEAL_REWIN_POLICY", "reject").lower()

    @classmethod
    def validate(cls):
        """Fail fast on settings the win cascade can't run with."""
        if cls.DEAL_REWIN_POLICY not in REWIN_POLICIES:
            raise RuntimeError(
                f"Invalid DEAL_REWIN_POLICY '{cls.DEAL_REWIN_POLICY}'. "
                f"Must be one of: {', '.join(REWIN_POLICIES)}"
            )
        if not cls.STARTER_TASKS:
            raise RuntimeError("STARTER_TASKS must name at least one task.")


class DevConfig(Config):
    """Local development."""

    DEBUG = True


class TestConfig(Config):
    """Testing: in-memory SQLite, no startup bootstrap."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    # StaticPool (used for in-memory SQLite) rejects pool_size
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    DB_BOOTSTRAP_ON_STARTUP = False
    DB_BOOTSTRAP_RETRY_DELAY = 0
    DB_BOOTSTRAP_MAX_ATTEMPTS = 3
    SEED_DEMO_DATA = False
    STARTER_TASKS = DEFAULT_STARTER_TASKS
    DEAL_REWIN_POLICY = "reject"


class ProdConfig(Config):
    """Production on Railway."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
