# Models package: import all models here so Alembic can discover them.

from dealdesk.models.organization import Organization  # noqa: F401
from dealdesk.models.contact import Contact  # noqa: F401
from dealdesk.models.deal import Deal  # noqa: F401
from dealdesk.models.project import Project, Task  # noqa: F401
