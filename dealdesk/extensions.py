"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from dealdesk.store import Store

db = SQLAlchemy()
migrate = Migrate()
store = Store()
