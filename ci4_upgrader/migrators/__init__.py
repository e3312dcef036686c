"""Per-artifact CI3 -> CI4 migrators."""

from ci4_upgrader.migrators.config import create_namespaces, migrate_config
from ci4_upgrader.migrators.controllers import migrate_controllers
from ci4_upgrader.migrators.models import migrate_models
from ci4_upgrader.migrators.routes import migrate_routes
from ci4_upgrader.migrators.support import migrate_helpers, migrate_libraries
from ci4_upgrader.migrators.views import migrate_views

__all__ = [
    'create_namespaces',
    'migrate_config',
    'migrate_controllers',
    'migrate_helpers',
    'migrate_libraries',
    'migrate_models',
    'migrate_routes',
    'migrate_views',
]
