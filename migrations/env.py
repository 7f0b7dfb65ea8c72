from logging.config import fileConfig
import os
import sys

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

# Ensure project root is on sys.path so imports like 'models' work
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from models.base import Base
from settings.config import get_settings

# Register every table on Base.metadata for autogenerate
import models.sector  # noqa: F401,E402
import models.user  # noqa: F401,E402
import models.supplier  # noqa: F401,E402
import models.product  # noqa: F401,E402
import models.purchase_request  # noqa: F401,E402
import models.item_receipt  # noqa: F401,E402
import models.item_budget  # noqa: F401,E402
import models.request_attachment  # noqa: F401,E402

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Ensure script_location is set even if config file isn't found via -c
if not config.get_main_option("script_location"):
    config.set_main_option("script_location", os.path.join(PROJECT_ROOT, "migrations"))

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Migrations run synchronously; map async drivers to their sync counterparts
SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql+psycopg",
}


def get_url() -> str:
    url = make_url(get_settings().build_database_url())
    sync_driver = SYNC_DRIVERS.get(url.drivername)
    if sync_driver:
        url = url.set(drivername=sync_driver)
    return url.render_as_string(hide_password=False)


def run_migrations_offline():
    """
    Run migrations in 'offline' mode.
    """
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """
    Run migrations in 'online' mode.
    Uses programmatically created engine so we don't require alembic.ini.
    """
    connectable = create_engine(get_url(), poolclass=pool.NullPool, future=True)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
