from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

import hacienda.models  # noqa: F401
from hacienda.core.database import DATABASE_URL, Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

# migrations run on a blocking driver; the app itself uses aiosqlite
SYNC_URL = DATABASE_URL.replace("+aiosqlite", "")
COMPARE = {"target_metadata": Base.metadata, "compare_type": True, "compare_server_default": True}


def migrate(**options):
    context.configure(**COMPARE, **options)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    migrate(url=SYNC_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
else:
    engine = create_engine(SYNC_URL, poolclass=pool.NullPool)
    with engine.connect() as connection:
        migrate(connection=connection)
