import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from app.config import settings

DATABASE_URL = settings.DATABASE_URL
engine = create_engine(DATABASE_URL, future=True, echo=False)
Base = declarative_base()

def init_db(reset: bool = False):
    """
    Bring the DB schema up to the newest migration.

    Behavior:
      - If `reset` is passed or RESET_DB env var is set to 1/true/yes, revert every
        migration first so the schema is rebuilt from scratch.
      - Tables are only ever created through the migrations, never via metadata.create_all.
    """
    from app.services.migration_service import MigrationService

    env_reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")

    svc = MigrationService(DATABASE_URL)
    try:
        if reset or env_reset:
            print("Resetting database (reset requested or RESET_DB set)...")
            svc.downgrade("base")

        revision = svc.upgrade("head")
    finally:
        svc.dispose()
    print(f"Database initialized at revision {revision}.")
    return revision
