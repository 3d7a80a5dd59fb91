import hashlib
import io
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from alembic.util import CommandError
from app.config import settings
from filelock import FileLock, Timeout
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

log = logging.getLogger("migrations")
log.setLevel(settings.LOG_LEVEL.upper())
if not log.handlers:
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter("[MIGRATIONS] %(message)s"))
    log.addHandler(h)


class MigrationException(Exception):
    pass


class MigrationService:
    """
    Drives the Alembic migrations in app/migrations against one database.

    Commands that change the schema or the version table run under a file lock
    so several processes starting together apply each migration once.
    Runner and engine failures surface as MigrationException with the original
    error chained.
    """

    def __init__(self, database_url: Optional[str] = None, lock_timeout: Optional[int] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.lock_timeout = (
            lock_timeout if lock_timeout is not None else settings.MIGRATION_LOCK_TIMEOUT_SECONDS
        )
        self.engine = create_engine(self.database_url, future=True)

    def _config(self, output_buffer=None) -> Config:
        cfg = Config(output_buffer=output_buffer)
        cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
        # configparser interpolation treats % specially (e.g. url-encoded passwords)
        cfg.set_main_option("sqlalchemy.url", self.database_url.replace("%", "%%"))
        return cfg

    def _lock_path(self) -> str:
        locks_dir = os.path.join(tempfile.gettempdir(), "products_schema_locks")
        os.makedirs(locks_dir, exist_ok=True)
        digest = hashlib.sha1(self.database_url.encode("utf-8")).hexdigest()[:16]
        return os.path.join(locks_dir, f"migrate_{digest}.lock")

    def _run(self, description: str, fn, *args, **kwargs):
        lock = FileLock(self._lock_path())
        try:
            with lock.acquire(timeout=self.lock_timeout):
                log.info(f"{description}")
                try:
                    fn(self._config(), *args, **kwargs)
                except (CommandError, SQLAlchemyError) as e:
                    log.error(f"{description} failed: {e}")
                    raise MigrationException(f"{description} failed: {e}") from e
        except Timeout:
            raise MigrationException("Could not acquire migration lock; try again")

    def upgrade(self, revision: str = "head") -> Optional[str]:
        self._run(f"upgrade -> {revision}", command.upgrade, revision)
        current = self.current_revision()
        log.info(f"database now at revision {current}")
        return current

    def downgrade(self, revision: str = "base") -> Optional[str]:
        self._run(f"downgrade -> {revision}", command.downgrade, revision)
        current = self.current_revision()
        log.info(f"database now at revision {current}")
        return current

    def stamp(self, revision: str) -> Optional[str]:
        """Record `revision` in the version table without running any migration."""
        self._run(f"stamp {revision}", command.stamp, revision)
        return self.current_revision()

    def current_revision(self) -> Optional[str]:
        try:
            with self.engine.connect() as conn:
                return MigrationContext.configure(conn).get_current_revision()
        except SQLAlchemyError as e:
            raise MigrationException(f"Could not read current revision: {e}") from e

    def head_revision(self) -> Optional[str]:
        try:
            return ScriptDirectory.from_config(self._config()).get_current_head()
        except CommandError as e:
            raise MigrationException(f"Could not resolve head revision: {e}") from e

    def is_up_to_date(self) -> bool:
        return self.current_revision() == self.head_revision()

    def history(self) -> List[Tuple[str, Optional[str], str]]:
        """
        Return (revision, down_revision, doc) for every migration, oldest first.
        """
        script = ScriptDirectory.from_config(self._config())
        revisions = list(script.walk_revisions())
        revisions.reverse()
        return [(r.revision, r.down_revision, r.doc) for r in revisions]

    def table_columns(self, table: str = "products") -> List[Tuple[str, object, bool]]:
        """
        Reflect `table` from the live database as (name, type, nullable) in column order.
        Returns an empty list when the table does not exist.
        """
        try:
            insp = inspect(self.engine)
            if not insp.has_table(table):
                return []
            return [(c["name"], c["type"], c["nullable"]) for c in insp.get_columns(table)]
        except SQLAlchemyError as e:
            raise MigrationException(f"Could not inspect table {table}: {e}") from e

    def offline_sql(self, revision: str = "head") -> str:
        """Render the upgrade to `revision` as a SQL script; no connection is opened."""
        buf = io.StringIO()
        try:
            command.upgrade(self._config(output_buffer=buf), revision, sql=True)
        except CommandError as e:
            raise MigrationException(f"Could not render SQL for {revision}: {e}") from e
        return buf.getvalue()

    def dispose(self):
        self.engine.dispose()
