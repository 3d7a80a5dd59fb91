import pytest
from filelock import FileLock
from sqlalchemy import DateTime, Integer, String

from app.services import migration_service
from app.services.migration_service import MigrationException, MigrationService

REVISION = "20181219123224"


@pytest.fixture()
def svc(tmp_path):
    s = MigrationService(f"sqlite:///{tmp_path / 'migrations.db'}")
    yield s
    s.dispose()


def test_upgrade_creates_products_table(svc):
    assert svc.table_columns() == []

    assert svc.upgrade() == REVISION

    cols = svc.table_columns()
    assert [c[0] for c in cols] == ["id", "name", "price", "image", "created_at", "updated_at"]

    by_name = {name: (col_type, nullable) for name, col_type, nullable in cols}
    assert isinstance(by_name["id"][0], Integer)
    assert by_name["id"][1] is False
    assert isinstance(by_name["name"][0], String)
    assert isinstance(by_name["price"][0], Integer)
    assert isinstance(by_name["image"][0], String)
    for business in ("name", "price", "image"):
        assert by_name[business][1] is True
    for stamp in ("created_at", "updated_at"):
        assert isinstance(by_name[stamp][0], DateTime)
        assert by_name[stamp][1] is False


def test_upgrade_is_noop_when_already_at_head(svc):
    svc.upgrade()
    assert svc.upgrade() == REVISION
    assert svc.is_up_to_date()


def test_applying_twice_without_rollback_fails(svc):
    svc.upgrade()
    # forget the bookkeeping so the runner tries to create the table again
    assert svc.stamp("base") is None

    with pytest.raises(MigrationException) as exc:
        svc.upgrade()
    assert "already exists" in str(exc.value)


def test_downgrade_drops_table(svc):
    svc.upgrade()
    assert svc.downgrade() is None
    assert svc.table_columns() == []

    # reverting again leaves the table absent
    assert svc.downgrade() is None
    assert svc.table_columns() == []


def test_columns_stable_across_apply_revert_cycles(svc):
    svc.upgrade()
    first = [(name, type(t), nullable) for name, t, nullable in svc.table_columns()]

    for _ in range(2):
        svc.downgrade()
        svc.upgrade()
        again = [(name, type(t), nullable) for name, t, nullable in svc.table_columns()]
        assert again == first


def test_revision_bookkeeping(svc):
    assert svc.current_revision() is None
    assert svc.head_revision() == REVISION
    assert not svc.is_up_to_date()

    assert svc.history() == [(REVISION, None, "create products table")]

    svc.stamp("head")
    assert svc.current_revision() == REVISION
    # stamping only writes the version table
    assert svc.table_columns() == []


def test_offline_sql_renders_create_table(svc):
    sql = svc.offline_sql()
    assert "CREATE TABLE products" in sql
    assert REVISION in sql
    assert svc.current_revision() is None


def test_unknown_revision_raises(svc):
    with pytest.raises(MigrationException):
        svc.upgrade("does-not-exist")


def test_lock_timeout_raises_without_touching_schema(tmp_path):
    url = f"sqlite:///{tmp_path / 'locked.db'}"
    svc = MigrationService(url, lock_timeout=0)
    try:
        # another process is mid-migration
        with FileLock(svc._lock_path()):
            with pytest.raises(MigrationException) as exc:
                svc.upgrade()
        assert "Could not acquire migration lock" in str(exc.value)
        assert svc.table_columns() == []
    finally:
        svc.dispose()


def test_missing_script_directory_raises(svc, tmp_path, monkeypatch):
    monkeypatch.setattr(migration_service, "MIGRATIONS_DIR", tmp_path / "missing")
    with pytest.raises(MigrationException):
        svc.head_revision()
