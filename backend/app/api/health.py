from app import db
from app.schemas.health_schema import HealthOut
from app.services.migration_service import MigrationException, MigrationService
from fastapi import APIRouter
from sqlalchemy import text

router = APIRouter()


@router.get("/health", tags=["health"], response_model=HealthOut)
def health():
    db_ok = False
    current = None
    head = None
    try:
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        db_ok = False

    svc = MigrationService(db.DATABASE_URL)
    try:
        head = svc.head_revision()
        if db_ok:
            current = svc.current_revision()
    except MigrationException:
        current = None
    finally:
        svc.dispose()

    up_to_date = db_ok and current is not None and current == head
    return HealthOut(
        status="ok" if up_to_date else "degraded",
        db=db_ok,
        schema_revision=current,
        head_revision=head,
        up_to_date=up_to_date,
    )
