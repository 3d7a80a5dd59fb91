from typing import Optional
from pydantic import BaseModel

class HealthOut(BaseModel):
    status: str
    db: bool
    schema_revision: Optional[str] = None
    head_revision: Optional[str] = None
    up_to_date: bool
