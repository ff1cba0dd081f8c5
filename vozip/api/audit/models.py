from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuditRecord(BaseModel):
    id: int
    user_id: int | None = None
    username: str | None = None
    user_full_name: str | None = None
    action: str
    module: str
    description: str | None = None
    previous_data: Any = None
    new_data: Any = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AuditPage(BaseModel):
    registros: list[AuditRecord]
    total: int
    limit: int
    offset: int
    has_more: bool = Field(serialization_alias="hasMore")


class AuditCleanupResult(BaseModel):
    message: str
    eliminados: int
    fechaLimite: datetime
