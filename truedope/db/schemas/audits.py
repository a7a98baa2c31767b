import uuid
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AdminAuditLogBase(BaseModel):
    action_type: str
    status: str
    target_user_id: Optional[uuid.UUID] = None
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AdminAuditLogCreate(AdminAuditLogBase):
    pass


class AdminAuditLog(AdminAuditLogBase):
    id: uuid.UUID
    admin_user_id: uuid.UUID
    created_at: datetime
    # ORM rows carry the payload on metadata_json; 'metadata' is taken by SQLAlchemy
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("metadata_json", "metadata")
    )
    model_config = ConfigDict(from_attributes=True)
