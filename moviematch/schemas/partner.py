from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

class SetPartnerRequest(BaseModel):
    partner_id: UUID

class PartnerRequestCreate(BaseModel):
    recipient_email: str = Field(min_length=1)

class PartnerRequestRespond(BaseModel):
    request_id: UUID
    status: Literal["accepted", "rejected"]

class PartnerRequestResponse(BaseModel):
    id: UUID
    requester_id: UUID
    recipient_id: UUID
    status: str
    created_at: datetime
    updated_at: datetime
    requester_email: Optional[str] = None
    recipient_email: Optional[str] = None

    model_config = {"from_attributes": True}
