from pydantic import BaseModel, Field, StrictBool
from uuid import UUID
from datetime import datetime
from typing import Optional

MAX_MEDIA_ID = 2**31 - 1  # INTEGER primary key

class MovieResponse(BaseModel):
    id: int
    title: str
    poster_url: Optional[str] = None
    genre: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

class SwipeCreate(BaseModel):
    media_id: int = Field(gt=0, le=MAX_MEDIA_ID)
    liked: StrictBool

class SwipeResponse(BaseModel):
    id: UUID
    user_id: UUID
    media_id: int
    liked: bool
    created_at: datetime
    created: bool = True
    match: bool = False

    model_config = {"from_attributes": True}

class SwipeListItem(BaseModel):
    id: UUID
    user_id: UUID
    media_id: int
    liked: bool
    created_at: datetime
    title: str
    poster_url: Optional[str] = None

class MatchResponse(BaseModel):
    id: UUID
    media_id: int
    user1_id: UUID
    user2_id: UUID
    user1_name: Optional[str] = None
    user2_name: Optional[str] = None
    created_at: datetime
    media: MovieResponse

    model_config = {"from_attributes": True}
