from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AccessToken(BaseModel):
    id: int
    user_id: int
    token_hash: str
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccessTokenCreateModel(BaseModel):
    user_id: int
    token_hash: str
