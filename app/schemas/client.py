from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    address: Optional[str] = None


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    address: Optional[str] = None


class Client(BaseModel):
    id: str
    name: str
    email: str
    address: Optional[str] = None
    created_at: datetime


class ClientListResponse(BaseModel):
    total: int
    items: List[Client]
