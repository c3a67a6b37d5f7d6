"""
models/user_model.py
Acting user and per-user aggregate models.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Actor(BaseModel):
    """Who is calling. ``is_admin`` is resolved server-side, never taken from the client."""
    user_id: str
    email: str = ""
    name: str = ""
    is_admin: bool = False


class RequestCounts(BaseModel):
    pending: int = 0
    signed: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.signed + self.rejected


class UserProfile(BaseModel):
    """Full MongoDB document model for the ``users`` collection."""
    user_id: str
    name: str = ""
    email: str = ""
    created_at: Optional[datetime] = None
    request_counts: RequestCounts = Field(default_factory=RequestCounts)

    @classmethod
    def from_document(cls, doc: dict) -> "UserProfile":
        return cls(**{k: v for k, v in doc.items() if k != "_id"})
