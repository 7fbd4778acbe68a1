"""
Rubrik Review Desk — Authentication Schemas
===========================================
"""

from typing import Optional

from pydantic import BaseModel


class UserProfile(BaseModel):
    id: int
    name: str
    username: str
    role: str
    rubric_id: Optional[int]
    division_id: Optional[int]
    is_active: bool

    class Config:
        from_attributes = True
