"""
Rubrik Review Desk — User Model
===============================
Accounts are managed by the surrounding admin application; this service reads
role and rubric assignment to authorize lifecycle actions.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Enum, ForeignKey,
    func,
)

from app.core.database import Base


class UserRole(str, enum.Enum):
    super_admin = "super_admin"
    admin_rubric = "admin_rubric"
    editor_rubric = "editor_rubric"
    author = "author"
    member = "member"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name = Column(String(255), nullable=False)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True)

    # Role & organizational scope
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.author)
    rubric_id = Column(Integer, ForeignKey("rubrics.id", ondelete="SET NULL"), nullable=True, index=True)
    division_id = Column(Integer, ForeignKey("divisions.id", ondelete="SET NULL"), nullable=True, index=True)

    # Status
    is_active = Column(Boolean, default=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"
