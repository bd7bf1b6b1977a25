# projecthub/models/project.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from projecthub.database import Base


PRIVACY_LEVELS = ("public", "private", "organization")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)

    # owner
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)

    organization = Column(String(255), nullable=True, index=True)
    tags = Column(String(500), nullable=True)  # comma-joined
    privacy = Column(String(20), nullable=False, default="public")  # public | private | organization

    likes_count = Column(Integer, default=0, nullable=False)
    comments_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
