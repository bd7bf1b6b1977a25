# projecthub/models/user.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from projecthub.database import Base


POSITIONS = ("student", "teacher", "other")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    username = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash

    phone = Column(String(30), nullable=True)
    position = Column(String(20), nullable=False)  # student | teacher | other

    # grouping key for follow / message / collaborator gating
    organization = Column(String(255), nullable=True, index=True)

    github_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)

    # denormalized, maintained by the project router
    total_projects = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
