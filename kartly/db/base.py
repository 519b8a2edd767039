# kartly/db/base.py
from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, DateTime
from datetime import datetime
import uuid

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class BaseModel(Base):
    """Abstract base model with common fields"""
    __abstract__ = True

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
