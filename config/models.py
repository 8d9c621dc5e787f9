"""
SQLAlchemy ORM Models
"""

from sqlalchemy import Column, String, DateTime, LargeBinary
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

class Blob(Base):
    __tablename__ = 'blobs'

    name = Column(String, primary_key=True)  # fixed logical name, one row per artifact type
    content = Column(LargeBinary, nullable=False)
    content_type = Column(String, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
