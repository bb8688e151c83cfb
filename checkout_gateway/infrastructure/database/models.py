"""SQLAlchemy ORM models for session-scoped checkout storage"""

from sqlalchemy import Column, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class SessionEntry(Base):
    """One key of a checkout session's storage (payment snapshot, last error, manual request)"""

    __tablename__ = "session_entry"
    __table_args__ = (UniqueConstraint("session_id", "key", name="uq_session_entry_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Text, nullable=False, index=True)
    key = Column(Text, nullable=False)
    value = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
