"""ORM model for journal entries owned by a user."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Entry(Base):
    """
    One journal entry: a short situation label, free text, and colour/icon tags.

    Rows are owned by exactly one user and go away with that user.
    """

    __tablename__ = "entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    situation = Column(String(255), nullable=False)
    text = Column(Text, nullable=False)
    colour = Column(String(32), nullable=False)
    icon = Column(String(32), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="entries")
