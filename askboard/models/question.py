"""
AskBoard Backend: Question SQLAlchemy Model
============================================

What:  ORM model representing the `questions` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by QuestionService for every read and write.

Table Design:
    - One row per question. Answers and question comments are embedded
      documents stored in JSON columns, so deleting the row deletes them too.
    - Embedded entity shape:
        answer  = {"id", "user", "content", "created_at", "comments": [comment, ...]}
        comment = {"id", "user", "content", "created_at"}
    - `version` is the ORM version counter. Every UPDATE/DELETE carries
      `WHERE version = :seen` and bumps it, so a write based on a stale read
      fails with StaleDataError instead of overwriting a newer document.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from askboard.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


class Question(Base):
    """
    A question together with its embedded answers and comments.

    Query Patterns:
        - List recent: SELECT ... ORDER BY created_at DESC LIMIT 20
          → idx_questions_created_at
        - Get / mutate one: SELECT ... WHERE id = :uuid [FOR UPDATE]
          → primary key
    """

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owning user id, taken from the `sub` claim of the creator's token
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[List[str]] = mapped_column(DocumentJSON, nullable=False, default=list)

    answers: Mapped[List[Dict[str, Any]]] = mapped_column(
        DocumentJSON, nullable=False, default=list
    )
    comments: Mapped[List[Dict[str, Any]]] = mapped_column(
        DocumentJSON, nullable=False, default=list
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_questions_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Question(id={self.id}, user_id='{self.user_id}', "
            f"answers={len(self.answers or [])}, version={self.version})>"
        )
