"""
AskBoard Backend: Question Service (Business Logic)
====================================================

What:  Every operation on questions and their embedded answers/comments.
How:   One store round trip per operation: a plain read, or a locked read
       followed by a single write of the same row.
Who:   Called by the question route handlers.

Embedded mutation flow (answers, comments, comments on answers):
    ┌──────────────┐    ┌──────────────────┐    ┌──────────────┐
    │ SELECT ...   │───▶│ locate target by │───▶│ UPDATE row   │
    │ FOR UPDATE   │    │ id (+ owner)     │    │ WHERE version│
    └──────────────┘    └──────────────────┘    └──────────────┘
            │                    │
            ▼                    ▼
      NotFoundError        NotFoundError (no write issued)

    The embedded list is copied, changed and assigned back, so the ORM sees
    a new value and writes the whole list. The version check turns a write
    racing another writer into a StaleDataError (500) rather than a lost
    update.

Ownership:
    - Question update/delete: owner must be the acting user, else 403.
    - Answer / comment deletes: filter on id AND owner; a foreign entry is
      simply not found (404).
    - Comment-on-answer update: filter on id AND owner (404 otherwise).
    - Answer update and question-comment update: reassign the owner to the
      acting user without checking the previous one, unless
      strict_embedded_ownership is enabled, in which case they filter on
      owner like the deletes.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from askboard.config import settings
from askboard.exceptions import AskBoardError, DatabaseError, ForbiddenError, NotFoundError
from askboard.models.question import Question
from askboard.schemas.question import (
    AnswerCreate,
    CommentCreate,
    ContentUpdate,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
)
from askboard.security import CurrentUser
from askboard.services.documents import locate, new_answer, new_comment

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class QuestionService:
    """
    Business logic layer for questions.

    Stateless apart from two policy knobs read from settings at
    construction: how many questions the list returns, and whether nested
    updates check ownership.
    """

    def __init__(
        self,
        list_limit: Optional[int] = None,
        strict_embedded_ownership: Optional[bool] = None,
    ):
        if list_limit is None:
            list_limit = settings.question_list_limit
        self.list_limit = list_limit
        if strict_embedded_ownership is None:
            strict_embedded_ownership = settings.strict_embedded_ownership
        self.strict_embedded_ownership = strict_embedded_ownership

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def to_response(question: Question) -> QuestionResponse:
        return QuestionResponse(
            id=question.id,
            user=question.user_id,
            title=question.title,
            content=question.content,
            tags=list(question.tags or []),
            created_at=_as_utc(question.created_at),
            updated_at=_as_utc(question.updated_at),
            answers=question.answers or [],
            comments=question.comments or [],
        )

    @staticmethod
    async def _load(
        db: AsyncSession, question_id: UUID, for_update: bool = False
    ) -> Optional[Question]:
        query = select(Question).where(Question.id == question_id)
        if for_update:
            # The locked row is the source of truth, not the identity map
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def _load_or_404(
        self, db: AsyncSession, question_id: UUID, for_update: bool = False
    ) -> Question:
        question = await self._load(db, question_id, for_update=for_update)
        if question is None:
            raise NotFoundError(resource="question", resource_id=str(question_id))
        return question

    @staticmethod
    def _ensure_owner(question: Question, user: CurrentUser) -> None:
        if question.user_id != user.id:
            logger.warning(
                "User %s denied write on question %s owned by %s",
                user.id, question.id, question.user_id,
            )
            raise ForbiddenError(
                resource="question", resource_id=str(question.id), user_id=user.id
            )

    async def _mutate_embedded(
        self,
        db: AsyncSession,
        question_id: UUID,
        mutate: Callable[[Question], None],
        action: str,
    ) -> QuestionResponse:
        """
        Lock the question, apply `mutate`, persist, and return the fresh document.

        `mutate` raises NotFoundError when its filter matches nothing; in that
        case nothing is flushed and the transaction is rolled back by the
        session dependency.
        """
        try:
            question = await self._load_or_404(db, question_id, for_update=True)
            mutate(question)
            await db.flush()
            await db.refresh(question)
        except AskBoardError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error (%s) on question %s: %s", action, question_id, str(e))
            raise DatabaseError.wrap(
                e,
                "Could not update the question. Please try again.",
                question_id=str(question_id),
                action=action,
            )

        logger.info("Question %s: %s", question_id, action)
        return self.to_response(question)

    # ── Questions ─────────────────────────────────────────────────────────

    async def list_questions(self, db: AsyncSession) -> List[QuestionResponse]:
        """
        The most recent questions, newest first, at most `list_limit` of them.

        Query plan:
            SELECT * FROM questions ORDER BY created_at DESC LIMIT :limit
            → idx_questions_created_at
        """
        try:
            result = await db.execute(
                select(Question)
                .order_by(desc(Question.created_at))
                .limit(self.list_limit)
            )
            questions = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing questions: %s", str(e), exc_info=True)
            raise DatabaseError.wrap(e, "Could not retrieve questions. Please try again.")

        return [self.to_response(question) for question in questions]

    async def get_question(self, db: AsyncSession, question_id: UUID) -> QuestionResponse:
        """
        Raises:
            NotFoundError: no question with this id (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            question = await self._load_or_404(db, question_id)
        except AskBoardError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching question %s: %s", question_id, str(e))
            raise DatabaseError.wrap(
                e,
                "Could not retrieve the question. Please try again.",
                question_id=str(question_id),
            )
        return self.to_response(question)

    async def create_question(
        self, db: AsyncSession, payload: QuestionCreate, user: CurrentUser
    ) -> QuestionResponse:
        """Insert a new question owned by `user`, with no answers or comments yet."""
        question = Question(
            user_id=user.id,
            title=payload.title,
            content=payload.content,
            tags=list(payload.tags),
            answers=[],
            comments=[],
        )
        try:
            db.add(question)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating question: %s", str(e), exc_info=True)
            raise DatabaseError.wrap(e, "Could not create the question. Please try again.")

        logger.info("Question %s created by %s", question.id, user.id)
        return self.to_response(question)

    async def update_question(
        self,
        db: AsyncSession,
        question_id: UUID,
        payload: QuestionUpdate,
        user: CurrentUser,
    ) -> QuestionResponse:
        """
        Merge the fields present in `payload` into the stored question.

        Fields absent from the request, or sent as null, keep their stored
        values. Identifiers cannot be changed: QuestionUpdate has no id field.

        Raises:
            NotFoundError:  no such question (→ 404)
            ForbiddenError: acting user is not the owner (→ 403, nothing written)
        """
        updates = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }
        try:
            question = await self._load_or_404(db, question_id, for_update=True)
            self._ensure_owner(question, user)
            for field, value in updates.items():
                setattr(question, field, value)
            await db.flush()
            await db.refresh(question)
        except AskBoardError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating question %s: %s", question_id, str(e))
            raise DatabaseError.wrap(
                e,
                "Could not update the question. Please try again.",
                question_id=str(question_id),
            )

        logger.info("Question %s updated by %s (%s)", question_id, user.id, ", ".join(updates) or "no fields")
        return self.to_response(question)

    async def delete_question(
        self, db: AsyncSession, question_id: UUID, user: CurrentUser
    ) -> None:
        """Remove the question and, with it, every embedded answer and comment."""
        try:
            question = await self._load_or_404(db, question_id, for_update=True)
            self._ensure_owner(question, user)
            await db.delete(question)
            await db.flush()
        except AskBoardError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting question %s: %s", question_id, str(e))
            raise DatabaseError.wrap(
                e,
                "Could not delete the question. Please try again.",
                question_id=str(question_id),
            )

        logger.info("Question %s deleted by %s", question_id, user.id)

    # ── Answers ───────────────────────────────────────────────────────────

    async def add_answer(
        self,
        db: AsyncSession,
        question_id: UUID,
        payload: AnswerCreate,
        user: CurrentUser,
    ) -> QuestionResponse:
        def push(question: Question) -> None:
            answers = copy.deepcopy(question.answers or [])
            answers.append(new_answer(payload.content, user.id))
            question.answers = answers

        return await self._mutate_embedded(db, question_id, push, "answer added")

    async def update_answer(
        self,
        db: AsyncSession,
        question_id: UUID,
        answer_id: str,
        payload: ContentUpdate,
        user: CurrentUser,
    ) -> QuestionResponse:
        """Overwrite the answer's content and make the acting user its owner."""
        owner = user.id if self.strict_embedded_ownership else None

        def set_content(question: Question) -> None:
            answers = copy.deepcopy(question.answers or [])
            index = locate(answers, answer_id, owner=owner)
            if index is None:
                raise NotFoundError(resource="answer", resource_id=answer_id)
            answers[index]["content"] = payload.content
            answers[index]["user"] = user.id
            question.answers = answers

        return await self._mutate_embedded(db, question_id, set_content, "answer updated")

    async def delete_answer(
        self,
        db: AsyncSession,
        question_id: UUID,
        answer_id: str,
        user: CurrentUser,
    ) -> QuestionResponse:
        """Remove the answer if it exists and belongs to the acting user."""
        def pull(question: Question) -> None:
            answers = copy.deepcopy(question.answers or [])
            index = locate(answers, answer_id, owner=user.id)
            if index is None:
                raise NotFoundError(resource="answer", resource_id=answer_id)
            del answers[index]
            question.answers = answers

        return await self._mutate_embedded(db, question_id, pull, "answer deleted")

    # ── Comments on the question ──────────────────────────────────────────

    async def add_comment(
        self,
        db: AsyncSession,
        question_id: UUID,
        payload: CommentCreate,
        user: CurrentUser,
    ) -> QuestionResponse:
        def push(question: Question) -> None:
            comments = copy.deepcopy(question.comments or [])
            comments.append(new_comment(payload.content, user.id))
            question.comments = comments

        return await self._mutate_embedded(db, question_id, push, "comment added")

    async def update_comment(
        self,
        db: AsyncSession,
        question_id: UUID,
        comment_id: str,
        payload: ContentUpdate,
        user: CurrentUser,
    ) -> QuestionResponse:
        owner = user.id if self.strict_embedded_ownership else None

        def set_content(question: Question) -> None:
            comments = copy.deepcopy(question.comments or [])
            index = locate(comments, comment_id, owner=owner)
            if index is None:
                raise NotFoundError(resource="comment", resource_id=comment_id)
            comments[index]["content"] = payload.content
            comments[index]["user"] = user.id
            question.comments = comments

        return await self._mutate_embedded(db, question_id, set_content, "comment updated")

    async def delete_comment(
        self,
        db: AsyncSession,
        question_id: UUID,
        comment_id: str,
        user: CurrentUser,
    ) -> QuestionResponse:
        def pull(question: Question) -> None:
            comments = copy.deepcopy(question.comments or [])
            index = locate(comments, comment_id, owner=user.id)
            if index is None:
                raise NotFoundError(resource="comment", resource_id=comment_id)
            del comments[index]
            question.comments = comments

        return await self._mutate_embedded(db, question_id, pull, "comment deleted")

    # ── Comments on an answer ─────────────────────────────────────────────

    async def add_answer_comment(
        self,
        db: AsyncSession,
        question_id: UUID,
        answer_id: str,
        payload: CommentCreate,
        user: CurrentUser,
    ) -> QuestionResponse:
        def push(question: Question) -> None:
            answers = copy.deepcopy(question.answers or [])
            index = locate(answers, answer_id)
            if index is None:
                raise NotFoundError(resource="answer", resource_id=answer_id)
            answers[index].setdefault("comments", []).append(
                new_comment(payload.content, user.id)
            )
            question.answers = answers

        return await self._mutate_embedded(db, question_id, push, "answer comment added")

    async def update_answer_comment(
        self,
        db: AsyncSession,
        question_id: UUID,
        answer_id: str,
        comment_id: str,
        payload: ContentUpdate,
        user: CurrentUser,
    ) -> QuestionResponse:
        """
        Overwrite the content of a comment nested under an answer.

        The answer is located by id first; when it is missing the request
        ends with 404 before any write. The comment must match both its id
        and the acting user as owner. Ownership is not reassigned here.
        """
        def set_content(question: Question) -> None:
            answers = copy.deepcopy(question.answers or [])
            answer_index = locate(answers, answer_id)
            if answer_index is None:
                raise NotFoundError(resource="answer", resource_id=answer_id)
            comments = answers[answer_index].setdefault("comments", [])
            comment_index = locate(comments, comment_id, owner=user.id)
            if comment_index is None:
                raise NotFoundError(resource="comment", resource_id=comment_id)
            comments[comment_index]["content"] = payload.content
            question.answers = answers

        return await self._mutate_embedded(db, question_id, set_content, "answer comment updated")

    async def delete_answer_comment(
        self,
        db: AsyncSession,
        question_id: UUID,
        answer_id: str,
        comment_id: str,
        user: CurrentUser,
    ) -> QuestionResponse:
        def pull(question: Question) -> None:
            answers = copy.deepcopy(question.answers or [])
            answer_index = locate(answers, answer_id)
            if answer_index is None:
                raise NotFoundError(resource="answer", resource_id=answer_id)
            comments = answers[answer_index].get("comments") or []
            comment_index = locate(comments, comment_id, owner=user.id)
            if comment_index is None:
                raise NotFoundError(resource="comment", resource_id=comment_id)
            del comments[comment_index]
            answers[answer_index]["comments"] = comments
            question.answers = answers

        return await self._mutate_embedded(db, question_id, pull, "answer comment deleted")


# ── Singleton Instance ────────────────────────────────────────────────────
question_service = QuestionService()
