"""
AskBoard Backend: Question Service Unit Tests
==============================================

What:  Tests for QuestionService business logic.
How:   Mock sessions where the point is which store calls happen (or don't);
       a real SQLite session where the point is the resulting document.

What we test:
    ✅ Not found / forbidden short-circuit before any write
    ✅ Store errors are wrapped in DatabaseError with the original error
    ✅ Partial update keeps the fields that were not sent
    ✅ Nested answers/comments: push, update, pull, owner filtering
    ✅ Missing answer under a nested comment update: 404, no write
    ✅ Strict embedded ownership switch
    ✅ Version column rejects stale writes
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from askboard.exceptions import DatabaseError, ForbiddenError, NotFoundError
from askboard.models.question import Question
from askboard.schemas.question import (
    AnswerCreate,
    CommentCreate,
    ContentUpdate,
    QuestionCreate,
    QuestionUpdate,
)
from askboard.services.question_service import QuestionService


def stored_question(owner="alice", answers=None, comments=None):
    """A detached Question as the mocked store would return it."""
    return Question(
        id=uuid.uuid4(),
        user_id=owner,
        title="How do I reverse a list?",
        content="",
        tags=[],
        answers=answers or [],
        comments=comments or [],
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def store_returns(session, question):
    """Make the mocked SELECT yield `question` (or None)."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = question
    session.execute.return_value = result


class TestShortCircuits:
    """Failures that must never reach a write."""

    def setup_method(self):
        self.service = QuestionService(list_limit=20, strict_embedded_ownership=False)

    @pytest.mark.asyncio
    async def test_get_question_not_found(self, mock_db_session):
        store_returns(mock_db_session, None)

        with pytest.raises(NotFoundError):
            await self.service.get_question(mock_db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_update_by_non_owner_is_forbidden(self, mock_db_session, bob):
        question = stored_question(owner="alice")
        store_returns(mock_db_session, question)

        with pytest.raises(ForbiddenError):
            await self.service.update_question(
                mock_db_session, question.id, QuestionUpdate(title="hijacked"), bob
            )

        assert question.title == "How do I reverse a list?"
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_by_non_owner_is_forbidden(self, mock_db_session, bob):
        question = stored_question(owner="alice")
        store_returns(mock_db_session, question)

        with pytest.raises(ForbiddenError):
            await self.service.delete_question(mock_db_session, question.id, bob)

        mock_db_session.delete.assert_not_awaited()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_missing_question_is_not_found(self, mock_db_session, alice):
        store_returns(mock_db_session, None)

        with pytest.raises(NotFoundError):
            await self.service.update_question(
                mock_db_session, uuid.uuid4(), QuestionUpdate(title="x"), alice
            )
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_answer_comment_update_under_missing_answer_issues_no_write(
        self, mock_db_session, alice
    ):
        question = stored_question(answers=[
            {"id": "a1", "user": "bob", "content": "x", "created_at": "2026-01-01T00:00:00+00:00",
             "comments": [{"id": "c1", "user": "alice", "content": "y",
                           "created_at": "2026-01-01T00:00:00+00:00"}]},
        ])
        store_returns(mock_db_session, question)

        with pytest.raises(NotFoundError):
            await self.service.update_answer_comment(
                mock_db_session, question.id, "missing", "c1", ContentUpdate(content="z"), alice
            )

        mock_db_session.flush.assert_not_awaited()
        assert question.answers[0]["comments"][0]["content"] == "y"

    @pytest.mark.asyncio
    async def test_answer_comment_delete_under_missing_answer_issues_no_write(
        self, mock_db_session, alice
    ):
        question = stored_question()
        store_returns(mock_db_session, question)

        with pytest.raises(NotFoundError):
            await self.service.delete_answer_comment(
                mock_db_session, question.id, "missing", "c1", alice
            )
        mock_db_session.flush.assert_not_awaited()


class TestStoreErrors:

    def setup_method(self):
        self.service = QuestionService(list_limit=20)

    @pytest.mark.asyncio
    async def test_list_wraps_store_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("database is locked")
        )

        with pytest.raises(DatabaseError) as excinfo:
            await self.service.list_questions(mock_db_session)

        assert excinfo.value.context["error_type"] == "OperationalError"
        assert "database is locked" in excinfo.value.context["error"]

    @pytest.mark.asyncio
    async def test_failed_flush_is_wrapped(self, mock_db_session, alice):
        question = stored_question(owner="alice")
        store_returns(mock_db_session, question)
        mock_db_session.flush.side_effect = StaleDataError("version mismatch")

        with pytest.raises(DatabaseError) as excinfo:
            await self.service.add_answer(
                mock_db_session, question.id, AnswerCreate(content="a"), alice
            )
        assert excinfo.value.context["action"] == "answer added"


class TestQuestions:

    def setup_method(self):
        self.service = QuestionService(list_limit=20, strict_embedded_ownership=False)

    @pytest.mark.asyncio
    async def test_create_assigns_acting_user(self, db_session, alice):
        created = await self.service.create_question(
            db_session, QuestionCreate(title="Why?", content="Because.", tags=["meta"]), alice
        )

        assert created.user == "alice"
        assert created.answers == []
        assert created.comments == []
        assert created.tags == ["meta"]

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, alice):
        created = await self.service.create_question(
            db_session, QuestionCreate(title="Old title", content="Body", tags=["a"]), alice
        )

        updated = await self.service.update_question(
            db_session, created.id, QuestionUpdate(title="New title"), alice
        )

        assert updated.title == "New title"
        assert updated.content == "Body"
        assert updated.tags == ["a"]
        assert updated.id == created.id

    @pytest.mark.asyncio
    async def test_delete_then_get_is_not_found(self, db_session, alice):
        created = await self.service.create_question(db_session, QuestionCreate(title="t"), alice)

        await self.service.delete_question(db_session, created.id, alice)

        with pytest.raises(NotFoundError):
            await self.service.get_question(db_session, created.id)

    @pytest.mark.asyncio
    async def test_list_respects_limit(self, db_session, alice):
        service = QuestionService(list_limit=3)
        for i in range(5):
            await service.create_question(db_session, QuestionCreate(title=f"q{i}"), alice)

        listed = await service.list_questions(db_session)

        assert len(listed) == 3

    @pytest.mark.asyncio
    async def test_null_fields_keep_stored_values(self, db_session, alice):
        created = await self.service.create_question(
            db_session, QuestionCreate(title="Title", content="Body", tags=["a"]), alice
        )

        updated = await self.service.update_question(
            db_session, created.id, QuestionUpdate(title=None, tags=None, content="New body"), alice
        )

        assert updated.title == "Title"
        assert updated.tags == ["a"]
        assert updated.content == "New body"

    def test_explicit_zero_list_limit_is_kept(self):
        assert QuestionService(list_limit=0).list_limit == 0

    def test_naive_timestamps_are_reported_as_utc(self):
        question = stored_question()
        question.created_at = datetime(2026, 3, 1, 12, 30)
        question.updated_at = datetime(2026, 3, 1, 12, 45)

        response = QuestionService.to_response(question)

        assert response.created_at == datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)
        assert response.updated_at.tzinfo is timezone.utc


class TestAnswers:

    def setup_method(self):
        self.service = QuestionService(strict_embedded_ownership=False)

    async def _question_with_answer(self, db, owner, answerer):
        created = await self.service.create_question(db, QuestionCreate(title="t"), owner)
        result = await self.service.add_answer(db, created.id, AnswerCreate(content="first"), answerer)
        return result

    @pytest.mark.asyncio
    async def test_answer_appended_last_with_acting_user(self, db_session, alice, bob):
        question = await self._question_with_answer(db_session, alice, alice)

        result = await self.service.add_answer(
            db_session, question.id, AnswerCreate(content="second"), bob
        )

        assert [a.content for a in result.answers] == ["first", "second"]
        assert result.answers[-1].user == "bob"

    @pytest.mark.asyncio
    async def test_add_answer_to_missing_question(self, db_session, alice):
        with pytest.raises(NotFoundError):
            await self.service.add_answer(db_session, uuid.uuid4(), AnswerCreate(content="x"), alice)

    @pytest.mark.asyncio
    async def test_update_answer_reassigns_owner(self, db_session, alice, bob):
        question = await self._question_with_answer(db_session, alice, alice)
        answer_id = question.answers[0].id

        result = await self.service.update_answer(
            db_session, question.id, answer_id, ContentUpdate(content="edited"), bob
        )

        assert result.answers[0].content == "edited"
        assert result.answers[0].user == "bob"

    @pytest.mark.asyncio
    async def test_strict_ownership_rejects_foreign_answer_update(self, db_session, alice, bob):
        question = await self._question_with_answer(db_session, alice, alice)
        strict = QuestionService(strict_embedded_ownership=True)

        with pytest.raises(NotFoundError):
            await strict.update_answer(
                db_session, question.id, question.answers[0].id, ContentUpdate(content="x"), bob
            )

    @pytest.mark.asyncio
    async def test_delete_answer_requires_owner(self, db_session, alice, bob):
        question = await self._question_with_answer(db_session, alice, alice)
        answer_id = question.answers[0].id

        with pytest.raises(NotFoundError):
            await self.service.delete_answer(db_session, question.id, answer_id, bob)

        result = await self.service.delete_answer(db_session, question.id, answer_id, alice)
        assert result.answers == []


class TestComments:

    def setup_method(self):
        self.service = QuestionService(strict_embedded_ownership=False)

    @pytest.mark.asyncio
    async def test_question_comment_lifecycle(self, db_session, alice, bob):
        created = await self.service.create_question(db_session, QuestionCreate(title="t"), alice)

        result = await self.service.add_comment(
            db_session, created.id, CommentCreate(content="nice"), bob
        )
        comment_id = result.comments[0].id
        assert result.comments[0].user == "bob"

        result = await self.service.update_comment(
            db_session, created.id, comment_id, ContentUpdate(content="very nice"), bob
        )
        assert result.comments[0].content == "very nice"

        with pytest.raises(NotFoundError):
            await self.service.delete_comment(db_session, created.id, comment_id, alice)

        result = await self.service.delete_comment(db_session, created.id, comment_id, bob)
        assert result.comments == []

    @pytest.mark.asyncio
    async def test_strict_ownership_rejects_foreign_comment_update(self, db_session, alice, bob):
        created = await self.service.create_question(db_session, QuestionCreate(title="t"), alice)
        result = await self.service.add_comment(
            db_session, created.id, CommentCreate(content="alice says"), alice
        )
        comment_id = result.comments[0].id
        strict = QuestionService(strict_embedded_ownership=True)

        with pytest.raises(NotFoundError):
            await strict.update_comment(
                db_session, created.id, comment_id, ContentUpdate(content="bob says"), bob
            )

        unchanged = await self.service.get_question(db_session, created.id)
        assert unchanged.comments[0].content == "alice says"
        assert unchanged.comments[0].user == "alice"

    @pytest.mark.asyncio
    async def test_answer_comment_update_matches_id_and_owner(self, db_session, alice, bob):
        created = await self.service.create_question(db_session, QuestionCreate(title="t"), alice)
        result = await self.service.add_answer(db_session, created.id, AnswerCreate(content="a"), alice)
        answer_id = result.answers[0].id
        await self.service.add_answer_comment(
            db_session, created.id, answer_id, CommentCreate(content="from bob"), bob
        )
        result = await self.service.add_answer_comment(
            db_session, created.id, answer_id, CommentCreate(content="from alice"), alice
        )
        bob_comment, alice_comment = result.answers[0].comments

        with pytest.raises(NotFoundError):
            await self.service.update_answer_comment(
                db_session, created.id, answer_id, bob_comment.id, ContentUpdate(content="x"), alice
            )

        result = await self.service.update_answer_comment(
            db_session, created.id, answer_id, alice_comment.id, ContentUpdate(content="edited"), alice
        )
        comments = result.answers[0].comments
        assert [c.content for c in comments] == ["from bob", "edited"]
        assert comments[1].user == "alice"

    @pytest.mark.asyncio
    async def test_answer_comment_delete(self, db_session, alice):
        created = await self.service.create_question(db_session, QuestionCreate(title="t"), alice)
        result = await self.service.add_answer(db_session, created.id, AnswerCreate(content="a"), alice)
        answer_id = result.answers[0].id
        result = await self.service.add_answer_comment(
            db_session, created.id, answer_id, CommentCreate(content="c"), alice
        )
        comment_id = result.answers[0].comments[0].id

        result = await self.service.delete_answer_comment(
            db_session, created.id, answer_id, comment_id, alice
        )

        assert result.answers[0].comments == []
        assert result.answers[0].content == "a"

    @pytest.mark.asyncio
    async def test_add_comment_to_missing_answer(self, db_session, alice):
        created = await self.service.create_question(db_session, QuestionCreate(title="t"), alice)

        with pytest.raises(NotFoundError):
            await self.service.add_answer_comment(
                db_session, created.id, "missing", CommentCreate(content="c"), alice
            )


class TestVersioning:
    """The version column makes a write based on a stale read fail."""

    @pytest.mark.asyncio
    async def test_stale_write_is_rejected(self, session_factory, alice):
        service = QuestionService()
        async with session_factory() as setup:
            created = await service.create_question(setup, QuestionCreate(title="t"), alice)
            await setup.commit()

        async with session_factory() as reader, session_factory() as writer:
            stale = await reader.get(Question, created.id)
            fresh = await writer.get(Question, created.id)

            fresh.title = "writer wins"
            await writer.commit()

            stale.title = "reader loses"
            with pytest.raises(StaleDataError):
                await reader.flush()
