"""
AskBoard Backend: Question Route Handlers
==========================================

What:  HTTP surface of the question resource and its nested answers/comments.
How:   Each handler extracts path params and body, calls one QuestionService
       method, and returns its result. Errors are raised as AskBoardError
       subclasses and turned into responses by the handlers in main.py.

Route Inventory (Rails-style naming):
    GET     /api/questions                                   → list
    POST    /api/questions                                   → create (201)
    GET     /api/questions/{id}                              → show
    PUT     /api/questions/{id}                              → update
    DELETE  /api/questions/{id}                              → destroy (204)
    POST    /api/questions/{id}/answers                      → add answer
    PUT     /api/questions/{id}/answers/{answer_id}          → update answer
    DELETE  /api/questions/{id}/answers/{answer_id}          → delete answer
    POST    /api/questions/{id}/comments                     → add comment
    PUT     /api/questions/{id}/comments/{comment_id}        → update comment
    DELETE  /api/questions/{id}/comments/{comment_id}        → delete comment
    POST    /api/questions/{id}/answers/{answer_id}/comments              → add
    PUT     /api/questions/{id}/answers/{answer_id}/comments/{comment_id} → update
    DELETE  /api/questions/{id}/answers/{answer_id}/comments/{comment_id} → delete

Every nested operation answers 200 with the full, re-read question.
Question ids are UUIDs; a malformed one is rejected by FastAPI with 422.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from askboard.database import get_db_session
from askboard.schemas.question import (
    AnswerCreate,
    CommentCreate,
    ContentUpdate,
    ErrorResponse,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
)
from askboard.security import CurrentUser, get_current_user
from askboard.services.question_service import question_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/questions", tags=["Questions"])

NOT_FOUND = {404: {"description": "Question, answer or comment not found (empty body)"}}
FORBIDDEN = {403: {"description": "Acting user does not own the question (empty body)"}}
UNAUTHORIZED = {401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}}
SERVER_ERROR = {500: {"description": "Store error", "model": ErrorResponse}}


# ══════════════════════════════════════════════════════════════════════════
# Questions
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "",
    response_model=List[QuestionResponse],
    responses={**SERVER_ERROR},
    summary="List the most recent questions",
)
async def list_questions(
    db: AsyncSession = Depends(get_db_session),
) -> List[QuestionResponse]:
    """At most 20 questions (QUESTION_LIST_LIMIT), newest first."""
    return await question_service.list_questions(db)


@router.get(
    "/{question_id}",
    response_model=QuestionResponse,
    responses={**NOT_FOUND, **SERVER_ERROR},
    summary="Get a single question",
)
async def show_question(
    question_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    return await question_service.get_question(db, question_id)


@router.post(
    "",
    status_code=201,
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **SERVER_ERROR},
    summary="Create a question owned by the acting user",
)
async def create_question(
    payload: QuestionCreate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.create_question(db, payload, user)


@router.put(
    "/{question_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **FORBIDDEN, **NOT_FOUND, **SERVER_ERROR},
    summary="Update fields of a question you own",
)
async def update_question(
    question_id: UUID,
    payload: QuestionUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.update_question(db, question_id, payload, user)


@router.delete(
    "/{question_id}",
    status_code=204,
    response_class=Response,
    responses={**UNAUTHORIZED, **FORBIDDEN, **NOT_FOUND, **SERVER_ERROR},
    summary="Delete a question you own",
)
async def destroy_question(
    question_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    await question_service.delete_question(db, question_id, user)
    return Response(status_code=204)


# ══════════════════════════════════════════════════════════════════════════
# Answers
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/{question_id}/answers",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Append an answer",
)
async def create_answer(
    question_id: UUID,
    payload: AnswerCreate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.add_answer(db, question_id, payload, user)


@router.put(
    "/{question_id}/answers/{answer_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Replace an answer's content",
)
async def update_answer(
    question_id: UUID,
    answer_id: str,
    payload: ContentUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.update_answer(db, question_id, answer_id, payload, user)


@router.delete(
    "/{question_id}/answers/{answer_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Delete one of your answers",
)
async def destroy_answer(
    question_id: UUID,
    answer_id: str,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.delete_answer(db, question_id, answer_id, user)


# ══════════════════════════════════════════════════════════════════════════
# Comments on the question
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/{question_id}/comments",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Comment on a question",
)
async def create_comment(
    question_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.add_comment(db, question_id, payload, user)


@router.put(
    "/{question_id}/comments/{comment_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Replace a question comment's content",
)
async def update_comment(
    question_id: UUID,
    comment_id: str,
    payload: ContentUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.update_comment(db, question_id, comment_id, payload, user)


@router.delete(
    "/{question_id}/comments/{comment_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Delete one of your question comments",
)
async def destroy_comment(
    question_id: UUID,
    comment_id: str,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.delete_comment(db, question_id, comment_id, user)


# ══════════════════════════════════════════════════════════════════════════
# Comments on an answer
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/{question_id}/answers/{answer_id}/comments",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Comment on an answer",
)
async def create_answer_comment(
    question_id: UUID,
    answer_id: str,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.add_answer_comment(db, question_id, answer_id, payload, user)


@router.put(
    "/{question_id}/answers/{answer_id}/comments/{comment_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Replace the content of one of your comments on an answer",
)
async def update_answer_comment(
    question_id: UUID,
    answer_id: str,
    comment_id: str,
    payload: ContentUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.update_answer_comment(
        db, question_id, answer_id, comment_id, payload, user
    )


@router.delete(
    "/{question_id}/answers/{answer_id}/comments/{comment_id}",
    response_model=QuestionResponse,
    responses={**UNAUTHORIZED, **NOT_FOUND, **SERVER_ERROR},
    summary="Delete one of your comments on an answer",
)
async def destroy_answer_comment(
    question_id: UUID,
    answer_id: str,
    comment_id: str,
    db: AsyncSession = Depends(get_db_session),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionResponse:
    return await question_service.delete_answer_comment(
        db, question_id, answer_id, comment_id, user
    )
