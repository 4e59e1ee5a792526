import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prep_backend.auth.dependencies import get_current_user
from prep_backend.core.schemas import CamelModel
from prep_backend.database import get_db
from prep_backend.models.interview_session import InterviewSession
from prep_backend.models.question import Question
from prep_backend.models.user import User
from prep_backend.routes.session_routes import (
    DATABASE_UNAVAILABLE,
    QuestionResponse,
    load_owned_session,
    parse_question_inputs,
)

router = APIRouter(tags=["questions"])

logger = logging.getLogger(__name__)


class AddQuestionsRequest(CamelModel):
    session_id: int | None = None
    questions: Any = None


class UpdateNoteRequest(CamelModel):
    note: str = ""


class QuestionEnvelope(CamelModel):
    success: bool = True
    question: QuestionResponse


def load_owned_question(question_id: int, current_user: User, db: Session) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    parent = db.get(InterviewSession, question.session_id)
    if parent is None or parent.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return question


@router.post("/add", response_model=list[QuestionResponse], status_code=status.HTTP_201_CREATED)
def add_questions_to_session(
    data: AddQuestionsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if data.session_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid input data")
    question_inputs = parse_question_inputs(data.questions)

    try:
        interview_session = load_owned_session(data.session_id, current_user, db)
        created = [Question(question=item.question, answer=item.answer) for item in question_inputs]
        interview_session.questions.extend(created)
        db.commit()
        for question in created:
            db.refresh(question)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Adding questions to session %s failed", data.session_id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return created


@router.post("/{question_id}/pin", response_model=QuestionEnvelope)
def toggle_pin(
    question_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        question = load_owned_question(question_id, current_user, db)
        question.is_pinned = not question.is_pinned
        db.commit()
        db.refresh(question)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return QuestionEnvelope(question=QuestionResponse.model_validate(question))


@router.post("/{question_id}/note", response_model=QuestionEnvelope)
def update_note(
    question_id: int,
    data: UpdateNoteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        question = load_owned_question(question_id, current_user, db)
        question.note = data.note
        db.commit()
        db.refresh(question)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return QuestionEnvelope(question=QuestionResponse.model_validate(question))
