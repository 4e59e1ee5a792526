import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from prep_backend.auth.dependencies import get_current_user
from prep_backend.core.schemas import CamelModel
from prep_backend.database import get_db
from prep_backend.models.interview_session import InterviewSession
from prep_backend.models.question import Question
from prep_backend.models.user import User

router = APIRouter(tags=["sessions"])

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = "Database unavailable. Verify DATABASE_URL."


class QuestionInput(CamelModel):
    question: str | None = None
    answer: str | None = None


class CreateSessionRequest(CamelModel):
    role: str | None = None
    experience: str | None = None
    topics_to_focus: str | None = None
    description: str | None = None
    questions: Any = None

    @field_validator("role", "experience", "topics_to_focus", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        # Clients send experience as a number as often as a string.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class QuestionResponse(CamelModel):
    id: int
    session_id: int
    question: str | None = None
    answer: str | None = None
    note: str | None = None
    is_pinned: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SessionResponse(CamelModel):
    id: int
    user_id: int
    role: str
    experience: str
    topics_to_focus: str
    description: str | None = None
    questions: list[QuestionResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SessionEnvelope(CamelModel):
    success: bool = True
    session: SessionResponse


class MessageResponse(CamelModel):
    success: bool = True
    message: str


def parse_question_inputs(questions: Any) -> list[QuestionInput]:
    if not isinstance(questions, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields or questions not provided as array",
        )
    parsed = []
    for item in questions:
        if not isinstance(item, dict):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Each question must be an object with question and answer",
            )
        try:
            parsed.append(QuestionInput.model_validate(item))
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "Each question must be an object with question and answer",
                    "error": [
                        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                        for error in exc.errors()
                    ],
                },
            ) from exc
    return parsed


def sort_questions(questions: list[Question]) -> list[Question]:
    """Pinned questions first, then newest first."""
    return sorted(
        questions,
        key=lambda q: (bool(q.is_pinned), q.created_at or datetime.min, q.id or 0),
        reverse=True,
    )


def to_session_response(interview_session: InterviewSession, sort_by_pin: bool = False) -> SessionResponse:
    response = SessionResponse.model_validate(interview_session)
    if sort_by_pin:
        ordered = sort_questions(list(interview_session.questions))
        response.questions = [QuestionResponse.model_validate(q) for q in ordered]
    return response


def load_owned_session(session_id: int, current_user: User, db: Session) -> InterviewSession:
    interview_session = (
        db.query(InterviewSession)
        .options(selectinload(InterviewSession.questions))
        .filter(InterviewSession.id == session_id)
        .first()
    )
    if interview_session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if interview_session.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return interview_session


@router.post("/create", response_model=SessionEnvelope, status_code=status.HTTP_201_CREATED)
def create_session(
    data: CreateSessionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not data.role or not data.experience or not data.topics_to_focus:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields or questions not provided as array",
        )
    question_inputs = parse_question_inputs(data.questions)

    try:
        interview_session = InterviewSession(
            user_id=current_user.id,
            role=data.role,
            experience=data.experience,
            topics_to_focus=data.topics_to_focus,
            description=data.description,
        )
        interview_session.questions = [
            Question(question=item.question, answer=item.answer) for item in question_inputs
        ]
        # Session and questions land in a single commit.
        db.add(interview_session)
        db.commit()
        db.refresh(interview_session)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Create session failed for user %s", current_user.id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    logger.info("Created session %s with %d questions", interview_session.id, len(question_inputs))
    return SessionEnvelope(session=to_session_response(interview_session))


@router.get("/my-sessions", response_model=list[SessionResponse])
def list_my_sessions(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        sessions = (
            db.query(InterviewSession)
            .options(selectinload(InterviewSession.questions))
            .filter(InterviewSession.user_id == current_user.id)
            .order_by(InterviewSession.created_at.desc(), InterviewSession.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Listing sessions failed for user %s", current_user.id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return [to_session_response(interview_session) for interview_session in sessions]


@router.get("/{session_id}", response_model=SessionEnvelope)
def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        interview_session = load_owned_session(session_id, current_user, db)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return SessionEnvelope(session=to_session_response(interview_session, sort_by_pin=True))


@router.delete("/{session_id}", response_model=MessageResponse)
def delete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        interview_session = load_owned_session(session_id, current_user, db)
        # Questions go with the session through the delete-orphan cascade.
        db.delete(interview_session)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Delete session %s failed", session_id)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    logger.info("Deleted session %s", session_id)
    return MessageResponse(message="Session deleted successfully")
