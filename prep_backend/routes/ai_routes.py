import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import field_validator

from prep_backend.ai.client import AIProviderError, AIResponseFormatError, GeminiClient
from prep_backend.ai.prompts import concept_explain_prompt, question_answer_prompt
from prep_backend.auth.dependencies import get_current_user
from prep_backend.core.schemas import CamelModel
from prep_backend.models.user import User

router = APIRouter(tags=["ai"])

logger = logging.getLogger(__name__)


class GenerateQuestionsRequest(CamelModel):
    role: str | None = None
    experience: str | None = None
    topics_to_focus: str | None = None
    number_of_questions: int | None = None

    @field_validator("role", "experience", "topics_to_focus", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class GenerateExplanationRequest(CamelModel):
    question: str | None = None


class GeneratedQuestionsResponse(CamelModel):
    questions: list[Any]


def get_ai_client(request: Request) -> GeminiClient:
    return request.app.state.ai_client


def generate_interview_questions(
    ai_client: GeminiClient,
    role: str,
    experience: str,
    topics_to_focus: str,
    number_of_questions: int,
) -> list[Any]:
    prompt = question_answer_prompt(role, experience, topics_to_focus, number_of_questions)
    try:
        data = ai_client.generate_json(prompt)
    except AIResponseFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Invalid JSON from AI", "error": str(exc)},
        ) from exc
    except AIProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to generate questions", "error": str(exc)},
        ) from exc

    if not isinstance(data, list) or not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Questions not generated properly.")
    return data


def explain_concept(ai_client: GeminiClient, question: str) -> Any:
    try:
        return ai_client.generate_json(concept_explain_prompt(question))
    except (AIProviderError, AIResponseFormatError) as exc:
        logger.error("Failed to generate explanation: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to generate explanation", "error": str(exc)},
        ) from exc


@router.post("/generate-questions", response_model=GeneratedQuestionsResponse)
def generate_questions(
    data: GenerateQuestionsRequest,
    current_user: User = Depends(get_current_user),
    ai_client: GeminiClient = Depends(get_ai_client),
):
    if not data.role or not data.experience or not data.topics_to_focus or not data.number_of_questions:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    logger.info("Generating %s questions for user %s", data.number_of_questions, current_user.id)
    questions = generate_interview_questions(
        ai_client,
        data.role,
        data.experience,
        data.topics_to_focus,
        data.number_of_questions,
    )
    return GeneratedQuestionsResponse(questions=questions)


@router.post("/generate-explanation")
def generate_explanation(
    data: GenerateExplanationRequest,
    current_user: User = Depends(get_current_user),
    ai_client: GeminiClient = Depends(get_ai_client),
):
    if not data.question:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Required field is missing")

    return explain_concept(ai_client, data.question)
