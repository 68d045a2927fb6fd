import logging

from fastapi import APIRouter, HTTPException

from src.dependencies import GenerationServiceDep
from src.schemas.api.flashcards import FlashcardsResponse, GenerateFlashcardsRequest
from src.schemas.api.quizzes import GenerateQuizRequest, QuizResponse
from src.schemas.generation import ContentType, GenerationError

router = APIRouter(prefix="/generate", tags=["generate"])
logger = logging.getLogger(__name__)


@router.post("/flashcards", response_model=FlashcardsResponse)
async def generate_flashcards(body: GenerateFlashcardsRequest, service: GenerationServiceDep):
    """Generate a deck's worth of flashcards from a free-text request."""
    try:
        result = await service.generate(
            ContentType.FLASHCARDS,
            prompt=body.prompt,
            count=body.num_cards,
            owner_id=body.user_id,
            target_id=body.deck_id,
        )
    except Exception as e:
        logger.error(f"Flashcard generation error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if isinstance(result, GenerationError):
        raise HTTPException(status_code=result.status_code, detail=result.error)
    return FlashcardsResponse(cards=result.items, count=result.count)


@router.post("/quizzes", response_model=QuizResponse)
async def generate_quiz(body: GenerateQuizRequest, service: GenerationServiceDep):
    """Generate open-ended quiz questions with model answers."""
    try:
        result = await service.generate(
            ContentType.QUIZ,
            prompt=body.prompt,
            count=body.num_questions,
            owner_id=body.user_id,
            target_id=body.quiz_id,
        )
    except Exception as e:
        logger.error(f"Quiz generation error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if isinstance(result, GenerationError):
        raise HTTPException(status_code=result.status_code, detail=result.error)
    return QuizResponse(questions=result.items, count=result.count)
