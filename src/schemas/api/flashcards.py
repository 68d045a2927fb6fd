from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from src.schemas.generation import Flashcard


class GenerateFlashcardsRequest(BaseModel):
    """Body for flashcard generation; fields are checked in order by the service."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "prompt": "Photosynthesis: light and dark reactions",
                "numCards": 10,
                "deckId": "b7c0a4e2-5d1e-4b0f-9c53-0d4c0b5f7a11",
                "userId": "3f9a2c1e-0e77-4c9b-8a3b-52a1f9e6d2c4",
            }
        },
    )

    prompt: Optional[str] = Field(None, description="Free-text description of what to study")
    num_cards: Optional[Any] = Field(None, alias="numCards", description="Requested card count (5-50)")
    deck_id: Optional[str] = Field(None, alias="deckId", description="Deck the cards will be stored in")
    user_id: Optional[str] = Field(None, alias="userId", description="Owner of the deck")


class FlashcardsResponse(BaseModel):
    success: bool = True
    cards: List[Flashcard]
    count: int
