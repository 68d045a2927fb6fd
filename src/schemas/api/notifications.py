from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendNotificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    to_user_id: str = Field(..., alias="toUserId", min_length=1)
    message: str = Field(..., min_length=1)
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class SendNotificationResponse(BaseModel):
    success: bool = True
