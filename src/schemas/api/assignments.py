from pydantic import BaseModel, Field


class ReminderRunResponse(BaseModel):
    success: bool = True
    sent: int = Field(0, description="Reminder notifications stored by this run")
