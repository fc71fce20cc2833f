"""Request and response schemas for user feedback."""

from pydantic import BaseModel, Field

MAX_MESSAGE_LENGTH = 500
MAX_USER_AGENT_LENGTH = 160


class FeedbackRequest(BaseModel):
    """Request schema for POST /v1/feedback."""

    message: str = Field(default="", description="Free-form feedback text (cut to 500 characters).")
    ua: str = Field(default="", description="Client user agent (cut to 160 characters).")


class FeedbackReceipt(BaseModel):
    ok: bool = True
    length: int = Field(..., ge=0, description="Length of the stored message.")
