"""User feedback endpoint. Feedback is recorded in the application log."""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from gokaku.api.feedback.schemas import (
    MAX_MESSAGE_LENGTH,
    MAX_USER_AGENT_LENGTH,
    FeedbackReceipt,
    FeedbackRequest,
)
from gokaku.config.logger import app_logger
from gokaku.utils.responses import SuccessResponse, success_response

router = APIRouter(prefix="/v1", tags=["feedback"])


@router.post("/feedback", response_model=SuccessResponse[FeedbackReceipt])
async def submit_feedback(request: FeedbackRequest):
    """Record a short feedback message."""
    message = request.message.strip()[:MAX_MESSAGE_LENGTH]
    if not message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="empty")

    app_logger.info(
        "[feedback] {feedback}",
        feedback=message,
        ua=request.ua[:MAX_USER_AGENT_LENGTH],
        ts=datetime.now(timezone.utc).isoformat(),
    )
    return success_response(data=FeedbackReceipt(ok=True, length=len(message)), message="Feedback received")
