import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from finstart.services.email import send_welcome_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["email"])


class EmailRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class EmailResponse(BaseModel):
    success: bool
    message: str


@router.post("/send", response_model=EmailResponse)
async def send_email(request: EmailRequest):
    """Send the onboarding welcome email."""
    if not request.name or not request.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and email are required"
        )

    try:
        # smtplib blocks, keep it off the event loop
        message = await asyncio.to_thread(send_welcome_email, request.name, request.email)
    except Exception as e:
        logger.error("Error sending email to %s: %s", request.email, e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to send email", "details": str(e)}
        )

    return EmailResponse(success=True, message=message)
