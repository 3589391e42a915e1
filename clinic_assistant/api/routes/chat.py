"""Chat endpoint: one message in, one reply envelope out."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from clinic_assistant.api.dependencies import get_conversational_router, get_patient_id
from clinic_assistant.assistant import ConversationalRouter, Reply

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    text: str


@router.post("/chat", response_model=Reply)
async def chat(
    body: ChatRequest,
    patient_id: Optional[str] = Depends(get_patient_id),
    assistant: ConversationalRouter = Depends(get_conversational_router),
) -> Reply:
    """Classify the message and return the routed reply."""
    text = body.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Mesaj boş olamaz.")

    return await assistant.handle(text, patient_id=patient_id)
