from __future__ import annotations

import json
import logging
from typing import Union

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from starquiz.core.dependencies import get_question_generator
from starquiz.schemas.quiz import ChatRequest, GuideResponse, QuizResponse
from starquiz.services.question_generator import QuestionGenerator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quiz"])

GUIDE_TEXT = "Press a quiz button to start!"
RULE_TEXT = "In quiz mode, just reply with the choice number (1-N) to be graded."


async def _read_chat_request(request: Request) -> ChatRequest:
    """Parse the body leniently; anything unusable means a random quiz."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ChatRequest()
    if not isinstance(body, dict):
        return ChatRequest()
    try:
        return ChatRequest.model_validate(body)
    except ValidationError:
        return ChatRequest()


@router.post("/chat", response_model=Union[QuizResponse, GuideResponse])
async def chat(
    request: Request,
    generator: QuestionGenerator = Depends(get_question_generator),
) -> Union[QuizResponse, GuideResponse]:
    payload = await _read_chat_request(request)
    mode = (payload.mode or "random").strip().lower() or "random"
    logger.info("chat request mode=%s", mode)

    if mode == "chat":
        message = (payload.message or "").strip()
        if not message:
            return GuideResponse(type="guide", data=GUIDE_TEXT)
        return GuideResponse(type="rule", data=RULE_TEXT)

    question = generator.generate(mode)
    logger.debug("served %s question", question.category.value)
    return QuizResponse(data=question)
