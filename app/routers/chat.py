"""
Chat assistant endpoints.
"""

from fastapi import APIRouter, Depends

from app.schemas.chat import ChatQuestion, ChatAnswer
from app.schemas.common import APIResponse, envelope
from app.services.chat import ChatService
from app.services.error_handler import error_responses
from app.utils.dependencies import get_chat_service


router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post(
    "",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Ask the assistant",
    description="Classifies the question and answers from listings, agencies or canned replies",
    responses=error_responses(400, 503)
)
async def smart_ask(
    data: ChatQuestion,
    chat_service: ChatService = Depends(get_chat_service)
) -> APIResponse:
    answer = await chat_service.smart_ask(data.question)
    return envelope(ChatAnswer(answer=answer).model_dump())


@router.post(
    "/properties",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Ask about properties",
    responses=error_responses(400, 503)
)
async def ask_properties(
    data: ChatQuestion,
    chat_service: ChatService = Depends(get_chat_service)
) -> APIResponse:
    answer = await chat_service.ask_properties(data.question)
    return envelope(ChatAnswer(answer=answer).model_dump())


@router.post(
    "/agencies",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Ask about agencies",
    responses=error_responses(400, 503)
)
async def ask_agencies(
    data: ChatQuestion,
    chat_service: ChatService = Depends(get_chat_service)
) -> APIResponse:
    answer = await chat_service.ask_agencies(data.question)
    return envelope(ChatAnswer(answer=answer).model_dump())
