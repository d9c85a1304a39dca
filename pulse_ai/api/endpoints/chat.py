from fastapi import APIRouter, Depends

from pulse_ai.schemas.chat import ChatRequest, ChatResponse
from pulse_ai.schemas.resource import GenerateContentRequest, GenerateContentResponse
from pulse_ai.services.content_generator import ContentGenerator, get_content_generator
from pulse_ai.services.resource_chat import ResourceChatService, get_chat_service

router = APIRouter()


@router.post("/chat/resource", response_model=ChatResponse)
async def resource_chat(
    request: ChatRequest,
    service: ResourceChatService = Depends(get_chat_service),
):
    return await service.answer(request)


@router.post("/content/generate", response_model=GenerateContentResponse)
async def generate_content(
    request: GenerateContentRequest,
    generator: ContentGenerator = Depends(get_content_generator),
):
    return await generator.generate_resource_content(request.prompt)
