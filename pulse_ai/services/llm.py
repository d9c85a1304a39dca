from __future__ import annotations

from typing import Callable

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from pulse_ai.core.config import settings

ModelFactory = Callable[[str], BaseChatModel]


def build_chat_model(model_name: str) -> BaseChatModel:
    return ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=settings.GEMINI_TEMPERATURE,
    )


def model_chain() -> list[str]:
    """Primary model first, then the lighter fallback."""
    return [settings.GEMINI_CHAT_MODEL, settings.GEMINI_FALLBACK_MODEL]


def message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        text = ""
        for item in content:
            if isinstance(item, str):
                text += item
            elif isinstance(item, dict) and "text" in item:
                text += item["text"]
        return text
    return str(content)
