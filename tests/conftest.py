import json
import os
from collections.abc import Generator
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ["RESOURCE_STORE_BACKEND"] = "memory"
os.environ["CHAT_RETRY_BASE_DELAY_SEC"] = "0"
os.environ["LOG_JSON"] = "false"

from pulse_ai.main import app  # noqa: E402
from pulse_ai.schemas.resource import Resource  # noqa: E402
from pulse_ai.services.content_generator import ContentGenerator  # noqa: E402
from pulse_ai.services.resource_chat import NO_INFORMATION_ANSWER, ResourceChatService  # noqa: E402
from pulse_ai.services.resource_store import InMemoryResourceStore  # noqa: E402

PRIMARY = "primary-model"
FALLBACK = "fallback-model"


class ScriptedChatModel(BaseChatModel):
    """Chat model replaying a script: strings, AIMessages, exceptions or callables."""

    script: list = Field(default_factory=list)
    calls: list = Field(default_factory=list)
    bound_tools: list = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.calls.append(list(messages))
        if not self.script:
            raise RuntimeError("script exhausted")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            step = step(messages)
        if isinstance(step, str):
            step = AIMessage(content=step)
        return ChatResult(generations=[ChatGeneration(message=step)])

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self


def tool_call_message(call_id: str = "call-1") -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[{"name": "getKnowledgeBase", "args": {}, "id": call_id}],
    )


def answer_from_knowledge(title: str) -> Callable[[list[BaseMessage]], AIMessage]:
    """Answer with the content of the resource titled ``title`` or refuse."""

    def _answer(messages: list[BaseMessage]) -> AIMessage:
        for message in messages:
            if isinstance(message, ToolMessage):
                for entry in json.loads(message.content):
                    if entry["title"] == title:
                        return AIMessage(content=entry["content"])
        return AIMessage(content=NO_INFORMATION_ANSWER)

    return _answer


class ModelBank:
    def __init__(self) -> None:
        self.models: dict[str, ScriptedChatModel] = {}

    def script(self, model_name: str, *steps: Any) -> ScriptedChatModel:
        model = self.models.setdefault(model_name, ScriptedChatModel())
        model.script.extend(steps)
        return model

    def __call__(self, model_name: str) -> ScriptedChatModel:
        return self.models.setdefault(model_name, ScriptedChatModel())


@pytest.fixture()
def chat_models() -> ModelBank:
    return ModelBank()


@pytest.fixture()
def generation_models() -> ModelBank:
    return ModelBank()


@pytest.fixture()
def store() -> InMemoryResourceStore:
    return InMemoryResourceStore()


@pytest.fixture()
def refund_store() -> InMemoryResourceStore:
    return InMemoryResourceStore([
        Resource(
            id="r1",
            category="Policies",
            title="Refund Policy",
            content="Refunds are issued within 14 days of purchase.",
        ),
        Resource(
            id="r2",
            category="Email Templates",
            title="Follow-Up",
            content="Hi [Name], just following up on our call.",
        ),
    ])


@pytest.fixture()
def generator(generation_models: ModelBank) -> ContentGenerator:
    return ContentGenerator(model_factory=generation_models, models=[PRIMARY, FALLBACK], base_delay=0)


@pytest.fixture()
def make_chat_service(chat_models: ModelBank, generator: ContentGenerator):
    def _make(store) -> ResourceChatService:
        return ResourceChatService(
            store=store,
            generator=generator,
            model_factory=chat_models,
            models=[PRIMARY, FALLBACK],
            base_delay=0,
        )

    return _make


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
