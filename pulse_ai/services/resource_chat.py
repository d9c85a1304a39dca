"""Employee chat grounded in the company knowledge base.

Flow for one request:

1. Render the chat prompt (persona, tone, history transcript, question).
2. Ask the primary model with the ``getKnowledgeBase`` tool bound; if that
   raises, back off and ask the lighter fallback model. When both fail the
   user gets ``CHAT_BUSY_MESSAGE``.
3. If the answer is empty or is the canonical refusal sentence, ask the
   content generator for a short draft and label it as such. If that fails
   too, return the refusal sentence.

The service is stateless: history is replayed by the caller on every call.
"""

from __future__ import annotations

import json
import logging
import string

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.tools import BaseTool

from pulse_ai.core.config import settings
from pulse_ai.core.errors import ContentGenerationError, ResourceStoreError
from pulse_ai.schemas.chat import ChatRequest, ChatResponse
from pulse_ai.services.content_generator import ContentGenerator
from pulse_ai.services.history_mapper import render_history
from pulse_ai.services.knowledge_tool import build_knowledge_base_tool
from pulse_ai.services.llm import ModelFactory, build_chat_model, message_text, model_chain
from pulse_ai.services.resource_store import ResourceStore, get_resource_store
from pulse_ai.services.retry_policy import run_attempts

logger = logging.getLogger(__name__)

NO_INFORMATION_ANSWER = "I do not have information on that topic."
CHAT_BUSY_MESSAGE = "The AI service is busy right now. Please try again in a moment."
DRAFT_DISCLAIMER = "I couldn't find this in the library, so here's a short draft you can use and refine:"

_NO_INFORMATION_KEY = "i do not have information on that topic"
_TRAILING_NOISE = string.punctuation + string.whitespace

CHAT_SYSTEM_PROMPT = (
    "You are a friendly, professional AI assistant for employees.\n"
    "Your primary goal is to help with questions about the company's internal resources.\n\n"
    "Style:\n"
    "- Be concise, supportive, and clear. Prefer short paragraphs and bullet points.\n"
    "- Keep a helpful tone, avoid jargon, and include tiny actionable tips when useful.\n\n"
    "Tone preference from the user: {tone}\n"
    "When tone = 'hinglish', you may mix simple Hindi/English phrases lightly "
    "(e.g., \"Chaliye shuru karte hain\"), while keeping it professional.\n"
    "When tone = 'formal', keep responses crisp, polite, and business-like.\n\n"
    "Scope:\n"
    "- Answer using ONLY the knowledge base via the getKnowledgeBase tool.\n"
    "- If the knowledge base does not contain the answer, reply exactly: "
    "\"I do not have information on that topic.\"\n"
    "- Do not fabricate information."
)

CHAT_HUMAN_PROMPT = (
    "This is the conversation history so far:\n"
    "{history}\n\n"
    "This is the user's latest question:\n"
    "\"{question}\"\n\n"
    "Answer the user's question based on the provided resources."
)

DRAFT_PROMPT = (
    "Write a short, {tone} draft to help the employee with this request. "
    "Keep it on-brand and concise (5-8 lines max). "
    "If it's a script/template, include placeholders like [Name], [Company]. "
    "If tone is 'hinglish', mix simple Hindi/English phrases lightly while remaining professional.\n\n"
    "Employee question: {question}"
)


def is_grounding_miss(answer: str | None) -> bool:
    """True for empty answers and for the refusal sentence in any casing/punctuation."""
    normalized = (answer or "").strip().strip("\"'").rstrip(_TRAILING_NOISE)
    return not normalized or normalized.lower() == _NO_INFORMATION_KEY


def build_chat_messages(request: ChatRequest) -> list[BaseMessage]:
    prompt = ChatPromptTemplate.from_messages([
        ("system", CHAT_SYSTEM_PROMPT),
        ("human", CHAT_HUMAN_PROMPT),
    ])
    return prompt.format_messages(
        tone=request.tone,
        history=render_history(request.history) or "(no previous messages)",
        question=request.question,
    )


class ResourceChatService:
    def __init__(
        self,
        store: ResourceStore,
        generator: ContentGenerator,
        model_factory: ModelFactory = build_chat_model,
        models: list[str] | None = None,
        base_delay: float | None = None,
        max_tool_rounds: int | None = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.model_factory = model_factory
        self.models = models or model_chain()
        self.base_delay = settings.CHAT_RETRY_BASE_DELAY_SEC if base_delay is None else base_delay
        self.max_tool_rounds = (
            settings.CHAT_MAX_TOOL_ROUNDS if max_tool_rounds is None else max_tool_rounds
        )

    async def _run_tools(self, response: AIMessage, tool: BaseTool) -> list[ToolMessage]:
        messages = []
        for tool_call in response.tool_calls:
            logger.info("[Agent Decision] model requested tool=%s", tool_call["name"])
            if tool_call["name"] == tool.name:
                result = await tool.ainvoke(tool_call.get("args") or {})
                content = json.dumps(result, ensure_ascii=False)
            else:
                content = json.dumps({"error": f"Unknown tool '{tool_call['name']}'"})
            messages.append(ToolMessage(content=content, tool_call_id=tool_call["id"]))
        return messages

    async def _ask_model(self, model_name: str, messages: list[BaseMessage]) -> str:
        tool = build_knowledge_base_tool(self.store)
        llm = self.model_factory(model_name).bind_tools([tool])
        conversation = list(messages)

        response: AIMessage = await llm.ainvoke(conversation)
        rounds = 0
        while response.tool_calls and rounds < self.max_tool_rounds:
            conversation.append(response)
            conversation.extend(await self._run_tools(response, tool))
            response = await llm.ainvoke(conversation)
            rounds += 1

        if response.tool_calls:
            logger.warning("[ResourceChat] model=%s still calling tools after %d rounds", model_name, rounds)
        answer = message_text(response)
        logger.info("[ResourceChat] model=%s answered %d chars", model_name, len(answer))
        return answer

    async def _draft_answer(self, request: ChatRequest) -> str:
        prompt = DRAFT_PROMPT.format(tone=request.tone, question=request.question)
        try:
            draft = (await self.generator.generate(prompt)).strip()
        except ContentGenerationError:
            logger.warning("[ResourceChat] draft generation failed, returning refusal")
            return NO_INFORMATION_ANSWER
        if not draft:
            return NO_INFORMATION_ANSWER
        return f"{DRAFT_DISCLAIMER}\n\n{draft}"

    async def answer(self, request: ChatRequest) -> ChatResponse:
        messages = build_chat_messages(request)
        attempts = [
            lambda m=model_name: self._ask_model(m, messages) for model_name in self.models
        ]
        try:
            answer = await run_attempts(
                attempts,
                self.base_delay,
                # store failures end the sequence, only model failures fall back
                should_retry=lambda exc: not isinstance(exc, ResourceStoreError),
                label="chat_attempt",
            )
        except Exception as exc:
            logger.error("[ResourceChat] all model attempts failed: %s", exc)
            return ChatResponse(answer=CHAT_BUSY_MESSAGE)

        if is_grounding_miss(answer):
            logger.info("[ResourceChat] grounding miss, escalating to draft")
            answer = await self._draft_answer(request)

        return ChatResponse(answer=answer.strip())


def get_chat_service() -> ResourceChatService:
    return ResourceChatService(store=get_resource_store(), generator=ContentGenerator())
