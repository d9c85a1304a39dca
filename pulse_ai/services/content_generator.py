"""Free-text content generation used for admin drafting and chat draft answers."""

from __future__ import annotations

import logging

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from pulse_ai.core.config import settings
from pulse_ai.core.errors import ContentGenerationError
from pulse_ai.schemas.resource import GenerateContentResponse
from pulse_ai.services.content_sanitizer import sanitize_content
from pulse_ai.services.llm import ModelFactory, build_chat_model, model_chain
from pulse_ai.services.retry_policy import run_attempts

logger = logging.getLogger(__name__)

GENERATION_BUSY_MESSAGE = "The AI service is busy right now. Please try again shortly."

BRAND_PERSONA = (
    "You are \"{assistant_name}\" for {company_name}.\n\n"
    "Identity and scope\n"
    "- Introduce yourself as the AI assistant of {company_name}.\n"
    "- Do not mention model providers or internal tooling.\n"
    "- Prioritize answers related to {company_name}'s services, processes, and resources.\n\n"
    "Tone & style\n"
    "- Professional, concise, supportive. Prefer short paragraphs and bullet points.\n"
    "- Use Hinglish only if the requested tone is 'hinglish'; otherwise English.\n"
    "- Avoid hype and vague claims. Provide concrete steps and examples.\n\n"
    "Default response format (adapt if needed)\n"
    "1) Title (one line)\n"
    "2) Key points (2-5 bullets)\n"
    "3) Details or plan (short paragraphs or checklist)\n"
    "4) Next steps"
)

_PRIMARY_INSTRUCTIONS = (
    "You are an expert content writer for a business development team.\n"
    "Generate resource content based on the following prompt.\n"
    "The content should be clear, concise, and professional. "
    "It could be an email template, a call script, or a guideline.\n\n"
    "Prompt: {prompt}\n\n"
    "Generate the content."
)

_FALLBACK_INSTRUCTIONS = (
    "You are an expert content writer for a business development team.\n"
    "Generate resource content based on the following prompt.\n"
    "The content should be clear, concise, and professional. "
    "It could be an email template, a call script, or a guideline.\n\n"
    "STRICT OUTPUT RULES:\n"
    "- Return ONLY plain text.\n"
    "- Do NOT return JSON.\n"
    "- Do NOT wrap in Markdown/code fences.\n"
    "- Keep placeholders like [Name], [Company] if relevant.\n\n"
    "Prompt: {prompt}\n\n"
    "Now output the content (plain text only)."
)


def _build_prompt(instructions: str) -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages([
        ("system", BRAND_PERSONA),
        ("human", instructions),
    ])


class ContentGenerator:
    def __init__(
        self,
        model_factory: ModelFactory = build_chat_model,
        models: list[str] | None = None,
        base_delay: float | None = None,
    ) -> None:
        self.model_factory = model_factory
        self.models = models or model_chain()
        self.base_delay = settings.CHAT_RETRY_BASE_DELAY_SEC if base_delay is None else base_delay

    async def _run(self, model_name: str, instructions: str, prompt: str) -> str:
        chain = _build_prompt(instructions) | self.model_factory(model_name) | StrOutputParser()
        raw = await chain.ainvoke({
            "assistant_name": settings.ASSISTANT_NAME,
            "company_name": settings.COMPANY_NAME,
            "prompt": prompt,
        })
        logger.info("[ContentGenerator] model=%s produced %d chars", model_name, len(raw))
        return sanitize_content(raw)

    async def generate(self, prompt: str) -> str:
        """Sanitized content from the first model that answers.

        Raises ContentGenerationError when every model fails.
        """
        attempts = []
        for i, model_name in enumerate(self.models):
            instructions = _PRIMARY_INSTRUCTIONS if i == 0 else _FALLBACK_INSTRUCTIONS
            attempts.append(
                lambda m=model_name, ins=instructions: self._run(m, ins, prompt)
            )
        try:
            return await run_attempts(attempts, self.base_delay, label="generation_attempt")
        except Exception as exc:
            raise ContentGenerationError("All generation models failed") from exc

    async def generate_resource_content(self, prompt: str) -> GenerateContentResponse:
        try:
            content = await self.generate(prompt)
        except ContentGenerationError as exc:
            logger.error("[ContentGenerator] giving up: %s", exc.__cause__)
            return GenerateContentResponse(content=GENERATION_BUSY_MESSAGE)
        return GenerateContentResponse(content=content)


def get_content_generator() -> ContentGenerator:
    return ContentGenerator()
