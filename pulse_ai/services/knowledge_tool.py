from __future__ import annotations

import logging

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel

from pulse_ai.services.resource_store import ResourceStore

logger = logging.getLogger(__name__)

KNOWLEDGE_TOOL_NAME = "getKnowledgeBase"
KNOWLEDGE_TOOL_DESCRIPTION = (
    "Retrieves the list of all available company resources to answer user questions."
)


class _NoInput(BaseModel):
    pass


def build_knowledge_base_tool(store: ResourceStore) -> BaseTool:
    """Tool returning every stored resource as ``{category, title, content}``.

    Storage errors are not caught here; they reach the chat flow unchanged.
    """

    async def get_knowledge_base() -> list[dict]:
        resources = await store.list_resources()
        logger.info("[Agent Observation] knowledge base returned %d resources", len(resources))
        return [r.to_knowledge().model_dump() for r in resources]

    return StructuredTool.from_function(
        coroutine=get_knowledge_base,
        name=KNOWLEDGE_TOOL_NAME,
        description=KNOWLEDGE_TOOL_DESCRIPTION,
        args_schema=_NoInput,
    )
