import asyncio

import pytest
from langchain_core.messages import HumanMessage, SystemMessage, ToolMessage

from conftest import FALLBACK, PRIMARY, answer_from_knowledge, tool_call_message
from pulse_ai.core.errors import ResourceStoreError
from pulse_ai.schemas.chat import ChatRequest, HistoryMessage
from pulse_ai.services.resource_chat import (
    CHAT_BUSY_MESSAGE,
    DRAFT_DISCLAIMER,
    NO_INFORMATION_ANSWER,
    build_chat_messages,
    is_grounding_miss,
)


def ask(service, question="What is our refund policy?", **kwargs):
    return asyncio.run(service.answer(ChatRequest(question=question, **kwargs))).answer


@pytest.mark.parametrize(
    "answer",
    [
        "I do not have information on that topic.",
        "i do not have information on that topic",
        "I DO NOT HAVE INFORMATION ON THAT TOPIC.",
        "  I do Not Have Information On That Topic.  ",
        '"I do not have information on that topic."',
        "",
        "   ",
        None,
    ],
)
def test_grounding_miss_detected(answer):
    assert is_grounding_miss(answer)


@pytest.mark.parametrize(
    "answer",
    [
        "Refunds are issued within 14 days.",
        "I do not have information on that topic, but here is a tip.",
    ],
)
def test_real_answers_are_not_grounding_misses(answer):
    assert not is_grounding_miss(answer)


def test_prompt_embeds_tone_history_and_question():
    request = ChatRequest(
        history=[
            HistoryMessage(role="user", content="Hi"),
            HistoryMessage(role="model", content="Hello! How can I help?"),
        ],
        question="Where is the cold call script?",
        tone="hinglish",
    )
    system, human = build_chat_messages(request)
    assert isinstance(system, SystemMessage)
    assert isinstance(human, HumanMessage)
    assert "Tone preference from the user: hinglish" in system.content
    assert '"I do not have information on that topic."' in system.content
    assert "- user: Hi\n- model: Hello! How can I help?" in human.content
    assert '"Where is the cold call script?"' in human.content


def test_tone_defaults_to_friendly():
    implicit = ChatRequest(question="Q")
    explicit = ChatRequest(question="Q", tone="friendly")
    assert implicit.tone == "friendly"
    assert build_chat_messages(implicit) == build_chat_messages(explicit)


def test_grounded_answer_from_knowledge_base(make_chat_service, chat_models, refund_store):
    primary = chat_models.script(PRIMARY, tool_call_message(), answer_from_knowledge("Refund Policy"))
    answer = ask(make_chat_service(refund_store))

    assert answer == "Refunds are issued within 14 days of purchase."
    assert [t.name for t in primary.bound_tools] == ["getKnowledgeBase"]
    tool_messages = [m for m in primary.calls[1] if isinstance(m, ToolMessage)]
    assert len(tool_messages) == 1
    assert "Refund Policy" in tool_messages[0].content
    assert FALLBACK not in chat_models.models


def test_answer_is_trimmed(make_chat_service, chat_models, store):
    chat_models.script(PRIMARY, "  Use the Follow-Up template.  \n")
    assert ask(make_chat_service(store)) == "Use the Follow-Up template."


def test_primary_failure_retries_once_on_fallback(make_chat_service, chat_models, refund_store):
    chat_models.script(PRIMARY, RuntimeError("503 overloaded"))
    fallback = chat_models.script(
        FALLBACK, tool_call_message(), answer_from_knowledge("Refund Policy")
    )
    answer = ask(make_chat_service(refund_store))

    assert answer == "Refunds are issued within 14 days of purchase."
    assert len(chat_models.models[PRIMARY].calls) == 1
    assert len(fallback.calls) == 2


def test_both_models_failing_returns_busy_message(
    make_chat_service, chat_models, generation_models, store
):
    chat_models.script(PRIMARY, RuntimeError("503"))
    chat_models.script(FALLBACK, RuntimeError("503"))

    answer = ask(make_chat_service(store))

    assert answer == CHAT_BUSY_MESSAGE
    assert len(chat_models.models[PRIMARY].calls) == 1
    assert len(chat_models.models[FALLBACK].calls) == 1
    assert generation_models.models == {}


def test_grounding_miss_escalates_to_labelled_draft(
    make_chat_service, chat_models, generation_models, store
):
    chat_models.script(PRIMARY, tool_call_message(), answer_from_knowledge("Refund Policy"))
    drafter = generation_models.script(PRIMARY, "```text\nRefunds: contact [Name] at [Company].\n```")

    answer = ask(make_chat_service(store), tone="formal")

    assert answer.startswith(DRAFT_DISCLAIMER)
    assert answer.endswith("Refunds: contact [Name] at [Company].")
    draft_prompt = drafter.calls[0][-1].content
    assert "Write a short, formal draft" in draft_prompt
    assert "Employee question: What is our refund policy?" in draft_prompt


@pytest.mark.parametrize("model_answer", ["", "   ", "I do not have information on that topic"])
def test_empty_or_refusal_answers_trigger_draft(
    make_chat_service, chat_models, generation_models, store, model_answer
):
    chat_models.script(PRIMARY, model_answer)
    generation_models.script(PRIMARY, "Draft body")

    answer = ask(make_chat_service(store))

    assert DRAFT_DISCLAIMER in answer


def test_draft_uses_fallback_generation_model(
    make_chat_service, chat_models, generation_models, store
):
    chat_models.script(PRIMARY, NO_INFORMATION_ANSWER)
    generation_models.script(PRIMARY, RuntimeError("503"))
    fallback = generation_models.script(FALLBACK, "Lighter draft")

    answer = ask(make_chat_service(store))

    assert answer == f"{DRAFT_DISCLAIMER}\n\nLighter draft"
    assert "STRICT OUTPUT RULES" in fallback.calls[0][-1].content


def test_failed_draft_returns_refusal_sentence(
    make_chat_service, chat_models, generation_models, store
):
    chat_models.script(PRIMARY, NO_INFORMATION_ANSWER)
    generation_models.script(PRIMARY, RuntimeError("503"))
    generation_models.script(FALLBACK, RuntimeError("503"))

    assert ask(make_chat_service(store)) == NO_INFORMATION_ANSWER


def test_empty_draft_returns_refusal_sentence(
    make_chat_service, chat_models, generation_models, store
):
    chat_models.script(PRIMARY, NO_INFORMATION_ANSWER)
    generation_models.script(PRIMARY, "   ")

    assert ask(make_chat_service(store)) == NO_INFORMATION_ANSWER


def test_unmatched_question_never_returns_empty(
    make_chat_service, chat_models, generation_models, store
):
    chat_models.script(PRIMARY, tool_call_message(), answer_from_knowledge("Refund Policy"))
    generation_models.script(PRIMARY, RuntimeError("503"))
    generation_models.script(FALLBACK, "Here is a refund note.")

    answer = ask(make_chat_service(store), history=[])

    assert answer
    assert answer == NO_INFORMATION_ANSWER or answer.startswith(DRAFT_DISCLAIMER)


class BrokenStore:
    backend = "broken"

    async def list_resources(self):
        raise ResourceStoreError("redis down")


def test_store_failure_skips_model_fallback(make_chat_service, chat_models):
    chat_models.script(PRIMARY, tool_call_message())
    chat_models.script(FALLBACK, "should not be used")

    answer = ask(make_chat_service(BrokenStore()))

    assert answer == CHAT_BUSY_MESSAGE
    assert chat_models.models[FALLBACK].calls == []


def test_tool_rounds_are_bounded(make_chat_service, chat_models, generation_models, refund_store):
    service = make_chat_service(refund_store)
    service.max_tool_rounds = 2
    primary = chat_models.script(PRIMARY, *[tool_call_message(f"c{i}") for i in range(3)])
    generation_models.script(PRIMARY, "Draft")

    answer = ask(service)

    assert len(primary.calls) == 3
    assert answer.startswith(DRAFT_DISCLAIMER)
