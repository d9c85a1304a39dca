from pydantic import BaseModel, Field
from typing import List, Literal

Tone = Literal["friendly", "formal", "hinglish"]


class HistoryMessage(BaseModel):
    role: Literal["user", "model"]
    content: str


class ChatRequest(BaseModel):
    history: List[HistoryMessage] = Field(default_factory=list)
    question: str = Field(..., description="The employee's question about company resources.")
    tone: Tone = "friendly"


class ChatResponse(BaseModel):
    answer: str
