from pydantic import BaseModel, Field
from typing import Optional


class KnowledgeEntry(BaseModel):
    """What the knowledge-base tool hands to the model: no ids, just the text."""

    category: str
    title: str
    content: str


class Resource(KnowledgeEntry):
    id: str

    def to_knowledge(self) -> KnowledgeEntry:
        return KnowledgeEntry(category=self.category, title=self.title, content=self.content)


class ResourceCreate(BaseModel):
    category: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class ResourceUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None


class ResourceUpsertResponse(BaseModel):
    resource: Resource
    created: bool


class GenerateContentRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class GenerateContentResponse(BaseModel):
    content: str
