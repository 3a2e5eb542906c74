"""
Pydantic schemas for API request/response models.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from context.context_items import ContentItem, DocumentItem, MentionedContext, ResourceItem

from .config import settings


class ContentItemModel(BaseModel):
    """Free text selected by the user."""

    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DocumentItemModel(BaseModel):
    """A knowledge-base document."""

    doc_id: Optional[str] = None
    title: str = ""
    content: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ResourceItemModel(BaseModel):
    """A knowledge-base resource."""

    resource_id: Optional[str] = None
    title: str = ""
    content: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MentionedContextModel(BaseModel):
    """Candidate items grouped by category."""

    content_list: List[ContentItemModel] = Field(default_factory=list)
    resources: List[ResourceItemModel] = Field(default_factory=list)
    documents: List[DocumentItemModel] = Field(default_factory=list)

    def to_context(self) -> MentionedContext:
        return MentionedContext(
            content_list=[ContentItem(**item.model_dump()) for item in self.content_list],
            resources=[ResourceItem(**item.model_dump()) for item in self.resources],
            documents=[DocumentItem(**item.model_dump()) for item in self.documents],
        )

    @classmethod
    def from_context(cls, context: MentionedContext) -> "MentionedContextModel":
        return cls(
            content_list=[asdict(item) for item in context.content_list],
            resources=[asdict(item) for item in context.resources],
            documents=[asdict(item) for item in context.documents],
        )


class PackRequest(BaseModel):
    """Request model for context packing."""

    query: str = Field(..., description="The user's question")
    user_id: str = Field(..., description="Tenant identifier")
    context: MentionedContextModel = Field(default_factory=MentionedContextModel)
    max_tokens: int = Field(
        default_factory=lambda: settings.DEFAULT_MAX_TOKENS,
        ge=0,
        description="Overall token budget",
    )


class CategoryBudgetsModel(BaseModel):
    content: int
    resource: int
    document: int


class PackResponse(BaseModel):
    """Response model for context packing."""

    context: MentionedContextModel
    budgets: CategoryBudgetsModel


class WorkspaceSearchRequest(BaseModel):
    """Request model for whole-workspace context."""

    query: str
    user_id: str


class WorkspaceSearchResponse(BaseModel):
    """Whole-workspace context, one item per matched entity."""

    resources: List[ResourceItemModel] = Field(default_factory=list)
    documents: List[DocumentItemModel] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    vector_store_connected: bool
    chunk_count: int
