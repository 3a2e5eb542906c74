"""
Candidate context items and retrieved fragments.

Items are created per request and discarded once the packed
context is returned. Packing never mutates an item in place;
items whose content is reduced are copied.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class Fragment:
    """A contiguous piece of a larger text with its source metadata."""

    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    start: Optional[int] = None


@dataclass
class ContentItem:
    """Free-floating text selected by the user. Has no stable id."""

    content: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DocumentItem:
    """A document from the knowledge base, identified by doc_id."""

    doc_id: Optional[str] = None
    title: str = ""
    content: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ResourceItem:
    """A resource (web page, file) identified by resource_id."""

    resource_id: Optional[str] = None
    title: str = ""
    content: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


ContextItem = Union[ContentItem, DocumentItem, ResourceItem]


@dataclass
class MentionedContext:
    """The three candidate lists packed independently of each other."""

    content_list: List[ContentItem] = field(default_factory=list)
    resources: List[ResourceItem] = field(default_factory=list)
    documents: List[DocumentItem] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.content_list or self.resources or self.documents)


def wants_whole_content(item: ContextItem) -> bool:
    """Whether the item asks to be included in full when small enough."""
    return bool((item.metadata or {}).get("use_whole_content"))
