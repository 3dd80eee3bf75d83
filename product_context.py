"""Shared product record threaded through the generation stages.

Each stage owns a disjoint set of fields:
  keyword research -> ``keywords``
  listing cycle    -> ``title``, ``description``, ``uploaded_image``,
                      ``mime_type``, ``has_generated_content``
Merges are pure and return a new snapshot, so a reader holding a context
keeps the values it saw when its call started.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class ProductContext:
    title: str = ""
    description: str = ""
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    has_generated_content: bool = False
    uploaded_image: Optional[bytes] = None
    mime_type: str = "image/png"

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": list(self.keywords),
            "hasGeneratedContent": self.has_generated_content,
            "hasImage": self.uploaded_image is not None,
            "mimeType": self.mime_type,
        }


def apply_keyword_result(ctx: ProductContext, keywords: Sequence[str]) -> ProductContext:
    return replace(ctx, keywords=tuple(keywords))


def apply_listing_result(
    ctx: ProductContext,
    title: str,
    description: str,
    image: Optional[bytes] = None,
    mime_type: Optional[str] = None,
) -> ProductContext:
    changes = {"title": title, "description": description, "has_generated_content": True}
    if image is not None:
        changes["uploaded_image"] = image
    if mime_type:
        changes["mime_type"] = mime_type
    return replace(ctx, **changes)
