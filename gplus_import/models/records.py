from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _slugify(value: str) -> str:
    text = value.strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        else:
            if not prev_dash:
                out.append("_")
            prev_dash = True
    return "".join(out).strip("_")


class CategoryMappingEntry(BaseModel):
    """One entry of ``categories.json``.

    The document is edited by hand, so unknown keys are kept and written back
    untouched when a ``.new`` file is regenerated.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    source_name: Optional[str] = Field(None, alias="name")
    source_community: Optional[str] = Field(None, alias="community")
    target_category_name: Optional[str] = Field(None, alias="category")
    target_parent_name: Optional[str] = Field(None, alias="parent")
    create: Optional[bool] = None
    extra_tags: Optional[List[str]] = Field(None, alias="tags")

    @property
    def complete(self) -> bool:
        return bool(self.target_category_name)

    def to_json(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        for key, value in (self.model_extra or {}).items():
            data.setdefault(key, value)
        return data


class ForumCategory(BaseModel):
    id: Optional[int] = None
    name: str
    slug: Optional[str] = None
    parent_category_id: Optional[int] = None


class ForumAccount(BaseModel):
    """An account that exists on the forum."""

    id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[str] = None


class IdentityRecord(BaseModel):
    external_id: str
    display_name: Optional[str] = None
    email: str
    internal_id: Optional[int] = None
    username: Optional[str] = None


class PendingAccount(BaseModel):
    """An account to create once every identity of the run is known."""

    external_id: str
    name: Optional[str] = None
    email: str
    username: str


class ManifestEntry(BaseModel):
    url: str
    filename: str = ""
    filepath: str = ""
    filesize: int = 0

    @field_validator("filesize", mode="before")
    @classmethod
    def _coerce_size(cls, v: Any) -> int:
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return 0


class UploadHandle(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    url: str
    short_url: Optional[str] = None
    original_filename: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class UploadRecord(BaseModel):
    source_url: str
    handle: UploadHandle
    byte_size: int = 0


class PostRecord(BaseModel):
    external_id: str
    internal_author_id: Optional[int] = None
    author_username: Optional[str] = None
    created_at: datetime
    body_markup: str


class TopicRecord(PostRecord):
    title: str = Field(..., min_length=1)
    category: ForumCategory
    tags: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None


class ReplyRecord(PostRecord):
    parent_topic_ref: str


class ImportedThread(BaseModel):
    topic: TopicRecord
    replies: List[ReplyRecord] = Field(default_factory=list)
