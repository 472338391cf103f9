"""
Google+ category → forum category mapping.

The mapping lives in a hand-edited ``categories.json``::

    {
      "google-category-uuid": {
        "name": "google+ category name",
        "community": "google+ community name",
        "category": "forum category name",
        "parent": "forum parent category name",   # optional
        "create": true,                           # optional
        "tags": ["list", "of", "tags"]            # optional
      }
    }

Start with ``{}``; the first run writes ``categories.json.new`` with a stub
for every category found in the exports, the operator fills in ``category``
(and optionally ``parent``/``tags``), renames the file and runs again.
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from gplus_import.models.records import CategoryMappingEntry, ForumCategory
from .errors import CategoryNotFoundError, ConfigurationError, IncompleteMappingError, MissingInputFileError

FindCategory = Callable[[str, Optional[int]], Optional[ForumCategory]]
CreateCategory = Callable[[str, Optional[int]], ForumCategory]


def iter_categories(feeds: Iterable[Dict[str, Any]]):
    """Yield ``(community, category)`` pairs in export order."""
    for feed in feeds:
        for account in feed.get("accounts") or []:
            for community in account.get("communities") or []:
                for category in community.get("categories") or []:
                    yield community, category


class CategoryMappingStore:
    def __init__(self, path: str, entries: Optional[Dict[str, CategoryMappingEntry]] = None) -> None:
        self.path = path
        self.entries: Dict[str, CategoryMappingEntry] = dict(entries or {})
        self.resolved: Dict[str, ForumCategory] = {}
        self._validated = False

    @classmethod
    def load(cls, path: str) -> "CategoryMappingStore":
        if not os.path.exists(path):
            raise MissingInputFileError(path)
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = json.load(f) or {}
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"{path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path} must hold a JSON object keyed by Google+ category id")
        entries: Dict[str, CategoryMappingEntry] = {}
        for key, value in raw.items():
            try:
                entries[str(key)] = CategoryMappingEntry.model_validate(value or {})
            except ValidationError as e:
                fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
                raise ConfigurationError(f"Invalid entry {key!r} in {path}: bad {fields}") from e
        return cls(path, entries)

    @property
    def new_path(self) -> str:
        return f"{self.path}.new"

    def discover(self, feeds: Iterable[Dict[str, Any]]) -> int:
        """Add a stub for every unseen category; return how many were added."""
        added = 0
        for community, category in iter_categories(feeds):
            key = str(category["id"])
            entry = self.entries.get(key)
            if entry is None:
                # Create empty entries to write and fill in manually
                self.entries[key] = CategoryMappingEntry(
                    name=category.get("name"),
                    community=community.get("name"),
                    category="",
                    parent=None,
                )
                added += 1
            elif not entry.source_community:
                entry.source_community = community.get("name")
        return added

    def incomplete(self) -> List[str]:
        names: List[str] = []
        for entry in self.entries.values():
            if not entry.target_category_name:
                # written in JSON without a "category" key at all
                entry.target_category_name = ""
                names.append(entry.source_name or "")
        return names

    def to_json(self) -> Dict[str, Any]:
        return {key: entry.to_json() for key, entry in self.entries.items()}

    def write_new(self) -> str:
        with open(self.new_path, "w", encoding="utf-8") as f:
            json.dump(self.to_json(), f, ensure_ascii=False)
        return self.new_path

    def validate(self) -> None:
        """Fail the run, leaving a ``.new`` template behind, if any entry lacks a target."""
        names = self.incomplete()
        if names:
            new_path = self.write_new()
            raise IncompleteMappingError(names, new_path, self.path)
        self._validated = True

    def resolve(
        self,
        find_category: FindCategory,
        create_category: Optional[CreateCategory] = None,
    ) -> Dict[str, ForumCategory]:
        if not self._validated:
            self.validate()

        resolved: Dict[str, ForumCategory] = {}
        for key, entry in self.entries.items():
            parent_id: Optional[int] = None
            # Two separate sub-categories can have the same name, so need to identify by parent
            if entry.target_parent_name:
                parent = find_category(entry.target_parent_name, None)
                if parent is None:
                    raise CategoryNotFoundError(f"Could not find parent category {entry.target_parent_name}")
                parent_id = parent.id
            category = find_category(entry.target_category_name, parent_id)
            if category is None and entry.create and create_category is not None:
                category = create_category(entry.target_category_name, parent_id)
            if category is None:
                raise CategoryNotFoundError(
                    f"Could not find category {entry.target_category_name} for {entry.to_json()}"
                )
            resolved[key] = category
        self.resolved = resolved
        return resolved

    def category_for(self, external_id: str) -> ForumCategory:
        try:
            return self.resolved[str(external_id)]
        except KeyError:
            raise CategoryNotFoundError(f"Category {external_id} was not mapped") from None

    def extra_tags(self, external_id: str) -> List[str]:
        entry = self.entries.get(str(external_id))
        if entry is None or not entry.extra_tags:
            return []
        return list(entry.extra_tags)
