"""
Loading of Friends+Me Google+ Exporter (F+MG+E) output.

Every run argument is a file name and its role follows from the name:

* ``*.csv`` – F+MG+E image list (``google-plus-image-list.csv``);
* ``*upload-paths.txt`` – where to write the paths of every uploaded file;
* ``*categories.json`` – the category mapping document;
* any other ``*.json`` – an F+MG+E community export;
* ``--dry-run`` – parse and validate everything, create nothing.

All inputs are read before any processing begins, so a missing file aborts
the run before anything has been created on the forum.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from gplus_import.utils.errors import ConfigurationError, MissingInputFileError

MAPPING_SUFFIX = "categories.json"
UPLOAD_AUDIT_SUFFIX = "upload-paths.txt"
DRY_RUN_FLAG = "--dry-run"


@dataclass
class RunInputs:
    exports: List[str] = field(default_factory=list)
    manifests: List[str] = field(default_factory=list)
    mapping: Optional[str] = None
    upload_audit: Optional[str] = None
    dry_run: bool = False
    ignored: List[str] = field(default_factory=list)


def classify_inputs(args: Sequence[str], *, require_mapping: bool = True) -> RunInputs:
    """Sort run arguments into their roles by file name."""
    inputs = RunInputs()
    for arg in args:
        if arg == DRY_RUN_FLAG:
            inputs.dry_run = True
        elif arg.endswith(".csv"):
            inputs.manifests.append(arg)
        elif arg.endswith(UPLOAD_AUDIT_SUFFIX):
            inputs.upload_audit = arg
        elif arg.endswith(MAPPING_SUFFIX):
            inputs.mapping = arg
        elif arg.endswith(".json"):
            inputs.exports.append(arg)
        else:
            inputs.ignored.append(arg)
    if require_mapping and inputs.mapping is None:
        raise ConfigurationError(f"Must provide a {MAPPING_SUFFIX} file")
    return inputs


def load_json_document(path: str) -> Any:
    if not os.path.exists(path):
        raise MissingInputFileError(path)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_export(path: str) -> Dict[str, Any]:
    """Load one F+MG+E export; ``accounts`` is guaranteed to be a list."""
    feed = load_json_document(path) or {}
    feed.setdefault("accounts", [])
    return feed


def iter_posts(feeds: Sequence[Dict[str, Any]]) -> Iterator[Tuple[Dict[str, Any], Dict[str, Any]]]:
    """Yield ``(category, post)`` in export order: feed, account, community,
    category, post."""
    for feed in feeds:
        for account in feed.get("accounts") or []:
            for community in account.get("communities") or []:
                for category in community.get("categories") or []:
                    for post in category.get("posts") or []:
                        yield category, post
