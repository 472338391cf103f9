"""
Error types and structured event reports for the import.

Every failure the importer can hit is fatal: bad or incomplete configuration,
content the fragment decoder does not know, mentions of users that were never
imported, or missing input files.  None of them are transient, so nothing is
retried; the operator fixes the input and runs the import again.  The classes
below give each of those conditions a name so callers (and tests) can tell
them apart.

Two reporting functions are provided as well:

``report_error``
    Record an error for a post or comment.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful step (upload, account, topic or reply creation).
    Additional key/value information can be attached via ``extra``.

Each entry is appended to a JSON Lines file under ``reports/import`` so that
the run can be reviewed or parsed afterwards.  The ``EVENTS`` dictionary maps
event codes to human readable messages; unknown codes fall back to the code
itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterable, Optional


class GPlusImportError(Exception):
    """Base class for every fatal import condition."""


class ConfigurationError(GPlusImportError):
    """The run parameters or the category mapping are unusable as given."""


class IncompleteMappingError(ConfigurationError):
    """Some categories in the mapping document have no target category.

    A regenerated mapping has been written to ``new_path``; fill it in,
    rename it over the original mapping file and rerun.
    """

    def __init__(self, incomplete: Iterable[str], new_path: str, mapping_path: str) -> None:
        self.incomplete = list(incomplete)
        self.new_path = new_path
        self.mapping_path = mapping_path
        super().__init__(
            f"Category file missing categories for {self.incomplete}, edit {new_path} "
            f"and rename it to {mapping_path} before running the same import"
        )


class CategoryNotFoundError(ConfigurationError):
    """A mapped target category (or its parent) does not exist on the forum."""


class ContentDecodingError(GPlusImportError):
    """The export uses a message encoding outside the known vocabulary."""


class UnknownFragmentKindError(ContentDecodingError):
    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"message code {kind!r} not recognized!")


class UnknownStyleError(ContentDecodingError):
    def __init__(self, style: Any) -> None:
        self.style = style
        super().__init__(f"markdown code {style!r} not recognized!")


class UnresolvedMentionError(GPlusImportError):
    """A mention references a Google user that was never imported."""

    def __init__(self, name: str, user_id: str) -> None:
        self.name = name
        self.user_id = user_id
        super().__init__(f"Google user {name} (id {user_id}) not imported")


class MissingInputFileError(GPlusImportError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File {path} not found")


# Mapping of event codes used throughout the import to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
EVENTS: Dict[str, str] = {
    "USER_CREATED": "Forum account created for Google+ user",
    "UPLOAD_CREATED": "Attachment uploaded",
    "TOPIC_CREATED": "Topic created from Google+ post",
    "REPLY_CREATED": "Reply created from Google+ comment",
    "CONFIGURATION": "Import configuration is incomplete",
    "CONTENT_DECODING": "Message content could not be decoded",
    "UNRESOLVED_MENTION": "Mention references a user that was not imported",
    "MISSING_INPUT": "Input file not found",
    "FORUM_NETWORK": "Network error communicating with the forum",
}

_REPORT_DIR = os.path.join("reports", "import")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def error_code_for(exc: BaseException) -> str:
    """Pick the :data:`EVENTS` code that describes ``exc``."""
    if isinstance(exc, ConfigurationError):
        return "CONFIGURATION"
    if isinstance(exc, ContentDecodingError):
        return "CONTENT_DECODING"
    if isinstance(exc, UnresolvedMentionError):
        return "UNRESOLVED_MENTION"
    if isinstance(exc, MissingInputFileError):
        return "MISSING_INPUT"
    return "FORUM_NETWORK"


def report_error(
    code: str,
    record: Optional[Dict[str, Any]] = None,
    exc: Optional[BaseException] = None,
    *,
    report_dir: str = _REPORT_DIR,
) -> None:
    """Log an error event for ``record``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`EVENTS` its value will be used as the message.
    record:
        The post or comment associated with the error, if any.  Only the
        ``id`` and ``title`` keys are referenced.
    exc:
        Optional exception instance that triggered the error.
    report_dir:
        Directory holding ``errors.jsonl``.
    """
    record = record or {}
    message = EVENTS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": record.get("id"),
        "title": record.get("title"),
    }
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {message} - {record.get('id', '')}")
    _write_jsonl(os.path.join(report_dir, "errors.jsonl"), entry)


def report_ok(
    code: str,
    record: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    *,
    report_dir: str = _REPORT_DIR,
) -> None:
    """Log a successful event for ``record``.

    ``extra`` is merged into the log entry.
    """
    message = EVENTS.get(code, code)
    entry: Dict[str, Any] = {
        "code": code,
        "message": message,
        "id": record.get("id"),
        "title": record.get("title"),
    }
    if extra:
        entry.update(extra)
    print(f"[OK] {message} - {record.get('id', '')}")
    _write_jsonl(os.path.join(report_dir, "success.jsonl"), entry)
