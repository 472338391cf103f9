"""
High-level orchestration of the Google+ → forum import.

This module defines a :class:`GPlusMigrationTool` class that ties together
the extractors, parsers, migrators and utilities into a complete pipeline.
A run goes through these steps, in order:

1. ``read_categories`` – add a mapping stub for every category in the exports;
2. ``check_categories`` – abort with a ``categories.json.new`` template if any
   category has no target;
3. ``map_categories`` – look up (parent-qualified) every target category;
4. ``import_users`` – resolve every author and mentioned user, then create the
   accounts the forum does not have yet;
5. ``import_posts`` – one topic per Google+ post, one reply per comment.

A Google+ post becomes a forum topic and a Google+ comment becomes a reply.
With ``dry_run`` enabled every step still runs, including the read-only
category and user lookups, so a dry run reports every error a real run
would; nothing is uploaded or created on the forum.

Configuration is supplied via a JSON file path or directly as a dictionary.
The ``forum`` section holds ``base_url``, ``api_key`` and ``api_username``;
import settings (dry run, global tags, title heuristics) live under
``import``.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from gplus_import.context import ImportContext
from gplus_import.extractors.fmgp_extractor import RunInputs, classify_inputs, iter_posts, load_export
from gplus_import.migrators.forum_migrator import ForumClient
from gplus_import.models.records import (
    ForumAccount,
    ForumCategory,
    ImportedThread,
    ManifestEntry,
    PendingAccount,
    ReplyRecord,
    TopicRecord,
    UploadHandle,
)
from gplus_import.parsers.fragments import Mention, parse_message
from gplus_import.parsers.markup import format_post_body
from gplus_import.parsers.titles import TitleConfig, post_title
from gplus_import.utils.assets import AssetManager, load_manifest
from gplus_import.utils.categories import CategoryMappingStore
from gplus_import.utils.errors import ConfigurationError, report_ok
from gplus_import.utils.identities import IdentityResolver
from gplus_import.utils.redirects import generate_import_map_csv
from gplus_import.utils.tags import merge_tags


def parse_created_at(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class GPlusMigrationTool:
    """
    Encapsulates all state and behavior required to import a set of F+MG+E
    exports into a forum.  The identity cache, the upload cache and the
    uploaded byte total live on :attr:`context` and persist across every
    export file of the run.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            # Default configuration
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("forum", {})
        config["forum"].setdefault("base_url", os.getenv("FORUM_BASE_URL", ""))
        config["forum"].setdefault("api_key", os.getenv("FORUM_API_KEY", ""))
        config["forum"].setdefault("api_username", os.getenv("FORUM_API_USERNAME", "system"))
        config["forum"].setdefault("external_provider", "google_oauth2")
        config["forum"].setdefault("requests_per_minute", 60)

        config.setdefault("import", {})
        config["import"].setdefault("dry_run", False)
        # Tags to apply to every topic; empty list to not have any tags applied everywhere
        config["import"].setdefault("global_tags", ["gplus"])
        config["import"].setdefault("min_title_words", 3)
        config["import"].setdefault("max_title_words", 14)
        config["import"].setdefault("min_title_characters", 12)
        config["import"].setdefault("email_domain", "gplus.invalid")
        config["import"].setdefault("reports_dir", "reports")

        self.config = config
        self.dry_run: bool = bool(config["import"]["dry_run"])
        self.global_tags: List[str] = list(config["import"]["global_tags"] or [])
        self.title_config = TitleConfig.from_dict(config["import"])
        self.reports_dir: str = config["import"]["reports_dir"]
        self.events_dir = os.path.join(self.reports_dir, "import")

        self.client = client if client is not None else ForumClient(config["forum"])
        self.context = ImportContext(
            IdentityResolver(self.client.lookup_external_user, email_domain=config["import"]["email_domain"]),
            AssetManager(uploader=self._upload, dry_run=self.dry_run),
            permissive=self.dry_run,
        )

        self.feeds: List[Dict[str, Any]] = []
        self.mapping: Optional[CategoryMappingStore] = None
        self.topic_ids: Dict[str, int] = {}
        self.import_map: List[Dict[str, str]] = []

    def log_message(self, message: str, level: str = "INFO") -> None:
        print(f"[{level}] {message}")
        # Append to log file
        os.makedirs(self.events_dir, exist_ok=True)
        with open(os.path.join(self.events_dir, "import.log"), "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")

    def set_dry_run(self, dry_run: bool) -> None:
        self.dry_run = dry_run
        self.config["import"]["dry_run"] = dry_run
        self.context.permissive = dry_run
        self.context.assets.dry_run = dry_run

    # -- inputs ---------------------------------------------------------------

    def load_inputs(self, inputs: Union[RunInputs, Sequence[str]]) -> RunInputs:
        """Read every input file up front; a missing file aborts before any processing."""
        if not isinstance(inputs, RunInputs):
            inputs = classify_inputs(inputs)
        for arg in inputs.ignored:
            self.log_message(f"Ignoring argument {arg!r}: unknown file type", level="WARNING")
        if inputs.dry_run:
            self.set_dry_run(True)

        self.mapping = CategoryMappingStore.load(inputs.mapping)
        if inputs.manifests:
            self.context.assets.manifest.update(load_manifest(inputs.manifests))
            self.log_message(f"Loaded {len(self.context.assets.manifest)} downloaded images", level="DEBUG")
        for path in inputs.exports:
            self.log_message(f"Loading export {path}", level="DEBUG")
            self.feeds.append(load_export(path))
        if inputs.upload_audit:
            self.context.assets.open_audit(inputs.upload_audit)
        return inputs

    # -- categories -----------------------------------------------------------

    def read_categories(self) -> None:
        added = self.mapping.discover(self.feeds)
        if added:
            self.log_message(f"Found {added} categories missing from {self.mapping.path}", level="DEBUG")

    def check_categories(self) -> None:
        self.mapping.validate()

    def map_categories(self) -> None:
        self.log_message("Mapping categories from Google+ to the forum...")
        if self.dry_run:
            create = lambda name, parent_id: ForumCategory(name=name, parent_category_id=parent_id)
        else:
            create = self.client.create_category
        resolved = self.mapping.resolve(self.client.find_category, create)
        self.log_message(f"Mapped {len(resolved)} categories", level="DEBUG")

    # -- users ------------------------------------------------------------------

    def _import_google_user(self, user_id: Any, name: Optional[str]) -> None:
        if user_id is None:
            return
        self.context.identities.resolve(str(user_id), name)

    def _import_message_users(self, message: Optional[Sequence[Any]]) -> None:
        for fragment in parse_message(message):
            # deleted G+ users show up with a null ID
            if isinstance(fragment, Mention) and not fragment.tombstoned:
                self._import_google_user(fragment.user_id, fragment.name)

    def _create_account(self, pending: PendingAccount) -> ForumAccount:
        account = self.client.create_account(pending)
        report_ok(
            "USER_CREATED",
            {"id": pending.external_id, "title": pending.name},
            {"username": account.username, "user_id": account.id},
            report_dir=self.events_dir,
        )
        return account

    def import_users(self) -> int:
        """Resolve post and comment authors and every mentioned user; create
        the missing accounts unless this is a dry run.  Returns the number of
        accounts created."""
        self.log_message("Importing Google+ post and comment author users...")
        for _category, post in iter_posts(self.feeds):
            author = post.get("author") or {}
            self._import_google_user(author.get("id"), author.get("name"))
            self._import_message_users(post.get("message"))
            for comment in post.get("comments") or []:
                author = comment.get("author") or {}
                self._import_google_user(author.get("id"), author.get("name"))
                self._import_message_users(comment.get("message"))

        pending = len(self.context.identities.pending)
        if self.dry_run:
            self.log_message(f"Dry-run: would create {pending} users")
            return 0
        return self.context.identities.finalize(self._create_account, self.client.username_available)

    # -- posts ------------------------------------------------------------------

    def _upload(self, entry: ManifestEntry) -> UploadHandle:
        handle = self.client.create_upload(entry)
        report_ok(
            "UPLOAD_CREATED",
            {"id": entry.url, "title": entry.filename},
            {"upload_url": handle.url, "bytes": entry.filesize},
            report_dir=self.events_dir,
        )
        return handle

    def _author_fields(self, post: Dict[str, Any]) -> Dict[str, Any]:
        author_id = (post.get("author") or {}).get("id")
        if author_id is None:
            # deleted G+ account
            return {"internal_author_id": None, "author_username": None}
        identities = self.context.identities
        author_id = str(author_id)
        return {
            "internal_author_id": identities.internal_id(author_id),
            "author_username": identities.resolve_handle(author_id),
        }

    def make_topic(self, post: Dict[str, Any], category: Dict[str, Any]) -> TopicRecord:
        created_at = parse_created_at(post["createdAt"])
        cat_id = str(category["id"])
        return TopicRecord(
            external_id=str(post["id"]),
            created_at=created_at,
            body_markup=format_post_body(post, self.context),
            title=post_title(post, created_at, self.title_config),
            category=self.mapping.category_for(cat_id),
            tags=merge_tags(self.global_tags, self.mapping.extra_tags(cat_id)),
            source_url=post.get("url"),
            **self._author_fields(post),
        )

    def make_reply(self, comment: Dict[str, Any], topic: TopicRecord) -> ReplyRecord:
        return ReplyRecord(
            external_id=str(comment["id"]),
            created_at=parse_created_at(comment["createdAt"]),
            body_markup=format_post_body(comment, self.context),
            parent_topic_ref=topic.external_id,
            **self._author_fields(comment),
        )

    def import_topic(self, post: Dict[str, Any], category: Dict[str, Any]) -> ImportedThread:
        topic = self.make_topic(post, category)
        topic_id: Optional[int] = None
        if not self.dry_run:
            created = self.client.create_topic(topic)
            topic_id = created.get("topic_id")
            self.topic_ids[topic.external_id] = topic_id
            topic_url = self.client.topic_url(created)
            self.import_map.append(
                {"GooglePostId": topic.external_id, "GoogleURL": topic.source_url or "", "TopicURL": topic_url}
            )
            report_ok(
                "TOPIC_CREATED",
                {"id": topic.external_id, "title": topic.title},
                {"topic_id": topic_id},
                report_dir=self.events_dir,
            )

        replies: List[ReplyRecord] = []
        for comment in post.get("comments") or []:
            reply = self.make_reply(comment, topic)
            if not self.dry_run:
                created = self.client.create_reply(reply, topic_id)
                report_ok(
                    "REPLY_CREATED",
                    {"id": reply.external_id, "title": topic.title},
                    {"topic_id": topic_id, "post_id": created.get("id")},
                    report_dir=self.events_dir,
                )
            replies.append(reply)
        return ImportedThread(topic=topic, replies=replies)

    def import_posts(self) -> List[ImportedThread]:
        self.log_message("Importing Google+ posts and comments...")
        threads: List[ImportedThread] = []
        for category, post in iter_posts(self.feeds):
            threads.append(self.import_topic(post, category))
        replies = sum(len(t.replies) for t in threads)
        self.log_message(f"Imported {len(threads)} topics and {replies} replies")
        return threads

    # -- run --------------------------------------------------------------------

    def run(self, feeds: Optional[Sequence[Dict[str, Any]]] = None) -> List[ImportedThread]:
        """Import every loaded export (plus ``feeds``, if given)."""
        if feeds:
            self.feeds.extend(feeds)
        if self.mapping is None:
            raise ConfigurationError("Must provide a categories.json file")

        self.log_message("Importing from Friends+Me Google+ Exporter...")
        self.read_categories()
        self.check_categories()
        self.map_categories()
        self.import_users()
        threads = self.import_posts()

        self.log_message(f"Uploaded {self.context.total_bytes} bytes of image files")
        if not self.dry_run and self.import_map:
            path = generate_import_map_csv(self.import_map, out_path=os.path.join(self.reports_dir, "import_map.csv"))
            self.log_message(f"Import map written to {path} with {len(self.import_map)} entries")
        self.log_message("Done")
        return threads
