"""
Forum REST API helpers for the Google+ import.

This module implements the low-level interactions with a Discourse-style
forum API: looking up accounts linked to a Google id, creating pre-approved
accounts, finding (and optionally creating) categories, uploading images and
creating topics and replies.  A simple rate limiter keeps the importer under
the API's per-minute request budget.

Errors are not retried: every request calls ``raise_for_status`` and the
resulting ``requests.HTTPError`` propagates to the caller, which aborts the
run.  Records created before the failure stay on the forum; rerunning the
import relies on the forum's import-id bookkeeping to skip them.

Usage example::

    client = ForumClient({"base_url": "https://forum.example.com",
                          "api_key": "...", "api_username": "system"})
    category = client.find_category("General")
    created = client.create_topic(topic_record)
    client.create_reply(reply_record, created["topic_id"])
"""

from __future__ import annotations

import os
import secrets
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from gplus_import.models.records import (
    ForumAccount,
    ForumCategory,
    ManifestEntry,
    PendingAccount,
    ReplyRecord,
    TopicRecord,
    UploadHandle,
)

###############################################################################
# Rate limiting
###############################################################################

class RateLimiter:
    """
    Simple time-based rate limiter.  Ensures that no more than ``rpm``
    requests are dispatched per minute.
    """

    def __init__(self, rpm: int = 60) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / float(self.rpm)
        self._last = 0.0

    def wait(self, time_fn: Callable[[], float] = time.time, sleep_fn: Callable[[float], None] = time.sleep) -> None:
        now = time_fn()
        dt = now - self._last
        if dt < self.interval:
            sleep_fn(self.interval - dt)
        self._last = time_fn()


def forum_headers(cfg: Dict[str, Any], username: Optional[str] = None) -> Dict[str, str]:
    """
    Construct the headers required for forum API requests.

    :param cfg: Forum configuration with ``api_key`` and ``api_username``.
    :param username: Act as this user instead of ``api_username``.
    """
    return {
        "Api-Key": cfg.get("api_key", ""),
        "Api-Username": username or cfg.get("api_username", "system"),
        "Accept": "application/json",
    }


###############################################################################
# Client
###############################################################################

class ForumClient:
    def __init__(self, cfg: Dict[str, Any], *, session: Optional[requests.Session] = None) -> None:
        self.cfg = cfg
        self.base_url = (cfg.get("base_url") or "").rstrip("/")
        self.provider = cfg.get("external_provider", "google_oauth2")
        self.timeout = float(cfg.get("timeout", 30))
        self.session = session or requests.Session()
        self._limiter = RateLimiter(int(cfg.get("requests_per_minute", 60)))
        self._categories: Optional[List[ForumCategory]] = None

    def _request(self, method: str, path: str, *, username: Optional[str] = None, **kwargs) -> requests.Response:
        self._limiter.wait()
        resp = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers=forum_headers(self.cfg, username),
            timeout=self.timeout,
            **kwargs,
        )
        resp.raise_for_status()
        return resp

    # -- accounts -----------------------------------------------------------

    def lookup_external_user(self, external_id: str) -> Optional[ForumAccount]:
        """Account already associated with ``external_id``, or ``None``."""
        try:
            resp = self._request("GET", f"/u/by-external/{self.provider}/{external_id}.json")
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise
        user = resp.json().get("user") or {}
        if not user:
            return None
        return ForumAccount(id=user.get("id"), username=user.get("username"), email=user.get("email"))

    def username_available(self, username: str) -> bool:
        resp = self._request("GET", "/u/check_username.json", params={"username": username})
        return bool(resp.json().get("available"))

    def create_account(self, pending: PendingAccount) -> ForumAccount:
        """
        Create an account for a Google+ user, approve it and link it to the
        Google id so the user merges with it when they log in with Google.
        """
        resp = self._request(
            "POST",
            "/users.json",
            json={
                "name": pending.name or pending.username,
                "email": pending.email,
                "username": pending.username,
                "password": secrets.token_urlsafe(24),
                "active": True,
                "approved": True,
                # links the account for /u/by-external lookups on later runs
                "external_ids": {self.provider: pending.external_id},
            },
        )
        payload = resp.json()
        if not payload.get("success", True):
            raise requests.HTTPError(f"Could not create user {pending.username}: {payload.get('message')}", response=resp)
        user_id = payload.get("user_id")
        self._request("PUT", f"/admin/users/{user_id}/approve.json")
        self._request(
            "PUT",
            f"/u/{pending.username}.json",
            json={"custom_fields": {"import_id": pending.external_id, "google_user_id": pending.external_id}},
        )
        return ForumAccount(id=user_id, username=pending.username, email=pending.email)

    # -- categories ---------------------------------------------------------

    def list_categories(self) -> List[ForumCategory]:
        if self._categories is None:
            resp = self._request("GET", "/categories.json", params={"include_subcategories": "true"})
            found: List[ForumCategory] = []
            for cat in resp.json().get("category_list", {}).get("categories", []):
                found.append(ForumCategory.model_validate(cat))
                for sub in cat.get("subcategory_list") or []:
                    found.append(ForumCategory.model_validate({"parent_category_id": cat.get("id"), **sub}))
            self._categories = found
        return self._categories

    def find_category(self, name: str, parent_id: Optional[int] = None) -> Optional[ForumCategory]:
        for category in self.list_categories():
            if category.name == name and category.parent_category_id == parent_id:
                return category
        return None

    def create_category(self, name: str, parent_id: Optional[int] = None) -> ForumCategory:
        body: Dict[str, Any] = {"name": name, "color": "0088CC", "text_color": "FFFFFF"}
        if parent_id is not None:
            body["parent_category_id"] = parent_id
        resp = self._request("POST", "/categories.json", json=body)
        category = ForumCategory.model_validate({"parent_category_id": parent_id, **resp.json().get("category", {})})
        self.list_categories().append(category)
        return category

    # -- uploads ------------------------------------------------------------

    def create_upload(self, entry: ManifestEntry) -> UploadHandle:
        filename = entry.filename or os.path.basename(entry.filepath)
        with open(entry.filepath, "rb") as f:
            resp = self._request(
                "POST",
                "/uploads.json",
                data={"type": "composer", "synchronous": "true"},
                files={"file": (filename, f)},
            )
        return UploadHandle.model_validate(resp.json())

    # -- topics and replies ---------------------------------------------------

    def create_topic(self, topic: TopicRecord) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "title": topic.title,
            "raw": topic.body_markup,
            "category": topic.category.id,
            "created_at": topic.created_at.isoformat(),
            "tags": topic.tags,
            "import_id": topic.external_id,
        }
        resp = self._request("POST", "/posts.json", username=topic.author_username, json=body)
        return resp.json()

    def create_reply(self, reply: ReplyRecord, topic_id: int) -> Dict[str, Any]:
        body = {
            "topic_id": topic_id,
            "raw": reply.body_markup,
            "created_at": reply.created_at.isoformat(),
            "import_id": reply.external_id,
        }
        resp = self._request("POST", "/posts.json", username=reply.author_username, json=body)
        return resp.json()

    def topic_url(self, created: Dict[str, Any]) -> str:
        return f"{self.base_url}/t/{created.get('topic_slug', 'topic')}/{created.get('topic_id')}"
