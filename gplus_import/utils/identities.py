"""
Google+ user → forum account resolution.

Email addresses are not part of the Google+ data, so a user the forum has
never seen gets a placeholder ``<google id>@gplus.invalid`` address and an
account that is expected to merge when they later log in with Google.  Those
accounts are not created while resolving: they are queued as
:class:`PendingAccount` records and created together by :meth:`finalize`,
after every author and mention of the run has been resolved.

The cache is updated as soon as an id is resolved, so every lookup for the
same Google id within a run agrees, whether or not its account exists yet.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Set, Tuple

from gplus_import.models.records import ForumAccount, IdentityRecord, PendingAccount, _slugify

_MAX_USERNAME = 20


class IdentityResolver:
    def __init__(
        self,
        lookup: Optional[Callable[[str], Optional[ForumAccount]]] = None,
        *,
        email_domain: str = "gplus.invalid",
    ) -> None:
        self.lookup = lookup
        self.email_domain = email_domain
        self.records: Dict[str, IdentityRecord] = {}
        self.pending: List[PendingAccount] = []
        self._usernames: Set[str] = set()

    def synthetic_email(self, external_id: str) -> str:
        return f"{external_id}@{self.email_domain}"

    def _taken(self, username: str) -> bool:
        return username.lower() in self._usernames

    def _free_username(self, base: str, taken: Callable[[str], bool]) -> str:
        username = base
        n = 1
        while taken(username):
            suffix = str(n)
            username = f"{base[: _MAX_USERNAME - len(suffix)]}{suffix}"
            n += 1
        self._usernames.add(username.lower())
        return username

    def suggest_username(self, name: Optional[str], external_id: str) -> str:
        base = _slugify(name or "")[:_MAX_USERNAME].strip("_")
        if len(base) < 3:
            base = f"gplus_{external_id[-6:]}"
        return self._free_username(base, self._taken)

    def resolve(self, external_id: str, display_name: Optional[str] = None) -> Tuple[str, Optional[PendingAccount]]:
        """Return the email for ``external_id`` and, the first time an unknown
        user is seen, the account that has to be created for them."""
        external_id = str(external_id)
        record = self.records.get(external_id)
        if record is not None:
            return record.email, None

        account = self.lookup(external_id) if self.lookup else None
        if account is not None:
            # user already on the forum
            email = account.email or self.synthetic_email(external_id)
            if account.username:
                self._usernames.add(account.username.lower())
            self.records[external_id] = IdentityRecord(
                external_id=external_id,
                display_name=display_name,
                email=email,
                internal_id=account.id,
                username=account.username,
            )
            return email, None

        email = self.synthetic_email(external_id)
        pending = PendingAccount(
            external_id=external_id,
            name=display_name,
            email=email,
            username=self.suggest_username(display_name, external_id),
        )
        self.records[external_id] = IdentityRecord(
            external_id=external_id, display_name=display_name, email=email
        )
        self.pending.append(pending)
        return email, pending

    def record(self, external_id: str) -> Optional[IdentityRecord]:
        return self.records.get(str(external_id))

    def resolve_handle(self, external_id: str) -> Optional[str]:
        """Forum username for ``external_id``; ``None`` while its account is pending."""
        record = self.record(external_id)
        return record.username if record is not None else None

    def internal_id(self, external_id: str) -> Optional[int]:
        record = self.record(external_id)
        return record.internal_id if record is not None else None

    def finalize(
        self,
        create_account: Callable[[PendingAccount], ForumAccount],
        username_available: Optional[Callable[[str], bool]] = None,
    ) -> int:
        """Create every pending account, in the order they were first seen.

        With ``username_available``, a suggested username already used on the
        forum gets a numeric suffix until the forum reports it free.
        """
        created = 0
        while self.pending:
            pending = self.pending.pop(0)
            if username_available is not None and not username_available(pending.username):
                pending.username = self._free_username(
                    pending.username, lambda name: self._taken(name) or not username_available(name)
                )
            account = create_account(pending)
            record = self.records[pending.external_id]
            record.internal_id = account.id
            record.username = account.username or pending.username
            created += 1
        return created
