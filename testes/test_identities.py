import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from gplus_import.models.records import ForumAccount
from gplus_import.utils.identities import IdentityResolver


def test_unknown_user_gets_placeholder_email_and_pending_account():
    resolver = IdentityResolver(lambda _id: None)
    email, pending = resolver.resolve("1001", "Alice Smith")
    assert email == "1001@gplus.invalid"
    assert pending is not None
    assert pending.email == email
    assert pending.username == "alice_smith"
    assert resolver.pending == [pending]


def test_same_id_resolves_once():
    lookups = []

    def lookup(external_id):
        lookups.append(external_id)
        return None

    resolver = IdentityResolver(lookup)
    first = resolver.resolve("1001", "Alice")
    second = resolver.resolve("1001", "Alice again")
    third = resolver.resolve(1001, "Alice")
    assert second == (first[0], None)
    assert third == (first[0], None)
    assert lookups == ["1001"]
    assert len(resolver.records) == 1
    assert len(resolver.pending) == 1


def test_user_known_to_forum_is_not_created():
    known = ForumAccount(id=7, username="alice", email="alice@example.com")
    resolver = IdentityResolver(lambda _id: known)
    email, pending = resolver.resolve("1001", "Alice")
    assert email == "alice@example.com"
    assert pending is None
    assert resolver.resolve_handle("1001") == "alice"
    assert resolver.internal_id("1001") == 7


def test_known_user_without_visible_email_gets_placeholder():
    resolver = IdentityResolver(lambda _id: ForumAccount(id=7, username="alice"))
    assert resolver.resolve("1001", "Alice")[0] == "1001@gplus.invalid"


def test_pending_user_has_no_handle_until_finalized():
    resolver = IdentityResolver(lambda _id: None)
    resolver.resolve("1001", "Alice")
    assert resolver.resolve_handle("1001") is None
    assert resolver.resolve_handle("404") is None

    created = []

    def create(pending):
        created.append(pending.external_id)
        return ForumAccount(id=50 + len(created), username=pending.username, email=pending.email)

    resolver.resolve("1002", "Bob")
    assert resolver.finalize(create) == 2
    assert created == ["1001", "1002"]
    assert resolver.pending == []
    assert resolver.resolve_handle("1001") == "alice"
    assert resolver.internal_id("1002") == 52
    # a second finalize has nothing left to do
    assert resolver.finalize(create) == 0


def test_usernames_are_unique_within_run():
    resolver = IdentityResolver(lambda _id: None)
    _, a = resolver.resolve("1", "Sam")
    _, b = resolver.resolve("2", "Sam")
    _, c = resolver.resolve("3", "")
    assert a.username == "sam"
    assert b.username == "sam1"
    assert c.username == "gplus_3"


def test_custom_email_domain():
    resolver = IdentityResolver(None, email_domain="example.invalid")
    assert resolver.resolve("9", "Zed")[0] == "9@example.invalid"


def test_username_taken_on_forum_gets_suffix():
    resolver = IdentityResolver(lambda _id: None)
    resolver.resolve("1", "Sam")
    resolver.resolve("2", "Sam")
    forum_names = {"sam", "sam2"}
    checked = []

    def available(name):
        checked.append(name)
        return name not in forum_names

    created = []

    def create(pending):
        created.append(pending.username)
        return ForumAccount(id=len(created), username=pending.username)

    assert resolver.finalize(create, available) == 2
    # sam1 is held by the second Sam of this run, sam2 by the forum
    assert created == ["sam3", "sam1"]
    assert resolver.resolve_handle("1") == "sam3"
    assert "sam" in checked


def test_available_username_kept():
    resolver = IdentityResolver(lambda _id: None)
    resolver.resolve("1", "Alice")
    created = []
    resolver.finalize(lambda p: created.append(p.username) or ForumAccount(id=1, username=p.username), lambda _n: True)
    assert created == ["alice"]
