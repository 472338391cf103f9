import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
requests = pytest.importorskip("requests")

from gplus_import.migrators.forum_migrator import ForumClient, RateLimiter, forum_headers
from gplus_import.models.records import ForumCategory, PendingAccount

CFG = {"base_url": "https://forum.example.com/", "api_key": "k", "api_username": "system", "requests_per_minute": 6000}


def response(status, payload):
    resp = requests.Response()
    resp.status_code = status
    resp._content = json.dumps(payload).encode("utf-8")
    resp.url = "https://forum.example.com"
    return resp


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append((method, url, headers, kwargs))
        return self.routes[(method, url)]


def test_rate_limiter_sleeps_between_calls():
    clock = [100.0]
    sleeps = []
    limiter = RateLimiter(rpm=60)
    limiter.wait(time_fn=lambda: clock[0], sleep_fn=sleeps.append)
    clock[0] += 0.25
    limiter.wait(time_fn=lambda: clock[0], sleep_fn=sleeps.append)
    assert sleeps == [pytest.approx(0.75)]


def test_headers_act_as_user():
    assert forum_headers(CFG)["Api-Username"] == "system"
    assert forum_headers(CFG, "alice")["Api-Username"] == "alice"
    assert forum_headers(CFG)["Api-Key"] == "k"


def test_lookup_external_user_found_and_missing():
    base = "https://forum.example.com/u/by-external/google_oauth2"
    session = FakeSession(
        {
            ("GET", f"{base}/1.json"): response(200, {"user": {"id": 5, "username": "ann"}}),
            ("GET", f"{base}/2.json"): response(404, {"errors": ["not found"]}),
        }
    )
    client = ForumClient(CFG, session=session)
    account = client.lookup_external_user("1")
    assert (account.id, account.username) == (5, "ann")
    assert client.lookup_external_user("2") is None


def test_server_error_propagates():
    base = "https://forum.example.com/u/by-external/google_oauth2"
    session = FakeSession({("GET", f"{base}/1.json"): response(500, {})})
    with pytest.raises(requests.HTTPError):
        ForumClient(CFG, session=session).lookup_external_user("1")
    # no retries
    assert len(session.calls) == 1


def test_find_category_is_parent_qualified():
    payload = {
        "category_list": {
            "categories": [
                {"id": 1, "name": "News"},
                {"id": 2, "name": "Makers", "subcategory_list": [{"id": 3, "name": "News"}]},
            ]
        }
    }
    session = FakeSession({("GET", "https://forum.example.com/categories.json"): response(200, payload)})
    client = ForumClient(CFG, session=session)
    assert client.find_category("News").id == 1
    assert client.find_category("News", 2).id == 3
    assert client.find_category("Missing") is None
    # listing is cached
    assert len(session.calls) == 1


def test_create_account_approves_and_links():
    session = FakeSession(
        {
            ("POST", "https://forum.example.com/users.json"): response(200, {"success": True, "user_id": 42}),
            ("PUT", "https://forum.example.com/admin/users/42/approve.json"): response(200, {"success": "OK"}),
            ("PUT", "https://forum.example.com/u/ann.json"): response(200, {"user": {}}),
        }
    )
    client = ForumClient(CFG, session=session)
    account = client.create_account(
        PendingAccount(external_id="1001", name="Ann", email="1001@gplus.invalid", username="ann")
    )
    assert (account.id, account.username) == (42, "ann")
    methods = [(m, u.rsplit("/", 1)[-1]) for m, u, _, _ in session.calls]
    assert methods == [("POST", "users.json"), ("PUT", "approve.json"), ("PUT", "ann.json")]
    created = session.calls[0][3]["json"]
    assert created["email"] == "1001@gplus.invalid" and created["approved"] is True
    assert session.calls[2][3]["json"]["custom_fields"]["google_user_id"] == "1001"


def test_topic_url():
    client = ForumClient(CFG, session=FakeSession({}))
    assert client.topic_url({"topic_id": 9, "topic_slug": "hello"}) == "https://forum.example.com/t/hello/9"
    assert isinstance(ForumCategory(name="x"), ForumCategory)


def test_new_account_is_associated_with_google_id():
    session = FakeSession(
        {
            ("POST", "https://forum.example.com/users.json"): response(200, {"success": True, "user_id": 42}),
            ("PUT", "https://forum.example.com/admin/users/42/approve.json"): response(200, {"success": "OK"}),
            ("PUT", "https://forum.example.com/u/ann.json"): response(200, {"user": {}}),
        }
    )
    client = ForumClient(CFG, session=session)
    client.create_account(PendingAccount(external_id="1001", name="Ann", email="1001@gplus.invalid", username="ann"))
    created = session.calls[0][3]["json"]
    # same store the by-external lookup reads on the next run
    assert created["external_ids"] == {"google_oauth2": "1001"}


def test_username_available():
    url = "https://forum.example.com/u/check_username.json"
    session = FakeSession({("GET", url): response(200, {"available": False, "suggestion": "sam1"})})
    client = ForumClient(CFG, session=session)
    assert client.username_available("sam") is False
    assert session.calls[0][3]["params"] == {"username": "sam"}
    session.routes[("GET", url)] = response(200, {"available": True})
    assert client.username_available("sam1") is True
