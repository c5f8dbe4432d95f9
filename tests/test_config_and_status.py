import asyncio

import httpx
import pytest

from rplus.config_loader import ConfigError, load_config_file
from rplus.services.github import GitHubClient
from rplus.settings import load_settings
from rplus.status import CommitState, StatusReportError

CONFIG = """\
repo: rolandshoemaker/r-plus
access-token: ghp_mock
required-reviews: 2
reviewers:
  - alice
  - bob
review-pattern: 'r\\+'
self-review: false
webhook-server:
  addr: "127.0.0.1:9000"
  pr-path: /hooks/pr
  comment-path: /hooks/comment
  secret: s3cret
"""


def _write(tmp_path, text):
    f = tmp_path / "config.yml"
    f.write_text(text)
    return str(f)


def test_load_settings_reads_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = load_settings(_write(tmp_path, CONFIG))

    assert settings.repo == "rolandshoemaker/r-plus"
    assert settings.access_token == "ghp_mock"
    assert settings.required_reviews == 2
    assert settings.reviewer_set == frozenset({"alice", "bob"})
    assert settings.self_review is False
    assert settings.review_regex.search("lgtm r+")
    hooks = settings.webhook_server
    assert hooks.pr_path == "/hooks/pr"
    assert hooks.comment_path == "/hooks/comment"
    assert hooks.secret == "s3cret"
    assert hooks.host_port() == ("127.0.0.1", 9000)
    assert not hooks.tls


def test_env_fills_in_missing_values(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RPLUS_WEBHOOK_SERVER__SECRET", "from-env")
    settings = load_settings(_write(tmp_path, "repo: a/b\nwebhook-server:\n  addr: ':8080'\n"))
    assert settings.webhook_server.secret == "from-env"
    assert settings.webhook_server.host_port() == ("0.0.0.0", 8080)
    assert settings.reviewer_set is None


@pytest.mark.parametrize(
    "text",
    [
        CONFIG.replace("'r\\+'", "'r+('"),  # bad regex
        CONFIG.replace("secret: s3cret", "secret: ''"),
        CONFIG.replace("required-reviews: 2", "required-reviews: 0"),
        CONFIG.replace("rolandshoemaker/r-plus", "not-a-repo"),
        CONFIG.replace('"127.0.0.1:9000"', '"nowhere"'),
        CONFIG + "  certificate: cert.pem\n",
        "- just\n- a list\n",
        "repo: [unclosed\n",
        CONFIG + "log-level: verbose\n",
    ],
)
def test_invalid_config_is_fatal(tmp_path, monkeypatch, text):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigError):
        load_settings(_write(tmp_path, text))


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config_file(str(tmp_path / "nope.yml"))


def _client(handler):
    return GitHubClient(
        token="ghs_mock", base_url="https://api.example.test/", transport=httpx.MockTransport(handler)
    )


def test_create_status_posts_to_statuses_endpoint():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        seen["content_type"] = request.headers["Content-Type"]
        return httpx.Response(201, json={"state": "pending"})

    out = asyncio.run(_client(handler).create_status("o/r", "abc", CommitState.PENDING))

    assert out == {"state": "pending"}
    assert seen["url"] == "https://api.example.test/repos/o/r/statuses/abc"
    assert seen["content_type"] == "application/json"
    assert b'"state":"pending"' in seen["body"].replace(b" ", b"")


def test_create_status_raises_on_unexpected_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, text='{"message":\n"Validation Failed"}')

    with pytest.raises(StatusReportError) as exc:
        asyncio.run(_client(handler).create_status("o/r", "abc", CommitState.SUCCESS))

    assert exc.value.status_code == 422
    assert "\n" not in exc.value.body
    assert "Validation Failed" in str(exc.value)


def test_create_status_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(StatusReportError):
        asyncio.run(_client(handler).create_status("o/r", "abc", CommitState.SUCCESS))


def test_create_status_applies_request_timeout():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["timeout"] = request.extensions["timeout"]
        return httpx.Response(201, json={})

    client = GitHubClient(
        token="ghs_mock", timeout=3, transport=httpx.MockTransport(handler)
    )
    asyncio.run(client.create_status("o/r", "abc", CommitState.PENDING))

    assert seen["timeout"] == {"connect": 3, "read": 3, "write": 3, "pool": 3}
