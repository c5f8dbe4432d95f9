from typing import List, Tuple

import pytest

from rplus.settings import Settings
from rplus.status import CommitState, StatusReportError

SECRET = "secret"


class FakeReporter:
    """Records status calls; set `fail = True` to make them raise."""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []
        self.fail = False

    async def report(self, sha: str, state: CommitState) -> None:
        if self.fail:
            raise StatusReportError("unexpected response status code", 500, "boom")
        self.calls.append((sha, state.value))


@pytest.fixture
def reporter():
    return FakeReporter()


@pytest.fixture
def make_settings(monkeypatch, tmp_path):
    # Keep a stray .env or RPLUS_* variable from leaking into tests
    monkeypatch.chdir(tmp_path)

    def _make(**overrides) -> Settings:
        data = {
            "repo": "testing/repo",
            "access_token": "ghs_mock",
            "required_reviews": 1,
            "reviewers": ["alice"],
            "review_pattern": r"r\+",
            "webhook_server": {"secret": SECRET},
        }
        data.update(overrides)
        return Settings(**data)

    return _make
