"""
Webhook payload decoding and filtering.

Only the fields the tracker needs are modelled; everything else in GitHub's
payload is ignored. Anything that fails to decode is logged and dropped.
"""
import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from rplus.tracker import ReviewTracker

logger = logging.getLogger(__name__)

PR_ACTIONS = {"opened", "synchronize"}


class User(BaseModel):
    login: str


class Head(BaseModel):
    sha: str


class PullRequest(BaseModel):
    head: Head
    user: Optional[User] = None


class PullRequestEvent(BaseModel):
    action: str
    number: int
    pull_request: PullRequest


class Issue(BaseModel):
    number: int
    # Present (as a dict of links) only when the issue is a pull request.
    pull_request: Optional[Dict[str, Any]] = None


class Comment(BaseModel):
    body: str = ""


class IssueCommentEvent(BaseModel):
    action: str = "created"
    issue: Issue
    comment: Comment
    sender: User


def _decode(model, body: bytes, kind: str):
    try:
        return model.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        logger.warning("Failed to decode %s event: %s", kind, e)
        return None


class EventDispatcher:
    def __init__(self, tracker: ReviewTracker, review_pattern: "re.Pattern[str]"):
        self.tracker = tracker
        self.review_pattern = review_pattern

    async def handle_pull_request(self, body: bytes) -> str:
        event = _decode(PullRequestEvent, body, "pull request")
        if event is None:
            return "malformed"
        if event.action not in PR_ACTIONS:
            logger.debug("Ignoring pull request action %r on #%d", event.action, event.number)
            return "ignored"
        pr = event.pull_request
        author = pr.user.login if pr.user else None
        logger.info("New head %s on #%d (%s)", pr.head.sha, event.number, event.action)
        await self.tracker.observe_commit(event.number, pr.head.sha, author)
        return "commit"

    async def handle_comment(self, body: bytes) -> str:
        event = _decode(IssueCommentEvent, body, "comment")
        if event is None:
            return "malformed"
        if event.issue.pull_request is None:
            return "ignored"  # plain issue
        if event.action == "deleted":
            return "ignored"
        if not self.review_pattern.search(event.comment.body):
            return "ignored"
        outcome = await self.tracker.observe_approval(event.issue.number, event.sender.login)
        return outcome.value
