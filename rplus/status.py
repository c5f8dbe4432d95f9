import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from rplus.services.github import GitHubClient

logger = logging.getLogger(__name__)


class CommitState(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"


class StatusReportError(Exception):
    """A commit status could not be pushed to GitHub."""

    def __init__(
        self, message: str, status_code: Optional[int] = None, body: str = ""
    ):
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} {status_code}, body: {body}"
        super().__init__(message)


class StatusReporter:
    """
    Binds a GitHub client to the one repository this bot serves, plus the
    status description/context from configuration.
    """

    def __init__(
        self,
        client: "GitHubClient",
        repo: str,
        description: str = "",
        context: str = "github/reviews",
    ):
        self.client = client
        self.repo = repo
        self.description = description
        self.context = context

    async def report(self, sha: str, state: CommitState) -> None:
        await self.client.create_status(
            self.repo,
            sha,
            state,
            description=self.description,
            context=self.context,
        )
        logger.info("Set status '%s' on %s@%s", state.value, self.repo, sha)
