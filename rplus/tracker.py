"""
In-memory tracking of open pull requests waiting for approvals.

Every open PR the bot has seen a commit for has one PendingPull entry.
Approvals are counted against the entry's current head commit; a new commit
replaces the entry and starts the count over. Once the count reaches
`required_reviews` a "success" status is pushed and the entry is dropped.

All state changes and the status call they trigger happen under a single
asyncio.Lock, so at most one status update is in flight at a time and two
approvals for the same PR can never race on the counter.
"""
import asyncio
import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol, Set

from rplus.status import CommitState, StatusReportError

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    async def report(self, sha: str, state: CommitState) -> None: ...


@dataclass
class PendingPull:
    id: int
    head_sha: str
    author: Optional[str] = None
    approvals: int = 0
    approvers: Set[str] = field(default_factory=set)


class ApprovalOutcome(str, Enum):
    IGNORED = "ignored"  # reviewer not allowed, self review, or duplicate
    UNKNOWN = "unknown"  # PR not tracked
    COUNTED = "counted"  # below threshold
    APPROVED = "approved"  # success reported, entry removed
    REPORT_FAILED = "report_failed"  # threshold reached, entry kept


class ReviewTracker:
    def __init__(
        self,
        reporter: Reporter,
        required_reviews: int = 1,
        reviewers: Optional[Iterable[str]] = None,
        self_review: bool = True,
        dedupe_reviewers: bool = False,
    ):
        if required_reviews < 1:
            raise ValueError("required_reviews must be at least 1")
        self.reporter = reporter
        self.required_reviews = required_reviews
        self.reviewers = frozenset(reviewers) if reviewers else None
        self.self_review = self_review
        self.dedupe_reviewers = dedupe_reviewers
        self._pending: Dict[int, PendingPull] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, pr_id: int) -> bool:
        return pr_id in self._pending

    def get(self, pr_id: int) -> Optional[PendingPull]:
        """Copy of the tracked entry, or None."""
        pull = self._pending.get(pr_id)
        return copy.deepcopy(pull) if pull is not None else None

    def snapshot(self) -> Dict[int, PendingPull]:
        return copy.deepcopy(self._pending)

    def allows(self, reviewer: Optional[str]) -> bool:
        if self.reviewers is None:
            return True
        return reviewer in self.reviewers

    async def observe_commit(
        self, pr_id: int, head_sha: str, author: Optional[str] = None
    ) -> None:
        async with self._lock:
            self._pending[pr_id] = PendingPull(id=pr_id, head_sha=head_sha, author=author)
            try:
                await self.reporter.report(head_sha, CommitState.PENDING)
            except StatusReportError as e:
                # The entry stays; approvals are still counted against head_sha.
                logger.error(
                    "Failed to update status for commit '%s' on #%d: %s", head_sha, pr_id, e
                )

    async def observe_approval(
        self, pr_id: int, reviewer: Optional[str] = None
    ) -> ApprovalOutcome:
        if not self.allows(reviewer):
            logger.debug("Ignoring approval on #%d from non-reviewer %r", pr_id, reviewer)
            return ApprovalOutcome.IGNORED

        async with self._lock:
            pull = self._pending.get(pr_id)
            if pull is None:
                logger.info("Received approval on PR I don't know about: #%d", pr_id)
                return ApprovalOutcome.UNKNOWN

            if not self.self_review and reviewer is not None and reviewer == pull.author:
                logger.info("Ignoring self review on #%d by %s", pr_id, reviewer)
                return ApprovalOutcome.IGNORED
            # Already at the threshold means the last success report failed; retry it.
            if pull.approvals < self.required_reviews:
                if self.dedupe_reviewers and reviewer is not None and reviewer in pull.approvers:
                    logger.info("Ignoring repeated approval on #%d by %s", pr_id, reviewer)
                    return ApprovalOutcome.IGNORED

                pull.approvals += 1
                if reviewer is not None:
                    pull.approvers.add(reviewer)
                if pull.approvals < self.required_reviews:
                    logger.info(
                        "#%d has %d/%d approvals", pr_id, pull.approvals, self.required_reviews
                    )
                    return ApprovalOutcome.COUNTED

            try:
                await self.reporter.report(pull.head_sha, CommitState.SUCCESS)
            except StatusReportError as e:
                # Keep the entry: the next approval retries the success report.
                logger.error(
                    "Failed to update status for commit '%s' on #%d: %s",
                    pull.head_sha,
                    pr_id,
                    e,
                )
                return ApprovalOutcome.REPORT_FAILED

            del self._pending[pr_id]
            return ApprovalOutcome.APPROVED
