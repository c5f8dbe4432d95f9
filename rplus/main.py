import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response

from rplus.events import EventDispatcher
from rplus.services.github import GitHubClient
from rplus.settings import Settings
from rplus.signature import verify_signature
from rplus.status import StatusReporter
from rplus.tracker import Reporter, ReviewTracker

logger = logging.getLogger(__name__)


async def verified_body(request: Request) -> bytes:
    """Raw request body, only if its webhook signature checks out."""
    header = request.headers.get("X-Hub-Signature-256") or request.headers.get(
        "X-Hub-Signature"
    )
    if not header:
        logger.warning("No signature on request to %s", request.url.path)
        raise HTTPException(status_code=401)
    body = await request.body()
    if not verify_signature(request.app.state.secret, body, header):
        logger.warning("Invalid signature on request to %s", request.url.path)
        raise HTTPException(status_code=401)
    logger.debug("Request with valid signature for endpoint: %s", request.url.path)
    return body


async def pull_request_hook(request: Request, body: bytes = Depends(verified_body)):
    await request.app.state.dispatcher.handle_pull_request(body)
    return Response(status_code=204)


async def comment_hook(request: Request, body: bytes = Depends(verified_body)):
    await request.app.state.dispatcher.handle_comment(body)
    return Response(status_code=204)


def create_app(settings: Settings, reporter: Optional[Reporter] = None) -> FastAPI:
    """
    Wire settings -> status reporter -> tracker -> dispatcher onto a FastAPI app.
    `reporter` overrides the GitHub-backed one (tests).
    """
    if reporter is None:
        client = GitHubClient(
            token=settings.access_token,
            base_url=settings.api_base,
            timeout=settings.request_timeout,
        )
        reporter = StatusReporter(
            client,
            settings.repo,
            description=settings.status_description,
            context=settings.status_context,
        )

    tracker = ReviewTracker(
        reporter,
        required_reviews=settings.required_reviews,
        reviewers=settings.reviewer_set,
        self_review=settings.self_review,
        dedupe_reviewers=settings.dedupe_reviewers,
    )

    app = FastAPI(title="r-plus", version="0.1.0")
    app.state.secret = settings.webhook_server.secret
    app.state.tracker = tracker
    app.state.dispatcher = EventDispatcher(tracker, settings.review_regex)

    hooks = settings.webhook_server
    app.add_api_route(hooks.pr_path, pull_request_hook, methods=["POST"], status_code=204)
    app.add_api_route(hooks.comment_path, comment_hook, methods=["POST"], status_code=204)

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "tracked": len(tracker)}

    return app
