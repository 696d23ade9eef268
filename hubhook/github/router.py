"""Webhook endpoint.

Every path and method lands here. Per request:

  1. Classify the event from X-GitHub-Event; only ping and push are accepted.
  2. Ping is answered with "Pong" without any signature check.
  3. Push: parse the signature header, read the raw body, extract the
     repository and branch, look up the project, verify the signature with
     the project's secret, check the branch, and enqueue the repository
     on the trigger channel.

The signature is verified before the branch is compared, so an
unauthenticated caller never learns which branch a project builds. All
failures produce the same 400 "Bad Request" response; the reason only
appears in the server log.
"""

import sentry_sdk
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from hubhook.engine.channel import TriggerChannel
from hubhook.errors import BranchMismatch, DispatchFailed, HookError, UnknownProject
from hubhook.github.headers import GithubEvent, HubSignature, get_event, get_signature
from hubhook.github.payload import parse_repo_and_branch
from hubhook.github.signature import verify
from hubhook.projects.registry import ProjectRegistry

router = APIRouter(tags=["webhook"])

WEBHOOK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

PONG = "Pong"
TRIGGERED = "Update triggered"
BAD_REQUEST = "Bad Request"


def handle_push(
    signature: HubSignature,
    body: bytes,
    registry: ProjectRegistry,
    channel: TriggerChannel,
    *,
    log_digests: bool = False,
) -> str:
    """Authenticate a push delivery and trigger an update for its project.

    Returns the repository full name that was enqueued.

    Raises:
        InvalidPayload, MissingField: The body is not a usable push payload.
        UnknownProject: No project is configured for the repository.
        UnsupportedDigest, InvalidSignature: Authentication failed.
        BranchMismatch: Authentic push to a branch the project does not build.
        DispatchFailed: The trigger channel is closed.
    """
    repo, branch = parse_repo_and_branch(body)

    project = registry.lookup(repo)
    if project is None:
        raise UnknownProject(repo)

    verify(
        signature.algorithm,
        project.secret.get_secret_value(),
        signature.hex_digest,
        body,
        log_digests=log_digests,
    )

    if branch != project.branch:
        raise BranchMismatch(repo, branch)

    channel.send(repo)
    return repo


def _target(request: Request) -> str:
    target = request.url.path
    if request.url.query:
        target += f"?{request.url.query}"
    return target


@router.api_route("/{path:path}", methods=WEBHOOK_METHODS, response_class=PlainTextResponse)
async def handle_webhook(request: Request, path: str) -> PlainTextResponse:
    log = structlog.get_logger(__name__).bind(
        remote=request.client.host if request.client else "unknown",
        target=_target(request),
    )
    state = request.app.state

    try:
        event = get_event(request.headers)
        if event is GithubEvent.PING:
            log.info("webhook_ping")
            return PlainTextResponse(PONG)

        signature = get_signature(request.headers)
        body = await request.body()
        repo = handle_push(
            signature,
            body,
            state.conf.projects,
            state.channel,
            log_digests=state.settings.log_signature_digests,
        )
    except HookError as exc:
        log.error("webhook_rejected", reason=exc.reason, detail=str(exc))
        if isinstance(exc, DispatchFailed):
            sentry_sdk.capture_exception(exc)
        return PlainTextResponse(BAD_REQUEST, status_code=400)

    log.info("webhook_accepted", repo=repo, pending=state.channel.pending())
    return PlainTextResponse(TRIGGERED)
