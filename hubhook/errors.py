"""Error taxonomy for the webhook handler and the update executor.

Handler-side errors (HookError) are raised while processing a single HTTP
request and are converted to a uniform 400 response at the router
boundary. Their `reason` code only ever reaches the logs, never the caller.

Executor-side errors (JobError) abort the current update job. The webhook
response has already been sent by then, so they are logged and dropped.
"""


class HookError(Exception):
    """Base class for failures while handling a webhook request."""

    reason = "hook_error"


class UnrecognizedEvent(HookError):
    reason = "unrecognized_event"

    def __init__(self, event: str | None):
        self.event = event
        if event is None:
            super().__init__("Missing event header")
        else:
            super().__init__(f"Unsupported event type '{event}'")


class MissingHeader(HookError):
    reason = "missing_header"

    def __init__(self, header: str):
        self.header = header
        super().__init__(f"Missing header {header}")


class MalformedSignatureHeader(MissingHeader):
    """The header is present but not usable, treated as missing."""

    reason = "malformed_signature_header"

    def __init__(self, header: str):
        self.header = header
        HookError.__init__(self, f"Malformed {header} header, expected <algorithm>=<hex-digest>")


class InvalidPayload(HookError):
    reason = "invalid_payload"


class MissingField(HookError):
    reason = "missing_field"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing or malformed field '{field}'")


class UnknownProject(HookError):
    reason = "unknown_project"

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"No project configured for repository {repo}")


class BranchMismatch(HookError):
    """The push is authentic but targets a branch we don't build."""

    reason = "branch_mismatch"

    def __init__(self, repo: str, branch: str):
        self.repo = repo
        self.branch = branch
        super().__init__(f"Push to {repo} on branch '{branch}' does not match the configured branch")


class UnsupportedDigest(HookError):
    reason = "unsupported_digest"

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"No such digest {algorithm}")


class InvalidSignature(HookError):
    reason = "invalid_signature"

    def __init__(self):
        super().__init__("Verification failed")


class DispatchFailed(HookError):
    reason = "dispatch_failed"


class JobError(Exception):
    """Base class for failures inside a single update job."""


class ProjectMissing(JobError):
    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"No repository found for {repo}")


class CommandFailed(JobError):
    def __init__(self, step: str, returncode: int, stderr: str):
        self.step = step
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command {step} exited with status {returncode}: {stderr}")


class ConfigError(Exception):
    """Raised when the projects file cannot be loaded."""
