"""Push payload parsing."""

import json

from hubhook.errors import InvalidPayload, MissingField


def parse_repo_and_branch(body: bytes) -> tuple[str, str]:
    """Extract `(repository.full_name, branch)` from a push payload.

    The branch is the third `/`-separated segment of `ref`
    (`refs/heads/<branch>`).

    Raises:
        InvalidPayload: If the body is not a JSON object.
        MissingField: If `repository.full_name` or `ref` is absent or malformed.
    """
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidPayload(f"Body is not valid JSON: {exc}") from None
    except RecursionError:
        raise InvalidPayload("Body is nested too deeply") from None
    if not isinstance(payload, dict):
        raise InvalidPayload("Body is not a JSON object")

    repository = payload.get("repository")
    full_name = repository.get("full_name") if isinstance(repository, dict) else None
    if not isinstance(full_name, str):
        raise MissingField("repository.full_name")

    ref = payload.get("ref")
    if not isinstance(ref, str):
        raise MissingField("ref")
    segments = ref.split("/", 2)
    if len(segments) < 3:
        raise MissingField("ref")

    return full_name, segments[2]
