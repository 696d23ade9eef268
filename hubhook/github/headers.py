"""Typed extraction of the GitHub webhook headers.

Each supported header has a pure parser from its raw value to a typed
value. Only ping and push events are of interest; anything else is
rejected before the body is read.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from hubhook.errors import MalformedSignatureHeader, MissingHeader, UnrecognizedEvent

EVENT_HEADER = "X-GitHub-Event"
SIGNATURE_HEADER = "X-Hub-Signature"


class GithubEvent(str, Enum):
    PING = "ping"
    PUSH = "push"


@dataclass(frozen=True)
class HubSignature:
    """Parsed `<algorithm>=<hex-digest>` signature header."""

    algorithm: str
    hex_digest: str

    def __repr__(self) -> str:
        return f"{self.algorithm}={self.hex_digest}"


def parse_event(value: str) -> GithubEvent:
    try:
        return GithubEvent(value.strip())
    except ValueError:
        raise UnrecognizedEvent(value) from None


def parse_signature(value: str) -> HubSignature:
    algorithm, sep, hex_digest = value.strip().partition("=")
    if not sep or not algorithm or not hex_digest:
        raise MalformedSignatureHeader(SIGNATURE_HEADER)
    return HubSignature(algorithm=algorithm, hex_digest=hex_digest)


HEADER_PARSERS: dict[str, Callable[[str], Any]] = {
    EVENT_HEADER: parse_event,
    SIGNATURE_HEADER: parse_signature,
}


def get_event(headers: Mapping[str, str]) -> GithubEvent:
    """Return the event type, raising UnrecognizedEvent if missing or unsupported."""
    value = headers.get(EVENT_HEADER)
    if value is None:
        raise UnrecognizedEvent(None)
    return HEADER_PARSERS[EVENT_HEADER](value)


def get_signature(headers: Mapping[str, str]) -> HubSignature:
    """Return the parsed signature, raising MissingHeader if absent or malformed."""
    value = headers.get(SIGNATURE_HEADER)
    if value is None:
        raise MissingHeader(SIGNATURE_HEADER)
    return HEADER_PARSERS[SIGNATURE_HEADER](value)
