"""Webhook signature verification.

GitHub signs each delivery with an HMAC of the raw request body using the
secret shared with the project. Verification must run over the exact
bytes received; re-serialising the JSON changes them.

The comparison uses hmac.compare_digest so its duration does not depend
on how many leading bytes match.
"""

import hashlib
import hmac
import logging
import re

from hubhook.errors import InvalidSignature, UnsupportedDigest

logger = logging.getLogger(__name__)

SUPPORTED_DIGESTS = {
    "sha1": hashlib.sha1,
}

_HEX_DIGEST = re.compile(r"[0-9a-fA-F]+")


def verify(
    algorithm: str,
    key: bytes,
    expected_hex: str,
    body: bytes,
    *,
    log_digests: bool = False,
) -> None:
    """Verify that `body` was signed with `key`.

    Args:
        algorithm: Digest name from the signature header. Only "sha1" is supported.
        key: The project's shared secret.
        expected_hex: Hex digest taken from the signature header.
        body: Raw request body bytes.
        log_digests: Log both digests at DEBUG on mismatch. Off by default.

    Raises:
        UnsupportedDigest: If `algorithm` is not supported.
        InvalidSignature: If the digests differ or `expected_hex` is not hex.
    """
    digestmod = SUPPORTED_DIGESTS.get(algorithm)
    if digestmod is None:
        raise UnsupportedDigest(algorithm)

    computed = hmac.new(key, body, digestmod).digest()
    if not _HEX_DIGEST.fullmatch(expected_hex) or len(expected_hex) % 2:
        raise InvalidSignature()
    expected = bytes.fromhex(expected_hex)

    if not hmac.compare_digest(computed, expected):
        if log_digests:
            logger.debug(
                "Signature mismatch: computed=%s expected=%s",
                computed.hex(),
                expected_hex,
            )
        raise InvalidSignature()
