import hashlib
import hmac
import math
import secrets
import time
from typing import Mapping, Optional

from status_hub.errors import AuthError

TS_HEADER = "x-ts"
NONCE_HEADER = "x-nonce"
SIGNATURE_HEADER = "x-signature"

DEFAULT_TOLERANCE_MS = 120_000


def now_ms() -> int:
    return int(time.time() * 1000)


def signing_payload(ts: str, nonce: str, body: bytes) -> bytes:
    """Canonical string "{ts}.{nonce}.{body}" over the exact wire bytes."""
    return f"{ts}.{nonce}.".encode() + body


def compute_signature(secret: str, ts: str, nonce: str, body: bytes) -> str:
    return hmac.new(secret.encode(), msg=signing_payload(ts, nonce, body), digestmod=hashlib.sha256).hexdigest()


def sign_request(secret: str, body: bytes, ts: Optional[int] = None, nonce: Optional[str] = None) -> dict:
    """Headers a reporter attaches to a POST /api/ingest call."""
    ts_str = str(now_ms() if ts is None else ts)
    nonce = nonce or secrets.token_hex(16)
    return {
        TS_HEADER: ts_str,
        NONCE_HEADER: nonce,
        SIGNATURE_HEADER: compute_signature(secret, ts_str, nonce, body),
    }


def _hex_equal(expected: str, supplied: str) -> bool:
    try:
        a = bytes.fromhex(expected)
        b = bytes.fromhex(supplied)
    except ValueError:
        return False
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)


def verify_request(
    headers: Mapping[str, str],
    body: bytes,
    secret: str,
    now: Optional[float] = None,
    tolerance_ms: int = DEFAULT_TOLERANCE_MS,
) -> None:
    """
    Checks the signing headers of an ingest request.
    Returns None when the request is authentic, raises AuthError otherwise.
    Nonces are accepted but not remembered, so a captured request can be
    replayed until its timestamp leaves the tolerance window.
    """
    ts = headers.get(TS_HEADER)
    nonce = headers.get(NONCE_HEADER)
    sig = headers.get(SIGNATURE_HEADER)

    if not ts or not nonce or not sig:
        raise AuthError(AuthError.MISSING_HEADERS)

    try:
        ts_num = float(ts)
    except ValueError:
        raise AuthError(AuthError.BAD_TIMESTAMP)
    if not math.isfinite(ts_num):
        raise AuthError(AuthError.BAD_TIMESTAMP)

    if now is None:
        now = now_ms()
    if abs(now - ts_num) > tolerance_ms:
        raise AuthError(AuthError.TIMESTAMP_SKEW)

    expected = compute_signature(secret, ts, nonce, body or b"")
    if not _hex_equal(expected, sig):
        raise AuthError(AuthError.BAD_SIGNATURE)
