import hashlib
import hmac
import pytest

from status_hub.errors import AuthError
from status_hub.signing import verify_request, sign_request, compute_signature

SECRET = "s3cret"
BODY = b'{"component":"API","severity":"warning"}'
TS = 1_700_000_000_000
NONCE = "abc123"


def headers_for(body=BODY, ts=TS, nonce=NONCE, secret=SECRET):
    return sign_request(secret, body, ts=ts, nonce=nonce)


def assert_auth_error(code, *args, **kwargs):
    with pytest.raises(AuthError) as exc:
        verify_request(*args, **kwargs)
    assert exc.value.code == code


def test_signature_matches_reference_hmac():
    expected = hmac.new(SECRET.encode(), f"{TS}.{NONCE}.".encode() + BODY, hashlib.sha256).hexdigest()
    assert compute_signature(SECRET, str(TS), NONCE, BODY) == expected
    assert headers_for()["x-signature"] == expected


def test_valid_signature_inside_window():
    verify_request(headers_for(), BODY, SECRET, now=TS)
    verify_request(headers_for(), BODY, SECRET, now=TS + 120_000)
    verify_request(headers_for(), BODY, SECRET, now=TS - 120_000)


def test_skew_outside_window():
    assert_auth_error(AuthError.TIMESTAMP_SKEW, headers_for(), BODY, SECRET, now=TS + 121_000)
    assert_auth_error(AuthError.TIMESTAMP_SKEW, headers_for(), BODY, SECRET, now=TS - 121_000)


@pytest.mark.parametrize("missing", ["x-ts", "x-nonce", "x-signature"])
def test_missing_header(missing):
    headers = headers_for()
    del headers[missing]
    assert_auth_error(AuthError.MISSING_HEADERS, headers, BODY, SECRET, now=TS)


def test_empty_header_counts_as_missing():
    headers = headers_for()
    headers["x-nonce"] = ""
    assert_auth_error(AuthError.MISSING_HEADERS, headers, BODY, SECRET, now=TS)


@pytest.mark.parametrize("ts", ["soon", "nan", "inf", "12abc"])
def test_bad_timestamp(ts):
    headers = headers_for()
    headers["x-ts"] = ts
    assert_auth_error(AuthError.BAD_TIMESTAMP, headers, BODY, SECRET, now=TS)


def test_body_mutation_fails():
    tampered = BODY.replace(b"warning", b"warninG")
    assert_auth_error(AuthError.BAD_SIGNATURE, headers_for(), tampered, SECRET, now=TS)


def test_timestamp_mutation_fails():
    headers = headers_for()
    headers["x-ts"] = str(TS + 1)
    assert_auth_error(AuthError.BAD_SIGNATURE, headers, BODY, SECRET, now=TS)


def test_nonce_mutation_fails():
    headers = headers_for()
    headers["x-nonce"] = "abc124"
    assert_auth_error(AuthError.BAD_SIGNATURE, headers, BODY, SECRET, now=TS)


def test_wrong_secret_fails():
    assert_auth_error(AuthError.BAD_SIGNATURE, headers_for(secret="other"), BODY, SECRET, now=TS)


@pytest.mark.parametrize("sig", ["zz" * 32, "abc", "ab" * 16, "ab" * 33])
def test_malformed_signature_is_rejected_not_raised(sig):
    headers = headers_for()
    headers["x-signature"] = sig
    assert_auth_error(AuthError.BAD_SIGNATURE, headers, BODY, SECRET, now=TS)


def test_uppercase_hex_signature_accepted():
    headers = headers_for()
    headers["x-signature"] = headers["x-signature"].upper()
    verify_request(headers, BODY, SECRET, now=TS)


def test_empty_body_signs_trailing_dot():
    headers = headers_for(body=b"")
    assert headers["x-signature"] == compute_signature(SECRET, str(TS), NONCE, b"")
    verify_request(headers, b"", SECRET, now=TS)


def test_sign_request_generates_nonce_and_ts():
    headers = sign_request(SECRET, BODY)
    assert len(headers["x-nonce"]) == 32
    verify_request(headers, BODY, SECRET)
