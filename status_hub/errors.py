"""Error taxonomy shared by the verifier, the reconciler and the HTTP layer.

Every error carries a machine-readable ``code`` that ends up in the response
body as ``{"ok": false, "error": code}`` and the HTTP status it maps to.
"""

class StatusHubError(Exception):
    code = "error"
    status_code = 500

    def __init__(self, code: str = None):
        if code:
            self.code = code
        super().__init__(self.code)


class AuthError(StatusHubError):
    status_code = 401

    MISSING_HEADERS = "missing_headers"
    BAD_TIMESTAMP = "bad_ts"
    TIMESTAMP_SKEW = "ts_skew"
    BAD_SIGNATURE = "bad_signature"


class ValidationError(StatusHubError):
    status_code = 400

    MISSING_FIELDS = "missing_fields"
    INVALID_JSON = "invalid_json"


class AckError(StatusHubError):
    status_code = 400
    code = "not_ackable_or_not_found"


class PayloadTooLarge(StatusHubError):
    status_code = 413
    code = "payload_too_large"


class StoreError(StatusHubError):
    """Opaque persistence failure. The cause stays in the server log."""
    status_code = 500
    code = "server_error"
