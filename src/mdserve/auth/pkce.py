"""PKCE and CSRF state helpers for the OAuth flow."""
import base64
import hashlib
import secrets


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_code_verifier() -> str:
    """Generate a random 43-character URL-safe PKCE code verifier."""
    return _b64url(secrets.token_bytes(32))


def generate_code_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    Args:
        verifier: PKCE code verifier.

    Returns:
        Base64url-encoded SHA-256 digest without padding.
    """
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_state_token() -> str:
    """Generate a 32-character hex token for CSRF protection."""
    return secrets.token_hex(16)
