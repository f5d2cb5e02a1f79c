"""RFC 6238 time-based one-time passwords.

Secrets are 160-bit random keys exchanged in base32. Codes are 6-digit
HMAC-SHA1 values over 30 second steps, the profile every authenticator app
understands. Generation and comparison use ``cryptography``'s twofactor
primitives; QR codes for the provisioning URI are rendered with ``qrcode``.
"""

from __future__ import annotations

import base64
import io
import secrets
import time

import qrcode
from cryptography.hazmat.primitives.hashes import SHA1
from cryptography.hazmat.primitives.twofactor import InvalidToken
from cryptography.hazmat.primitives.twofactor.totp import TOTP

CODE_LENGTH = 6
TIME_STEP = 30
SECRET_BYTES = 20
DEFAULT_WINDOW = 2


def generate_secret() -> str:
    """Return a new random base32 secret (32 characters, no padding)."""
    return base64.b32encode(secrets.token_bytes(SECRET_BYTES)).decode("ascii").rstrip("=")


def _decode_secret(secret: str) -> bytes:
    padded = secret.upper() + "=" * (-len(secret) % 8)
    return base64.b32decode(padded)


def _totp(secret: str) -> TOTP:
    return TOTP(_decode_secret(secret), CODE_LENGTH, SHA1(), TIME_STEP)


def generate_code(secret: str, at: float | None = None) -> str:
    """Return the code for ``secret`` at unix time ``at`` (default: now)."""
    when = time.time() if at is None else at
    return _totp(secret).generate(int(when)).decode("ascii")


def verify_code(
    secret: str,
    code: str,
    at: float | None = None,
    window: int = DEFAULT_WINDOW,
) -> bool:
    """Return True if ``code`` matches any step within ``window`` steps of ``at``."""
    if len(code) != CODE_LENGTH or not (code.isascii() and code.isdigit()):
        return False
    totp = _totp(secret)
    token = code.encode("ascii")
    when = int(time.time() if at is None else at)
    for offset in range(-window, window + 1):
        try:
            totp.verify(token, when + offset * TIME_STEP)
        except InvalidToken:
            continue
        return True
    return False


def provisioning_uri(secret: str, account_name: str, issuer: str) -> str:
    """Return the ``otpauth://totp/...`` URI scanned by authenticator apps."""
    return _totp(secret).get_provisioning_uri(account_name, issuer)


def qr_code_data_url(uri: str) -> str:
    """Render ``uri`` as a PNG QR code and return it as a ``data:`` URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=1,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
