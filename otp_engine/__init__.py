"""
otp_engine package
==================

HOTP/TOTP one-time password engine following RFC 4226 & RFC 6238,
compatible with common authenticator apps (HMAC-SHA1, 6 digits, 30s).

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC-SHA1(key=secret, msg=counter)) mod 10^digits
  → counter is an 8-byte big-endian integer (event-based tokens).

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor((timestamp - T0) / timestep)
  → default timestep = 30 seconds.

- Dynamic Truncation:
  take 4 bytes of the HMAC at offset (last byte & 0x0F), clear the top bit.

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from otp_engine import Generator
>>> Generator("12345678901234567890").get_hotp(1)
'287082'
"""
from .errors import (
    DigestLengthError,
    InvalidEncodingError,
    InvalidParameterError,
    OTPError,
)
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    Secret,
    decode_base32,
    dynamic_truncate,
    encode_base32,
    hmac_sha1,
    hotp,
    int_to_bytes,
    seconds_remaining,
    timecode,
    totp,
    verify_hotp,
    verify_totp,
)
from .otp_generator import (
    Generator,
    format_otpauth_uri,
    generate_base32_secret,
    random_int,
)

__all__ = [
    "DEFAULT_DIGITS",
    "DEFAULT_TIME_STEP",
    "DigestLengthError",
    "Generator",
    "InvalidEncodingError",
    "InvalidParameterError",
    "OTPError",
    "Secret",
    "decode_base32",
    "dynamic_truncate",
    "encode_base32",
    "format_otpauth_uri",
    "generate_base32_secret",
    "hmac_sha1",
    "hotp",
    "int_to_bytes",
    "random_int",
    "seconds_remaining",
    "timecode",
    "totp",
    "verify_hotp",
    "verify_totp",
]
