"""
otp_core.py — Core library for HOTP (RFC 4226) / TOTP (RFC 6238).

Goals:
- Pure functions only: no file I/O, no argparse, no global mutable state.
- The HMAC-SHA1 primitive comes from the `cryptography` package; any callable
  `hmac_sha1(key: bytes, message: bytes) -> bytes` can be injected instead.
- Each function documents its steps in the docstring.

Security notes:
- SHA-1 is the only supported hash: it is what legacy authenticator apps
  (Google Authenticator and friends) expect for OTP generation.
- Secrets and generated codes are never written to the log.
"""

from typing import Callable, Optional, Tuple, Union
import base64
import binascii
import hmac
import logging
import struct
import time

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.hmac import HMAC

from .errors import DigestLengthError, InvalidEncodingError, InvalidParameterError

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
MAX_DIGITS = 9              # 10**9 still fits in the 31-bit truncated value
DIGEST_SIZE = 20            # HMAC-SHA1 output length
COUNTER_MASK = 0xFFFFFFFFFFFFFFFF
ENCODINGS = ("raw", "base32")

HmacFunc = Callable[[bytes, bytes], bytes]
Clock = Callable[[], float]


# --- Secret codec ----------------------------------------------------------
def decode_base32(text: str) -> bytes:
    """
    Decode RFC 4648 base32 text into raw key bytes.

    - Case-insensitive.
    - `=` padding is optional: it is stripped and restored to a multiple of 8.

    Raises:
        InvalidEncodingError: text is not valid base32
    """
    stripped = text.rstrip("=")
    missing_padding = len(stripped) % 8
    if missing_padding:
        stripped += "=" * (8 - missing_padding)
    try:
        return base64.b32decode(stripped, casefold=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError("Invalid Base32 secret") from e


def encode_base32(data: bytes) -> str:
    """Base32-encode `data` with the `=` padding removed (otpauth convention)."""
    return base64.b32encode(bytes(data)).decode("ascii").rstrip("=")


class Secret:
    """
    Immutable shared secret (the HMAC key).

    Raw text is mapped one character per byte (Latin-1). A UTF-8 encode
    would change the key bytes seen by other implementations.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        object.__setattr__(self, "_data", bytes(data))

    def __setattr__(self, name, value):
        raise AttributeError("Secret is immutable")

    @classmethod
    def from_text(cls, secret: Union[str, bytes], encoding: str = "raw") -> "Secret":
        """
        Build a Secret from user input.

        Arguments:
            secret: raw text, base32 text, or bytes (raw encoding only)
            encoding: "raw" or "base32"

        Raises:
            InvalidEncodingError: malformed base32, or raw text outside Latin-1
            InvalidParameterError: unknown encoding name
        """
        if encoding not in ENCODINGS:
            raise InvalidParameterError(
                f"encoding must be one of {ENCODINGS}, got {encoding!r}"
            )
        if isinstance(secret, (bytes, bytearray)):
            if encoding == "base32":
                secret = bytes(secret).decode("ascii", errors="replace")
            else:
                return cls(secret)
        elif not isinstance(secret, str):
            raise InvalidParameterError(
                f"secret must be str or bytes, got {type(secret).__name__}"
            )
        if encoding == "base32":
            return cls(decode_base32(secret))
        try:
            return cls(secret.encode("latin-1"))
        except UnicodeEncodeError as e:
            raise InvalidEncodingError(
                "raw secrets may only contain characters U+0000..U+00FF"
            ) from e

    @property
    def data(self) -> bytes:
        return self._data

    def export_base32(self) -> str:
        return encode_base32(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return hmac.compare_digest(self._data, other._data)

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"Secret(<{len(self._data)} bytes>)"


def _key_bytes(secret: Union[Secret, str, bytes]) -> bytes:
    if isinstance(secret, Secret):
        return secret.data
    return Secret.from_text(secret).data


# --- RFC helpers -----------------------------------------------------------
def validate_int(name: str, value, minimum: Optional[int] = None) -> None:
    # bool is an int subclass; True as a counter is almost certainly a bug
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if minimum is not None and value < minimum:
        raise InvalidParameterError(f"{name} must be >= {minimum}, got {value}")


def validate_digits(digits: int) -> None:
    validate_int("digits", digits, 1)
    if digits > MAX_DIGITS:
        raise InvalidParameterError(
            f"digits must be no greater than {MAX_DIGITS}, got {digits}"
        )


def int_to_bytes(counter: int) -> bytes:
    """
    Serialize the counter as the 8-byte big-endian HOTP message (RFC 4226).

    Values wider than 64 bits are masked down to their low 64 bits.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        InvalidParameterError: counter is negative or not an int
    """
    validate_int("counter", counter, 0)
    return struct.pack(">Q", counter & COUNTER_MASK)


def hmac_sha1(key: bytes, message: bytes) -> bytes:
    """Default HMAC-SHA1 primitive, backed by `cryptography`."""
    h = HMAC(key, hashes.SHA1())
    h.update(message)
    return h.finalize()


def dynamic_truncate(digest: bytes) -> int:
    """
    Apply RFC 4226 §5.3 dynamic truncation.

    - offset = last_byte & 0x0F (always 0..15 for a 20-byte digest)
    - take 4 bytes starting at offset, clear the MSB of the first one
    - return a 31-bit unsigned integer

    Arguments:
        digest: HMAC-SHA1 output (20 bytes)
    Raises:
        DigestLengthError: digest is not exactly 20 bytes
    """
    if len(digest) != DIGEST_SIZE:
        raise DigestLengthError(
            f"HMAC-SHA1 digest must be {DIGEST_SIZE} bytes, got {len(digest)}"
        )
    offset = digest[-1] & 0x0F
    return (
        ((digest[offset] & 0x7F) << 24)
        | ((digest[offset + 1] & 0xFF) << 16)
        | ((digest[offset + 2] & 0xFF) << 8)
        | (digest[offset + 3] & 0xFF)
    )


def hotp(
    secret: Union[Secret, str, bytes],
    counter: int,
    digits: int = DEFAULT_DIGITS,
    hmac_func: Optional[HmacFunc] = None,
) -> str:
    """
    Generate an HOTP code per RFC 4226.

    Steps:
    1. Message = 8-byte counter (big-endian)
    2. HMAC-SHA1(key=secret, message)
    3. Dynamic truncate -> 31-bit dbc
    4. otp = dbc % 10^digits
    5. Zero-pad to exactly `digits` characters

    Arguments:
        secret: Secret instance, raw text (Latin-1) or bytes
        counter: non-negative integer counter
        digits: code length, 1..9
        hmac_func: optional replacement for the HMAC-SHA1 primitive

    Returns:
        str: zero-padded HOTP code

    Raises:
        InvalidParameterError: bad counter or digits
        DigestLengthError: the primitive returned a digest that is not 20 bytes
    """
    validate_digits(digits)
    msg = int_to_bytes(counter)
    primitive = hmac_func or hmac_sha1
    digest = primitive(_key_bytes(secret), msg)
    if not isinstance(digest, (bytes, bytearray, memoryview)):
        raise DigestLengthError(
            f"HMAC-SHA1 primitive must return bytes, got {type(digest).__name__}"
        )
    digest = bytes(digest)
    dbc = dynamic_truncate(digest)
    logger.debug("HOTP: counter=%d digits=%d", counter, digits)
    return str(dbc % (10 ** digits)).zfill(digits)


def _codes_equal(expected: str, code) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), str(code).encode("utf-8"))


def verify_hotp(
    secret: Union[Secret, str, bytes],
    code: str,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    look_ahead: int = 0,
    hmac_func: Optional[HmacFunc] = None,
) -> Tuple[bool, int]:
    """
    Verify a user-supplied HOTP code against counter .. counter + look_ahead.

    Returns:
        (True, matched_counter + 1) on success, (False, counter) otherwise.
        The second item is the counter the verifier should store next.
    """
    validate_int("counter", counter, 0)
    validate_int("look_ahead", look_ahead, 0)
    for candidate in range(counter, counter + look_ahead + 1):
        if _codes_equal(hotp(secret, candidate, digits, hmac_func), code):
            return True, candidate + 1
    logger.debug("HOTP verification failed: counter=%d look_ahead=%d", counter, look_ahead)
    return False, counter


# --- TOTP ------------------------------------------------------------------
def timecode(for_time: float, step_seconds: int = DEFAULT_TIME_STEP, t0: int = 0) -> int:
    """
    TOTP counter for a unix timestamp: floor((for_time - t0) / step_seconds).
    """
    validate_int("step_seconds", step_seconds, 1)
    return int((for_time - t0) // step_seconds)


def totp(
    secret: Union[Secret, str, bytes],
    step_seconds: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    clock: Clock = time.time,
    t0: int = 0,
    hmac_func: Optional[HmacFunc] = None,
) -> str:
    """
    Generate a TOTP code per RFC 6238: HOTP(counter = floor((now - T0) / X)).

    Arguments:
        secret: Secret instance, raw text (Latin-1) or bytes
        step_seconds: X (seconds), default 30
        digits: code length
        clock: zero-argument callable returning unix seconds
        t0: start time offset, default 0

    Notes:
        - The clock is read exactly once per call.
    """
    now = clock()
    counter = timecode(now, step_seconds, t0)
    logger.debug("TOTP: time=%s step=%d counter=%d", now, step_seconds, counter)
    return hotp(secret, counter, digits, hmac_func)


def seconds_remaining(
    step_seconds: int = DEFAULT_TIME_STEP, clock: Clock = time.time, t0: int = 0
) -> int:
    """Seconds left before the current TOTP step rolls over (1..step_seconds)."""
    validate_int("step_seconds", step_seconds, 1)
    return int(step_seconds - ((int(clock()) - t0) % step_seconds))


def verify_totp(
    secret: Union[Secret, str, bytes],
    code: str,
    step_seconds: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    window: int = 1,
    clock: Clock = time.time,
    t0: int = 0,
    hmac_func: Optional[HmacFunc] = None,
) -> bool:
    """
    Verify a user-supplied TOTP code, tolerating +/- `window` steps of clock drift.
    """
    validate_int("window", window, 0)
    counter = timecode(clock(), step_seconds, t0)
    for offset in range(-window, window + 1):
        candidate = counter + offset
        if candidate < 0:
            continue
        if _codes_equal(hotp(secret, candidate, digits, hmac_func), code):
            return True
    logger.debug("TOTP verification failed: counter=%d window=%d", counter, window)
    return False
