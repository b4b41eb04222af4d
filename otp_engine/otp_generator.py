"""
otp_generator.py — Stateful OTP generator bound to one shared secret.

Features:
- Generator: wraps an immutable Secret plus digits / step / clock settings and
  exposes get_hotp(), get_totp(), get_base32_secret() and verification helpers
- Generate a production Base32 secret from os.urandom (CSPRNG)
- Build otpauth:// URIs to import into authenticator apps
- random_int(): demonstration-only integer helper with an injectable source

Usage examples:
  gen = Generator("12345678901234567890")
  gen.get_hotp(0)            # -> "755224"
  gen = Generator(generate_base32_secret(), encoding="base32")
  gen.provisioning_uri("alice@example", issuer="otp-tool")

Security note:
  random_int() uses a non-cryptographic PRNG. Never derive real secrets from
  it; use generate_base32_secret() instead.
"""

from typing import Optional, Tuple, Union
from urllib.parse import quote, urlencode
import logging
import os
import random
import time

from . import otp_core
from .errors import InvalidParameterError
from .otp_core import DEFAULT_DIGITS, DEFAULT_TIME_STEP, Clock, HmacFunc, Secret

logger = logging.getLogger(__name__)

SECRET_BYTES = 20       # 160-bit secret, RFC 4226 recommendation
MIN_SECRET_BYTES = 16   # RFC 4226 §4 R6: at least 128 bits

_default_rng = random.Random()


def random_int(min_value: int, max_value: int, rng: Optional[random.Random] = None) -> int:
    """
    Return an integer in [min_value, max_value).

    Not suitable for secret generation: the default source is a plain
    Mersenne Twister. Pass `rng` to make results reproducible in tests.
    """
    otp_core.validate_int("min_value", min_value)
    otp_core.validate_int("max_value", max_value)
    if max_value <= min_value:
        raise InvalidParameterError(
            f"max_value must be greater than min_value ({max_value} <= {min_value})"
        )
    return (rng or _default_rng).randrange(min_value, max_value)


def generate_base32_secret(num_bytes: int = SECRET_BYTES) -> str:
    """
    Generate a random secret and return it as Base32 (no padding).

    - `num_bytes` bytes come from os.urandom (CSPRNG).
    - Base32 so it can be typed into Google Authenticator / Authy.

    Returns:
        str: Base32 secret (e.g. "JBSWY3DPEHPK3PXP...")
    """
    if isinstance(num_bytes, bool) or not isinstance(num_bytes, int) or num_bytes < MIN_SECRET_BYTES:
        raise InvalidParameterError(
            f"secrets should be at least {MIN_SECRET_BYTES} bytes, got {num_bytes!r}"
        )
    return otp_core.encode_base32(os.urandom(num_bytes))


def format_otpauth_uri(
    secret_b32: str,
    account: str,
    issuer: Optional[str] = None,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_TIME_STEP,
    counter: Optional[int] = None,
) -> str:
    """
    Build an otpauth:// URI for authenticator apps (Key Uri Format).

    - TOTP (counter is None): otpauth://totp/{issuer}:{account}?secret=...&algorithm=SHA1&digits=...&period=...
    - HOTP: otpauth://hotp/{issuer}:{account}?secret=...&algorithm=SHA1&digits=...&counter=...

    The label and every query value are URL-encoded.
    """
    otp_type = "totp" if counter is None else "hotp"
    label = quote(account, safe="")
    params = [("secret", secret_b32)]
    if issuer:
        label = quote(issuer, safe="") + ":" + label
        params.append(("issuer", issuer))
    params.append(("algorithm", "SHA1"))
    params.append(("digits", digits))
    if counter is None:
        params.append(("period", period))
    else:
        params.append(("counter", counter))
    query = urlencode(params).replace("+", "%20")
    return f"otpauth://{otp_type}/{label}?{query}"


class Generator:
    """
    OTP generator bound to a single shared secret.

    The secret is decoded once at construction and never changes afterwards,
    so one instance can be shared between threads.
    """

    def __init__(
        self,
        secret: Union[str, bytes],
        encoding: str = "raw",
        digits: int = DEFAULT_DIGITS,
        step_seconds: int = DEFAULT_TIME_STEP,
        clock: Optional[Clock] = None,
        hmac_func: Optional[HmacFunc] = None,
    ) -> None:
        """
        :param secret: shared secret, raw text (Latin-1), bytes, or base32 text
        :param encoding: "raw" or "base32"
        :param digits: code length, 1..9
        :param step_seconds: TOTP time step
        :param clock: zero-argument callable returning unix seconds, defaults to time.time
        :param hmac_func: replacement HMAC-SHA1 primitive
        """
        otp_core.validate_digits(digits)
        otp_core.validate_int("step_seconds", step_seconds, 1)
        self._secret = Secret.from_text(secret, encoding)
        self.digits = digits
        self.step_seconds = step_seconds
        self.clock = clock or time.time
        self.hmac_func = hmac_func

    @property
    def secret(self) -> Secret:
        return self._secret

    def get_hotp(self, counter: int) -> str:
        """HOTP code for `counter`."""
        return otp_core.hotp(self._secret, counter, self.digits, self.hmac_func)

    def get_totp(self) -> str:
        """TOTP code for the current clock reading."""
        return otp_core.totp(
            self._secret,
            step_seconds=self.step_seconds,
            digits=self.digits,
            clock=self.clock,
            hmac_func=self.hmac_func,
        )

    def get_base32_secret(self) -> str:
        return self._secret.export_base32()

    def seconds_remaining(self) -> int:
        return otp_core.seconds_remaining(self.step_seconds, self.clock)

    def verify_hotp(self, code: str, counter: int, look_ahead: int = 0) -> Tuple[bool, int]:
        return otp_core.verify_hotp(
            self._secret, code, counter, self.digits, look_ahead, self.hmac_func
        )

    def verify_totp(self, code: str, window: int = 1) -> bool:
        return otp_core.verify_totp(
            self._secret,
            code,
            step_seconds=self.step_seconds,
            digits=self.digits,
            window=window,
            clock=self.clock,
            hmac_func=self.hmac_func,
        )

    def provisioning_uri(
        self, account: str, issuer: Optional[str] = None, counter: Optional[int] = None
    ) -> str:
        """
        otpauth:// URI for this generator; pass `counter` to get an HOTP URI.
        """
        logger.debug("Building %s provisioning URI", "totp" if counter is None else "hotp")
        return format_otpauth_uri(
            self.get_base32_secret(),
            account,
            issuer=issuer,
            digits=self.digits,
            period=self.step_seconds,
            counter=counter,
        )

    def __repr__(self) -> str:
        return f"Generator(digits={self.digits}, step_seconds={self.step_seconds})"
