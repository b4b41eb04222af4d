"""
errors.py — Exception types raised by otp_engine.

All errors derive from ValueError so callers that already guard OTP calls
with `except ValueError` keep working.
"""


class OTPError(ValueError):
    """Base class for every error raised by the OTP engine."""


class InvalidEncodingError(OTPError):
    """Secret text could not be decoded (bad base32, or raw text outside Latin-1)."""


class DigestLengthError(OTPError):
    """The HMAC-SHA1 primitive returned a digest that is not 20 bytes long."""


class InvalidParameterError(OTPError):
    """A numeric or enum argument is outside its allowed range."""
