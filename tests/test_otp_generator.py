import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from otp_engine import (
    Generator,
    InvalidEncodingError,
    InvalidParameterError,
    format_otpauth_uri,
    generate_base32_secret,
    random_int,
)
from otp_engine.otp_core import decode_base32

RFC_SECRET = "12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_get_hotp_raw_and_base32_agree():
    raw = Generator(RFC_SECRET)
    b32 = Generator(RFC_SECRET_B32, encoding="base32")
    assert raw.get_hotp(0) == "755224"
    assert raw.get_hotp(9) == "520489"
    assert [raw.get_hotp(c) for c in range(10)] == [b32.get_hotp(c) for c in range(10)]


def test_get_hotp_custom_digits():
    assert Generator(RFC_SECRET, digits=8).get_hotp(1) == "94287082"


def test_get_totp_uses_injected_clock():
    clock = FakeClock(59)
    gen = Generator(RFC_SECRET, clock=clock)
    assert gen.get_totp() == "287082"
    clock.now = 31
    assert gen.get_totp() == "287082"
    clock.now = 29
    assert gen.get_totp() == "755224"


def test_get_totp_custom_step():
    gen = Generator(RFC_SECRET, step_seconds=60, clock=FakeClock(119))
    assert gen.get_totp() == "287082"
    assert gen.seconds_remaining() == 1


def test_get_totp_defaults_to_system_clock():
    gen = Generator(RFC_SECRET)
    code = gen.get_totp()
    assert len(code) == 6 and code.isdigit()
    assert 1 <= gen.seconds_remaining() <= 30


def test_get_base32_secret():
    assert Generator(RFC_SECRET).get_base32_secret() == RFC_SECRET_B32
    assert Generator("a").get_base32_secret() == "ME"
    assert Generator(RFC_SECRET_B32.lower(), encoding="base32").get_base32_secret() == RFC_SECRET_B32


def test_invalid_base32_fails_at_construction():
    with pytest.raises(InvalidEncodingError):
        Generator("not base32!", encoding="base32")


@pytest.mark.parametrize("kwargs", [
    {"digits": 0},
    {"digits": 10},
    {"step_seconds": 0},
    {"encoding": "utf8"},
])
def test_invalid_parameters_fail_at_construction(kwargs):
    with pytest.raises(InvalidParameterError):
        Generator(RFC_SECRET, **kwargs)


def test_get_hotp_rejects_negative_counter():
    with pytest.raises(InvalidParameterError):
        Generator(RFC_SECRET).get_hotp(-5)


def test_verify_helpers():
    gen = Generator(RFC_SECRET, clock=FakeClock(59))
    assert gen.verify_hotp("287082", 1) == (True, 2)
    assert gen.verify_hotp("287082", 0, look_ahead=1) == (True, 2)
    assert gen.verify_hotp("287082", 2, look_ahead=5) == (False, 2)
    assert gen.verify_totp("287082", window=0)
    assert gen.verify_totp("755224")
    assert not gen.verify_totp("123456")


def test_injected_primitive_is_used():
    gen = Generator(RFC_SECRET, hmac_func=lambda key, msg: b"\xff" * 20)
    # 2**31 - 1 = 2147483647
    assert gen.get_hotp(0) == "483647"


def test_secret_not_exposed_in_repr():
    gen = Generator(RFC_SECRET)
    assert RFC_SECRET not in repr(gen)
    assert RFC_SECRET not in repr(gen.secret)


def test_generator_is_thread_safe():
    gen = Generator(RFC_SECRET)
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(gen.get_hotp, [c % 10 for c in range(200)]))
    assert results == [gen.get_hotp(c % 10) for c in range(200)]


# --- random_int ------------------------------------------------------------

def test_random_int_range():
    rng = random.Random(1234)
    values = [random_int(5, 10, rng) for _ in range(500)]
    assert min(values) >= 5
    assert max(values) <= 9
    assert set(values) == {5, 6, 7, 8, 9}


def test_random_int_uses_injected_source():
    assert random_int(0, 10 ** 12, random.Random(7)) == random.Random(7).randrange(0, 10 ** 12)


def test_random_int_default_source():
    assert 0 <= random_int(0, 100) < 100


@pytest.mark.parametrize("bounds", [(5, 5), (10, 1)])
def test_random_int_rejects_empty_range(bounds):
    with pytest.raises(InvalidParameterError):
        random_int(*bounds)


# --- secret generation -----------------------------------------------------

def test_generate_base32_secret():
    secret = generate_base32_secret()
    assert "=" not in secret
    assert len(decode_base32(secret)) == 20
    assert secret != generate_base32_secret()
    Generator(secret, encoding="base32").get_totp()


def test_generate_base32_secret_rejects_short_secrets():
    with pytest.raises(InvalidParameterError):
        generate_base32_secret(10)
    assert len(decode_base32(generate_base32_secret(32))) == 32


# --- otpauth URIs ----------------------------------------------------------

def test_totp_provisioning_uri():
    uri = Generator(RFC_SECRET).provisioning_uri("alice@example.com", issuer="ACME Co")
    assert uri == (
        "otpauth://totp/ACME%20Co:alice%40example.com"
        "?secret=GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ&issuer=ACME%20Co"
        "&algorithm=SHA1&digits=6&period=30"
    )


def test_hotp_provisioning_uri():
    uri = Generator(RFC_SECRET, digits=8).provisioning_uri("bob", counter=5)
    assert uri == (
        "otpauth://hotp/bob?secret=GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
        "&algorithm=SHA1&digits=8&counter=5"
    )


def test_format_otpauth_uri_counter_zero_is_hotp():
    assert format_otpauth_uri("ME", "x", counter=0).startswith("otpauth://hotp/x?")


def test_provisioning_uri_escapes_slashes_in_label():
    uri = Generator(RFC_SECRET).provisioning_uri("dept/alice", issuer="ACME/EU")
    assert uri.startswith("otpauth://totp/ACME%2FEU:dept%2Falice?")
    assert "issuer=ACME%2FEU" in uri


@pytest.mark.parametrize("bounds", [(0.5, 10), (0, 10.0), (True, 10), ("0", "10")])
def test_random_int_rejects_non_integer_bounds(bounds):
    with pytest.raises(InvalidParameterError):
        random_int(*bounds)


def test_random_int_allows_negative_bounds():
    assert -10 <= random_int(-10, -5, random.Random(3)) < -5
