import hashlib
import hmac
from datetime import date

import pytest

from archlens.agents.license import validate_license
from archlens.models import Tier


def sign(payload):
    signature = hmac.new(b"archlens-agents-v1", payload.encode(), hashlib.sha256).hexdigest()[:16]
    return f"AL-PRO-{payload}-{signature}"


def test_missing_key():
    info = validate_license(None)
    assert not info.valid
    assert info.tier is Tier.FREE
    assert info.message == "No license key provided"


@pytest.mark.parametrize("key", ["XX-PRO-team-abcdef0123456789", "AL-PRO-nodash", "AL-PRO--abc", "AL-PRO-team-"])
def test_bad_format(key):
    info = validate_license(key)
    assert not info.valid
    assert info.message == "Invalid license format"


def test_forged_signature():
    info = validate_license("AL-PRO-team-0000000000000000")
    assert not info.valid
    assert info.message == "Invalid license key"


def test_key_without_expiry():
    info = validate_license(sign("team42"))
    assert info.valid
    assert info.tier is Tier.PRO
    assert info.expires_at is None


def test_surrounding_whitespace_and_upper_case_signature():
    key = sign("team42")
    prefix, signature = key.rsplit("-", 1)
    assert validate_license(f"  {prefix}-{signature.upper()}\n").valid


def test_expiry_day_is_still_valid():
    key = sign("20240101-acme")
    info = validate_license(key, today=date(2024, 1, 1))
    assert info.valid
    assert info.expires_at == "2024-01-01"


def test_expired_key():
    info = validate_license(sign("20240101-acme"), today=date(2024, 1, 2))
    assert not info.valid
    assert info.message == "License expired"
    assert info.expires_at == "2024-01-01"


def test_impossible_expiry_date():
    info = validate_license(sign("20241399-acme"))
    assert not info.valid
    assert info.message == "Invalid license expiry date"
