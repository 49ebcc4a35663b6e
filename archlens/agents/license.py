"""
Offline license key validation for archlens pro agents.

Key format: AL-PRO-<payload>-<signature>, where the signature is the
first 16 hex characters of HMAC-SHA256(secret, payload). A payload that
starts with YYYYMMDD carries an expiry date.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from datetime import date, datetime, timezone

from archlens.models import LicenseInfo, Tier

logger = logging.getLogger(__name__)

LICENSE_PREFIX = "AL-PRO-"
HMAC_SECRET = b"archlens-agents-v1"
SIGNATURE_LENGTH = 16

_EXPIRY = re.compile(r"^(\d{4})(\d{2})(\d{2})")


def _sign(payload: str) -> str:
    return hmac.new(HMAC_SECRET, payload.encode("utf-8"), hashlib.sha256).hexdigest()[:SIGNATURE_LENGTH]


def validate_license(key: str | None, today: date | None = None) -> LicenseInfo:
    """
    Validate a license key without network access.

    Args:
        key: The license key from config, or None.
        today: Date to check expiry against (defaults to today in UTC).

    Returns:
        LicenseInfo; `valid` is False with a `message` for missing,
        malformed, forged or expired keys. The expiry date is the last
        valid day.
    """
    if not key:
        return LicenseInfo(valid=False, message="No license key provided")

    key = key.strip()
    if not key.startswith(LICENSE_PREFIX):
        return LicenseInfo(valid=False, message="Invalid license format")

    payload, sep, signature = key[len(LICENSE_PREFIX):].rpartition("-")
    if not sep or not payload or not signature:
        return LicenseInfo(valid=False, message="Invalid license format")

    if not hmac.compare_digest(signature.lower(), _sign(payload)):
        return LicenseInfo(valid=False, message="Invalid license key")

    m = _EXPIRY.match(payload)
    if not m:
        return LicenseInfo(valid=True, tier=Tier.PRO)

    try:
        expires = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return LicenseInfo(valid=False, message="Invalid license expiry date")

    today = today or datetime.now(timezone.utc).date()
    if expires < today:
        logger.debug("License expired on %s", expires.isoformat())
        return LicenseInfo(valid=False, expires_at=expires.isoformat(), message="License expired")
    return LicenseInfo(valid=True, tier=Tier.PRO, expires_at=expires.isoformat())
