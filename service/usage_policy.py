"""
Usage accounting rules: counter reconciliation and quota/expiry policy.
Pure functions, shared by the aggregator and the read path.
"""

import math
from datetime import datetime
from typing import Optional, Tuple
from config.constants import BYTES_PER_GB, SECONDS_PER_DAY, NO_EXPIRY_DAYS, UNLIMITED_QUOTA
from core.share_link import ShareLinkBuilder
from data.models import UsageEntry, UserRecord, UserSnapshot
from service.units import bytes_to_gb

EXPIRY_FORMAT = "%Y-%m-%d %H:%M:%S"

def reconcile(previous: Optional[UsageEntry], raw_bytes: int) -> Tuple[UsageEntry, bool]:
    """
    Fold one raw counter observation into the accumulator.

    Returns the new entry and whether it differs from the previous one.
    The first observation only establishes the baseline. A raw value below
    the last one means the counter was reset, so the whole raw value is
    usage since the reset.
    """
    if previous is None:
        return UsageEntry(accum_bytes=0, last_raw_bytes=raw_bytes), True
    if raw_bytes == previous.last_raw_bytes:
        return previous, False
    if raw_bytes > previous.last_raw_bytes:
        delta = raw_bytes - previous.last_raw_bytes
        return UsageEntry(previous.accum_bytes + delta, raw_bytes), True
    return UsageEntry(previous.accum_bytes + raw_bytes, raw_bytes), True

def parse_expiry(expiry: str) -> Optional[datetime]:
    if not expiry:
        return None
    try:
        return datetime.strptime(expiry, EXPIRY_FORMAT)
    except ValueError:
        return None

def days_left(expiry: str, now: datetime) -> int:
    expires_at = parse_expiry(expiry)
    if expires_at is None:
        return NO_EXPIRY_DAYS
    return max(0, math.ceil((expires_at - now).total_seconds() / SECONDS_PER_DAY))

def is_policy_enabled(user: UserRecord, usage_gb_precise: float, remaining_days: int) -> bool:
    """Stored flag AND within quota AND not expired. Never turns a disabled user back on."""
    if not user.enabled:
        return False
    if user.has_quota and usage_gb_precise >= user.quota:
        return False
    if remaining_days != NO_EXPIRY_DAYS and remaining_days <= 0:
        return False
    return True

def build_snapshot(user: UserRecord, entry: UsageEntry, now: datetime,
                   links: ShareLinkBuilder, apply_policy: bool = True) -> UserSnapshot:
    usage_bytes = entry.accum_bytes
    usage_gb_precise = usage_bytes / BYTES_PER_GB
    remaining_days = days_left(user.expiry, now)

    if not user.has_quota:
        remaining_precise = float(UNLIMITED_QUOTA)
        remaining = float(UNLIMITED_QUOTA)
    else:
        remaining_precise = max(0.0, user.quota - usage_gb_precise)
        remaining = round(remaining_precise, 2)

    enabled = is_policy_enabled(user, usage_gb_precise, remaining_days) if apply_policy else user.enabled

    return UserSnapshot(
        id=user.id,
        username=user.username,
        uuid=user.uuid,
        display_name=user.display_name,
        expiry=user.expiry,
        quota=user.quota,
        enabled=enabled,
        usage_bytes=usage_bytes,
        usage_gb=bytes_to_gb(usage_bytes),
        usage_gb_precise=usage_gb_precise,
        remaining_gb=remaining,
        remaining_gb_precise=remaining_precise,
        days_left=remaining_days,
        share_link=links.build(user.uuid, user.label),
    )
