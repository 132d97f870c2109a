from __future__ import annotations

import re
import secrets
from datetime import datetime

from .models import iso_timestamp, utc_now

_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]")


def new_run_id(now: datetime | None = None) -> str:
    """Return a lowercase, filesystem-safe, time-sortable run id.

    Example: ``run-2026-10-19t14-03-07-512z-9f1c2a``. Uniqueness relies on the
    timestamp plus 24 random bits; existing files are not checked.
    """

    stamp = _NON_ALNUM_RE.sub("-", iso_timestamp(now or utc_now()))
    return f"run-{stamp}-{secrets.token_hex(3)}".lower()
