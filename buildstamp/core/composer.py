"""Version string composition.

Layout, most to least significant::

    YYYY-MM . patch . build [-suffix]

``YYYY-MM`` is the UTC year-month at composition time, ``patch`` is supplied
by the caller, ``build`` comes from the patch ledger and ``suffix`` (derived
builds only) from the suffix ledger.  When the caller supplies no patch the
field is left out.
"""

from __future__ import annotations

from datetime import datetime, timezone

from buildstamp.models.version import Variant


def major_minor(now: datetime | None = None) -> str:
    """Return the UTC year-month used as ``major.minor``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m")


def compose(
    variant: Variant,
    major_minor: str,
    build_number: int,
    suffix: int | None = None,
    *,
    patch: int | None = None,
) -> str:
    if build_number < 0:
        raise ValueError(f"build number must be >= 0, got {build_number}")
    if patch is not None and patch < 0:
        raise ValueError(f"patch must be >= 0, got {patch}")

    base = major_minor if patch is None else f"{major_minor}.{patch}"
    version = f"{base}.{build_number}"

    if variant == Variant.DERIVED:
        if suffix is None or suffix < 0:
            raise ValueError(f"derived versions need a suffix >= 0, got {suffix}")
        return f"{version}-{suffix}"
    return version
