"""buildstamp: build-version reconciliation against a remote build ledger.

Given a project's commit history and the ledger of previously assigned build
numbers, buildstamp computes the current build version and, on request,
mints a new one and records it:

  - Open-source (primary) builds: ``YYYY-MM.patch.build``
  - Derived (pro) builds: ``YYYY-MM.patch.build-suffix``, layered on a pinned
    upstream commit
  - Ledgers are append-only CSV blobs, one pair per product line
  - Dry-run mode computes everything and writes nothing
"""

__version__ = "0.1.0"
__description__ = "Build-version reconciliation against a remote build ledger"

from buildstamp.config import BuildstampConfig
from buildstamp.core.engine import VersionEngine
from buildstamp.models.version import BumpOutcome, BumpResult, ResolvedVersion, Variant

__all__ = [
    "BuildstampConfig",
    "VersionEngine",
    "Variant",
    "BumpOutcome",
    "BumpResult",
    "ResolvedVersion",
    "__version__",
]
