"""Thin read/write adapters for the remote ledger blobs.

A store maps a key such as ``desktop-pro/oss-patch.csv`` to a text blob.
Writes are whole-blob overwrites; there is no compare-and-swap, so two
bumpers racing on the same product line can clobber each other (last writer
wins).  Builds are expected to be serialized per product line by whatever
schedules them.

Two adapters are provided:

- ``LocalLedgerStore`` keeps blobs as files under a base directory.
- ``S3LedgerStore`` shells out to the ``aws s3 cp`` CLI.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from buildstamp.core.errors import LedgerUnavailable, PersistenceFailed

logger = logging.getLogger(__name__)


@runtime_checkable
class LedgerStore(Protocol):
    """Key/value blob store holding the ledgers."""

    def read(self, key: str) -> str: ...

    def write(self, key: str, text: str) -> None: ...


class LocalLedgerStore:
    """Ledger blobs stored as plain files.

    Layout: {base_path}/{product_line}/{ledger_name}

    Parameters
    ----------
    base_path:
        Root directory of the ledger tree.
    """

    def __init__(self, base_path: Path | str) -> None:
        self._base = Path(base_path)

    def _blob_path(self, key: str) -> Path:
        return self._base / key

    def read(self, key: str) -> str:
        path = self._blob_path(key)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LedgerUnavailable(f"Cannot read ledger {key!r} from {path}: {exc}") from exc

    def write(self, key: str, text: str) -> None:
        path = self._blob_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailed(f"Cannot write ledger {key!r} to {path}: {exc}") from exc
        logger.debug("LocalLedgerStore: wrote %d bytes to %s", len(text), path)


class S3LedgerStore:
    """Ledger blobs in S3, reached through the ``aws`` command-line client.

    Parameters
    ----------
    url:
        Bucket prefix, e.g. ``s3://rstudio-ide-build/version``.
    aws_binary:
        Name or path of the AWS CLI executable.
    timeout:
        Seconds to wait for each copy.
    """

    def __init__(self, url: str, *, aws_binary: str = "aws", timeout: int = 120) -> None:
        self._url = url.rstrip("/")
        self._aws = aws_binary
        self._timeout = timeout

    def _object_url(self, key: str) -> str:
        return f"{self._url}/{key}"

    def _copy(self, source: str, destination: str) -> subprocess.CompletedProcess:
        if shutil.which(self._aws) is None:
            raise FileNotFoundError(f"{self._aws!r} not found on PATH")
        return subprocess.run(
            [self._aws, "s3", "cp", source, destination, "--quiet"],
            capture_output=True,
            text=True,
            timeout=self._timeout,
            check=True,
        )

    def read(self, key: str) -> str:
        url = self._object_url(key)
        with tempfile.TemporaryDirectory(prefix="buildstamp-") as tmp:
            local = Path(tmp) / "ledger.csv"
            try:
                self._copy(url, str(local))
                return local.read_text(encoding="utf-8")
            except subprocess.CalledProcessError as exc:
                raise LedgerUnavailable(
                    f"Cannot fetch {url}: {exc.stderr.strip() or exc}"
                ) from exc
            except (subprocess.SubprocessError, OSError) as exc:
                raise LedgerUnavailable(f"Cannot fetch {url}: {exc}") from exc

    def write(self, key: str, text: str) -> None:
        url = self._object_url(key)
        with tempfile.TemporaryDirectory(prefix="buildstamp-") as tmp:
            local = Path(tmp) / "ledger.csv"
            try:
                local.write_text(text, encoding="utf-8")
                self._copy(str(local), url)
            except subprocess.CalledProcessError as exc:
                raise PersistenceFailed(
                    f"Cannot upload {url}: {exc.stderr.strip() or exc}"
                ) from exc
            except (subprocess.SubprocessError, OSError) as exc:
                raise PersistenceFailed(f"Cannot upload {url}: {exc}") from exc
        logger.debug("S3LedgerStore: uploaded %d bytes to %s", len(text), url)


def open_store(location: str) -> LedgerStore:
    """Pick an adapter for a store location (``s3://...`` or a directory)."""
    if location.startswith("s3://"):
        return S3LedgerStore(location)
    return LocalLedgerStore(Path(location))
