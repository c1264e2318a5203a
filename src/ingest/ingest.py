# ingest.py
# zipbundle – Ingest subsystem: extract filtered source files from ZIP bytes

import asyncio
import io
import zipfile
import zlib
import requests
import json5
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional


# ============================================================
# Exceptions
# ============================================================

class ArchiveError(Exception):
    """Archive bytes could not be read, decompressed or decoded."""
    pass


class NoSourceFilesError(Exception):
    """Archive was valid but nothing survived filtering."""
    pass


# ============================================================
# Output Format
# ============================================================

@dataclass(frozen=True)
class ExtractedFile:
    """A single extracted source file with decoded text."""
    path: str
    content: str
    kind: str = "file"


# ============================================================
# Configuration
# ============================================================

DEFAULT_IGNORED_PATHS = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "coverage",
    ".DS_Store",
    "yarn.lock",
    "package-lock.json",
    ".env",
    "README.md",
)

DEFAULT_ALLOWED_EXTENSIONS = (
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".css",
    ".html",
    ".json",
    ".svg",
)


@dataclass(frozen=True)
class IngestConfig:
    """Path-exclusion and extension-inclusion rules for ingestion."""
    ignored_paths: tuple = DEFAULT_IGNORED_PATHS
    allowed_extensions: tuple = DEFAULT_ALLOWED_EXTENSIONS

    def __post_init__(self):
        # Frozen, so normalize through object.__setattr__
        object.__setattr__(self, "ignored_paths", tuple(self.ignored_paths))
        object.__setattr__(
            self,
            "allowed_extensions",
            tuple(ext.lower() for ext in self.allowed_extensions),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "IngestConfig":
        """
        Load a rule set from a JSON5 file.

        Recognized keys are ``ignored_paths`` and ``allowed_extensions``;
        a missing key keeps the default list.
        """
        path = Path(path)
        try:
            data = json5.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ArchiveError(f"Failed to load ingest rules from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ArchiveError(f"Ingest rules in {path} must be an object")

        return cls(
            ignored_paths=tuple(data.get("ignored_paths", DEFAULT_IGNORED_PATHS)),
            allowed_extensions=tuple(data.get("allowed_extensions", DEFAULT_ALLOWED_EXTENSIONS)),
        )


# Called after each filtering decision: (path, accepted)
ProgressCallback = Callable[[str, bool], None]


# ============================================================
# Filter Rules
# ============================================================

def is_excluded_path(path: str, ignored_paths) -> bool:
    """
    Check if any ignored token occurs anywhere in the path.

    Plain case-sensitive substring match on the full path, so
    ``src/node_modules_backup/x.ts`` is excluded by ``node_modules``.
    """
    return any(token in path for token in ignored_paths)


def has_allowed_extension(path: str, allowed_extensions) -> bool:
    """Case-insensitive suffix check against the allowed extensions."""
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in allowed_extensions)


def has_zip_suffix(name: str) -> bool:
    """Superficial filename check used at the input boundary only."""
    return name.lower().endswith(".zip")


def normalize_member_path(raw: str) -> str:
    """Normalize a ZIP member name to forward slashes."""
    return raw.replace("\\", "/")


# ============================================================
# Core Ingestion Functions
# ============================================================

# Errors the zipfile/zlib stack raises for corrupt, truncated or
# unsupported archives and members
_ARCHIVE_FAILURES = (
    zipfile.BadZipFile,
    zlib.error,
    NotImplementedError,
    RuntimeError,
    EOFError,
    OSError,
    ValueError,
)


def _open_archive(zip_bytes: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(zip_bytes))
    except _ARCHIVE_FAILURES as e:
        raise ArchiveError(
            f"Failed to extract ZIP file. Ensure it is a valid .zip archive and not corrupted: {e}"
        ) from e


def _read_member_text(z: zipfile.ZipFile, info: zipfile.ZipInfo, path: str) -> str:
    # Read by ZipInfo so duplicate names get their own data
    try:
        data = z.read(info)
    except _ARCHIVE_FAILURES as e:
        raise ArchiveError(f"Failed to extract {path} from ZIP file: {e}") from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ArchiveError(f"Failed to decode {path} as UTF-8: {e}") from e


def ingest_zip_bytes(
    zip_bytes: bytes,
    config: Optional[IngestConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> List[ExtractedFile]:
    """
    Ingest ZIP archive into a list of extracted text files.

    Args:
        zip_bytes: Raw ZIP file bytes
        config: Exclusion/inclusion rules (defaults to IngestConfig())
        on_progress: Optional callback invoked after each filtering decision;
            anything it raises propagates unchanged

    Returns:
        List of ExtractedFile objects in archive listing order

    Raises:
        ArchiveError: bytes are not a readable archive, or a member failed
            to decompress or decode as UTF-8
    """
    if config is None:
        config = IngestConfig()

    # Keyed by path: a duplicate name overwrites the content but keeps
    # the position of its first occurrence
    files: Dict[str, ExtractedFile] = {}

    with _open_archive(zip_bytes) as z:
        for info in z.infolist():
            # Skip directories
            if info.is_dir():
                continue

            path = normalize_member_path(info.filename)
            if not path:
                continue

            # Apply filter rules
            if is_excluded_path(path, config.ignored_paths) or not has_allowed_extension(
                path, config.allowed_extensions
            ):
                if on_progress is not None:
                    on_progress(path, False)
                continue

            content = _read_member_text(z, info, path)
            files[path] = ExtractedFile(path=path, content=content)

            if on_progress is not None:
                on_progress(path, True)

    return list(files.values())


async def ingest_zip_bytes_async(
    zip_bytes: bytes,
    config: Optional[IngestConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> List[ExtractedFile]:
    """Run ingest_zip_bytes in a worker thread."""
    return await asyncio.to_thread(ingest_zip_bytes, zip_bytes, config, on_progress)


def require_source_files(files: List[ExtractedFile]) -> List[ExtractedFile]:
    """Reject an empty ingestion result."""
    if not files:
        raise NoSourceFilesError("No valid source files found in the archive.")
    return files


# ============================================================
# Archive Sources
# ============================================================

def load_zip_bytes_from_url(url: str, timeout: float = 30) -> bytes:
    """Download ZIP file from URL."""
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise ArchiveError(f"Failed to fetch ZIP: {e}") from e

    if not resp.ok:
        raise ArchiveError(f"HTTP {resp.status_code}: failed to download {url}")
    return resp.content


def load_zip_bytes_from_path(path: str | Path) -> bytes:
    """Read a local ZIP file."""
    path = Path(path)
    if not path.is_file():
        raise ArchiveError(f"Archive does not exist: {path}")
    try:
        return path.read_bytes()
    except OSError as e:
        raise ArchiveError(f"Failed to read archive {path}: {e}") from e
