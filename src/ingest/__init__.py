"""
Ingest subsystem for zipbundle.

Purpose: Turn the bytes of an uploaded project archive into an ordered list
of decoded source files, without writing anything to disk.

Responsibilities:
- Decompress ZIP bytes in memory
- Skip directories
- Apply substring path exclusion and case-insensitive extension inclusion
- Decode kept members as UTF-8
- Output: List of ExtractedFile {path, content, kind}

Non-responsibilities:
- No serialization
- No syntax validation or semantic analysis
- Empty results are the caller's policy (see require_source_files)
"""

from .ingest import (
    ingest_zip_bytes,
    ingest_zip_bytes_async,
    require_source_files,
    load_zip_bytes_from_url,
    load_zip_bytes_from_path,
    is_excluded_path,
    has_allowed_extension,
    has_zip_suffix,
    ExtractedFile,
    IngestConfig,
    ArchiveError,
    NoSourceFilesError,
    DEFAULT_IGNORED_PATHS,
    DEFAULT_ALLOWED_EXTENSIONS,
)

__all__ = [
    "ingest_zip_bytes",
    "ingest_zip_bytes_async",
    "require_source_files",
    "load_zip_bytes_from_url",
    "load_zip_bytes_from_path",
    "is_excluded_path",
    "has_allowed_extension",
    "has_zip_suffix",
    "ExtractedFile",
    "IngestConfig",
    "ArchiveError",
    "NoSourceFilesError",
    "DEFAULT_IGNORED_PATHS",
    "DEFAULT_ALLOWED_EXTENSIONS",
]
