#!/usr/bin/env python3
"""
main.py
zipbundle – Main orchestrator

Turns a zipped React project into a single self-contained index.html.
Runs all subsystems sequentially: extract → analyze → generate → write

Usage:
    python main.py <archive.zip>
    python main.py <https://host/archive.zip>
    python main.py project.zip -o dist/index.html --model-server http://localhost:8000/v1

Examples:
    python main.py ~/Downloads/my-app.zip
    python main.py my-app.zip --dry-run -o payload.json
    python main.py my-app.zip --rules rules.json5
"""

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

# Import all subsystems
from ingest import (
    ingest_zip_bytes,
    require_source_files,
    load_zip_bytes_from_path,
    load_zip_bytes_from_url,
    has_zip_suffix,
    IngestConfig,
    ArchiveError,
    NoSourceFilesError,
)
from serialize import serialize_files, payload_stats
from generate import HtmlGenerator, GeneratorConfig, GenerationError


# ============================================================
# Configuration
# ============================================================

@dataclass
class PipelineConfig:
    """Configuration for the pipeline."""
    # Extract settings
    ingest: Optional[IngestConfig] = None
    url_timeout: float = 30

    # Generate settings
    model: str = "qwen-max"
    model_server: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 8192

    # Output settings
    output_path: str = "index.html"
    dry_run: bool = False
    verbose: bool = False


# ============================================================
# Pipeline Statistics
# ============================================================

@dataclass
class PipelineStats:
    """Statistics collected during pipeline execution."""
    # Stage timings
    extract_time: float = 0.0
    analyze_time: float = 0.0
    generate_time: float = 0.0
    total_time: float = 0.0

    # Stage outputs
    archive_bytes: int = 0
    members_seen: int = 0
    files_extracted: int = 0
    payload_chars: int = 0
    output_chars: int = 0
    output_path: str = ""

    def print_summary(self):
        """Print a formatted summary of pipeline statistics."""
        print("\n" + "=" * 70)
        print("PIPELINE SUMMARY")
        print("=" * 70)

        print("\nStage Timings:")
        print(f"  Extract:    {self.extract_time:>8.2f}s  ({self.files_extracted}/{self.members_seen} files, {self.archive_bytes/1024:.1f} KB archive)")
        print(f"  Analyze:    {self.analyze_time:>8.2f}s  ({self.payload_chars:,} chars)")
        print(f"  Generate:   {self.generate_time:>8.2f}s  ({self.output_chars:,} chars)")
        print(f"  {'─' * 40}")
        print(f"  Total:      {self.total_time:>8.2f}s")

        print(f"\nOutput: {self.output_path}")
        print("\nPipeline Status: ✓ Complete")
        print("=" * 70)


# ============================================================
# Source Loading
# ============================================================

def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_source(source: str, config: PipelineConfig) -> bytes:
    """Read archive bytes from a URL or a local path."""
    if not has_zip_suffix(source.split("?", 1)[0]):
        print(f"  ! {source} does not end in .zip, trying anyway")

    if is_url(source):
        return load_zip_bytes_from_url(source, timeout=config.url_timeout)
    return load_zip_bytes_from_path(source)


# ============================================================
# Pipeline Stages
# ============================================================

def stage_extract(source: str, config: PipelineConfig):
    """
    Stage 1: Load the archive and extract its source files.

    Returns:
        (files, elapsed, archive_bytes, members_seen)
    """
    print("\n" + "=" * 70)
    print("STAGE 1: EXTRACT")
    print("=" * 70)

    start_time = time.time()

    print(f"\nExtracting files from archive: {source}")
    zip_bytes = load_source(source, config)

    decisions = []

    def on_progress(path: str, accepted: bool):
        decisions.append(accepted)
        if config.verbose:
            print(f"  {'+' if accepted else '-'} {path}")

    files = ingest_zip_bytes(zip_bytes, config=config.ingest, on_progress=on_progress)
    require_source_files(files)

    elapsed = time.time() - start_time

    print(f"\n✓ Extracted {len(files)} of {len(decisions)} files in {elapsed:.2f}s")

    return files, elapsed, len(zip_bytes), len(decisions)


def stage_analyze(files: list, config: PipelineConfig):
    """
    Stage 2: Serialize extracted files into the model payload.

    Returns:
        (payload, elapsed)
    """
    print("\n" + "=" * 70)
    print("STAGE 2: ANALYZE")
    print("=" * 70)

    start_time = time.time()

    payload = serialize_files(files)
    stats = payload_stats(files)

    elapsed = time.time() - start_time

    print(f"\n✓ Analyzed {stats['files']} files ({stats['lines']:,} lines) in {elapsed:.2f}s")
    print(f"  Payload size: {len(payload):,} chars")

    # Show extension distribution
    ext_counts = {}
    for f in files:
        ext = Path(f.path).suffix.lower() or "(none)"
        ext_counts[ext] = ext_counts.get(ext, 0) + 1

    print(f"\n  File types:")
    for ext, count in sorted(ext_counts.items(), key=lambda x: -x[1])[:5]:
        print(f"    {ext}: {count}")

    return payload, elapsed


def stage_generate(payload: str, config: PipelineConfig, generator: Optional[HtmlGenerator] = None):
    """
    Stage 3: Ask the model for a single-file HTML bundle.

    Returns:
        (html, elapsed)
    """
    print("\n" + "=" * 70)
    print("STAGE 3: GENERATE")
    print("=" * 70)

    start_time = time.time()

    if generator is None:
        generator = HtmlGenerator(GeneratorConfig(
            model=config.model,
            model_server=config.model_server,
            api_key=config.api_key,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            verbose=config.verbose,
        ))

    html = generator.generate(payload)

    elapsed = time.time() - start_time

    print(f"\n✓ Generated {len(html):,} chars of HTML in {elapsed:.2f}s")

    return html, elapsed


def stage_write(text: str, config: PipelineConfig) -> str:
    """Stage 4: Write the result to disk."""
    output_path = Path(config.output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
    print(f"\n✓ Wrote {output_path}")
    return str(output_path)


# ============================================================
# Main Pipeline
# ============================================================

def run_pipeline(
    source: str,
    config: Optional[PipelineConfig] = None,
    generator: Optional[HtmlGenerator] = None,
) -> PipelineStats:
    """
    Run the complete archive-to-HTML pipeline.

    Args:
        source: Local archive path or URL
        config: Pipeline configuration (optional, uses defaults if not provided)
        generator: Pre-built generator (optional, built from config otherwise)

    Returns:
        PipelineStats object with execution statistics

    Raises:
        ArchiveError, NoSourceFilesError, GenerationError
    """
    if config is None:
        config = PipelineConfig()

    stats = PipelineStats()
    pipeline_start = time.time()

    print("\n" + "╔" + "═" * 68 + "╗")
    print("║" + " " * 24 + "ZIPBUNDLE PIPELINE" + " " * 26 + "║")
    print("╚" + "═" * 68 + "╝")

    # Stage 1: Extract
    files, extract_time, archive_bytes, members_seen = stage_extract(source, config)
    stats.extract_time = extract_time
    stats.archive_bytes = archive_bytes
    stats.members_seen = members_seen
    stats.files_extracted = len(files)

    # Stage 2: Analyze
    payload, analyze_time = stage_analyze(files, config)
    stats.analyze_time = analyze_time
    stats.payload_chars = len(payload)

    # Stage 3: Generate
    if config.dry_run:
        print("\nDry run: skipping generation, writing payload")
        output = payload
    else:
        output, generate_time = stage_generate(payload, config, generator)
        stats.generate_time = generate_time
    stats.output_chars = len(output)

    # Stage 4: Write
    stats.output_path = stage_write(output, config)

    stats.total_time = time.time() - pipeline_start
    stats.print_summary()

    return stats


# ============================================================
# CLI Interface
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="zipbundle - Convert a zipped React project into a single index.html",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s my-app.zip
  %(prog)s https://example.com/my-app.zip -o out/index.html
  %(prog)s my-app.zip --model-server http://localhost:8000/v1 --model Qwen2.5-7B-Instruct
  %(prog)s my-app.zip --dry-run -o payload.json
        """
    )

    parser.add_argument(
        "source",
        help="Path or URL of the project ZIP archive"
    )
    parser.add_argument(
        "--output", "-o",
        default="index.html",
        help="Output file (default: index.html)"
    )
    parser.add_argument(
        "--rules",
        help="JSON5 file with ignored_paths / allowed_extensions overrides"
    )
    parser.add_argument(
        "--model",
        default="qwen-max",
        help="Model name (default: qwen-max)"
    )
    parser.add_argument(
        "--model-server",
        help="OpenAI-compatible endpoint, e.g. http://localhost:8000/v1"
    )
    parser.add_argument(
        "--api-key",
        default=os.environ.get("API_KEY"),
        help="API key for the model server (default: $API_KEY)"
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=0.2,
        help="Sampling temperature (default: 0.2)"
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=8192,
        help="Maximum tokens in the generated document (default: 8192)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Skip generation and write the serialized payload instead"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print every filtering decision"
    )
    return parser


def main(argv=None):
    """Main entry point with CLI argument parsing."""
    args = build_parser().parse_args(argv)

    try:
        ingest_config = IngestConfig.from_file(args.rules) if args.rules else None

        config = PipelineConfig(
            ingest=ingest_config,
            model=args.model,
            model_server=args.model_server,
            api_key=args.api_key,
            temperature=args.temperature,
            max_tokens=args.max_tokens,
            output_path=args.output,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )

        run_pipeline(args.source, config=config)
    except (ArchiveError, NoSourceFilesError, GenerationError) as e:
        print(f"\n✗ Pipeline failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
