#!/usr/bin/env python3
# =============================================================================
# scripts/preview_cover.py - Local Cover Preview
# =============================================================================
# Runs the in-memory part of the cover pipeline (decode, crop, compress) on
# a local file and writes the resulting WebP next to it. Nothing is uploaded.
#
# Usage:
#   python -m scripts.preview_cover path/to/photo.jpg
#   python -m scripts.preview_cover photo.png --out /tmp/cover.webp
# =============================================================================

import argparse
import logging
from pathlib import Path

from core.imaging.compression import CompressionPolicy
from core.services.cover_service import CoverService
from core.services.image_source_service import ImageSourceService


class _NoStore:
    """Stand-in collaborators; render() never touches them."""


def main():
    parser = argparse.ArgumentParser(description="Preview a normalized cover locally")
    parser.add_argument("source", type=Path, help="Image file to normalize")
    parser.add_argument("--out", type=Path, default=None, help="Output .webp path")
    parser.add_argument("--max-kb", type=int, default=300, help="Byte budget in KB")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every encode")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    service = CoverService(
        source=ImageSourceService(),
        storage=_NoStore(),
        records=_NoStore(),
        policy=CompressionPolicy(max_size_kb=args.max_kb),
    )

    rendered = service.render(args.source.read_bytes(), identifier=args.source.stem)
    result = rendered.compression

    out = args.out or args.source.with_suffix(".cover.webp")
    out.write_bytes(result.data)

    print("=" * 60)
    print(f"Source:  {rendered.source_width}x{rendered.source_height}")
    print(f"Crop:    {rendered.crop}")
    print(f"Target:  {rendered.target_width}x{rendered.target_height}")
    print("-" * 60)
    for attempt in result.attempts:
        print(f"  {attempt.width}x{attempt.height} q={attempt.quality:<3} {attempt.size_kb:8.1f}KB")
    print("-" * 60)
    status = "within budget" if result.within_budget else "OVER BUDGET (best effort)"
    print(f"Output:  {out} ({result.size_bytes / 1024:.1f}KB, {status})")
    print("=" * 60)


if __name__ == "__main__":
    main()
