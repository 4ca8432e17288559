#!/usr/bin/env python
"""Run a compliance analysis from the terminal using the configured services."""

from __future__ import annotations

import argparse
import asyncio
import base64
import mimetypes
import sys
from pathlib import Path

from fastapi import HTTPException
from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.config import get_settings  # noqa: E402
from app.core.logging import configure_logging  # noqa: E402
from app.dependencies import get_compliance_analysis_service  # noqa: E402
from app.schemas import PRODUCT_CATEGORIES, AnalysisRequest, ProductImage  # noqa: E402

EXIT_OK = 0
EXIT_INVALID_INPUT = 2
EXIT_ANALYSIS_FAILED = 3


def _load_image(path: Path) -> ProductImage:
    mime_type, _ = mimetypes.guess_type(path.name)
    return ProductImage(
        filename=path.name,
        mime_type=mime_type or "application/octet-stream",
        file_b64=base64.b64encode(path.read_bytes()).decode("utf-8"),
    )


def _print_record(outcome) -> None:
    record = outcome.analysis
    print(f"Analysis {record.id}: {record.status.value.upper()}")
    print(f"HS code:          {record.hs_code}")
    print(f"Tariff rate:      {record.tariff_rate}%")
    print(f"Confidence:       {record.confidence_score}")
    print(f"Processing time:  {record.estimated_processing_time}")
    for label, items in (
        ("Requirements", record.requirements),
        ("Restrictions", record.restrictions),
        ("Documentation", record.documentation),
    ):
        print(f"{label}:")
        for item in items or []:
            print(f"  - {item}")
    if record.product_image_url:
        print(f"Image:            {record.product_image_url}")
    if outcome.image_error:
        print(f"Image not stored: {outcome.image_error}")
    print()
    print(record.analysis_text or "")


async def run(args: argparse.Namespace) -> int:
    try:
        request = AnalysisRequest(
            product_name=args.name,
            product_description=args.description,
            product_category=args.category,
            origin_country=args.origin,
            destination_country=args.destination,
            product_image=_load_image(args.image) if args.image else None,
        )
    except (ValidationError, OSError) as exc:
        print(f"Invalid submission: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    service = get_compliance_analysis_service()
    try:
        outcome = await service.submit(user_id=args.user_id, request=request)
    except HTTPException as exc:
        print(f"Analysis failed: {exc.detail}", file=sys.stderr)
        return EXIT_ANALYSIS_FAILED

    _print_record(outcome)
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Submit a product for cross-border compliance analysis."
    )
    parser.add_argument("name", help="Product name.")
    parser.add_argument("--description", default="", help="Free-text product description.")
    parser.add_argument(
        "--category",
        default="",
        choices=("", *PRODUCT_CATEGORIES),
        help="Product category.",
    )
    parser.add_argument("--origin", default="", help="Origin country.")
    parser.add_argument("--destination", default="Canada", help="Destination country.")
    parser.add_argument("--image", type=Path, default=None, help="Optional JPG/PNG image.")
    parser.add_argument("--user-id", default="cli", help="Owner recorded on the analysis.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
