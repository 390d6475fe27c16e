"""Command line wrapper: ``ocrsdk FILE [--variant V] [--param k=v] [--output PATH]``.

Exit codes: 0 on success, 1 on any client error, 2 on bad arguments,
130 when interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ocrsdk.application.factories import create
from ocrsdk.core.config import get_settings
from ocrsdk.core.logging import configure_logging
from ocrsdk.domain.errors import OcrSdkError, TaskCancelledError
from ocrsdk.domain.models import ProcessingVariant

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def _key_value(raw: str) -> tuple[str, str]:
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    key, value = raw.split("=", 1)
    return key.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ocrsdk", description="Recognize a document with the cloud OCR service")
    parser.add_argument("file", type=Path, help="Document to recognize")
    parser.add_argument(
        "--variant",
        default=ProcessingVariant.IMAGE.value,
        choices=[v.value for v in ProcessingVariant],
        help="Processing verb (default: Image)",
    )
    parser.add_argument(
        "--param",
        action="append",
        type=_key_value,
        default=[],
        metavar="KEY=VALUE",
        help="Extra service parameter, e.g. language=English; may repeat",
    )
    parser.add_argument("--output", type=Path, default=None, help="Where to save the result (default: stdout)")
    parser.add_argument("--archive-bucket", default=None, help="Upload the source file to this S3 bucket first")
    return parser


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configuration = {"urlParams": dict(args.param)}
    if args.archive_bucket:
        configuration.update(uploadToArchive=True, archive={"bucket": args.archive_bucket})

    sdk = create(
        settings.APPLICATION_ID,
        settings.PASSWORD.get_secret_value(),
        configuration,
        settings=settings,
    )
    try:
        result = await sdk.process(args.file, args.variant, output_path=args.output)
    except TaskCancelledError:
        return EXIT_INTERRUPTED
    except OcrSdkError as exc:
        print(f"error: [{exc.error_code}] {exc.message}", file=sys.stderr)
        return EXIT_FAILED

    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if args.output is None:
        sys.stdout.buffer.write(result.artifact)
        sys.stdout.flush()
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON, stream=sys.stderr)
    if not settings.APPLICATION_ID:
        print("error: OCRSDK_APPLICATION_ID is not set", file=sys.stderr)
        return EXIT_USAGE
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.warning("interrupted")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
