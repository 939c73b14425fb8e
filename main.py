"""
Customs import CLI.

Import items from an Excel file and generate customs codes. The generated
codes are written to a copy of the workbook in two extra columns
(result EU, result NO).

Usage:
    python main.py --api-key "yourApiKey" input-file.xlsx
    python main.py --api-key "yourApiKey" --output codes.xlsx --timeout 300 input-file.xlsx
"""

import argparse
import sys
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config import (
    DEFAULT_API_URL,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_TIMEOUT_SECONDS,
    Settings,
    configure_logging,
)
from exceptions import AppError
from models.customs_import import ImportStatusDocument
from services.customs_import_service import CustomsImportService

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="customs",
        description=(
            "Import items from an excel file and generate customs codes. "
            f"The generated customs codes will be written to the provided output file "
            f"(default {DEFAULT_OUTPUT_PATH!r})."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  customs --api-key "yourApiKey" input-file.xlsx

Every option can also be set with a CUSTOMS_* environment variable
(e.g. CUSTOMS_API_KEY) or in a .env file.
        """
    )

    parser.add_argument(
        "input",
        help="Excel file with the items to import"
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key used for the authentication and authorization"
    )
    parser.add_argument(
        "--url",
        default=None,
        help=f"URL of the server (default {DEFAULT_API_URL!r})"
    )
    parser.add_argument(
        "--output",
        default=None,
        help=f"write output to the file (default {DEFAULT_OUTPUT_PATH!r})"
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help=f"how many seconds to wait on processing (default {DEFAULT_TIMEOUT_SECONDS})"
    )
    parser.add_argument(
        "--sheet",
        default=None,
        help="worksheet to read (default: the active sheet)"
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=None,
        help="per-request HTTP timeout in seconds (default 30)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO)"
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment settings overridden by the flags that were given."""
    overrides = {
        "api_key": args.api_key,
        "api_url": args.url,
        "output_path": args.output,
        "timeout_seconds": args.timeout,
        "sheet_name": args.sheet,
        "request_timeout_seconds": args.request_timeout,
        "log_level": args.log_level,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def print_progress(tick: int, status: ImportStatusDocument) -> None:
    if tick == 1:
        print("Waiting for the import job", end="", flush=True)
    print(".", end="", flush=True)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = settings_from_args(args)
    except PydanticValidationError as e:
        print(f"Error: invalid option: {e}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level, settings.log_json)

    if not settings.has_api_key:
        print("Error: missing api-key flag", file=sys.stderr)
        return 1

    try:
        service = CustomsImportService(settings, on_tick=print_progress)
        result = service.run(args.input, settings.output_path)
    except AppError as e:
        logger.error("customs_import_failed", code=e.code, details=e.details)
        print(f"\nError [{e.code}]: {e.message}", file=sys.stderr)
        return 1

    print(f"\n\nDone!\nThe output is written to: \"{result.output_path}\"")
    return 0


if __name__ == "__main__":
    sys.exit(main())
