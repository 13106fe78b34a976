"""Command-line entry point."""
import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Optional

from creditflow.config.manager import Config, ConfigManager
from creditflow.config.settings import get_settings
from creditflow.llm.extraction_client import ExtractionClient
from creditflow.report.generator import ReportGenerator, default_file_name
from creditflow.session import AnalysisSession
from creditflow.utils.exceptions import CreditFlowError
from creditflow.utils.logger import get_logger

logger = get_logger()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def guess_media_type(path: Path) -> str:
    """Media type from the file name; unknown types pass through for validation."""
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type or "application/octet-stream"


def resolve_csv_path(csv_arg: Optional[str], display_name: str) -> Optional[Path]:
    """--csv without a value writes to a name derived from the client name."""
    if csv_arg is None:
        return None
    return Path(csv_arg or default_file_name(display_name))


def analyze_command(file_path: str, config: Config, name: str = None, csv_arg: str = None) -> int:
    """Analyze one statement file and print the monthly report."""
    path = Path(file_path)
    if not path.is_file():
        print(f"Error: File not found: {file_path}")
        return 1

    settings = get_settings()
    client = ExtractionClient(
        api_key=config.gemini_api_key,
        model_name=settings.llm_model_name,
        policy=settings.retry_policy
    )
    session = AnalysisSession(client)

    try:
        asyncio.run(session.analyze(path.read_bytes(), guess_media_type(path)))
        if name:
            session.rename(name)

        report = session.report()
        print()
        print(ReportGenerator.render_text(report))

        csv_path = resolve_csv_path(csv_arg, session.display_name)
        if csv_path:
            session.report_generator.write_csv(report, csv_path)
            print(f"\n✓ Report saved to {csv_path}")
    except CreditFlowError as e:
        print(f"\n✗ {e}")
        return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=f"{settings.app_name} bank statement credit analyzer")
    parser.add_argument("--version", action="version", version=f"{settings.app_name} {settings.app_version}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Extract credits from a statement image or PDF")
    analyze.add_argument("file", help="Path to the statement (image or PDF)")
    analyze.add_argument("--name", help="Client name to show on the report")
    analyze.add_argument(
        "--csv",
        dest="csv_path",
        nargs="?",
        const="",
        help="Write the report to this CSV file (default name derived from the client name)"
    )
    analyze.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level"
    )
    return parser


def main():
    """Main entry point for CreditFlow."""
    args = build_parser().parse_args()

    settings = get_settings()
    config = ConfigManager().load_config()
    settings.apply_logging(args.log_level or config.log_level)

    logger.info(f"{settings.app_name} {settings.app_version} starting...")

    is_valid, message = ConfigManager().validate_config(config)
    if not is_valid:
        logger.critical(f"Invalid configuration: {message}")
        print(f"✗ {message}")
        sys.exit(1)

    if args.command == "analyze":
        sys.exit(analyze_command(args.file, config, args.name, args.csv_path))


if __name__ == "__main__":
    main()
