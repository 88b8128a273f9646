from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .app import WavMetaApp
from .commands import mirror as cmd_mirror
from .commands import read as cmd_read
from .commands import report as cmd_report
from .commands import write as cmd_write
from .config import Settings, find_config
from .models import MetadataError

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"
WARNING_LOG_NAME = "wav-meta-warnings.log"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        self.roots = [str(root) for root in roots if root]

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
            message = message.replace(root, "")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(level_name: str, roots: list[Path]) -> tuple[WarningBufferHandler, Path]:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(warn_buffer)

    warn_log_path = Path.cwd() / WARNING_LOG_NAME
    file_handler = logging.FileHandler(warn_log_path, mode="w", encoding="utf-8", delay=True)
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ShortPathFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(file_handler)
    return warn_buffer, warn_log_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Review, correct and mirror production metadata in WAV files"
    )
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    read_parser = subparsers.add_parser("read", help="Show resolved metadata for files or directories")
    read_parser.add_argument("paths", nargs="*", type=Path)
    read_parser.add_argument("--json", action="store_true", help="Emit JSON to stdout")

    write_parser = subparsers.add_parser("write", help="Edit fields and write them back in place")
    write_parser.add_argument("paths", nargs="+", type=Path)
    write_parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        required=True,
        metavar="FIELD=VALUE",
        help="Field to change (show, scene, take, slate, category, subcategory, note, wildtrack, circled)",
    )

    for name, help_text in (
        ("mirror", "Copy files into a folder tree built from their metadata"),
        ("conflicts", "List files a mirror run would skip because the target exists"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("paths", nargs="*", type=Path, help="Files or directories to read")
        sub.add_argument("--dest", type=Path, help="Destination root")
        sub.add_argument(
            "--level",
            dest="levels",
            action="append",
            default=[],
            metavar="FIELD[:ORDER]",
            help="Folder level (show, scene, category, subcategory, take); repeatable",
        )
        sub.add_argument(
            "--only",
            type=Path,
            action="append",
            help="Restrict the run to these files; repeatable",
        )

    report_parser = subparsers.add_parser("report", help="Summarize metadata coverage and duplicates")
    report_parser.add_argument("paths", nargs="*", type=Path)
    report_parser.add_argument("--json", action="store_true", help="Emit JSON to stdout")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    config_path = find_config(args.config)
    settings = Settings.load(config_path) if config_path else Settings()
    display_roots = [root.resolve() for root in settings.library.roots]
    warn_buffer, warn_log_path = configure_logging(args.log_level, display_roots)

    app = WavMetaApp.create(settings)
    paths = getattr(args, "paths", [])
    if not paths and not settings.library.roots:
        parser.error("No paths given and no library roots configured")

    try:
        match args.command:
            case "read":
                code = cmd_read.run(app, paths, json_output=args.json)
            case "write":
                code = cmd_write.run(app, paths, args.assignments)
            case "mirror" | "conflicts":
                config = cmd_mirror.build_configuration(
                    app, destination=args.dest, levels=args.levels, only=args.only
                )
                if args.command == "mirror":
                    code = cmd_mirror.run(app, config, paths)
                else:
                    code = cmd_mirror.run_conflicts(app, config, paths)
            case "report":
                code = cmd_report.run(app, paths, json_output=args.json)
            case _:
                parser.error("Unknown command")
    except MetadataError as exc:
        logging.getLogger(__name__).error("%s", exc)
        code = 1
    except ValueError as exc:
        parser.error(str(exc))
    finally:
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
            print(f"\nFull warning log: {warn_log_path}")
    raise SystemExit(code)


if __name__ == "__main__":  # pragma: no cover
    main()
