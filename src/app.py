"""Application entry point for the linelens code reviewer."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from art import tprint
from rich.console import Console

import settings
from adapters.issue_sources import CombinedIssueSource, JsonIssueSource, SecretScanSource
from adapters.line_formatting import format_document, format_issue_label, format_overview
from core.annotations import AnnotatedDocument
from core.config import EngineConfig, IndexConfig
from core.issue_index import make_precedence
from core.profiles import HeuristicDetector, LanguageProfile, ProfileRegistry, default_registry
from core.secret_scan import scan_secrets

NAME = "LINELENS"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks credentials in log lines.

    Log messages can quote document text, so every record goes through the
    secret scanner's masking. Values of the environment variables named under
    ``logging.redact`` are replaced as well.
    """

    def __init__(self, env_values: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._env_values = [value for value in env_values if value]

    def format(self, record: logging.LogRecord) -> str:
        message = scan_secrets(super().format(record)).masked_document
        for value in self._env_values:
            message = message.replace(value, "***")
        return message


def _redacted_env_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = {os.getenv(name) for name in redact_cfg.get("env", [])}
    # Longest first so a value containing another is replaced whole.
    return sorted((value for value in values if value), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_redacted_env_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # Console logging would draw over the TUI, so it stays opt-in.
    if config.get("console", False):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/linelens.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _engine_config() -> EngineConfig:
    return EngineConfig(
        max_line_length=settings.MAX_LINE_LENGTH,
        default_profile=settings.DEFAULT_PROFILE,
    )


def _index_config() -> IndexConfig:
    return IndexConfig(pattern_markers=settings.PATTERN_MARKERS)


def _build_registry(engine: EngineConfig) -> ProfileRegistry:
    return default_registry(settings.PROFILES_CONFIG, default_id=engine.default_profile)


def _resolve_profile(registry: ProfileRegistry, document: str, requested: Optional[str]) -> LanguageProfile:
    if requested:
        return registry.get(requested)
    return registry.get(HeuristicDetector(registry).detect(document))


def _build_issue_source(issues_path: Optional[str], secret_scan: bool) -> CombinedIssueSource:
    # Secret findings are listed ahead of analysis findings.
    sources = []
    if secret_scan:
        sources.append(SecretScanSource())
    if issues_path:
        sources.append(JsonIssueSource(Path(issues_path)))
    return CombinedIssueSource(sources)


def _read_document(path: str) -> str:
    text = Path(path).read_text(encoding="utf-8")
    # Normalize Windows line endings so line numbers match what editors show.
    return text.replace("\r\n", "\n")


def _show(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    engine = _engine_config()
    registry = _build_registry(engine)
    document = _read_document(args.file)
    profile = _resolve_profile(registry, document, args.profile)
    source = _build_issue_source(args.issues, settings.SECRET_SCAN_ENABLED and not args.no_secret_scan)
    issues = source.load(document)
    logger.info("Rendering %s with profile %s and %s issue(s)", args.file, profile.id, len(issues))

    display = scan_secrets(document).masked_document if not args.no_mask else document
    annotated = AnnotatedDocument(
        display,
        issues,
        profile,
        max_line_length=engine.max_line_length,
        precedence=make_precedence(_index_config().pattern_markers),
    )
    console = Console(highlight=False)
    for line in format_document(annotated, args.select, frozenset(args.fixed or [])):
        console.print(line, soft_wrap=True)

    if annotated.unanchored:
        console.print()
        console.print("Findings without a line:", style="bold")
        for issue in annotated.unanchored:
            console.print(format_issue_label(issue))

    if source.overview is not None and not source.overview.is_empty():
        console.print()
        console.print(format_overview(source.overview), end="")
    return 0


def _view(args: argparse.Namespace) -> int:
    from frontend.app import ReviewApp

    engine = _engine_config()
    registry = _build_registry(engine)
    document = _read_document(args.file)
    profile = _resolve_profile(registry, document, args.profile)
    secret_scan = settings.SECRET_SCAN_ENABLED and not args.no_secret_scan
    ReviewApp(
        document,
        profile,
        _build_issue_source(args.issues, secret_scan),
        max_line_length=engine.max_line_length,
        precedence=make_precedence(_index_config().pattern_markers),
        mask_secrets=not args.no_mask,
    ).run()
    return 0


def _scan(args: argparse.Namespace) -> int:
    document = _read_document(args.file)
    result = scan_secrets(document)
    if args.mask:
        sys.stdout.write(result.masked_document)
        return 0
    if not result.issues:
        print("No hard-coded secrets found.")
        return 0
    console = Console(highlight=False)
    for issue in result.issues:
        console.print(format_issue_label(issue))
    return 1


def _detect(args: argparse.Namespace) -> int:
    engine = _engine_config()
    registry = _build_registry(engine)
    print(HeuristicDetector(registry).detect(_read_document(args.file)))
    return 0


def _add_document_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", help="Source file to annotate")
    parser.add_argument("--issues", help="Analysis result JSON with an 'items' list")
    parser.add_argument("--profile", help="Language profile id (default: detect)")
    parser.add_argument("--no-secret-scan", action="store_true", help="Skip the built-in secret scan")
    parser.add_argument("--no-mask", action="store_true", help="Show detected secrets unmasked")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="linelens")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Print the annotated document")
    _add_document_args(show_parser)
    show_parser.add_argument("--select", help="Issue id to highlight as selected")
    show_parser.add_argument("--fixed", action="append", help="Issue id to show as fixed (repeatable)")

    view_parser = subparsers.add_parser("view", help="Open the interactive review viewer")
    _add_document_args(view_parser)

    scan_parser = subparsers.add_parser("scan", help="List hard-coded secrets")
    scan_parser.add_argument("file")
    scan_parser.add_argument("--mask", action="store_true", help="Print the masked document instead")

    detect_parser = subparsers.add_parser("detect", help="Print the detected language profile")
    detect_parser.add_argument("file")

    args = parser.parse_args(argv)
    _configure_logging()
    if args.command == "view":
        _print_banner()

    handlers = {"show": _show, "view": _view, "scan": _scan, "detect": _detect}
    try:
        return handlers[args.command](args)
    except (OSError, ValueError, KeyError) as exc:
        logging.getLogger(__name__).error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
