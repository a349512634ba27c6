"""Command-line entry point: apply list commands to a document file."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping, Sequence, TextIO

from .editor.caret import CaretTracker
from .editor.commands import CommandResult, ListCommand, parse_command_kind
from .editor.document_model import Document, DocumentMetadata, node_path, resolve_path
from .editor.engine import ListEngine
from .editor.markdown import load_markdown, render_preview
from .editor.serialization import DocumentPayloadError, loads, to_payload
from .services.settings import Settings, SettingsStore, active_env_overrides, parse_overrides
from .utils import logging as logging_utils

__all__ = ["apply_commands", "load_document", "load_settings", "main"]

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_USAGE = 2


def load_settings(store: SettingsStore, *, overrides: Mapping[str, Any] | None = None) -> Settings:
    """Return the effective settings, or defaults when the store is unreadable."""

    try:
        return store.load(overrides=overrides)
    except (OSError, ValueError, TypeError) as exc:
        LOGGER.warning("Falling back to default settings; %s could not be read: %s", store.path, exc)
        return Settings()


def load_document(path: Path) -> Document:
    """Open ``path`` as a JSON snapshot (``.json``) or as Markdown text."""

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() != ".json":
        return load_markdown(text, metadata=DocumentMetadata(path=path))
    document = loads(text)
    document.metadata.path = path
    return document


def apply_commands(
    engine: ListEngine,
    commands: Sequence[str],
    *,
    at: str | None = None,
    offset: int | None = None,
) -> list[CommandResult]:
    """Dispatch ``commands`` in order, starting at node path ``at``.

    Every command after the first acts on the node holding the caret, so a
    sequence reads like keystrokes typed one after another. ``offset`` only
    applies to the first command.
    """

    if not commands:
        return []
    tracker = engine.caret
    if not isinstance(tracker, CaretTracker):
        raise TypeError("apply_commands needs an engine whose caret is a CaretTracker")
    node = resolve_path(engine.document, at or "0")
    results: list[CommandResult] = []
    for name in commands:
        result = engine.dispatch(ListCommand(kind=parse_command_kind(name), node=node, offset=offset))
        results.append(result)
        offset = None
        if result.handled and tracker.node is not None:
            node = tracker.node
    return results


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``jotter`` console script; returns the exit status."""

    args = _build_parser().parse_args(argv)
    store = _settings_store(args.settings_path)
    try:
        overrides = parse_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return EXIT_USAGE
    settings = load_settings(store, overrides=overrides or None)
    logging_utils.configure_from_settings(settings, debug=args.debug, console=args.debug)

    if args.dump_settings:
        _dump_settings(settings, store, overrides=overrides)
        return EXIT_OK
    if args.path is None:
        print("A document path is required.", file=sys.stderr)
        return EXIT_USAGE

    path = Path(args.path).expanduser()
    snapshot = path.suffix.lower() == ".json"
    if args.write and (args.html or (args.json and not snapshot)):
        print("--write saves the document in its own format; drop --html/--json.", file=sys.stderr)
        return EXIT_USAGE
    try:
        document = load_document(path)
    except DocumentPayloadError as exc:
        print(f"Invalid document payload in {path}: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except OSError as exc:
        print(f"Unable to read {path}: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    tracker = CaretTracker()
    engine = ListEngine(document, caret=tracker, settings=settings)
    try:
        results = apply_commands(engine, args.commands, at=args.at, offset=args.offset)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE

    _report(results, tracker, sys.stderr)
    if args.write:
        path.write_text(_render_output(engine, settings, html=False, as_json=snapshot), encoding="utf-8")
        LOGGER.info("Wrote %s (version %d)", path, document.version_id)
    else:
        sys.stdout.write(_render_output(engine, settings, html=args.html, as_json=args.json))
    return EXIT_OK


def _settings_store(cli_path: str | None) -> SettingsStore:
    raw = cli_path or os.environ.get("JOTTER_SETTINGS_PATH")
    return SettingsStore(Path(raw).expanduser() if raw else None)


def _report(results: Sequence[CommandResult], tracker: CaretTracker, stream: TextIO) -> None:
    for result in results:
        outcome = result.action if result.handled else f"declined ({result.reason})"
        print(f"{result.kind.value}: {outcome}", file=stream)
    position = tracker.position
    if position is not None:
        print(f"caret: {node_path(position.node)} ({position.bias})", file=stream)


def _render_output(engine: ListEngine, settings: Settings, *, html: bool, as_json: bool) -> str:
    if as_json:
        return json.dumps(to_payload(engine.document), indent=2) + "\n"
    if not html:
        return engine.render()
    preview = render_preview(
        engine.document,
        bullet=settings.bullet,
        indent_width=settings.indent_width,
        max_chars=settings.preview_max_chars,
    )
    return preview.html + "\n"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jotter",
        description="Apply structural list commands to a Markdown document.",
    )
    parser.add_argument("path", nargs="?", help="Markdown or JSON document to edit.")
    parser.add_argument(
        "--at",
        metavar="PATH",
        help="Caret location as block/item/... indexes (default: 0).",
    )
    parser.add_argument(
        "-c",
        "--command",
        dest="commands",
        metavar="NAME",
        action="append",
        default=[],
        help="List command to apply (indent, unindent, split, enter, backspace, convert); repeatable.",
    )
    parser.add_argument("--offset", type=int, help="Caret offset inside the first node (used by split).")
    formats = parser.add_mutually_exclusive_group()
    formats.add_argument("--html", action="store_true", help="Print the HTML preview instead of Markdown.")
    formats.add_argument("--json", action="store_true", help="Print the JSON tree snapshot.")
    parser.add_argument("--write", action="store_true", help="Write the result back to PATH in its own format.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on stderr.")
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings and where they came from, then exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Settings file to use instead of ~/.jotter/settings.json.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override a setting for this run only (repeatable).",
    )
    return parser


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    report = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": active_env_overrides(),
        },
    }
    out = stream or sys.stdout
    out.write(json.dumps(report, indent=2) + "\n")


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
