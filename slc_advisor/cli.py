"""Command-line interface for the SLC advisor.

Usage:
    slc-advisor new --name "Community Fridges"
    slc-advisor list
    slc-advisor show <canvas_id> [--model impact]
    slc-advisor set <canvas_id> <section> "content..."
    slc-advisor export <canvas_id> --format md [--output canvas.md]
    slc-advisor chat <canvas_id> [--tone experienced]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from slc_advisor.canvas.models import UpdateResult
from slc_advisor.canvas.repository import CanvasRepository
from slc_advisor.canvas.sections import IMPACT_FIELDS, SECTION_LABELS, SECTION_TO_MODEL
from slc_advisor.config import DEFAULT_CANVAS_NAME, AdvisorSettings, ExportFormat, ModelName
from slc_advisor.errors import AdvisorError
from slc_advisor.exporters.base import export_filename, venture_name
from slc_advisor.knowledge.vector_store import KnowledgeBase
from slc_advisor.session.agent_session import AgentSession
from slc_advisor.session.broadcast import BroadcastMessage
from slc_advisor.telemetry import init_telemetry, shutdown_telemetry

logger = logging.getLogger(__name__)


def _print_result(result: UpdateResult) -> int:
    if result.success:
        percentage = result.completion.percentage if result.completion else 0
        print(f"Updated {result.updated_section} ({percentage}% complete)")
        return 0
    for error in result.errors:
        print(f"ERROR: {error}")
    return 1


def cmd_new(repo: CanvasRepository, args: argparse.Namespace) -> int:
    canvas = repo.create(args.name)
    print(canvas.canvas_id)
    return 0


def cmd_list(repo: CanvasRepository, args: argparse.Namespace) -> int:
    metas = repo.list_canvases(include_archived=args.all)
    if not metas:
        print("No canvases yet. Create one with: slc-advisor new")
        return 0
    for meta in metas:
        flags = ("*" if meta.starred else " ") + ("A" if meta.archived else " ")
        print(f"{flags} {meta.id}  {meta.name}  (updated {meta.updated_at})")
    return 0


def cmd_show(repo: CanvasRepository, args: argparse.Namespace) -> int:
    canvas = repo.open(args.canvas_id)
    if args.model:
        view = canvas.get_model_view(ModelName(args.model))
        print(json.dumps(view.to_wire(), indent=2))
        return 0

    state = canvas.get_full_canvas()
    print(f"{state.name} - {state.completion_percentage}% complete")
    for section in state.sections:
        marker = "x" if section.is_complete else " "
        print(f"[{marker}] {SECTION_LABELS[section.section_key]}: {section.content or '-'}")
    return 0


def cmd_set(repo: CanvasRepository, args: argparse.Namespace) -> int:
    canvas = repo.open(args.canvas_id)
    content = " ".join(args.content)
    if args.section in SECTION_TO_MODEL:
        return _print_result(canvas.update_section(args.section, content))
    if args.section in IMPACT_FIELDS:
        return _print_result(canvas.update_impact_field(args.section, content))
    print(f"ERROR: Unknown section or impact field: {args.section}")
    return 1


def cmd_export(repo: CanvasRepository, args: argparse.Namespace) -> int:
    canvas = repo.open(args.canvas_id)
    text = canvas.export_canvas(args.format)
    if args.output is None:
        print(text)
        return 0

    output = Path(args.output)
    if output.is_dir():
        output = output / export_filename(venture_name(canvas.get_full_canvas()), args.format)
    output.write_text(text, encoding="utf-8")
    print(f"Exported to {output}")
    return 0


def _print_status(message: BroadcastMessage) -> None:
    if message.canvas is None and message.status_message:
        print(f"  ... {message.status_message}", file=sys.stderr)


def cmd_chat(repo: CanvasRepository, args: argparse.Namespace, settings: AdvisorSettings) -> int:
    canvas = repo.open(args.canvas_id)
    knowledge = None
    if not args.no_knowledge and settings.knowledge_db.exists():
        knowledge = KnowledgeBase(settings.knowledge_db, program=settings.program)

    session = AgentSession(canvas, knowledge=knowledge, thread_id=args.thread, tone=args.tone)
    session.connect(_print_status)
    print(f"Chatting about '{canvas.get_full_canvas().name}'. Type 'exit' to quit.")

    while True:
        try:
            message = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if message.lower() in ("exit", "quit"):
            break
        if message:
            print(session.handle_message(message))
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    load_dotenv()
    settings = AdvisorSettings.from_env()

    parser = argparse.ArgumentParser(
        description="Social Lean Canvas advisor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--data-dir", type=str, default=str(settings.data_dir), help="Canvas data directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    new = subparsers.add_parser("new", help="Create a canvas")
    new.add_argument("--name", type=str, default=DEFAULT_CANVAS_NAME)

    list_parser = subparsers.add_parser("list", help="List canvases")
    list_parser.add_argument("--all", action="store_true", help="Include archived canvases")

    show = subparsers.add_parser("show", help="Show a canvas")
    show.add_argument("canvas_id")
    show.add_argument("--model", choices=ModelName.values(), help="Show one sub-model with validation")

    set_parser = subparsers.add_parser("set", help="Write a section or impact field")
    set_parser.add_argument("canvas_id")
    set_parser.add_argument("section", help="Section id (e.g. customers) or impact field (e.g. issue)")
    set_parser.add_argument("content", nargs="+")

    export = subparsers.add_parser("export", help="Export a canvas")
    export.add_argument("canvas_id")
    export.add_argument("--format", choices=ExportFormat.values(), default=ExportFormat.MARKDOWN.value)
    export.add_argument("--output", "-o", type=str, help="File or directory to write to (default: stdout)")

    chat = subparsers.add_parser("chat", help="Chat with the advisor about a canvas")
    chat.add_argument("canvas_id")
    chat.add_argument("--thread", type=str, help="Thread id (default: main thread)")
    chat.add_argument("--tone", choices=("beginner", "experienced"), default="beginner")
    chat.add_argument("--no-knowledge", action="store_true", help="Run without knowledge search")

    args = parser.parse_args(argv)

    init_telemetry()
    repo = CanvasRepository(Path(args.data_dir))
    try:
        if args.command == "chat":
            code = cmd_chat(repo, args, settings)
        else:
            handler = {
                "new": cmd_new,
                "list": cmd_list,
                "show": cmd_show,
                "set": cmd_set,
                "export": cmd_export,
            }[args.command]
            code = handler(repo, args)
    except AdvisorError as e:
        logger.debug(f"Command {args.command} failed", exc_info=True)
        print(f"ERROR: {e}")
        code = 1
    finally:
        shutdown_telemetry()
    sys.exit(code)


if __name__ == "__main__":
    main()
