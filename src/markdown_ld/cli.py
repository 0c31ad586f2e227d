"""CLI for markdown-ld - structural extraction for Markdown notes."""

import argparse
import json
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from ._logging import configure_logging
from .core.errors import InvalidEncoding, MarkdownLDError
from .core.model import Document, TocNode
from .engine import parse_markdown
from .lint import validate_links
from .runtime import Runtime, build_runtime


def _read(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _parse(args: argparse.Namespace, rt: Runtime) -> Document:
    raw = _read(args.file)
    doc_id = getattr(args, "id", None)
    if doc_id is None and args.file != "-":
        doc_id = rt.document_id_for(Path(args.file))
    return parse_markdown(raw, document_id=doc_id, index=rt.index, config=rt.config.engine)


def cmd_parse(args: argparse.Namespace, rt: Runtime) -> int:
    """Print the full document record as JSON."""
    doc = _parse(args, rt)
    print(doc.to_json(indent=2 if args.pretty else None))
    return 0


def cmd_links(args: argparse.Namespace, rt: Runtime) -> int:
    """List links with their kind."""
    doc = _parse(args, rt)

    if args.json:
        print(json.dumps([link.to_dict() for link in doc.links], indent=2))
        return 0

    for link in doc.links:
        print(f"{link.line}\t{link.kind.value}\t{link.target}")
    return 0


def cmd_headings(args: argparse.Namespace, rt: Runtime) -> int:
    """List headings with their slugs."""
    doc = _parse(args, rt)

    if args.json:
        print(json.dumps([h.to_dict() for h in doc.headings], indent=2))
    else:
        for h in doc.headings:
            print(f"{'#' * h.level}\t{h.slug}\t{h.plain_text}")
    return 0


def _print_toc(nodes: tuple[TocNode, ...], depth: int = 0) -> None:
    for node in nodes:
        print(f"{'  ' * depth}- {node.heading.plain_text} (#{node.heading.slug})")
        _print_toc(node.children, depth + 1)


def cmd_toc(args: argparse.Namespace, rt: Runtime) -> int:
    """Print the table of contents."""
    doc = _parse(args, rt)

    if args.json:
        print(json.dumps([n.to_dict() for n in doc.table_of_contents], indent=2))
    else:
        _print_toc(doc.table_of_contents)
    return 0


def cmd_tasks(args: argparse.Namespace, rt: Runtime) -> int:
    """List task items, optionally only done or only open ones."""
    doc = _parse(args, rt)
    if args.done:
        tasks = doc.completed_tasks()
    elif args.pending:
        tasks = doc.pending_tasks()
    else:
        tasks = doc.tasks

    if args.json:
        print(json.dumps([t.to_dict() for t in tasks], indent=2, ensure_ascii=False))
    else:
        for t in tasks:
            print(f"{t.line}\t[{'x' if t.checked else ' '}]\t{t.text}")
    return 0


def cmd_lint(args: argparse.Namespace, rt: Runtime) -> int:
    """Validate links in one or more files."""
    all_findings = []
    for name in args.files:
        doc_id = None if name == "-" else rt.document_id_for(Path(name))
        findings = validate_links(
            _read(name), index=rt.index, document_id=doc_id, config=rt.config.engine
        )
        all_findings.extend((name, f) for f in findings)

    if args.json:
        output = [{"file": name, **f.to_dict()} for name, f in all_findings]
        print(json.dumps(output, indent=2))
    elif not args.quiet:
        for name, f in all_findings:
            print(f"{name}:{f.line}: [{f.severity}] {f.message}")

    return 1 if any(f.severity == "error" for _, f in all_findings) else 0


def _need_index(rt: Runtime) -> bool:
    if rt.index is None:
        print("Error: this command needs --index or [index] root in mdld.toml", file=sys.stderr)
        return False
    return True


def cmd_backlinks(args: argparse.Namespace, rt: Runtime) -> int:
    """Show documents linking to a document."""
    if not _need_index(rt):
        return 1
    graph = rt.build_graph()
    incoming = graph.links_in(args.id)

    if args.json:
        print(json.dumps([e.to_dict() for e in incoming], indent=2))
    else:
        for edge in incoming:
            print(f"{edge.source_document_id}\t{edge.link.target}\t{edge.link.display_text}")
    return 0


def cmd_graph(args: argparse.Namespace, rt: Runtime) -> int:
    """Export graph data."""
    if not _need_index(rt):
        return 1
    graph_data = rt.build_graph().graph_data()

    if getattr(args, "dot", False):
        print("digraph documents {")
        print("  rankdir=LR;")
        print("  node [shape=box];")
        for node in graph_data["nodes"]:
            print(f'  "{node["id"]}";')
        for edge in graph_data["edges"]:
            print(f'  "{edge["source"]}" -> "{edge["target"]}";')
        print("}")
    else:
        print(json.dumps(graph_data, indent=2))
    return 0


def cmd_orphans(args: argparse.Namespace, rt: Runtime) -> int:
    """List documents with no links in or out."""
    if not _need_index(rt):
        return 1
    ids = list(rt.index.list_all_ids())
    for nid in rt.build_graph().orphans(ids):
        print(nid)
    return 0


def cmd_serve(args: argparse.Namespace, rt: Runtime) -> int:
    """Start local JSON API server."""
    try:
        import uvicorn

        from .api.app import create_app, generate_token
    except ImportError as e:
        print(
            "Error: API dependencies not installed. "
            "Install with: pip install markdown-ld[api]",
            file=sys.stderr,
        )
        print(f"Details: {e}", file=sys.stderr)
        return 1

    token_arg = getattr(args, "token", "auto")
    token = None

    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=getattr(args, "cors", False))

    host = args.host or rt.config.api.host
    port = args.port or rt.config.api.port
    print(f"Starting server on http://{host}:{port}")

    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def version_string() -> str:
    return (
        f"markdown-ld {__version__} "
        f"(python {platform.python_version()}, platform {sys.platform})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdld", description="Extract structure from Markdown documents"
    )
    parser.add_argument("--version", action="version", version=version_string())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/mdld.toml, index/mdld.toml)",
    )
    parser.add_argument(
        "--index",
        type=Path,
        default=None,
        help="Directory of documents used to resolve internal links (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    parser_parse = subparsers.add_parser("parse", help="Print the full document as JSON")
    parser_parse.add_argument("file", help="Markdown file, or - for stdin")
    parser_parse.add_argument("--id", default=None, help="Document id (default: path below index)")
    parser_parse.add_argument("--pretty", action="store_true", help="Indent JSON output")

    for name, help_text in (
        ("links", "List links"),
        ("headings", "List headings"),
        ("toc", "Print the table of contents"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("file", help="Markdown file, or - for stdin")
        sub.add_argument("--id", default=None, help="Document id")

    parser_tasks = subparsers.add_parser("tasks", help="List task items")
    parser_tasks.add_argument("file", help="Markdown file, or - for stdin")
    parser_tasks.add_argument("--id", default=None, help="Document id")
    which = parser_tasks.add_mutually_exclusive_group()
    which.add_argument("--done", action="store_true", help="Only checked tasks")
    which.add_argument("--pending", action="store_true", help="Only open tasks")

    parser_lint = subparsers.add_parser("lint", help="Validate links")
    parser_lint.add_argument("files", nargs="+", help="Markdown files")

    parser_backlinks = subparsers.add_parser("backlinks", help="Show incoming links")
    parser_backlinks.add_argument("id", help="Document id")

    parser_graph = subparsers.add_parser("graph", help="Export the link graph")
    parser_graph.add_argument("--dot", action="store_true", help="Graphviz DOT output")

    subparsers.add_parser("orphans", help="List unlinked documents")

    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("--host", default=None, help="Bind address (default from config)")
    parser_serve.add_argument("--port", type=int, default=None, help="Port (default from config)")
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token: 'auto' generates one, 'none' disables auth",
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS")

    return parser


HANDLERS: dict[str, Any] = {
    "parse": cmd_parse,
    "links": cmd_links,
    "headings": cmd_headings,
    "toc": cmd_toc,
    "tasks": cmd_tasks,
    "lint": cmd_lint,
    "backlinks": cmd_backlinks,
    "graph": cmd_graph,
    "orphans": cmd_orphans,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        rt = build_runtime(index_root=args.index, config_path=args.config)
    except MarkdownLDError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.log_level, default=rt.config.log.level)

    handler = HANDLERS[args.cmd]
    try:
        exit_code = handler(args, rt)
    except InvalidEncoding as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (MarkdownLDError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
