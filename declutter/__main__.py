"""CLI entry point: python -m declutter parse SOURCE [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console

from declutter.items import ParseResult
from declutter.parser import ContentParser, ParseError
from declutter.query import FetchError, fetch_html

logger = logging.getLogger(__name__)

# Properties selectable with --property; lookup ignores case and underscores.
_PROPERTIES: tuple[str, ...] = (
    "title",
    "description",
    "domain",
    "favicon",
    "image",
    "published",
    "author",
    "site",
    "content",
    "content_markdown",
    "parse_time",
    "word_count",
    "extractor_type",
    "schema_org_data",
    "meta_tags",
)
_PROPERTY_LOOKUP: dict[str, str] = {name.replace("_", ""): name for name in _PROPERTIES}


class PropertyNotFoundError(KeyError):
    """Raised for a --property name the result does not have."""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="declutter",
        description="Extract the main content and metadata from a web page.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    parse_cmd = sub.add_parser(
        "parse",
        help="Parse a URL, an HTML file, or '-' for stdin",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  declutter parse https://example.com/article\n"
            "  declutter parse page.html --markdown\n"
            "  declutter parse page.html --property title\n"
            "  cat page.html | declutter parse - --json"
        ),
    )
    parse_cmd.add_argument("source", metavar="SOURCE",
                           help="http(s) URL, file path, or '-' to read stdin")
    parse_cmd.add_argument("-j", "--json", action="store_true", default=False,
                           help="Print the full result as JSON")
    parse_cmd.add_argument("-m", "--markdown", "--md", dest="markdown",
                           action="store_true", default=False,
                           help="Convert the content to Markdown")
    parse_cmd.add_argument("-p", "--property", default=None, metavar="NAME",
                           help="Print a single property (e.g. title, description, domain)")
    parse_cmd.add_argument("-o", "--output", default=None, metavar="FILE",
                           help="Write the output to FILE instead of stdout")
    parse_cmd.add_argument("--user-agent", default=None, metavar="UA",
                           help="User-Agent for URL sources")
    parse_cmd.add_argument("--timeout", type=int, default=30, metavar="S",
                           help="Fetch timeout in seconds (default: 30)")
    parse_cmd.add_argument("--debug", action="store_true", default=False,
                           help="Collect debug info and log at DEBUG level")
    parse_cmd.add_argument("--log-level", default="WARNING",
                           choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                           metavar="{DEBUG,INFO,WARNING,ERROR}",
                           help="Logging level (default: WARNING)")
    return parser


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _load_source(source: str, timeout: int, user_agent: str | None) -> str:
    if _is_url(source):
        return fetch_html(source, timeout=timeout, user_agent=user_agent)
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8", errors="replace")


def extract_property(result: ParseResult, name: str) -> str:
    """Return one result property as text; lists and dicts are rendered as JSON."""
    key = _PROPERTY_LOOKUP.get(name.lower().replace("_", "").replace("-", ""))
    if key is None:
        raise PropertyNotFoundError(name)
    value: Any = getattr(result, key)
    if value is None:
        return ""
    if key == "meta_tags":
        return json.dumps([tag.model_dump(by_alias=True, exclude_none=True) for tag in value], indent=2)
    if isinstance(value, (list, dict)):
        return json.dumps(value, indent=2, ensure_ascii=False)
    return str(value)


def _render(result: ParseResult, args: argparse.Namespace) -> str:
    if args.property:
        return extract_property(result, args.property)
    if args.json:
        return result.to_json()
    if args.markdown and result.content_markdown is not None:
        return result.content_markdown
    return result.content


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.debug else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    console = Console(stderr=True)

    try:
        html = _load_source(args.source, args.timeout, args.user_agent)
    except FetchError as exc:
        console.print(f"[bold red]Error loading content:[/bold red] {exc}")
        return 1
    except OSError as exc:
        console.print(f"[bold red]Error reading {args.source}:[/bold red] {exc}")
        return 1

    options: dict[str, Any] = {
        "debug": args.debug,
        "separate_markdown": args.markdown,
    }
    if _is_url(args.source):
        options["url"] = args.source

    try:
        result = ContentParser(html, options).parse()
    except ParseError as exc:
        console.print(f"[bold red]Error during parsing:[/bold red] {exc}")
        return 1

    try:
        output = _render(result, args)
    except PropertyNotFoundError:
        console.print(f"[bold red]Property not found:[/bold red] {args.property!r}")
        return 1

    if args.output:
        try:
            Path(args.output).write_text(output, encoding="utf-8")
        except OSError as exc:
            console.print(f"[bold red]Error writing {args.output}:[/bold red] {exc}")
            return 1
        console.print(f"Output written to [green]{args.output}[/green]")
    else:
        sys.stdout.write(output)
        if output and not output.endswith("\n"):
            sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
