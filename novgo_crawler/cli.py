"""
crawler-novgo: download a novel from novgo.net into an EPUB or JSON file.

Usage:
    crawler-novgo https://novgo.net/some-novel.html
    crawler-novgo some-novel.html --format json -o out/
    crawler-novgo URL -c 3 -r 5 --delay 1.0     # gentler on the server
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from urllib.parse import urljoin

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from . import __version__
from .config import (
    BASE_URL,
    DEFAULT_CONCURRENCY,
    ENV_ERRORS,
    LOG_LEVEL,
    MAX_RETRIES,
    OUTPUT_DIR,
    OUTPUT_FORMATS,
    REQUEST_DELAY,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
)
from .crawler import NovelCrawler
from .errors import CrawlError

log = logging.getLogger("crawler-novgo.cli")

console = Console()
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crawler-novgo",
        description="Crawl a novel from novgo.net and package it as EPUB or JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "url", nargs="?",
        help=f"Novel landing page URL, or a path relative to {BASE_URL}",
    )
    parser.add_argument(
        "--format", dest="fmt", choices=OUTPUT_FORMATS, default="epub",
        help="Output format (default: epub)",
    )
    parser.add_argument(
        "-o", "--output-dir", default=OUTPUT_DIR,
        help=f"Directory for the output file (default: {OUTPUT_DIR})",
    )
    parser.add_argument(
        "-c", "--concurrency", type=int, default=DEFAULT_CONCURRENCY,
        help=f"Chapters fetched in parallel per batch (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "-r", "--retries", type=int, default=MAX_RETRIES,
        help=f"Retries per page after the first attempt (default: {MAX_RETRIES})",
    )
    parser.add_argument(
        "--delay", type=float, default=REQUEST_DELAY,
        help=f"Delay after each chapter request in seconds (default: {REQUEST_DELAY})",
    )
    parser.add_argument(
        "--retry-delay", type=float, default=RETRY_DELAY,
        help=f"Delay between attempts in seconds (default: {RETRY_DELAY})",
    )
    parser.add_argument(
        "--timeout", type=float, default=REQUEST_TIMEOUT,
        help=f"Per-request timeout in seconds (default: {REQUEST_TIMEOUT:g})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if LOG_LEVEL:
        level = getattr(logging, LOG_LEVEL.upper(), level)
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if ENV_ERRORS:
        for problem in ENV_ERRORS:
            err_console.print(f"[red]error:[/red] {problem}")
        return 1
    if not args.url:
        parser.print_usage(sys.stderr)
        err_console.print("[red]error:[/red] a novel URL is required")
        return 1
    if args.concurrency < 1 or args.retries < 0:
        parser.print_usage(sys.stderr)
        err_console.print("[red]error:[/red] --concurrency must be >= 1 and --retries >= 0")
        return 1

    setup_logging(args.verbose)

    # "some-novel.html" -> https://novgo.net/some-novel.html
    novel_url = urljoin(BASE_URL.rstrip("/") + "/", args.url)

    console.print(
        Panel(f"[bold]crawler-novgo[/bold]  {novel_url}", border_style="blue", expand=False)
    )

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}[/bold blue]"),
        BarColumn(bar_width=40),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("•"),
        TimeRemainingColumn(),
        console=console,
    )
    task = progress.add_task("Chapters", total=None)

    def on_chapter(position, total, record):
        progress.update(
            task,
            total=total,
            advance=1,
            description=f"[{position}/{total}] {record.title[:40]}",
        )

    crawler = NovelCrawler(
        novel_url,
        output_format=args.fmt,
        output_dir=args.output_dir,
        concurrency=args.concurrency,
        retries=args.retries,
        request_delay=args.delay,
        retry_delay=args.retry_delay,
        timeout=args.timeout,
        on_progress=on_chapter,
    )

    start = time.time()
    try:
        with progress:
            output_path = asyncio.run(crawler.run())
    except CrawlError as exc:
        err_console.print(f"[red]Crawl failed ({crawler.state.value}):[/red] {exc}")
        return 1
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        return 1
    except Exception as exc:
        log.debug("Unexpected error", exc_info=True)
        err_console.print(f"[red]Crawl failed ({crawler.state.value}):[/red] {exc!r}")
        return 1

    result = crawler.result
    failed = result.failed_chapters if result else []
    total = len(result.chapters) if result else 0
    summary = (
        f"[green]{total - len(failed)}[/green] downloaded  •  "
        f"[red]{len(failed)}[/red] placeholders  •  "
        f"[bold]{total}[/bold] total  •  {time.time() - start:.0f}s\n"
        f"Output: [bold]{output_path}[/bold]"
    )
    if failed:
        summary += f"\nPlaceholder chapters: {', '.join(map(str, failed))}"
    console.print(
        Panel(summary, title="[bold cyan]Crawl Summary[/bold cyan]", border_style="cyan")
    )
    return 0
