"""CLI entrypoint: python -m saaksh {analyze|reddit|youtube|check-config}."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path

from saaksh.config import (
    get_llm_provider_config,
    get_log_config,
    get_source_config,
    load_config,
)
from saaksh.errors import SaakshError


def setup_logging(config: dict) -> None:
    """Configure logging with console + rotating file output."""
    log_cfg = get_log_config(config)
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_cfg["level"], logging.INFO))

    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler (stderr, so JSON on stdout stays clean)
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    # File handler (rotate at 5MB, keep 3 backups)
    if log_cfg["file"]:
        log_file = Path(log_cfg["file"])
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3,
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


logger = logging.getLogger("saaksh")


def _progress(completed: int, total: int) -> None:
    print(f"  analyzed {completed}/{total}", file=sys.stderr)


def _print_report(report) -> None:
    print(f"\n{report.platform} / {report.query}: "
          f"{len(report.results)} of {report.items_fetched} items analyzed\n")

    for r in sorted(report.results, key=lambda r: r.fake_risk_score, reverse=True):
        risks = ", ".join(r.risk_categories) or "-"
        print(
            f"  [{r.threat_level.value:<8}] risk {r.fake_risk_score:>5.1f}  "
            f"cred {r.credibility_score:>5.1f}  {r.title[:60]}"
        )
        print(f"             {r.url}")
        print(f"             risks: {risks}")

    if report.clusters:
        print("\nNarrative clusters:")
        for c in report.clusters:
            print(
                f"  {c.id}: {c.size} items, avg risk {c.average_fake_risk:.1f}, "
                f"threat {c.average_threat_level.value} ({c.theme})"
            )

    if report.trends:
        print("\nTrending misinformation topics:")
        for t in report.trends:
            print(f"  {t.topic}: {t.count} items, avg risk {t.average_risk:.1f}")


async def cmd_analyze(config: dict, argv: list[str]) -> None:
    """Analyze free text and print the JSON record."""
    from saaksh.monitor import Monitor

    parser = argparse.ArgumentParser(prog="python -m saaksh analyze")
    parser.add_argument("text", nargs="?", help="text to analyze (default: stdin)")
    parser.add_argument("--file", help="read the text from a file")
    args = parser.parse_args(argv)

    if args.file:
        text = Path(args.file).read_text()
    elif args.text:
        text = args.text
    else:
        text = sys.stdin.read()

    record = await Monitor(config).analyze_text(text)
    print(json.dumps(record.to_wire(), indent=2, ensure_ascii=False))


async def cmd_reddit(config: dict, argv: list[str]) -> None:
    """Fetch, analyze and cluster posts from a subreddit."""
    from saaksh.ingest.reddit import SORT_MODES
    from saaksh.monitor import Monitor

    parser = argparse.ArgumentParser(prog="python -m saaksh reddit")
    parser.add_argument("subreddit")
    parser.add_argument("--sort", default="hot", choices=SORT_MODES)
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--search", help="keyword search within the subreddit")
    parser.add_argument("--no-comments", action="store_true")
    args = parser.parse_args(argv)

    report = await Monitor(config).run_reddit(
        args.subreddit,
        sort=args.sort,
        limit=args.limit,
        search=args.search,
        include_comments=False if args.no_comments else None,
        on_progress=_progress,
    )
    _print_report(report)


async def cmd_youtube(config: dict, argv: list[str]) -> None:
    """Search, analyze and cluster YouTube videos."""
    from saaksh.ingest.youtube import ORDER_MODES
    from saaksh.monitor import Monitor

    parser = argparse.ArgumentParser(prog="python -m saaksh youtube")
    parser.add_argument("query")
    parser.add_argument("--max-results", type=int, default=10)
    parser.add_argument("--order", default="relevance", choices=ORDER_MODES)
    args = parser.parse_args(argv)

    report = await Monitor(config).run_youtube(
        args.query,
        max_results=args.max_results,
        order=args.order,
        on_progress=_progress,
    )
    _print_report(report)


def cmd_check_config(config: dict, argv: list[str]) -> None:
    """Show configured providers and which credentials are present."""
    for role in ("primary", "fallback"):
        cfg = get_llm_provider_config(config, role)
        if cfg is None:
            print(f"{role:<9} (disabled)")
            continue
        key = "set" if cfg["api_key"] else "MISSING"
        print(
            f"{role:<9} {cfg['provider_name']:<10} {cfg['provider_type']:<18} "
            f"model={cfg['model']} key={key}"
        )

    reddit = get_source_config(config, "reddit")
    oauth = "oauth" if reddit["client_id"] and reddit["client_secret"] else "public api"
    print(f"{'reddit':<9} {oauth}")

    youtube = get_source_config(config, "youtube")
    print(f"{'youtube':<9} key={'set' if youtube['api_key'] else 'MISSING'}")


COMMANDS = {
    "analyze": cmd_analyze,
    "reddit": cmd_reddit,
    "youtube": cmd_youtube,
    "check-config": cmd_check_config,
}


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        available = ", ".join(COMMANDS)
        print(f"Usage: python -m saaksh {{{available}}} [options]")
        sys.exit(1)

    command = sys.argv[1]
    config = load_config(os.environ.get("CONFIG_PATH", "config.yaml"))
    setup_logging(config)
    handler = COMMANDS[command]

    try:
        if asyncio.iscoroutinefunction(handler):
            asyncio.run(handler(config, sys.argv[2:]))
        else:
            handler(config, sys.argv[2:])
    except (SaakshError, ValueError) as exc:
        logger.error("%s failed: %s", command, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
