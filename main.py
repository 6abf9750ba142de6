#!/usr/bin/env python3
"""Prism: multi-source news ingestion and synthesis.

This CLI tool fetches RSS/Atom feeds from a catalog of outlets, filters
promotional content, groups same-story coverage across sources, and
reports trending topics and keyword alerts.

Commands:
    run         Execute the pipeline (once or continuously)
    sources     List configured sources
    clusters    Fetch once and show the largest story clusters
    trending    Fetch once and show trending topics
    parse       Parse a local feed file (debugging aid)

Examples:
    python main.py run                        # Single run
    python main.py run -c --interval 600      # Continuous polling
    python main.py run --category Technology  # One category only
    python main.py clusters --top 3
    python main.py parse feed.xml --source bbc-world

Environment:
    See config.py for all configuration options
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from config import Config
from models.article import NewsCategory
from observability.logging import setup_logging

logger = logging.getLogger(__name__)


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    """Execute the pipeline.

    Returns:
        Exit code (0 for success, 1 when no source produced data)
    """
    from pipeline import Pipeline

    if args.interval:
        config.poll_interval_seconds = args.interval
    category = NewsCategory(args.category) if args.category else None

    pipeline = Pipeline(config)
    try:
        if args.continuous:
            logger.info("Starting continuous mode...")
            asyncio.run(pipeline.run_continuous(category))
            return 0
        result = asyncio.run(pipeline.run_once(category))
        logger.info("Run complete | stats=%s", json.dumps(result.stats.to_dict()))
        return 1 if result.stats.no_data else 0
    except KeyboardInterrupt:
        logger.info("Stopped by user (Ctrl+C)")
        return 130  # Standard exit code for SIGINT


def cmd_sources(args: argparse.Namespace, config: Config) -> int:
    """List configured sources as JSON."""
    from sources import resolve_sources

    sources = resolve_sources(config.sources_file, config.use_default_sources)
    rows = [
        {
            "id": s.id,
            "name": s.name,
            "category": s.category.value,
            "bias": s.bias.value,
            "reliability": s.reliability,
            "feed_url": s.feed_url,
        }
        for s in sources
    ]
    print(json.dumps(rows, indent=2))
    return 0


def cmd_clusters(args: argparse.Namespace, config: Config) -> int:
    """Fetch once and print the largest clusters."""
    from clustering import top_clusters
    from pipeline import Pipeline

    result = asyncio.run(Pipeline(config).run_once())
    if result.stats.no_data:
        print("No source produced data. Check your internet connection.", file=sys.stderr)
        return 1

    clusters = top_clusters(result.clusters, args.top)
    if not clusters:
        print("No multi-source stories found.")
        return 0

    for cluster in clusters:
        print(f"\n=== {cluster.topic} ({cluster.article_count} articles, {cluster.source_count} sources) ===")
        for article in cluster.articles:
            print(f"  [{article.source.bias.value:>10}] {article.source.name}: {article.title}")
        p = cluster.perspectives
        if p and p.shared_facts:
            print(f"  Shared: {', '.join(p.shared_facts)}")
        if p and p.contentions:
            print(f"  Differs: {', '.join(p.contentions)}")
    return 0


def cmd_trending(args: argparse.Namespace, config: Config) -> int:
    """Fetch once and print trending topics."""
    from pipeline import Pipeline
    from trending import sentiment_label, ticker_text, top_trending

    result = asyncio.run(Pipeline(config).run_once())
    if result.stats.no_data:
        print("No source produced data. Check your internet connection.", file=sys.stderr)
        return 1

    topics = top_trending(result.trends, args.top)
    if not topics:
        print("No trending topics.")
        return 0

    print(ticker_text(topics, args.top))
    for topic in topics:
        mood = sentiment_label(topic)
        sentiment = "" if mood is None else f" sentiment={mood.score:+.2f} ({mood.label.value})"
        print(f"  {topic.label}: {topic.article_count} articles, {topic.source_count} sources{sentiment}")
    return 0


def cmd_parse(args: argparse.Namespace, config: Config) -> int:
    """Parse a local feed file with the configured parser."""
    from parsing import create_parser
    from sources import resolve_sources

    sources = {s.id: s for s in resolve_sources(config.sources_file, config.use_default_sources)}
    source = sources.get(args.source)
    if source is None:
        print(f"Error: unknown source '{args.source}'", file=sys.stderr)
        return 1

    payload = Path(args.file).read_bytes()
    articles = create_parser(config.feed_parser).parse(payload, source)
    for article in articles:
        flag = "BREAKING " if article.is_breaking else ""
        print(f"{article.published:%Y-%m-%d %H:%M} {flag}{article.title}")
        print(f"    {article.link}")
    print(f"\n{len(articles)} articles")
    return 0


def main() -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="Prism: multi-source news synthesis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run the pipeline")
    run_parser.add_argument(
        "-c", "--continuous",
        action="store_true",
        help="Run continuously with polling",
    )
    run_parser.add_argument(
        "--interval",
        type=int,
        help="Poll interval in seconds (continuous mode)",
    )
    run_parser.add_argument(
        "--category",
        choices=[c.value for c in NewsCategory],
        help="Refresh only sources of this category",
    )

    # sources command
    subparsers.add_parser("sources", help="List configured sources")

    # clusters command
    clusters_parser = subparsers.add_parser("clusters", help="Show multi-source story clusters")
    clusters_parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of clusters to show (default: 5)",
    )

    # trending command
    trending_parser = subparsers.add_parser("trending", help="Show trending topics")
    trending_parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of topics to show (default: 5)",
    )

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Parse a local feed file")
    parse_parser.add_argument("file", help="Path to an RSS/Atom file")
    parse_parser.add_argument(
        "--source",
        required=True,
        help="Source ID the file belongs to",
    )

    args = parser.parse_args()

    try:
        config = Config.load()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, verbose=args.verbose)

    if args.command in ("run", "clusters", "trending"):
        error = config.validate()
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    commands = {
        "run": cmd_run,
        "sources": cmd_sources,
        "clusters": cmd_clusters,
        "trending": cmd_trending,
        "parse": cmd_parse,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except KeyboardInterrupt:
            return 130
        except Exception as e:
            logger.error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
