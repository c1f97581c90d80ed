"""Command-line interface for the documentation crawler."""

import asyncio
import json
import sys
from typing import List, Optional

from suggest_crawler.browser_setup import install_browser
from suggest_crawler.collect import CRAWLER_TYPES, make_crawler, run_collection
from suggest_crawler.config import CrawlerConfig, load_services_config, settings
from suggest_crawler.exceptions import ConfigError, CrawlerError
from suggest_crawler.logging_config import setup_logging
from suggest_crawler.models import PageData


async def _async_crawl(url: str, crawler_type: str, config: CrawlerConfig) -> List[PageData]:
    """Run a single two-level crawl.

    Args:
        url: Seed URL
        crawler_type: 'dynamic' or 'static'
        config: Crawler configuration

    Returns:
        List of PageData
    """
    crawler = make_crawler(crawler_type, config)
    async with crawler:
        return await crawler.crawl(url)


def crawl_command(args):
    """Crawl one URL two levels deep and print the pages as JSON."""
    try:
        config = CrawlerConfig.from_env()
        pages = asyncio.run(_async_crawl(args.url, args.type, config))
    except CrawlerError as e:
        print(f"Error: {e}")
        sys.exit(1)

    output = json.dumps([page.to_dict() for page in pages], indent=2)
    if args.output_file:
        with open(args.output_file, "w") as f:
            f.write(output)
        print(f"\n{len(pages)} pages written to {args.output_file}")
    else:
        print(output)


def collect_command(args):
    """Crawl the documentation of every class in a services file."""
    try:
        services = load_services_config(args.config)
        config = CrawlerConfig.from_env()
        output_path = asyncio.run(run_collection(
            services,
            crawler_type=args.type,
            config=config,
            doc_limit=args.doc_limit,
            output_dir=args.output_dir,
            output_freq=args.output_freq,
        ))
    except (ConfigError, CrawlerError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"\nCrawl output written to {output_path}")


def install_browser_command(args):
    """Download the browser engine used by the dynamic crawler."""
    if not install_browser(args.browser):
        sys.exit(1)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Suggest Crawler - crawl service documentation for classifier training data"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LVL.upper(),
        help="Set logging verbosity (default: LOG_LVL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Crawl command parser
    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl a URL and the pages it links to."
    )
    crawl_parser.add_argument("url", help="Seed URL")
    crawl_parser.add_argument(
        "--type",
        "-t",
        choices=CRAWLER_TYPES,
        default=settings.CRAWLER_TYPE,
        help="Type of crawl (default: dynamic)",
    )
    crawl_parser.add_argument(
        "--output-file",
        "-f",
        help="Write JSON output to file instead of stdout",
    )
    crawl_parser.set_defaults(func=crawl_command)

    # Collect command parser
    collect_parser = subparsers.add_parser(
        "collect", help="Crawl documentation for every class in a services file."
    )
    collect_parser.add_argument(
        "--config",
        "-c",
        default=settings.SERVICES_CONFIG,
        help="Services data file (default: data/services-data.json)",
    )
    collect_parser.add_argument(
        "--type",
        "-t",
        choices=CRAWLER_TYPES,
        default=settings.CRAWLER_TYPE,
        help="Type of crawl (default: dynamic)",
    )
    collect_parser.add_argument(
        "--doc-limit",
        type=int,
        default=0,
        help="Limit how many documents are kept for a given class (default: no limit)",
    )
    collect_parser.add_argument(
        "--output-dir",
        "-o",
        default=settings.CRAWLER_OUTPUT_DIR,
        help="Directory for output files (default: output)",
    )
    collect_parser.add_argument(
        "--output-freq",
        type=int,
        default=5,
        help="Write partial output every N classes, 0 to disable (default: 5)",
    )
    collect_parser.set_defaults(func=collect_command)

    # Install browser command parser
    install_parser = subparsers.add_parser(
        "install-browser", help="Download the browser used for dynamic crawls."
    )
    install_parser.add_argument(
        "--browser",
        choices=["chromium", "firefox", "webkit"],
        default="chromium",
        help="Browser engine to install (default: chromium)",
    )
    install_parser.set_defaults(func=install_browser_command)

    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
