"""
CLI entry point for funding-crawler.

Usage:
    python -m funding_crawler
    python -m funding_crawler --sites sefa,tia
    python -m funding_crawler --ai --ai-provider groq
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

import structlog

# Log level mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure structured logging."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    if json_output:
        renderer = structlog.processors.JSONRenderer()
        timestamper = structlog.processors.TimeStamper(fmt="iso")
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            timestamper,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Crawl funding-agency websites into structured program records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl all configured sites
  python -m funding_crawler

  # Crawl specific sites
  python -m funding_crawler --sites sefa,tia

  # Enhance records with an AI provider (needs GROQ_API_KEY)
  python -m funding_crawler --ai --ai-provider groq

  # Use custom config file and output path
  python -m funding_crawler --config /path/to/sites.yml --output out/funding.json
        """,
    )

    parser.add_argument(
        "--sites",
        type=str,
        help="Comma-separated list of site_ids to crawl (default: all)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to sites.yml config file",
    )

    parser.add_argument(
        "--output",
        type=str,
        default="output/funding.json",
        help="Output JSON path (default: output/funding.json)",
    )

    parser.add_argument(
        "--max-links",
        type=int,
        help="Override max links per site",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        help="Override pages extracted concurrently per site",
    )

    parser.add_argument(
        "--ai",
        action="store_true",
        help="Enable AI enhancement of summaries, eligibility and categories",
    )

    parser.add_argument(
        "--ai-provider",
        choices=["openai", "groq", "claude"],
        help="AI provider (default: AI_PROVIDER env var, then openai)",
    )

    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON (for production)",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser.parse_args(argv)


def select_sites(sites, args):
    """Apply --sites filtering and per-run overrides."""
    if args.sites:
        wanted = {s.strip() for s in args.sites.split(",") if s.strip()}
        sites = [site for site in sites if site.site_id in wanted]

    overrides = {}
    if args.max_links is not None:
        overrides["max_links"] = args.max_links
    if args.concurrency is not None:
        if args.concurrency < 1:
            raise ValueError(f"--concurrency must be >= 1, got {args.concurrency}")
        overrides["concurrency"] = args.concurrency

    if overrides:
        sites = [replace(site, **overrides) for site in sites]
    return sites


async def main_async(args):
    """Async main function."""
    from .config import load_sites
    from .orchestrator import run_crawler

    logger = structlog.get_logger(__name__)

    sites = select_sites(load_sites(args.config), args)
    if not sites:
        logger.warning("no_sites_selected", sites=args.sites)
        return None

    logger.info(
        "starting_funding_crawler",
        sites=[s.site_id for s in sites],
        ai=args.ai,
        output=args.output,
    )

    result = await run_crawler(
        sites,
        output_path=args.output,
        headless=not args.headed,
        use_ai=args.ai,
        ai_provider=args.ai_provider,
    )

    if not result.programs and not result.orphaned_subprograms:
        logger.warning("no_programs_extracted")

    return result


def main():
    """Main entry point."""
    args = parse_args()

    # Version check
    if args.version:
        from . import __version__
        print(f"funding-crawler {__version__}")
        sys.exit(0)

    # Setup logging
    setup_logging(args.log_level, args.json_logs)

    # Run async main
    try:
        result = asyncio.run(main_async(args))
        sys.exit(0 if result is not None else 1)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.exception("fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
