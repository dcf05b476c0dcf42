"""Command-line interface for the review scraper."""

import asyncio
import json
import subprocess
import sys
from typing import Optional

from reviewscraper.browser_config import DEFAULT_CONFIG, FAST_CONFIG, STEALTH_CONFIG
from reviewscraper.config import ScrapeSettings, settings
from reviewscraper.errors import InvalidTargetError, RenderError, ScrapeError
from reviewscraper.logging_config import get_logger, setup_logging
from reviewscraper.models import ScrapeResult, failure_payload
from reviewscraper.orchestrator import ScrapeOrchestrator, run_with_deadline
from reviewscraper.site_profile import TRUSTPILOT
from reviewscraper.snapshot import SnapshotSession
from reviewscraper.targets import company_from_url, validate_review_url

logger = get_logger(__name__)

BROWSER_PRESETS = {
    "default": DEFAULT_CONFIG,
    "fast": FAST_CONFIG,
    "stealth": STEALTH_CONFIG,
}


def print_summary(result: ScrapeResult, company: str) -> None:
    """Print a scrape result in a human-readable way.

    Args:
        result: Finished scrape result
        company: Company slug the listing belongs to
    """
    print(f"\n{'=' * 60}")
    print(f"Reviews for: {company}")
    print(f"{'=' * 60}")
    print(f"\nURL: {result.target_url}")
    print(f"Total reviews: {result.total_records}")
    print(f"Pages scraped: {result.page_count} of {result.total_pages}")
    print(f"Per page: {', '.join(str(n) for n in result.per_page_counts) or '-'}")

    with_images = sum(1 for r in result.records if r.reviewer_image_url)
    with_content_images = sum(1 for r in result.records if r.content_image_urls)
    print(f"With profile images: {with_images}")
    print(f"With content images: {with_content_images}")

    for record in result.records[:3]:
        print(f"\n  • {record.reviewer_name or 'Anonymous'} ({record.rating}/5): {record.title}")

    if result.errors:
        print("\nNon-fatal errors:")
        for entry in result.errors:
            print(f"  • [{entry.kind.value}] {entry.message}")

    print(f"\n{'=' * 60}\n")


def _write_output(payload: dict, output_file: Optional[str]) -> None:
    output = json.dumps(payload, indent=2, default=str)
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        print(f"Results written to {output_file}", file=sys.stderr)
    else:
        print(output)


def scrape_command(args) -> int:
    """Scrape every review page of one listing."""
    url = args.url or settings.DEFAULT_TARGET_URL

    try:
        url = validate_review_url(url, TRUSTPILOT)
    except InvalidTargetError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Example: https://www.trustpilot.com/review/example.com", file=sys.stderr)
        return 2

    scrape_settings = ScrapeSettings.from_file(args.config) if args.config else ScrapeSettings.from_env()
    if args.max_pages is not None:
        scrape_settings.max_pages = args.max_pages
    if args.deadline is not None:
        scrape_settings.run_deadline = args.deadline

    if args.snapshot:
        paths = list(args.snapshot)
        session_factory = lambda: SnapshotSession.from_files(  # noqa: E731
            paths, next_selector=TRUSTPILOT.pagination_next
        )
        orchestrator = ScrapeOrchestrator(session_factory, scrape_settings, TRUSTPILOT)
    else:
        browser_config = BROWSER_PRESETS[args.browser].model_copy()
        if args.headed:
            browser_config.headless = False
        if settings.USER_AGENT:
            browser_config.user_agent = settings.USER_AGENT
        orchestrator = ScrapeOrchestrator(
            settings=scrape_settings, profile=TRUSTPILOT, browser_config=browser_config
        )

    company = company_from_url(url)
    logger.info(f"Starting scraping for: {url}")

    try:
        result = asyncio.run(run_with_deadline(orchestrator, url, scrape_settings.run_deadline))
    except (ScrapeError, RenderError) as e:
        logger.error(f"Scraping failed: {e}")
        _write_output(failure_payload(e, url), args.output_file)
        return 1
    except asyncio.TimeoutError:
        message = f"Run exceeded its {scrape_settings.run_deadline}s deadline"
        logger.error(message)
        _write_output(failure_payload(TimeoutError(message), url), args.output_file)
        return 1

    logger.info(f"Successfully scraped {result.total_records} reviews for {company}")

    if args.output == "json":
        _write_output(result.to_payload(company), args.output_file)
    else:
        print_summary(result, company)
    return 0


def install_browser_command(args) -> int:
    """Download the Chromium build Playwright drives."""
    print("Running 'playwright install chromium'...")
    try:
        completed = subprocess.run(
            [sys.executable, "-m", "playwright", "install", "chromium"],
            check=True,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        print(f"Error installing Chromium browser for Playwright: {e}", file=sys.stderr)
        if e.stderr:
            print(e.stderr, file=sys.stderr)
        print(
            "Please run the following command manually:\n"
            "  python -m playwright install chromium",
            file=sys.stderr
        )
        return 1

    if completed.stdout:
        print(completed.stdout)
    print("Chromium browser installed successfully.")
    return 0


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="Review Scraper - Extract reviews from paginated, JavaScript-rendered listings"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=settings.LOG_FILE,
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scrape_parser = subparsers.add_parser(
        "scrape", help="Scrape all reviews of one listing."
    )
    scrape_parser.add_argument(
        "url", nargs="?", help="Review listing URL (default: DEFAULT_TARGET_URL)"
    )
    scrape_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="json",
        help="Output format (default: json)",
    )
    scrape_parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file instead of stdout",
    )
    scrape_parser.add_argument(
        "--browser",
        choices=sorted(BROWSER_PRESETS),
        default="default",
        help="Browser preset (default: default)",
    )
    scrape_parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    scrape_parser.add_argument(
        "--max-pages",
        type=int,
        help="Stop after this many pages",
    )
    scrape_parser.add_argument(
        "--deadline",
        type=float,
        help="Overall time budget for the run in seconds",
    )
    scrape_parser.add_argument(
        "--config",
        help="JSON file with scrape settings",
    )
    scrape_parser.add_argument(
        "--snapshot",
        nargs="+",
        metavar="HTML_FILE",
        help="Replay saved listing pages (page 1 first) instead of launching a browser",
    )
    scrape_parser.set_defaults(func=scrape_command)

    install_parser = subparsers.add_parser(
        "install-browser", help="Download the Chromium build used for scraping."
    )
    install_parser.set_defaults(func=install_browser_command)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
