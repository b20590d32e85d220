import argparse
import sys

from pymongo.errors import PyMongoError

from event_scrapers.config import settings, ensure_directories_exist
from event_scrapers.utils import setup_logger


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be 1 or greater")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="event_scrapers", description="Sympla catalog scraper")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scrape = subparsers.add_parser("scrape", help="Run one scrape and persist new events")
    scrape.add_argument("--url", default=None, help="Catalog URL to start from (defaults to the configured target)")
    scrape.add_argument("--max-pages", type=_positive_int, default=None, help="Stop after this many pages")
    scrape.add_argument("--no-persist", action="store_false", dest="persist",
                        help="Write events.json only, skip the record store")

    serve = subparsers.add_parser("serve", help="Start the run-trigger HTTP server")
    serve.add_argument("--host", default=settings.server.host)
    serve.add_argument("--port", type=int, default=settings.server.port)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    ensure_directories_exist()
    logger = setup_logger("EventScrapersCLI", "cli_run")

    if args.command == "serve":
        import uvicorn
        from event_scrapers.api_server import app

        logger.info(f"Starting Event Scrapers API on {args.host}:{args.port}")
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    from event_scrapers.scrapers.sympla.scraper import run_sympla_scraper

    try:
        report = run_sympla_scraper(
            target_url_override=args.url,
            max_pages_override=args.max_pages,
            persist=args.persist,
        )
    except PyMongoError as e:
        logger.critical(f"Persisting events failed: {e}", exc_info=True)
        return 1

    print(report.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
