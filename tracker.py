#!/usr/bin/env python3
"""Reading Log CLI - serve the API and manage the reading log."""
import argparse
import asyncio
import csv
import json
import os
import sys
import uvicorn
from tabulate import tabulate
from reading_log.api import create_app
from reading_log.async_client import AsyncOpenLibraryClient
from reading_log.client import OpenLibraryClient
from reading_log.config import Config
from reading_log.database import Database
from reading_log.filters import filter_by_shelf, filter_by_year
from reading_log.parse import LegacyImportError, isbn_for, load_legacy_file
from reading_log.stats import calculate_monthly_breakdown, calculate_statistics
import logging

logger = logging.getLogger(__name__)


def setup_logging(config: Config):
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def setup_database(config: Config) -> Database:
    """Initialize database."""
    db = Database(config.DATABASE_URL)
    db.init_schema()
    return db


def import_legacy(db: Database, path: str) -> int:
    """Import a legacy export into an empty store."""
    count = db.book_count()
    if count > 0:
        logger.info(f"Database contains {count} books, skipping import")
        return 0

    books = load_legacy_file(path)
    logger.info(f"Loaded {len(books)} books from {path}")
    return db.import_legacy(books)


def serve(args, config: Config):
    """Run the API server."""
    db = setup_database(config)

    try:
        if db.book_count() == 0 and os.path.exists(config.BOOKS_JSON_PATH):
            logger.info(f"Database empty, importing from {config.BOOKS_JSON_PATH}")
            imported = import_legacy(db, config.BOOKS_JSON_PATH)
            logger.info(f"Imported {imported} books into database")

        if not config.READING_APP_PASSWORD:
            logger.warning("READING_APP_PASSWORD not set - admin features disabled")
        else:
            logger.info("Admin authentication enabled")

        with OpenLibraryClient(
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES
        ) as client:
            app = create_app(db, config, lookup_client=client)
            uvicorn.run(app, host=args.host or config.HOST, port=args.port or config.PORT)

    finally:
        db.close()


def run_import(args, config: Config):
    """Import books from a legacy export file."""
    db = setup_database(config)

    try:
        imported = import_legacy(db, args.path)
        print(f"✅ Imported {imported} books")
    finally:
        db.close()


def show_stats(args, config: Config):
    """Show reading statistics for a year."""
    db = setup_database(config)

    try:
        read_books = filter_by_shelf(filter_by_year(db.get_all_books(), args.year), "read")
        stats = calculate_statistics(read_books, args.year)
        breakdown = calculate_monthly_breakdown(read_books)

        rows = [[m.month_name, m.count] for m in breakdown]
        print("\n" + tabulate(rows, headers=["Month", "Books"], tablefmt="grid"))

        print("\n" + "=" * 50)
        print(f"READING STATISTICS {stats.year}")
        print("=" * 50)
        print(f"Books read: {stats.total_books}")
        print(f"Pages read: {stats.total_pages}")
        print(f"Average per month: {stats.average_per_month:.1f}")
        print("=" * 50 + "\n")

    finally:
        db.close()


def export_data(args, config: Config):
    """Export the reading log."""
    db = setup_database(config)

    try:
        books = db.get_all_books()

        if args.format == "json":
            data = [book.to_dict() for book in books]

            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                logger.info(f"✅ Exported {len(books)} books to {args.output}")
            else:
                print(json.dumps(data, indent=2))

        elif args.format == "csv":
            output_file = args.output or "books_export.csv"
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(["ID", "Title", "Author", "Date Read", "Pages", "Shelf", "ISBN"])

                for book in books:
                    writer.writerow([
                        book.id,
                        book.title,
                        book.author,
                        book.date_read,
                        book.pages,
                        book.shelf,
                        isbn_for(book),
                    ])

            logger.info(f"✅ Exported {len(books)} books to {output_file}")

    finally:
        db.close()


async def backfill_covers(args, config: Config):
    """Fill in cover URLs for books that have an ISBN but no cover."""
    db = setup_database(config)

    try:
        missing = [b for b in db.get_all_books() if not b.cover_url and isbn_for(b)]
        logger.info(f"{len(missing)} books without a cover URL")
        if not missing:
            return

        async with AsyncOpenLibraryClient(
            timeout=config.DEFAULT_TIMEOUT,
            max_concurrent=args.parallel
        ) as client:
            covers = await client.fetch_covers(sorted({isbn_for(b) for b in missing}))

        updated = 0
        for book in missing:
            url = covers.get(isbn_for(book))
            if not url:
                continue
            if args.dry_run:
                print(f"{book.title}: {url}")
            else:
                book.cover_url = url
                db.update_book(book)
            updated += 1

        logger.info(f"Found covers for {updated}/{len(missing)} books")

    finally:
        db.close()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Reading Log - personal book tracking service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the API server
  %(prog)s serve --port 3000

  # Import a legacy export into an empty database
  %(prog)s import books.json

  # Show statistics for a year
  %(prog)s stats --year 2025

  # Look up missing covers without saving them
  %(prog)s covers --dry-run
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default: HOST or 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port (default: PORT or 3000)")

    import_parser = subparsers.add_parser("import", help="Import a legacy JSON export")
    import_parser.add_argument("path", help="Path to the export file")

    stats_parser = subparsers.add_parser("stats", help="Show reading statistics")
    stats_parser.add_argument("--year", type=int, required=True, help="Year to summarize")

    export_parser = subparsers.add_parser("export", help="Export the reading log")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")

    covers_parser = subparsers.add_parser("covers", help="Backfill missing cover URLs")
    covers_parser.add_argument("--parallel", type=int, default=5, help="Concurrent requests (default: 5)")
    covers_parser.add_argument("--dry-run", action="store_true", help="Print covers instead of saving")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    setup_logging(config)

    try:
        if args.command == "serve":
            serve(args, config)

        elif args.command == "import":
            run_import(args, config)

        elif args.command == "stats":
            show_stats(args, config)

        elif args.command == "export":
            export_data(args, config)

        elif args.command == "covers":
            asyncio.run(backfill_covers(args, config))

    except LegacyImportError as e:
        logger.error(f"❌ Import failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
