"""Command line entrypoint for seeding wardrobe items and outfits."""

import argparse
import logging
import sys
from typing import List, Optional

from sync_app.app import WardrobeSyncApp
from sync_app.errors import SyncError
from sync_app.logging_config import configure_logging, get_logger, log_event

LOGGER = get_logger(__name__)

EXIT_SYNC_ERROR = 2
EXIT_UNEXPECTED_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sync seed wardrobe items and outfits into the database")
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--admin-only",
        dest="all_users",
        action="store_false",
        help="Sync only the admin user from ADMIN_USER_ID / ADMIN_USER_EMAIL (default)",
    )
    target.add_argument("--all-users", dest="all_users", action="store_true", help="Sync every user")
    parser.set_defaults(all_users=False)
    parser.add_argument("--dry-run", action="store_true", help="Load and validate only; write nothing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--images-path", type=str, default=None, help="Directory holding wardrobe images")
    parser.add_argument("--wardrobe-file", type=str, default=None, help="Path to wardrobe.json")
    parser.add_argument("--outfits-file", type=str, default=None, help="Path to outfits.json")
    parser.add_argument("--max-workers", type=int, default=1, help="Users synced in parallel")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.max_workers < 1:
        build_parser().error("--max-workers must be at least 1")

    try:
        app = WardrobeSyncApp()
        if args.verbose:
            configure_logging("DEBUG")
        options = app.options(
            wardrobe_path=args.wardrobe_file,
            outfits_path=args.outfits_file,
            images_path=args.images_path,
            all_users=args.all_users,
            dry_run=args.dry_run,
            max_workers=args.max_workers,
        )
        summary = app.run(options)
    except SyncError as exc:
        log_event(
            LOGGER,
            logging.ERROR,
            "sync_aborted",
            message=exc.message,
            error_category=exc.category,
            details=exc.details,
        )
        return EXIT_SYNC_ERROR
    except Exception:
        log_event(LOGGER, logging.ERROR, "sync_crashed", exc_info=True)
        return EXIT_UNEXPECTED_ERROR
    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
