# main.py

"""Entry point for the catalog_schedule command-line tool."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from catalog_schedule.config.logging_config import setup_logging
from catalog_schedule.config.settings import Settings

logger = logging.getLogger("catalog_schedule.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    areas = ", ".join(Settings.AREA_PREFIXES)

    parser = argparse.ArgumentParser(
        prog="catalog_schedule",
        description="Product catalog and product-selection schedule tool.",
        epilog=f"Areas: {areas}",
    )
    parser.add_argument(
        "--db",
        default=None,
        type=Path,
        help="SQLite database path (default: data/catalog.db).",
    )
    noise = parser.add_mutually_exclusive_group()
    noise.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show more log output on stderr (-vv for debug).",
    )
    noise.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only show errors on stderr.",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        type=Path,
        help="Directory for per-run log files (default: logs/).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and print a session token.")
    login.add_argument("--username", required=True)
    login.add_argument("--password", required=True)

    create = sub.add_parser(
        "create-product", help="Create a product with an auto-generated code.",
    )
    create.add_argument("--name", required=True)
    create.add_argument("--area", required=True, choices=list(Settings.AREA_PREFIXES))
    create.add_argument("--description", required=True)
    create.add_argument("--manufacturer-description", default="")
    create.add_argument("--product-details", default="")
    create.add_argument("--price", default=None)
    create.add_argument("--image", required=True, help="Path to the product image.")
    create.add_argument("--content-type", default=None)
    create.add_argument("--token", default=None, help="Session token.")

    search = sub.add_parser("search", help="Search the catalog.")
    search.add_argument("query", nargs="?", default="")
    search.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )

    generate = sub.add_parser(
        "generate", help="Render a selection file into a .docx schedule.",
    )
    generate.add_argument("selection", type=Path, help="Selection JSON file.")
    generate.add_argument("-t", "--template", type=Path, default=None)
    generate.add_argument(
        "-o", "--output", type=Path, default=None, dest="output_dir",
    )
    generate.add_argument("--token", default=None, help="Session token.")

    init = sub.add_parser(
        "init-template", help="Write the built-in template to disk.",
    )
    init.add_argument("path", nargs="?", type=Path, default=None)

    upload = sub.add_parser(
        "upload", help="Upload an image or video and print its URL.",
    )
    upload.add_argument("file", type=Path)
    upload.add_argument("--content-type", default=None)
    upload.add_argument("--token", default=None, help="Session token.")

    asset = sub.add_parser("asset", help="Look up or register tagged assets.")
    asset_sub = asset.add_subparsers(dest="asset_command", required=True)

    asset_get = asset_sub.add_parser("get", help="Print the asset for a tag.")
    asset_get.add_argument("tag")

    asset_set = asset_sub.add_parser(
        "set", help="Register a tag from a file or an existing URL.",
    )
    asset_set.add_argument("tag")
    source = asset_set.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, default=None)
    source.add_argument("--url", default=None)
    asset_set.add_argument("--filename", default=None)
    asset_set.add_argument("--content-type", default=None)
    asset_set.add_argument("--alt", default="")
    asset_set.add_argument("--token", default=None, help="Session token.")

    asset_seed = asset_sub.add_parser(
        "seed", help="Upsert every asset in a JSON seed file.",
    )
    asset_seed.add_argument("path", type=Path)
    asset_seed.add_argument("--token", default=None, help="Session token.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the matching runner."""
    args = _build_parser().parse_args(argv)

    verbosity = -1 if args.quiet else args.verbose
    log_file = setup_logging(verbosity, args.log_dir, args.command)
    logger.info("catalog_schedule %s starting, log file: %s", args.command, log_file)

    from catalog_schedule.cli import runner

    if args.command == "login":
        exit_code = runner.run_login(args.username, args.password)
    elif args.command == "create-product":
        exit_code = runner.run_create_product(vars(args), args.token, args.db)
    elif args.command == "search":
        exit_code = runner.run_search(args.query, args.output_format, args.db)
    elif args.command == "generate":
        exit_code = asyncio.run(runner.run_generate(
            args.selection, args.template, args.output_dir, args.token, args.db,
        ))
    elif args.command == "init-template":
        exit_code = runner.run_init_template(args.path)
    elif args.command == "upload":
        exit_code = runner.run_upload(
            args.file, args.content_type, args.token, args.db,
        )
    elif args.asset_command == "get":
        exit_code = runner.run_asset_lookup(args.tag, args.db)
    elif args.asset_command == "set":
        exit_code = runner.run_asset_set(vars(args), args.token, args.db)
    else:
        exit_code = runner.run_asset_seed(args.path, args.token, args.db)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
