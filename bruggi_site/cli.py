"""Command-line entry point for the site builder."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .build import BuildOrchestrator
from .config import DEFAULT_PORT, SiteConfig
from .errors import SiteError
from .watch import serve

logger = logging.getLogger("bruggi_site.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if argv and (argv[0] in commands or argv[0] in ("-h", "--help")):
        return argv
    return ("build", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Site directory holding content/, templates/ and static/ "
        "(default: $BRUGGI_SITE_ROOT or the current directory)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Threads used for GPX analysis and thumbnail generation",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build the bilingual Bruggi website from TOML content, GPX tracks and images.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Rebuild the whole site into dist/")
    _add_common_arguments(build_parser)

    serve_parser = subparsers.add_parser(
        "serve", help="Build, then rebuild on change while serving dist/ over HTTP"
    )
    _add_common_arguments(serve_parser)
    serve_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help="Port for the local HTTP server",
    )

    webcam_parser = subparsers.add_parser(
        "update-webcam", help="Publish a new webcam snapshot without a full rebuild"
    )
    webcam_parser.add_argument("path", type=Path, help="JPEG snapshot to publish")
    _add_common_arguments(webcam_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    overrides = {"workers": max(1, args.workers)}
    if args.command == "serve":
        overrides["port"] = args.port
    config = SiteConfig.from_env(args.root, **overrides)
    orchestrator = BuildOrchestrator(config)

    try:
        if args.command == "serve":
            serve(orchestrator)
        elif args.command == "update-webcam":
            orchestrator.publish_webcam_snapshot(args.path.resolve())
        else:
            orchestrator.build()
    except (SiteError, OSError) as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
