# src/main.py — v1
"""CLI entry point — select, per-source, registry, localize, resolve commands.

Usage:
    designscout select <source=results.json>... -q <query> [options]
    designscout per-source <source=results.json>... -q <query> [options]
    designscout registry <session_id>
    designscout localize <session_id>
    designscout resolve <session_id> <id>... [--category inspiration]

Candidate files are JSON arrays of CandidateImage objects, served through
StaticImageSource so pre-fetched result sets can be ranked offline.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from designscout.core.models import IMAGE_CATEGORIES
from designscout.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="designscout",
        description=f"designscout v{__version__} — design reference shortlisting",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    for name, func, default_count, help_text in (
        ("select", _cmd_select, 3, "Tournament selection over all sources"),
        ("per-source", _cmd_per_source, 9, "Rank each source, then cut the union"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument(
            "candidates", nargs="+",
            help="Candidate files as source=path.json",
        )
        p.add_argument("-q", "--query", default="", help="Query sent to every source")
        p.add_argument(
            "-n", "--count", type=int, default=default_count,
            help=f"Shortlist size (default: {default_count})",
        )
        p.add_argument("--context", default="", help="What the images are for")
        p.add_argument("--criteria", default=None, help="Extra judging guidance")
        p.add_argument("--session", default=None, help="Session id (generated if omitted)")
        p.set_defaults(func=func)

    p_registry = subparsers.add_parser("registry", help="Show a session's image registry")
    p_registry.add_argument("session_id", help="Session to inspect")
    p_registry.set_defaults(func=_cmd_registry)

    p_localize = subparsers.add_parser(
        "localize", help="Download remaining remote references of a session",
    )
    p_localize.add_argument("session_id", help="Session to localize")
    p_localize.add_argument(
        "--delay", type=float, default=0.2,
        help="Pause between downloads in seconds (default: 0.2)",
    )
    p_localize.set_defaults(func=_cmd_localize)

    p_resolve = subparsers.add_parser("resolve", help="Resolve registry ids to paths")
    p_resolve.add_argument("session_id", help="Session to query")
    p_resolve.add_argument("ids", nargs="+", type=int, help="Registry ids")
    p_resolve.add_argument(
        "--category", default="inspiration", choices=IMAGE_CATEGORIES,
        help="Expected category (default: inspiration)",
    )
    p_resolve.set_defaults(func=_cmd_resolve)

    return parser


async def _cmd_select(args: argparse.Namespace) -> int:
    """Run the tournament strategy over candidate files."""
    from designscout.api.facade import select_images

    session, sources, configs = _prepare_selection(args)
    shortlist = await select_images(
        configs, args.count,
        session=session, sources=sources, context=args.context, criteria=args.criteria,
    )
    _print_shortlist(session.session_id, shortlist)
    return 0


async def _cmd_per_source(args: argparse.Namespace) -> int:
    """Run the per-source strategy over candidate files."""
    from designscout.api.facade import select_images_per_source

    session, sources, configs = _prepare_selection(args)
    shortlist = await select_images_per_source(
        configs, args.count, args.criteria,
        session=session, sources=sources, context=args.context,
    )
    _print_shortlist(session.session_id, shortlist)
    return 0


async def _cmd_registry(args: argparse.Namespace) -> int:
    """Print the registry summary of a session."""
    from designscout.registry.cleanup import cleanup_summary

    registry = _load_registry(args.session_id)
    print(registry.get_summary())
    summary = cleanup_summary(registry)
    print(f"  Total images:   {summary.total_images}")
    print(f"  Local:          {summary.already_local}")
    print(f"  Still remote:   {summary.needs_download}")
    return 0


async def _cmd_localize(args: argparse.Namespace) -> int:
    """Download every reference still pointing at a remote URL."""
    from designscout.config.settings import load_settings
    from designscout.registry.cleanup import localize_remote_references
    from designscout.registry.downloader import ReferenceDownloader
    from designscout.storage.layout import SessionPaths

    settings = load_settings()
    paths = SessionPaths.for_session(settings.output_root, args.session_id)
    registry = _load_registry(args.session_id)
    downloader = ReferenceDownloader(
        paths.reference_dir,
        timeout_s=settings.download_timeout_s,
        user_agent=settings.http_user_agent,
    )
    report = await localize_remote_references(registry, downloader, delay_s=args.delay)

    print(f"\nLocalize complete:")
    print(f"  Checked:     {report.checked}")
    print(f"  Downloaded:  {len(report.downloaded)}")
    print(f"  Failed:      {len(report.failed)}")
    return 0 if not report.failed else 2


async def _cmd_resolve(args: argparse.Namespace) -> int:
    """Print the working path of each id."""
    from designscout.registry.id_resolver import InvalidIdentityError, resolve_ids

    registry = _load_registry(args.session_id)
    try:
        paths = resolve_ids(registry, args.ids, args.category)
    except InvalidIdentityError as exc:
        logger.error("%s", exc)
        return 1
    for image_id, path in zip(args.ids, paths):
        print(f"#{image_id}\t{path}")
    return 0


def _prepare_selection(args: argparse.Namespace):
    from designscout.api.session import DesignSession
    from designscout.config.settings import load_settings
    from designscout.core.models import SearchConfig
    from designscout.sources.source_registry import SourceRegistry

    sources = SourceRegistry(_load_candidate_file(entry) for entry in args.candidates)
    configs = [SearchConfig(source=name, query=args.query) for name in sources.names]
    session = DesignSession.create(load_settings(), session_id=args.session)
    return session, sources, configs


def _load_candidate_file(entry: str):
    """Build a StaticImageSource from 'name=path.json'."""
    from designscout.core.models import CandidateImage
    from designscout.sources.base_source import StaticImageSource

    name, sep, path = entry.partition("=")
    if not sep or not name or not path:
        raise ValueError(f"Expected source=path.json, got {entry!r}")
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return StaticImageSource(name, [CandidateImage.model_validate(item) for item in raw])


def _load_registry(session_id: str):
    from designscout.config.settings import load_settings
    from designscout.registry.image_registry import ImageRegistry
    from designscout.registry.store_factory import create_registry_store
    from designscout.storage.layout import SessionPaths

    settings = load_settings()
    paths = SessionPaths.for_session(settings.output_root, session_id)
    if not paths.root.is_dir():
        raise FileNotFoundError(f"No such session: {paths.root}")
    store = create_registry_store(settings, paths)
    return ImageRegistry.load(store, paths.reference_dir)


def _print_shortlist(session_id: str, shortlist: list) -> None:
    """Print a human-readable shortlist."""
    print(f"\nSelection complete ({session_id}): {len(shortlist)} images")
    for rank, candidate in enumerate(shortlist, start=1):
        title = candidate.title or "(untitled)"
        print(f"  {rank}. [{candidate.source or '?'}] {title}")
        print(f"     {candidate.image_ref}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from designscout.config.settings import load_settings
    from designscout.logging.logger import setup_logging_from_settings

    settings = load_settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    setup_logging_from_settings(settings)
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
