from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

from .config import Config
from .errors import LinkShelfError, humanize
from .model import EnrichedLink, ImageIcon
from .service import LinkService
from .shelf import LinkShelf, normalize_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkshelf",
        description="Save, shorten and browse links.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config TOML (defaults to ./config.toml or $LINKSHELF_CONFIG).",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use a throwaway in-memory store instead of the configured database.",
    )
    subparsers = parser.add_subparsers(
        dest="command", metavar="<command>", required=True
    )

    subparsers.add_parser(
        "list",
        help="Resolve every saved link and print snapshots as they arrive.",
    )

    search_cmd = subparsers.add_parser(
        "search",
        help="Shorten a URL and show where the alias resolves, without saving it.",
    )
    search_cmd.add_argument("url", help="URL to shorten (scheme defaults to https).")

    add_cmd = subparsers.add_parser(
        "add",
        help="Shorten a URL and save the alias locally.",
    )
    add_cmd.add_argument("url", help="URL to shorten (scheme defaults to https).")

    delete_cmd = subparsers.add_parser(
        "delete",
        help="Remove a saved link by its server id.",
    )
    delete_cmd.add_argument("server_id", help="Alias returned by the shortening service.")

    return parser


def format_link(link: EnrichedLink) -> str:
    """Render one snapshot as a single terminal line."""
    if isinstance(link.icon, ImageIcon):
        icon = f"[{link.icon.format or 'image'} {link.icon.width}x{link.icon.height}]"
    elif link.icon is not None:
        icon = f"[{link.icon.name}]"
    else:
        icon = "[...]"
    line = f"{link.stage:<7} {link.server_id:<12} {icon} {link.url}"
    if link.title and link.title != link.url:
        line += f" - {link.title}"
    return line


async def _list(service: LinkService) -> int:
    async for item in service.enrich_all():
        print(format_link(item), flush=True)
    return 0


async def _search(service: LinkService, raw_url: str, *, save: bool) -> int:
    shelf = LinkShelf(service)
    await shelf.try_search(raw_url)
    if shelf.search_result is None:
        print(shelf.error_message or "No result", file=sys.stderr)
        return 1

    print(format_link(shelf.search_result))
    if not save:
        return 0

    await shelf.save_search_result()
    if shelf.error_message:
        print(shelf.error_message, file=sys.stderr)
        return 1
    print(f"Saved {shelf.links[0].server_id}")
    return 0


async def _delete(service: LinkService, server_id: str) -> int:
    await service.delete(server_id)
    print(f"Deleted {server_id}")
    return 0


async def run(args: argparse.Namespace) -> int:
    cfg = Config.from_file(args.config) if args.config else None
    async with LinkService.from_config(cfg, in_memory=True if args.memory else None) as service:
        try:
            if args.command == "list":
                return await _list(service)
            if args.command == "search":
                return await _search(service, args.url, save=False)
            if args.command == "add":
                return await _search(service, args.url, save=True)
            if args.command == "delete":
                return await _delete(service, args.server_id)
        except LinkShelfError as e:
            print(humanize(e), file=sys.stderr)
            return 1
    return 2


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command in ("search", "add") and normalize_url(args.url) is None:
        parser.error(f"invalid URL: {args.url}")
    return asyncio.run(run(args))


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
