"""hostasis.cli

Command line interface entry point for hostasis.

Design constraints:
- argparse-based.
- Lazy imports: do not import crypto or HTTP dependencies at parse time.
- Config is built once here and passed down; nothing below reads the env.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hostasis.core.config import Config

logger = logging.getLogger("hostasis.cli")


@dataclass(frozen=True)
class CliContext:
    config: Config
    as_json: bool = False
    quiet: bool = False


def _common() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=None, help="YAML config file.")
    common.add_argument("--json", action="store_true", help="Machine-readable output.")
    common.add_argument("--verbose", action="store_true", help="Show transport and lookup details.")
    return common


def _add_key_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--key", default=None, help="Reserve private key (hex). Env: HOSTASIS_PRIVATE_KEY.")
    p.add_argument("--project", default=None, help="Project name; derives the feed key. Env: HOSTASIS_PROJECT.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostasis",
        description="Upload to Swarm with client-side stamping and manage feeds signed by local keys.",
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit.")

    common = _common()
    sub = parser.add_subparsers(dest="command")

    p_addr = sub.add_parser("address", parents=[common], help="Print the feed owner address for a key")
    _add_key_args(p_addr)

    p_proj = sub.add_parser("project", parents=[common], help="Normalize a project name and show its derived address")
    p_proj.add_argument("name")
    p_proj.add_argument("--key", default=None, help="Reserve private key (hex). Env: HOSTASIS_PRIVATE_KEY.")
    p_proj.add_argument("--show-key", action="store_true", help="Also print the derived private key.")

    p_batch = sub.add_parser("batch", help="Postage batch lookups")
    batch_sub = p_batch.add_subparsers(dest="batch_action")
    p_depth = batch_sub.add_parser("depth", parents=[common], help="Read batch depth from the PostageStamp contract")
    p_depth.add_argument("--batch-id", default=None, help="Postage batch ID. Env: HOSTASIS_BATCH_ID.")
    p_depth.add_argument("--rpc", default=None, help="Gnosis Chain RPC URL.")

    p_feed = sub.add_parser("feed", help="Manage Swarm feeds")
    feed_sub = p_feed.add_subparsers(dest="feed_action")

    p_index = feed_sub.add_parser("index", parents=[common], help="Resolve the next feed index")
    _add_key_args(p_index)
    p_index.add_argument("--topic", default=None, help="Feed topic (hex, defaults to the null topic).")
    p_index.add_argument("--gateway", default=None, help="Swarm gateway URL.")

    p_update = feed_sub.add_parser("update", parents=[common], help="Update a feed to point to new content")
    p_update.add_argument("--reference", required=True, help="Content reference (Swarm hash).")
    _add_key_args(p_update)
    p_update.add_argument("--batch-id", default=None, help="Postage batch ID. Env: HOSTASIS_BATCH_ID.")
    p_update.add_argument("--gateway", default=None, help="Swarm gateway URL.")
    p_update.add_argument("--rpc", default=None, help="Gnosis Chain RPC URL for batch depth lookup.")
    p_update.add_argument("--index", type=int, default=None, help="Feed index (auto-fetched if not given).")
    p_update.add_argument("--depth", type=int, default=None, help="Batch depth (auto-fetched if not given).")
    p_update.add_argument("--topic", default=None, help="Feed topic (hex, defaults to the null topic).")
    p_update.add_argument("--writer", default=None, help="Feed writer import path, module:attr.")
    p_update.add_argument("--dry-run", action="store_true", help="Resolve and print the update, write nothing.")
    p_update.add_argument("--quiet", action="store_true", help="Print only 'success'.")

    return parser


def _print_version() -> None:
    from hostasis import __version__

    print(f"hostasis v{__version__}")


def _emit(ctx: CliContext, payload: dict[str, Any], lines: list[str]) -> None:
    if ctx.as_json:
        print(json.dumps(payload, indent=2, sort_keys=True))
        return
    for line in lines:
        print(line)


def _require(value: str, what: str, env: str) -> str:
    from hostasis.core.exceptions import ConfigError

    if not value:
        raise ConfigError(f"{what} is required (flag or {env})")
    return value


def _load_config(args: argparse.Namespace) -> Config:
    import pydantic

    from hostasis.core.config import Config
    from hostasis.core.exceptions import ConfigError

    overrides = {
        "private_key": getattr(args, "key", None),
        "batch_id": getattr(args, "batch_id", None),
        "project": getattr(args, "project", None),
        "topic": getattr(args, "topic", None),
        "feed_writer": getattr(args, "writer", None),
        "gateway.url": getattr(args, "gateway", None),
        "chain.rpc_url": getattr(args, "rpc", None),
    }
    try:
        return Config.load(getattr(args, "config", None)).with_overrides(overrides)
    except pydantic.ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def _cmd_address(ctx: CliContext, args: argparse.Namespace) -> int:
    from hostasis.security.address import address_hex, checksum_address
    from hostasis.security.project_keys import project_key

    cfg = ctx.config
    key = _require(cfg.private_key, "--key", "HOSTASIS_PRIVATE_KEY")

    if cfg.project:
        pk = project_key(key, cfg.project)
        owner, slug, checksum = pk.address, pk.slug, checksum_address(pk.private_key)
    else:
        owner, slug, checksum = address_hex(key), None, checksum_address(key)

    lines = [checksum] if not slug else [f"Project:  {slug}", f"Owner:    {checksum}"]
    _emit(ctx, {"address": owner, "checksum_address": checksum, "project": slug}, lines)
    return 0


def _cmd_project(ctx: CliContext, args: argparse.Namespace) -> int:
    from hostasis.security.address import checksum_address
    from hostasis.security.project_keys import normalize_slug, project_key

    key = ctx.config.private_key
    if not key:
        slug = normalize_slug(args.name)
        _emit(ctx, {"project": slug}, [slug])
        return 0

    pk = project_key(key, args.name)
    payload: dict[str, Any] = {"project": pk.slug, "address": pk.address}
    lines = [f"Project:  {pk.slug}", f"Owner:    {checksum_address(pk.private_key)}"]
    if args.show_key:
        payload["private_key"] = pk.private_key
        lines.append(f"Key:      {pk.private_key}")
    _emit(ctx, payload, lines)
    return 0


def _cmd_batch(ctx: CliContext, args: argparse.Namespace) -> int:
    import asyncio

    from hostasis.integrations.postage import BatchDepthResolver

    if args.batch_action != "depth":
        print("usage: hostasis batch depth [--batch-id ID]", file=sys.stderr)
        return 2

    cfg = ctx.config
    batch_id = _require(cfg.batch_id, "--batch-id", "HOSTASIS_BATCH_ID")
    depth = asyncio.run(BatchDepthResolver.from_config(cfg.chain).resolve_depth(batch_id))

    if depth is None:
        _emit(ctx, {"batch_id": batch_id, "depth": None}, [])
        print("error: could not read batch depth (unknown batch or RPC unavailable)", file=sys.stderr)
        return 1
    _emit(ctx, {"batch_id": batch_id, "depth": depth}, [str(depth)])
    return 0


def _feed_index(ctx: CliContext, args: argparse.Namespace) -> int:
    import asyncio

    from hostasis.integrations.gateway import FeedIndexResolver
    from hostasis.security.address import address_hex
    from hostasis.security.project_keys import project_key

    cfg = ctx.config
    key = _require(cfg.private_key, "--key", "HOSTASIS_PRIVATE_KEY")
    owner = project_key(key, cfg.project).address if cfg.project else address_hex(key)

    lookup = asyncio.run(FeedIndexResolver.from_config(cfg.gateway).resolve(owner, cfg.topic))
    payload = {"owner": owner, "source": str(lookup.source), "next_index": lookup.next_index}

    if lookup.next_index is None:
        _emit(ctx, payload, [])
        print("error: could not fetch feed index", file=sys.stderr)
        return 1
    _emit(ctx, payload, [str(lookup.next_index)])
    return 0


def _feed_update(ctx: CliContext, args: argparse.Namespace) -> int:
    import asyncio

    from hostasis.feeds.orchestrator import FeedUpdateOptions, FeedUpdateOrchestrator
    from hostasis.feeds.writer import FeedWriter, RecordingFeedWriter, load_feed_writer
    from hostasis.security.address import checksum_address

    cfg = ctx.config
    key = _require(cfg.private_key, "--key", "HOSTASIS_PRIVATE_KEY")
    batch_id = _require(cfg.batch_id, "--batch-id", "HOSTASIS_BATCH_ID")

    options = FeedUpdateOptions(
        reference=args.reference,
        reserve_key=key,
        batch_id=batch_id,
        project=cfg.project or None,
        index=args.index,
        depth=args.depth,
        topic=cfg.topic or None,
        gateway_url=cfg.gateway.url,
    )

    orchestrator = FeedUpdateOrchestrator(cfg)
    writer: FeedWriter
    if args.dry_run:
        # kept in memory, nothing leaves the process
        writer = RecordingFeedWriter()
    else:
        writer = load_feed_writer(_require(cfg.feed_writer, "--writer", "HOSTASIS_FEED_WRITER"))
    plan = asyncio.run(orchestrator.update(options, writer=writer))

    if ctx.quiet:
        print("success")
        return 0

    payload = {"dry_run": bool(args.dry_run), **plan.as_dict(redact=True)}
    req = plan.request
    title = "Feed update planned (dry run)" if args.dry_run else "Feed update complete!"
    lines = [
        "",
        title,
        "",
        f"Index:      {req.index}",
        f"Depth:      {req.depth}",
        f"Reference:  {req.reference}",
        f"Owner:      {checksum_address(req.effective_signer_key)}",
    ]
    if plan.project is not None:
        lines.append(f"Project:    {plan.project.slug}")
    _emit(ctx, payload, lines)
    return 0


def _cmd_feed(ctx: CliContext, args: argparse.Namespace) -> int:
    actions: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "index": _feed_index,
        "update": _feed_update,
    }
    fn = actions.get(str(args.feed_action))
    if fn is None:
        print("usage: hostasis feed {index,update} ...", file=sys.stderr)
        return 2
    return fn(ctx, args)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    from hostasis.core.exceptions import HostasisError
    from hostasis.core.log import configure_logging

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "address": _cmd_address,
        "project": _cmd_project,
        "batch": _cmd_batch,
        "feed": _cmd_feed,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    verbose = bool(getattr(args, "verbose", False))
    quiet = bool(getattr(args, "quiet", False))

    try:
        config = _load_config(args)
        log_cfg = config.logging
        if verbose:
            log_cfg = log_cfg.model_copy(update={"level": "DEBUG"})
        elif quiet:
            log_cfg = log_cfg.model_copy(update={"level": "ERROR"})
        configure_logging(log_cfg)

        ctx = CliContext(config=config, as_json=bool(getattr(args, "json", False)), quiet=quiet)
        return int(fn(ctx, args))
    except HostasisError as e:
        logger.debug("command_failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
