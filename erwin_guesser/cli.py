"""erwin_guesser CLI.

Subcommands:
  run          - start the guessing loop and stream its log until Ctrl-C
  box [ID]     - latest box (or one box by id)
  boxes        - most recent boxes
  leaderboard  - top contributors
  wallet [ADDR] - statistics and boxes for a wallet (default: configured one)

Credentials and endpoints are read from the environment (``ERWIN_API_KEY``,
``ERWIN_WALLET_ADDRESS``, ``ERWIN_ORACLE_URL``, ``ERWIN_STATS_URL``); flags
override the endpoints. ``python -m erwin_guesser`` also loads a ``.env``
file first.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Optional

from dotenv import load_dotenv

from erwin_guesser import __version__
from erwin_guesser.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CYCLE_DELAY_S,
    DEFAULT_LOG_WINDOW_S,
    STATS_POLL_INTERVAL_S,
    EngineConfig,
    load_credential,
    oracle_url_from_env,
    stats_url_from_env,
)
from erwin_guesser.engine.controller import LoopController
from erwin_guesser.engine.generator import MnemonicGenerator
from erwin_guesser.engine.log_buffer import LogBuffer
from erwin_guesser.engine.models import AuthFailed
from erwin_guesser.engine.submission import DEFAULT_TIMEOUT_S, SubmissionClient
from erwin_guesser.errors import MissingCredentialError, StatsApiError
from erwin_guesser.stats.client import StatsClient
from erwin_guesser.stats.models import (
    BoxDetail,
    BoxInfo,
    ContributorStats,
    WalletBox,
)
from erwin_guesser.stats.poller import StatsPoller

logger = logging.getLogger(__name__)


# =============================================================================
# FORMATTING
# =============================================================================

def format_box_status(box: BoxInfo) -> str:
    state = (box.state_str or "loading").upper()
    return f"Box {box.box_id}: {state} (open for {box.elapsed()})"


def format_box_row(box: BoxDetail) -> str:
    burned = " [burned]" if box.is_burned else ""
    contents = "-" if box.contents is None else f"{box.contents:g}"
    return (
        f"{box.box_id:<12} {box.state_str.upper():<10} "
        f"contents={contents:<8} contributors={box.contributor_count}{burned}"
    )


def format_box_detail(box: BoxDetail) -> str:
    lines = [
        f"Box {box.box_id}",
        f"  State:        {box.state_str.upper()}",
        f"  Spawned:      {box.spawned_at.isoformat() if box.spawned_at else '-'}",
        f"  Opened:       {box.opened_at.isoformat() if box.opened_at else '-'}",
        f"  Burned:       {'yes' if box.is_burned else 'no'}",
        f"  Contents:     {'-' if box.contents is None else box.contents}",
        f"  Decay number: {'-' if box.decay_number is None else box.decay_number}",
        f"  Opener:       {box.opener_wallet or '-'}",
        f"  Password:     {box.password or '-'}",
        f"  Contributors: {box.contributor_count}",
    ]
    for contributor in box.contributors:
        lines.append(
            f"    {contributor.wallet_id}  guesses={contributor.guess_count}"
            f"  reward={contributor.reward:g}"
        )
    return "\n".join(lines)


def format_contributor_row(rank: int, row: ContributorStats) -> str:
    return (
        f"{rank:>3}. {row.wallet_id:<46} opens={row.open_count:<5} "
        f"guesses={row.guess_count:<9} burns={row.burn_count:<4} "
        f"tokens={row.tokens_earned:g}"
    )


def format_wallet_stats(stats: ContributorStats) -> str:
    return "\n".join([
        f"Wallet {stats.wallet_id}",
        f"  Guesses:       {stats.guess_count}",
        f"  Boxes opened:  {stats.open_count}",
        f"  Boxes burned:  {stats.burn_count}",
        f"  Contributions: {stats.contribution_count}",
        f"  Tokens earned: {stats.tokens_earned:g}",
    ])


def format_wallet_box_row(box: WalletBox) -> str:
    burned = " [burned]" if box.is_burned else ""
    return (
        f"{box.box_id:<12} {box.state_str.upper():<10} "
        f"guesses={box.guesses:<7} rewards={box.rewards:g}{burned}"
    )


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


# =============================================================================
# COMMANDS
# =============================================================================

def _stats_client(args: argparse.Namespace) -> StatsClient:
    return StatsClient(base_url=args.stats_url or stats_url_from_env())


async def _run_engine(args: argparse.Namespace, config: EngineConfig) -> int:
    log = LogBuffer()
    log.subscribe(lambda entry: print(entry.format(), flush=True))
    log.subscribe_clear(lambda: print("-- log cleared --", flush=True))

    controller = LoopController(
        generator=MnemonicGenerator(),
        client=SubmissionClient(config.oracle_url, timeout_s=config.request_timeout_s),
        log=log,
        credential_provider=load_credential,
        config=config,
    )

    try:
        loop_task = controller.start_background()
    except MissingCredentialError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if loop_task is None:
        return 1

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, controller.stop)
        loop.add_signal_handler(signal.SIGTERM, controller.stop)
    except NotImplementedError:
        # Windows event loops: Ctrl-C arrives as KeyboardInterrupt instead.
        pass

    background: list[asyncio.Task] = [
        loop.create_task(log.run_auto_clear(config.log_window_s), name="log-clear"),
    ]
    if not args.no_box_status:
        box_poller = StatsPoller(
            _stats_client(args).latest_box,
            interval_s=STATS_POLL_INTERVAL_S,
            on_update=lambda box: print(format_box_status(box), flush=True),
            name="latest box",
        )
        background.append(loop.create_task(box_poller.run(), name="box-poller"))

    print(
        f"erwin-guesser {__version__}: batches of {config.batch_size}, "
        f"every {config.cycle_delay_s:g}s after each submission. Ctrl-C to stop.",
        flush=True,
    )
    try:
        await loop_task
    except Exception as e:
        print(f"Error: guessing loop failed: {e!r}", file=sys.stderr)
        return 1
    finally:
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)

    if isinstance(controller.last_outcome, AuthFailed):
        return 2
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    try:
        config = EngineConfig(
            batch_size=args.batch_size,
            cycle_delay_s=args.delay,
            request_timeout_s=args.timeout,
            oracle_url=args.oracle_url or oracle_url_from_env(),
            log_window_s=args.log_window,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(_run_engine(args, config))
    except KeyboardInterrupt:
        return 0


def cmd_box(args: argparse.Namespace) -> int:
    client = _stats_client(args)
    try:
        if args.box_id:
            box = asyncio.run(client.box_detail(args.box_id))
            if args.json:
                _print_json(box.to_dict())
            else:
                print(format_box_detail(box))
        else:
            latest = asyncio.run(client.latest_box())
            if args.json:
                _print_json(latest.to_dict())
            else:
                print(format_box_status(latest))
    except StatsApiError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def cmd_boxes(args: argparse.Namespace) -> int:
    client = _stats_client(args)
    try:
        page = asyncio.run(client.recent_boxes())
    except StatsApiError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        _print_json({"total": page.total, "boxes": [b.to_dict() for b in page.boxes]})
        return 0
    print(f"Recent boxes ({len(page.boxes)} of {page.total})")
    for box in page.boxes:
        print(format_box_row(box))
    return 0


def cmd_leaderboard(args: argparse.Namespace) -> int:
    client = _stats_client(args)
    try:
        page = asyncio.run(client.leaderboard())
    except StatsApiError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        _print_json({
            "total": page.total,
            "contributors": [c.to_dict() for c in page.contributors],
        })
        return 0
    print(f"Leaderboard ({page.total} contributors)")
    for rank, row in enumerate(page.contributors, start=1):
        print(format_contributor_row(rank, row))
    return 0


def cmd_wallet(args: argparse.Namespace) -> int:
    address = args.address
    if not address:
        credential = load_credential()
        address = credential.wallet_address if credential else ""
    if not address:
        print(
            "Error: no wallet address given and ERWIN_WALLET_ADDRESS is not set",
            file=sys.stderr,
        )
        return 1

    client = _stats_client(args)

    async def _fetch():
        return await asyncio.gather(
            client.wallet_stats(address), client.wallet_boxes(address)
        )

    try:
        stats, boxes = asyncio.run(_fetch())
    except StatsApiError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        _print_json({
            "stats": stats.to_dict(),
            "total_boxes": boxes.total,
            "boxes": [b.to_dict() for b in boxes.boxes],
        })
        return 0
    print(format_wallet_stats(stats))
    print(f"  Boxes contributed to ({len(boxes.boxes)} of {boxes.total}):")
    for box in boxes.boxes:
        print(f"    {format_wallet_box_row(box)}")
    return 0


# =============================================================================
# PARSER
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erwin-guesser",
        description="Erwin box game client: guessing loop and read-only stats.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )
    parser.add_argument(
        "--stats-url",
        default=None,
        help="Stats service base URL (default: $ERWIN_STATS_URL or the public explorer).",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the guessing loop")
    run_parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Phrases per submission (default: {DEFAULT_BATCH_SIZE}).",
    )
    run_parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_CYCLE_DELAY_S,
        help=f"Seconds to wait after each cycle (default: {DEFAULT_CYCLE_DELAY_S:g}).",
    )
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help=f"Oracle request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g}).",
    )
    run_parser.add_argument(
        "--log-window",
        type=float,
        default=DEFAULT_LOG_WINDOW_S,
        help=f"Seconds between log clears (default: {DEFAULT_LOG_WINDOW_S:g}).",
    )
    run_parser.add_argument(
        "--oracle-url",
        default=None,
        help="Oracle submission URL (default: $ERWIN_ORACLE_URL or the public oracle).",
    )
    run_parser.add_argument(
        "--no-box-status",
        action="store_true",
        help="Do not poll and print the latest box status.",
    )
    run_parser.set_defaults(func=cmd_run)

    box_parser = subparsers.add_parser("box", help="Show the latest box or one box by id")
    box_parser.add_argument("box_id", nargs="?", default=None, help="Box id")
    box_parser.add_argument("--json", action="store_true", help="Print raw JSON")
    box_parser.set_defaults(func=cmd_box)

    boxes_parser = subparsers.add_parser("boxes", help="List recent boxes")
    boxes_parser.add_argument("--json", action="store_true", help="Print raw JSON")
    boxes_parser.set_defaults(func=cmd_boxes)

    leader_parser = subparsers.add_parser("leaderboard", help="Show top contributors")
    leader_parser.add_argument("--json", action="store_true", help="Print raw JSON")
    leader_parser.set_defaults(func=cmd_leaderboard)

    wallet_parser = subparsers.add_parser("wallet", help="Show wallet statistics")
    wallet_parser.add_argument(
        "address", nargs="?", default=None,
        help="Wallet address (default: $ERWIN_WALLET_ADDRESS)",
    )
    wallet_parser.add_argument("--json", action="store_true", help="Print raw JSON")
    wallet_parser.set_defaults(func=cmd_wallet)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command is None:
        parser.print_help()
        return 0
    return args.func(args)


def console_main() -> None:
    """Console-script entry point: load .env, then run the CLI."""
    load_dotenv()
    sys.exit(main())


if __name__ == "__main__":
    console_main()
