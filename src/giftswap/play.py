#!/usr/bin/env python
"""Simulate white-elephant gift swaps between bots.

Usage:
    giftswap                              # One 6-player game, narrated
    giftswap --seed 42 --players 8        # Reproducible game with 8 bots
    giftswap --boomerang --max-steals 2   # Snake-draft rules, gifts freeze sooner
    giftswap --validate --games 500       # Stress test with validators
    giftswap --log-file game.yaml         # Save the game record as YAML
"""

import argparse
import asyncio
import logging
import random
from collections import Counter
from typing import Optional

from pydantic import TypeAdapter
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from giftswap.ai import AutoplayAgent, BotDriver
from giftswap.engine import GameValidator, create_validator
from giftswap.events import EventFormatter, GameRecord
from giftswap.service import (
    CallbackBroadcaster,
    GameService,
    InMemoryGameStore,
    Notification,
    NotificationKind,
    NullBroadcaster,
)
from giftswap.events.game_events import HistoryEvent
from giftswap.settings import Settings


def make_players(count: int, prefix: str = "bot_") -> list[str]:
    return [f"{prefix}{i}" for i in range(1, count + 1)]


def make_gifts(count: int) -> list[str]:
    return [f"gift_{i}" for i in range(1, count + 1)]


_EVENT_ADAPTER = TypeAdapter(HistoryEvent)


def _event_from_payload(payload: dict):
    data = payload.get("event")
    if not data:
        return None
    return _EVENT_ADAPTER.validate_python(data)


def _narrator(console: Console, formatter: EventFormatter):
    """Notification callback that prints each history event as it happens."""

    def on_notification(notification: Notification) -> None:
        if notification.kind == NotificationKind.GAME_UPDATED:
            event = _event_from_payload(notification.payload)
            if event is not None:
                console.print(f"  {formatter.format(event)}")
        elif notification.kind == NotificationKind.GAME_ENDED:
            console.print("[bold]Game over[/bold]")

    return on_notification


async def run_simulation(
    seed: int,
    num_players: int,
    num_gifts: int,
    max_steals: int,
    boomerang: bool,
    validator: Optional[GameValidator] = None,
    log_file: Optional[str] = None,
    watch: bool = True,
    delay: float = 0.0,
) -> GameRecord:
    """Run one bot-only game.

    Args:
        seed: Random seed for turn order and bot choices
        num_players: Number of bots
        num_gifts: Number of gifts (>= num_players)
        max_steals: Freeze threshold
        boomerang: Use boomerang (snake draft) turn order
        validator: Optional in-game validator
        log_file: If set, the game record is saved here as YAML
        watch: Print every event as it happens
        delay: Bot thinking delay in seconds

    Returns:
        The finished game's record
    """
    console = Console()
    rng = random.Random(seed)
    settings = Settings(bot_delay_min=delay, bot_delay_max=delay, end_turn_delay=0)

    if watch:
        formatter = EventFormatter(max_steals=max_steals)
        broadcaster = CallbackBroadcaster(_narrator(console, formatter))
        mode = "boomerang" if boomerang else "standard"
        console.print(
            f"\n[bold cyan]{num_players} bots, {num_gifts} gifts, "
            f"{mode} mode (seed {seed})[/bold cyan]\n"
        )
    else:
        broadcaster = NullBroadcaster()

    service = GameService(
        store=InMemoryGameStore(),
        broadcaster=broadcaster,
        validator=validator,
        settings=settings,
    )
    driver = BotDriver(service, agent=AutoplayAgent(rng=rng), settings=settings, rng=rng)

    party_id = f"sim-{seed}"
    await service.start_game(
        party_id,
        make_players(num_players, settings.bot_prefix),
        make_gifts(num_gifts),
        max_steals=max_steals,
        return_to_start=boomerang,
        rng=rng,
    )
    await driver.play_pending(party_id)

    state = await service.get_state(party_id)
    record = GameRecord.from_state(state, seed=seed)

    if watch:
        final = state.final_ownership
        table = Table(title="Final ownership")
        table.add_column("Player")
        table.add_column("Gift")
        table.add_column("Steals", justify="right")
        for player in state.turn_order:
            gifts = final.gift_of(player) if final else []
            gift_id = gifts[0] if gifts else "-"
            gift = state.get_gift(gift_id)
            table.add_row(player, gift_id, str(gift.steal_count) if gift else "0")
        console.print(table)
        summary = record.summary()
        console.print(Panel(
            f"Picks: {summary['picks']}  Steals: {summary['steals']}  "
            f"Skips: {summary['skips']}\n"
            f"Frozen: {', '.join(summary['frozen_gifts']) or 'none'}\n"
            f"Reconciled from: {final.source.value if final else 'n/a'}",
            title="Result",
        ))

    if log_file:
        try:
            record.save_to_file(log_file)
            console.print(f"Game record saved to {log_file}")
        except OSError as e:
            console.print(f"[red]Failed to save game record: {e}[/red]")

    return record


def run_stress_test(
    num_games: int,
    seed_base: int,
    num_players: int,
    num_gifts: int,
    max_steals: int,
    boomerang: bool,
    strict: bool = False,
) -> int:
    """Run many games with validators and report results.

    Returns:
        Number of games with violations or errors
    """
    console = Console()
    console.print(f"\n[bold]Running stress test: {num_games} games...[/bold]")
    console.print(f"Seed base: {seed_base}")
    console.print("-" * 50)

    async def run_one(game_num: int) -> dict:
        seed = seed_base + game_num
        validator = create_validator(collect=True, strict=strict)
        try:
            record = await run_simulation(
                seed, num_players, num_gifts, max_steals, boomerang,
                validator=validator, watch=False,
            )
            return {
                "seed": seed,
                "record": record,
                "violations": validator.get_violations(),
                "error": None,
            }
        except Exception as e:
            return {"seed": seed, "record": None, "violations": [], "error": str(e)}

    async def run_all():
        return await asyncio.gather(*(run_one(i) for i in range(num_games)))

    results = asyncio.run(run_all())

    errors = [r for r in results if r["error"]]
    completed = [r for r in results if r["record"] is not None]
    violations = [v for r in results for v in r["violations"]]
    sources = Counter(
        r["record"].final_ownership.source.value
        for r in completed if r["record"].final_ownership
    )
    forced = sum(r["record"].summary()["forced_skips"] for r in completed)
    steals = [r["record"].summary()["steals"] for r in completed]

    console.print("=" * 60)
    console.print("STRESS TEST REPORT")
    console.print("=" * 60)
    console.print(f"\nGames run: {num_games}")
    console.print(f"Completed: {len(completed)}")
    console.print(f"Errors: {len(errors)}")
    if steals:
        console.print(f"Steals per game: avg {sum(steals) / len(steals):.1f}, max {max(steals)}")
    console.print(f"Forced or no-move skips: {forced}")

    console.print("\nReconciliation Sources:")
    for source, count in sorted(sources.items()):
        console.print(f"  {source}: {count}")

    by_rule = Counter(v.rule_id for v in violations)
    console.print("\nViolations:")
    if by_rule:
        for rule_id, count in sorted(by_rule.items()):
            console.print(f"  {rule_id}: {count}")
    else:
        console.print("  None")

    if errors:
        console.print(f"\nErrors ({len(errors)}):")
        for e in errors[:5]:
            console.print(f"  Seed {e['seed']}: {e['error']}")

    console.print("=" * 60)
    return len(errors) + sum(1 for r in results if r["violations"])


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Gift swap - white-elephant game simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible games"
    )
    parser.add_argument(
        "--players",
        type=int,
        default=6,
        help="Number of bot players (default: 6)"
    )
    parser.add_argument(
        "--gifts",
        type=int,
        default=None,
        help="Number of gifts (default: one per player)"
    )
    parser.add_argument(
        "--max-steals",
        type=int,
        default=3,
        help="Steals after which a gift is frozen (default: 3)"
    )
    parser.add_argument(
        "--boomerang",
        action="store_true",
        help="Boomerang mode: forward pass then reverse pass"
    )
    parser.add_argument(
        "--games",
        type=int,
        default=None,
        help="Run N games with validators (stress test mode)"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Enable in-game validators"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop at the first rule violation"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.0,
        help="Bot thinking delay in seconds (default: 0)"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default="",
        help="Save the game record as YAML to this file"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.ERROR if args.quiet else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    if args.seed is None:
        args.seed = random.randint(1, 1000000)
    num_gifts = args.gifts if args.gifts is not None else args.players

    if args.players < 2:
        print("Error: --players must be at least 2")
        return 1
    if num_gifts < args.players:
        print("Error: --gifts must be at least --players")
        return 1
    if args.max_steals < 1:
        print("Error: --max-steals must be a positive integer")
        return 1
    if args.games is not None and args.games < 1:
        print("Error: --games must be a positive integer")
        return 1

    if args.games is not None:
        failures = run_stress_test(
            args.games,
            seed_base=args.seed,
            num_players=args.players,
            num_gifts=num_gifts,
            max_steals=args.max_steals,
            boomerang=args.boomerang,
            strict=args.strict,
        )
        return 1 if failures else 0

    validator = None
    if args.validate or args.strict:
        validator = create_validator(collect=True, strict=args.strict)

    asyncio.run(run_simulation(
        args.seed,
        args.players,
        num_gifts,
        args.max_steals,
        args.boomerang,
        validator=validator,
        log_file=args.log_file or None,
        delay=args.delay,
    ))

    if validator is not None:
        violations = validator.get_violations()
        if violations:
            for v in violations:
                print(f"[{v.severity.value.upper()}] {v.rule_id}: {v.message}")
            return 1
    return 0


if __name__ == "__main__":
    exit(main())
