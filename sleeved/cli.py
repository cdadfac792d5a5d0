"""
Sleeved CLI - Command-line interface for the engine.

Usage:
    sleeved simulate <file.json> [--catalog cards.json]   Fight two compositions
    sleeved elo <self> <opponent> <games> <win|loss|draw> Compute a rating update
    sleeved validate <catalog.json>                       Validate a card catalog
    sleeved serve [--host H] [--port P]                   Run the HTTP API
"""

import argparse
import json
import os
import sys

from loguru import logger

from .logging_config import setup_logging


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Sleeved - Sleeved Potential rules engine",
        prog="sleeved",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("SLEEVED_LOG_LEVEL", "INFO"),
        help="Log level (default: $SLEEVED_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Resolve one round between two compositions")
    simulate_parser.add_argument("file", help="JSON file with player1, player2 and optional rules/cards")
    simulate_parser.add_argument("--catalog", help="Card catalog JSON to look card ids up in")

    # Elo command
    elo_parser = subparsers.add_parser("elo", help="Compute a rating update")
    elo_parser.add_argument("self_rating", type=int, help="Your current rating")
    elo_parser.add_argument("opponent_rating", type=int, help="Opponent's current rating")
    elo_parser.add_argument("games_played", type=int, help="Games you have played so far")
    elo_parser.add_argument("result", choices=["win", "loss", "draw"], help="Game result")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a card catalog")
    validate_parser.add_argument("catalog_file", help="Path to catalog JSON")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=os.getenv("SLEEVED_HOST", "127.0.0.1"))
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("SLEEVED_PORT", "8000")))

    args = parser.parse_args()
    setup_logging(args.log_level)

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "elo":
        cmd_elo(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _print_side(label, side):
    stats = side.stats
    outcome = side.outcome
    print(f"{label} ({side.player_id}): {stats.damage} DMG / {stats.health} HP / {stats.initiative} INIT")
    print(
        f"  {'survived' if outcome.survived else 'destroyed'} with {outcome.final_health} HP, "
        f"dealt {outcome.damage_dealt}, earned {outcome.points_earned} point(s)"
    )
    if side.effect_triggered:
        print(f"  effect ({side.effect_triggered.trigger}): {side.effect_triggered.description}")


def cmd_simulate(args):
    """Resolve one round between two compositions."""
    from pydantic import ValidationError

    from .api.schemas import ErrorResponse, SimulateRequest
    from .api.service import EngineService
    from .session import CardCatalog, load_catalog

    try:
        with open(args.file, "r", encoding="utf-8") as f:
            request = SimulateRequest.model_validate(json.load(f))
        catalog = load_catalog(args.catalog) if args.catalog else CardCatalog()
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}")
        sys.exit(1)
    except (json.JSONDecodeError, ValidationError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    response = EngineService(catalog=catalog).simulate(request)
    if isinstance(response, ErrorResponse):
        print(f"Error ({response.error_code.value}): {response.error}")
        sys.exit(1)

    _print_side("Player 1", response.player1)
    _print_side("Player 2", response.player2)
    print("\nCombat log:")
    for line in response.combat_log:
        print(f"  {line}")


def cmd_elo(args):
    """Compute a rating update."""
    from .engine_core.elo import GameResult, calculate_elo_change

    change = calculate_elo_change(
        args.self_rating,
        args.opponent_rating,
        args.games_played,
        GameResult(args.result),
    )
    print(f"New rating: {change.new_elo} ({change.elo_change:+d})")


def cmd_validate(args):
    """Validate a card catalog."""
    from .session import load_catalog, validate_catalog

    print(f"Validating: {args.catalog_file}")
    try:
        catalog = load_catalog(args.catalog_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.catalog_file}")
        sys.exit(1)
    except (json.JSONDecodeError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = validate_catalog(catalog)
    print(
        f"Cards: {len(catalog.sleeves)} sleeves, {len(catalog.animals)} animals, "
        f"{len(catalog.equipment)} equipment"
    )

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("\nCatalog is valid")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    logger.info(f"Serving on http://{args.host}:{args.port}")
    uvicorn.run("sleeved.api.app:app", host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
