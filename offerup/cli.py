"""
Offer Up CLI - Command-line interface for the engine.

Usage:
    offerup deck                          Show the card catalog
    offerup new NAME NAME NAME [--seed N] Start a game and print the table
    offerup serve [--host H] [--port P]   Run the HTTP API
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Offer Up - Trading and bluffing card game engine",
        prog="offerup",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Deck command
    subparsers.add_parser("deck", help="Show the card catalog")

    # New game command
    new_parser = subparsers.add_parser("new", help="Start a game and print the table")
    new_parser.add_argument("players", nargs="+", help="Player names (3-6)")
    new_parser.add_argument("--seed", type=int, help="Seed for a reproducible game")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")

    args = parser.parse_args(argv)

    if args.command == "deck":
        cmd_deck(args)
    elif args.command == "new":
        cmd_new(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_deck(args):
    """Print every card kind with its count and set size."""
    from .engine_core.cards import CATALOG, DECK_SIZE, card_type_of

    print(f"{'Card':<16} {'Type':<7} {'Count':>5} {'Set':>4}  Effect")
    for subtype, (name, count, set_size, effect) in CATALOG.items():
        print(f"{name:<16} {card_type_of(subtype).value:<7} {count:>5} {set_size:>4}  {effect or ''}")
    print(f"\nTotal: {DECK_SIZE} cards")


def cmd_new(args):
    """Start a game and show where it stands."""
    from .engine_core import Action, apply_action, create_initial_state

    result = apply_action(create_initial_state(), Action.start_game(args.players, seed=args.seed))
    if not result.success:
        print(f"Error: {result.error}")
        sys.exit(1)

    state = result.new_state
    print(f"Seed: {state.random_seed}")
    for change in result.state_changes:
        print(f"  {change}")
    print(f"\nRound {state.round} - {state.phase_instructions}")
    for player in state.players:
        role = " (buyer)" if player.id == state.current_buyer_index else ""
        print(f"\n{player.name}{role}")
        print(f"  Hand: {', '.join(c.name for c in player.hand)}")
    print(f"\nDraw pile: {len(state.draw_pile)} cards")


def cmd_serve(args):
    """Run the API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    from .api.app import create_app, OFFERUP_LOG_LEVEL

    logging.basicConfig(
        level=OFFERUP_LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
