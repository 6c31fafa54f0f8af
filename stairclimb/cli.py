"""
Stair Climber CLI - Command-line interface for the engine.

Usage:
    stairclimb serve [--host HOST] [--port PORT]    Run the API server
    stairclimb simulate [--mistake-rate R]          Let a bot play one session
    stairclimb leaderboard [--limit N]              Show the top scores
"""

import argparse
import logging
import os
import random
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Stair Climber - Endless stair-climbing arcade engine",
        prog="stairclimb",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("STAIRCLIMB_LOG_LEVEL", "INFO"),
        help="Logging level (default: $STAIRCLIMB_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Let a bot play one session")
    simulate_parser.add_argument("--mistake-rate", type=float, default=0.02, help="Chance of a wrong move")
    simulate_parser.add_argument("--ticks-per-move", type=int, default=2, help="Clock ticks between moves")
    simulate_parser.add_argument("--max-moves", type=int, default=5000, help="Stop after this many moves")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed for bot and path")
    simulate_parser.add_argument("--player", default="bot", help="Player ID to record the score under")
    simulate_parser.add_argument("--color", default="#94A3B8", help="Character color")
    simulate_parser.add_argument("--save", action="store_true", help="Record the score in the store")

    # Leaderboard command
    leaderboard_parser = subparsers.add_parser("leaderboard", help="Show the top scores")
    leaderboard_parser.add_argument("--limit", type=int, default=20, help="Number of entries")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "leaderboard":
        cmd_leaderboard(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API server."""
    import uvicorn

    uvicorn.run("stairclimb.api.app:app", host=args.host, port=args.port)


def cmd_simulate(args):
    """Let a bot play one session and print the result."""
    from .bots import AutoPlayer, simulate_session
    from .engine_core import GameConfig, PathGenerator
    from .scores import HighScoreStore, PlayerProfile, default_store_path
    from .session import SessionManager

    rng = random.Random(args.seed)
    store = HighScoreStore(default_store_path()) if args.save else HighScoreStore()
    manager = SessionManager(
        store=store,
        config=GameConfig.from_env(),
        generator_factory=lambda cfg: PathGenerator(config=cfg, rng=random.Random(rng.random())),
    )

    try:
        session = manager.create_session(PlayerProfile(player_id=args.player), character_color=args.color)
        bot = AutoPlayer(mistake_rate=args.mistake_rate, rng=rng)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    report = simulate_session(
        session.engine,
        bot,
        ticks_per_move=args.ticks_per_move,
        max_moves=args.max_moves,
    )

    print(f"Session: {session.session_id}")
    print(f"Moves: {report.moves}")
    print(f"Ticks: {report.ticks}")
    if report.result:
        print(f"Ended by: {report.result.end_reason.value}")
        print(f"Final score: {report.final_score}")
    else:
        print(f"Still climbing after {report.moves} moves (score {session.engine.score})")

    best = store.best_for(args.player)
    if args.save and best:
        print(f"Best for {args.player}: {best.score}")


def cmd_leaderboard(args):
    """Show the top scores."""
    from .scores import HighScoreStore, default_store_path

    store = HighScoreStore(default_store_path())
    entries = store.top(args.limit)
    if not entries:
        print("No scores yet.")
        return

    for rank, entry in enumerate(entries, start=1):
        print(f"{rank:>3}. {entry.display_name:<24} {entry.score:>6}  {entry.character_color}")


if __name__ == "__main__":
    main()
