"""
Coastline CLI - Command-line interface for the engine.

Usage:
    coastline --difficulty NAME new       Start a new game (replaces the save)
    coastline status                      Show the saved game
    coastline turn [--count N]            Advance N turns
    coastline build <kind> <row> <col>    Place a structure
    coastline export [--output FILE]      Export the saved game as JSON
    coastline import <file>               Import an exported game
    coastline stats                       Show session history
    coastline clear [--stats]             Delete the save (and history)
    coastline serve [--host H] [--port P]  Run the REST API

Every command works on the save of one profile in --save-dir.
"""

import argparse
import logging
import os
from pathlib import Path
import random
import sys

DEFAULT_SAVE_DIR = os.getenv("COASTLINE_SAVE_DIR", str(Path.home() / ".coastline"))


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Coastline - City-resilience turn engine",
        prog="coastline",
    )
    parser.add_argument("--save-dir", default=DEFAULT_SAVE_DIR, help="Directory for saves")
    parser.add_argument("--profile", default="default", help="Save profile")
    parser.add_argument("--difficulty", default="normal", help="easy, normal, hard or realistic")
    parser.add_argument("--seed", type=int, default=None, help="Seed for deterministic play")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    new_parser = subparsers.add_parser("new", help="Start a new game")
    new_parser.add_argument("--live", action="store_true", help="Fetch live climate data")

    subparsers.add_parser("status", help="Show the saved game")

    turn_parser = subparsers.add_parser("turn", help="Advance turns")
    turn_parser.add_argument("--count", "-n", type=int, default=1, help="Number of turns")

    build_parser = subparsers.add_parser("build", help="Place a structure")
    build_parser.add_argument("kind", help="residential, industrial, mangrove or seawall")
    build_parser.add_argument("row", type=int)
    build_parser.add_argument("col", type=int)

    export_parser = subparsers.add_parser("export", help="Export the saved game")
    export_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    import_parser = subparsers.add_parser("import", help="Import an exported game")
    import_parser.add_argument("file", help="Path to an exported game")

    subparsers.add_parser("stats", help="Show session history")

    clear_parser = subparsers.add_parser("clear", help="Delete the saved game")
    clear_parser.add_argument("--stats", action="store_true", help="Also delete session history")

    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    commands = {
        "new": cmd_new,
        "status": cmd_status,
        "turn": cmd_turn,
        "build": cmd_build,
        "export": cmd_export,
        "import": cmd_import,
        "stats": cmd_stats,
        "clear": cmd_clear,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 1


def configure_logging(verbose):
    level = "DEBUG" if verbose else os.getenv("COASTLINE_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def open_game(args, fresh=False):
    """GameSession for the profile; None (with a message) if there is no save."""
    from .catalog.config import GameConfig
    from .climate_data import NasaClimateDataProvider, StaticClimateDataProvider
    from .persistence import FileStorage
    from .session import GameSession, persistence_for_profile, saved_difficulty_or

    storage = FileStorage(args.save_dir)
    # A saved game keeps the difficulty it was started on
    difficulty = args.difficulty if fresh else saved_difficulty_or(storage, args.difficulty, args.profile)
    config = GameConfig.for_difficulty(difficulty)
    persistence = persistence_for_profile(storage, config, args.profile)
    provider = NasaClimateDataProvider() if getattr(args, "live", False) else StaticClimateDataProvider()
    game = GameSession(config, persistence, climate_provider=provider, rng=random.Random(args.seed))

    if not fresh and not game.load():
        print("No saved game. Start one with: coastline new")
        return None
    return game


def print_state(game):
    """Print resources and the board."""
    from .engine_core import calculate_score, current_sea_level

    state = game.state
    print(f"Year {state.current_year}  (turn {state.turn}, {game.config.difficulty})")
    print(
        f"Money {state.money:.0f}  Wellbeing {state.wellbeing:.0f}  "
        f"Environment {state.environment:.0f}  Resilience {state.resilience:.0f}"
    )
    print(f"Sea level +{current_sea_level(state):.2f} m  Score {calculate_score(state)}")

    symbols = {"residential": "R", "industrial": "I", "mangrove": "M", "seawall": "S"}
    print()
    for row in state.board:
        line = []
        for cell in row:
            if cell.structure:
                line.append(symbols.get(cell.structure, "?"))
            elif cell.flooded:
                line.append("~")
            else:
                line.append("," if cell.is_coast else ".")
        print("  " + " ".join(line))
    print()

    if state.achievements:
        print("Achievements: " + ", ".join(state.achievements))
    if state.game_over:
        outcome = state.outcome.value if state.outcome else "over"
        print(f"GAME OVER: {outcome}")


def cmd_new(args):
    """Start a new game."""
    game = open_game(args, fresh=True)
    if game.climate_provider is not None:
        report = game.refresh_climate_data()
        if report.failed:
            print("Climate data unavailable for: " + ", ".join(report.failed))
    if not game.save():
        print("Error: could not save the new game")
        return 1
    print(f"New {args.difficulty} game started.")
    print_state(game)
    return 0


def cmd_status(args):
    """Show the saved game."""
    game = open_game(args)
    if game is None:
        return 1
    print_state(game)
    return 0


def cmd_turn(args):
    """Advance turns. Each turn is saved automatically."""
    game = open_game(args)
    if game is None:
        return 1

    for _ in range(max(1, args.count)):
        outcome = game.advance_turn()
        line = f"Turn {outcome.turn} ({outcome.year}): {outcome.status.value}"
        if outcome.tags:
            line += "  events: " + ", ".join(tag.value for tag in outcome.tags)
        if outcome.flooded_cells:
            line += f"  flooded: {outcome.flooded_cells}"
        print(line)
        for achievement in outcome.unlocked_achievements:
            print(f"  Achievement unlocked: {achievement}")
        for error in outcome.errors:
            print(f"  Warning: {error}")
        if outcome.game_over:
            break

    print()
    print_state(game)
    return 0


def cmd_build(args):
    """Place a structure and save."""
    game = open_game(args)
    if game is None:
        return 1

    result = game.place_structure(args.kind, args.row, args.col)
    if not result.success:
        print(f"Error: {result.error}")
        return 1
    for change in result.state_changes:
        print(change)
    game.save()
    return 0


def cmd_export(args):
    """Export the saved game as JSON."""
    game = open_game(args)
    if game is None:
        return 1

    text = game.persistence.export_json()
    if text is None:
        print("Error: the saved game could not be exported")
        return 1
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Exported to: {args.output}")
    else:
        print(text)
    return 0


def cmd_import(args):
    """Import an exported game."""
    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {args.file}")
        return 1

    game = open_game(args, fresh=True)
    result = game.import_snapshot(text)
    if not result.success:
        print(f"Error: {result.error}")
        return 1
    print(f"Imported game at year {game.state.current_year}, turn {game.state.turn}")
    return 0


def cmd_stats(args):
    """Show session history."""
    game = open_game(args, fresh=True)
    summary = game.persistence.stats_summary()
    print(
        f"Sessions: {summary['total_sessions']}  Victories: {summary['victories']}  "
        f"Defeats: {summary['defeats']}  Best score: {summary['best_score']}"
    )
    for stat in game.persistence.load_stats():
        print(f"  {stat.date[:10]}  {stat.outcome.value:<10} year {stat.final_year}  score {stat.final_score}")
    return 0


def cmd_clear(args):
    """Delete the saved game."""
    game = open_game(args, fresh=True)
    game.persistence.clear()
    print("Saved game deleted.")
    if args.stats:
        game.persistence.clear_stats()
        print("Session history deleted.")
    return 0



def cmd_serve(args):
    """Run the REST API with uvicorn, saving to --save-dir."""
    import uvicorn

    os.environ["COASTLINE_SAVE_DIR"] = args.save_dir
    uvicorn.run("coastline.api.app:app", host=args.host, port=args.port)
    return 0

if __name__ == "__main__":
    sys.exit(main())
