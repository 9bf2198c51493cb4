"""Cafe Bracket staff console.

One-shot subcommands operate on the tournaments stored in the data directory.
Without arguments an interactive session starts, with autocomplete and a
bottom toolbar that shows the round clock.
"""

# Cafe Bracket
# Copyright (C) 2025  Cafe Bracket developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import argparse
import html
import random
import shlex
import sys
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter, WordCompleter
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style
from PyQt6.QtCore import QCoreApplication

from cafebracket.constants import MEDAL_SYMBOLS, URGENCY_CRITICAL, URGENCY_WARNING
from cafebracket.controllers.tournament import RoundView, TournamentCoordinator
from cafebracket.exceptions import CafeBracketException
from cafebracket.models.tournament import EngineConfig, StandingRow, TournamentDraft
from cafebracket.persistence import JsonFileGateway
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)

# Seconds to wait for queued writes before a one-shot command exits
WRITE_TIMEOUT = 10.0


# ANSI color codes for terminal output
class Colors:
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


# Interactive commands: usage line and description
COMMANDS = {
    "create": (
        "create --name NAME --players P [P ...] [--rounds N] [--minutes N] "
        "[--fee FEE] [--prize TEXT] [--game ID]",
        "Create a tournament and pair round 1",
    ),
    "list": ("list [--game ID]", "List tournaments, most advanced round first"),
    "open": ("open ID", "Open a tournament and follow its changes"),
    "show": ("show", "Show the current round"),
    "result": ("result ROUND MATCH PLAYER", "Record the winner of a match"),
    "advance": ("advance", "Close the current round"),
    "standings": ("standings", "Show the standings table"),
    "timer": ("timer start|pause|reset", "Control the round clock"),
    "clock": ("clock", "Show the round clock"),
    "resync": ("resync", "Reload the stored tournament"),
    "delete": ("delete ID", "Delete a stored tournament"),
}

# Words completed after each command
COMPLETIONS = {
    "create": ["--name", "--players", "--rounds", "--minutes", "--fee", "--prize", "--game"],
    "list": ["--game"],
    "timer": ["start", "pause", "reset"],
}


def print_banner():
    print(
        f"\n{Colors.BOLD}{Colors.BLUE}Cafe Bracket console{Colors.ENDC}\n"
        f"Type {Colors.BOLD}help{Colors.ENDC} for commands, "
        f"{Colors.BOLD}exit{Colors.ENDC} to leave\n"
    )


def print_help(command: Optional[str] = None):
    """Print every command, or the usage of one."""
    names = list(COMMANDS)
    if command is not None:
        if command in COMMANDS:
            names = [command]
        else:
            print(f"{Colors.RED}Unknown command: {command}{Colors.ENDC}")
    print()
    for name in names:
        usage, description = COMMANDS[name]
        print(f"  {Colors.CYAN}{usage}{Colors.ENDC}\n      {description}")
    print()


def create_completer() -> NestedCompleter:
    words = {name: None for name in COMMANDS}
    for name, options in COMPLETIONS.items():
        words[name] = WordCompleter(options)
    words["help"] = WordCompleter(list(COMMANDS))
    return NestedCompleter.from_nested_dict(words)


# ========== Rendering ==========


def print_round(view: Optional[RoundView]):
    if view is None:
        print(f"{Colors.YELLOW}No tournament open{Colors.ENDC}")
        return

    print(
        f"\n{Colors.BOLD}{view.tournament_name}{Colors.ENDC} "
        f"- round {view.number}/{view.total_rounds} ({view.lifecycle_state.value})"
    )
    for index, match in enumerate(view.matches):
        if match.is_bye:
            line = f"{match.player1} has a bye"
        else:
            line = f"{match.player1} vs {match.player2}"
        status = (
            f"{Colors.GREEN}winner: {match.winner}{Colors.ENDC}"
            if match.is_decided
            else f"{Colors.YELLOW}open{Colors.ENDC}"
        )
        print(f"  [{index}] {line:40} {status}")

    if view.completed:
        label = "finish tournament" if view.is_last_round else "next round"
        print(f"\nRound complete, use {Colors.BOLD}advance{Colors.ENDC} to {label}")
    if view.time_up_with_open_matches:
        print(f"{Colors.RED}Time is up and matches are still open{Colors.ENDC}")
    print()


def print_standings(rows: List[StandingRow]):
    if not rows:
        print(f"{Colors.YELLOW}No standings yet{Colors.ENDC}")
        return

    print(f"\n{Colors.BOLD}{'#':>3}  {'Player':24} {'W':>3} {'L':>3} {'Win%':>5}{Colors.ENDC}")
    for row in rows:
        medal = MEDAL_SYMBOLS.get(row.medal, "") if row.medal else ""
        print(
            f"{row.rank + 1:>3}  {row.player:24} {row.wins:>3} {row.losses:>3} "
            f"{row.winrate:>4}% {medal}"
        )
    print()


def print_clock(view: Optional[RoundView]):
    if view is None or view.timer is None:
        print(f"{Colors.YELLOW}No round clock{Colors.ENDC}")
        return
    color = {
        URGENCY_WARNING: Colors.YELLOW,
        URGENCY_CRITICAL: Colors.RED,
    }.get(view.timer.urgency, Colors.GREEN)
    print(f"{color}{view.timer.clock}{Colors.ENDC} ({view.timer.state.value})")


# ========== Engine wiring ==========


def load_config(path: Optional[str] = None) -> EngineConfig:
    config = EngineConfig.from_file(path) if path else EngineConfig.from_env()
    setup_logger("cafebracket", config.log_level)
    return config


def build_coordinator(config: EngineConfig, **kwargs) -> TournamentCoordinator:
    """Coordinator on the JSON store of ``config``."""
    gateway = JsonFileGateway(config.data_path)
    rng = random.Random(config.seed) if config.seed is not None else None
    return TournamentCoordinator(gateway, rng=rng, **kwargs)


def draft_from_args(args: argparse.Namespace, config: EngineConfig) -> TournamentDraft:
    return TournamentDraft(
        name=args.name,
        roster=list(args.players or []),
        total_rounds=args.rounds if args.rounds is not None else config.default_rounds,
        round_duration_minutes=(
            args.minutes if args.minutes is not None else config.default_round_minutes
        ),
        entry_fee=args.fee,
        prize=args.prize,
        game_id=args.game,
    )


def finish_writes(coordinator: TournamentCoordinator) -> int:
    """Wait for queued writes and report a failed one."""
    if not coordinator.wait_for_writes(WRITE_TIMEOUT):
        print(f"{Colors.RED}Timed out waiting for the store{Colors.ENDC}")
        return 1
    if coordinator.last_persist_error is not None:
        print(f"{Colors.RED}Not saved: {coordinator.last_persist_error}{Colors.ENDC}")
        return 1
    return 0


# ========== Command parsers ==========


def add_create_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--name", required=True, help="Tournament name")
    parser.add_argument("--players", nargs="+", required=True, help="Player names")
    parser.add_argument("--rounds", type=int, help="Number of rounds")
    parser.add_argument("--minutes", type=int, help="Round length in minutes")
    parser.add_argument("--fee", default="", help="Entry fee")
    parser.add_argument("--prize", default="", help="Prize description")
    parser.add_argument("--game", help="Card game id")


def create_create_parser():
    """Create parser for the interactive create command."""
    parser = argparse.ArgumentParser(prog="create", description="Create a tournament")
    add_create_arguments(parser)
    return parser


def create_list_parser():
    """Create parser for the interactive list command."""
    parser = argparse.ArgumentParser(prog="list", description="List tournaments")
    parser.add_argument("--game", help="Card game id")
    return parser


def create_main_parser():
    """Create main argument parser."""
    parser = argparse.ArgumentParser(
        prog="cafe-bracket",
        description="Run café TCG tournaments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  cafe-bracket

  # Create a tournament
  cafe-bracket create --name "Friday Night" --players Ana Bruno Carla Dani

  # Record a result and close the round
  cafe-bracket result <id> 1 0 Ana
  cafe-bracket advance <id>
        """,
    )
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument(
        "--interactive", "-i", action="store_true", help="Start in interactive mode"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_parser = subparsers.add_parser("create", help="Create a tournament")
    add_create_arguments(create_parser)
    create_parser.set_defaults(func=run_create_command)

    list_parser = subparsers.add_parser("list", help="List tournaments")
    list_parser.add_argument("--game")
    list_parser.set_defaults(func=run_list_command)

    show_parser = subparsers.add_parser("show", help="Show the current round")
    show_parser.add_argument("tournament_id")
    show_parser.set_defaults(func=run_show_command)

    result_parser = subparsers.add_parser("result", help="Record a match winner")
    result_parser.add_argument("tournament_id")
    result_parser.add_argument("round", type=int)
    result_parser.add_argument("match", type=int)
    result_parser.add_argument("winner")
    result_parser.set_defaults(func=run_result_command)

    advance_parser = subparsers.add_parser("advance", help="Close the current round")
    advance_parser.add_argument("tournament_id")
    advance_parser.set_defaults(func=run_advance_command)

    standings_parser = subparsers.add_parser("standings", help="Show the standings")
    standings_parser.add_argument("tournament_id")
    standings_parser.set_defaults(func=run_standings_command)

    delete_parser = subparsers.add_parser("delete", help="Delete a tournament")
    delete_parser.add_argument("tournament_id")
    delete_parser.set_defaults(func=run_delete_command)

    return parser


# ========== One-shot commands ==========


def run_create_command(args: argparse.Namespace, config: EngineConfig) -> int:
    coordinator = build_coordinator(config)
    try:
        tournament = coordinator.create_tournament(draft_from_args(args, config))
        print(f"{Colors.GREEN}Created {tournament.name} ({tournament.id}){Colors.ENDC}")
        print_round(coordinator.current_round_view())
        return 0
    finally:
        coordinator.close()


def run_list_command(args: argparse.Namespace, config: EngineConfig) -> int:
    coordinator = build_coordinator(config)
    try:
        tournaments = coordinator.list_tournaments(args.game)
    finally:
        coordinator.close()

    if not tournaments:
        print(f"{Colors.YELLOW}No tournaments stored{Colors.ENDC}")
        return 0
    for tournament in tournaments:
        print(
            f"  {Colors.CYAN}{tournament.id}{Colors.ENDC}  {tournament.name:30} "
            f"{tournament.status_label:12} {len(tournament.roster)} players"
        )
    return 0


def run_show_command(args: argparse.Namespace, config: EngineConfig) -> int:
    coordinator = build_coordinator(config)
    try:
        coordinator.open_tournament(args.tournament_id, follow=False)
        print_round(coordinator.current_round_view())
        return 0
    finally:
        coordinator.close()


def run_result_command(args: argparse.Namespace, config: EngineConfig) -> int:
    coordinator = build_coordinator(config)
    try:
        coordinator.open_tournament(args.tournament_id, follow=False)
        coordinator.record_result(args.round, args.match, args.winner)
        status = finish_writes(coordinator)
        print_round(coordinator.current_round_view())
        return status
    finally:
        coordinator.close()


def run_advance_command(args: argparse.Namespace, config: EngineConfig) -> int:
    coordinator = build_coordinator(config)
    try:
        coordinator.open_tournament(args.tournament_id, follow=False)
        final = coordinator.advance_round()
        status = finish_writes(coordinator)
        if final is not None:
            print(f"{Colors.GREEN}Tournament finished{Colors.ENDC}")
            print_standings(final)
        else:
            print_round(coordinator.current_round_view())
        return status
    finally:
        coordinator.close()


def run_standings_command(args: argparse.Namespace, config: EngineConfig) -> int:
    coordinator = build_coordinator(config)
    try:
        coordinator.open_tournament(args.tournament_id, follow=False)
        print_standings(coordinator.standings_view())
        return 0
    finally:
        coordinator.close()


def run_delete_command(args: argparse.Namespace, config: EngineConfig) -> int:
    gateway = JsonFileGateway(config.data_path)
    if not gateway.delete(args.tournament_id):
        print(f"{Colors.RED}No tournament {args.tournament_id}{Colors.ENDC}")
        return 1
    print(f"{Colors.GREEN}Deleted {args.tournament_id}{Colors.ENDC}")
    return 0


# ========== Interactive mode ==========


class InteractiveSession:
    """Long-lived console session around one coordinator.

    Qt events are processed whenever the toolbar refreshes, which keeps the
    round clock ticking while the prompt waits for input.
    """

    def __init__(self, config: EngineConfig):
        self.config = config
        self.qt_app = QCoreApplication.instance() or QCoreApplication([])
        self.coordinator = build_coordinator(
            config,
            on_time_up=self.on_time_up,
            on_persist_error=self.on_persist_error,
        )
        self.alerts: List[str] = []

    def on_time_up(self):
        self.alerts.append("Time is up!")

    def on_persist_error(self, error: CafeBracketException):
        self.alerts.append(f"Not saved: {error}")

    def toolbar(self):
        self.qt_app.processEvents()
        view = self.coordinator.current_round_view()
        if view is None:
            return HTML("<b>No tournament open</b>")

        parts = [f"<b>{html.escape(view.tournament_name)}</b> round {view.number}/{view.total_rounds}"]
        if view.timer is not None:
            parts.append(f"clock {view.timer.clock} ({view.timer.state.value})")
        if self.coordinator.is_stale:
            parts.append("<style bg='ansired'>changed elsewhere, run resync</style>")
        elif self.coordinator.is_dirty:
            parts.append("saving...")
        return HTML("  |  ".join(parts))

    def flush_alerts(self):
        while self.alerts:
            print(f"{Colors.RED}{self.alerts.pop(0)}{Colors.ENDC}")

    def execute(self, command: str, args_list: List[str]):
        coordinator = self.coordinator
        if command == "create":
            args = create_create_parser().parse_args(args_list)
            tournament = coordinator.create_tournament(draft_from_args(args, self.config))
            coordinator.follow()
            print(f"{Colors.GREEN}Created {tournament.name} ({tournament.id}){Colors.ENDC}")
            print_round(coordinator.current_round_view())
        elif command == "list":
            args = create_list_parser().parse_args(args_list)
            for tournament in coordinator.list_tournaments(args.game):
                print(f"  {tournament.id}  {tournament.name:30} {tournament.status_label}")
        elif command == "open":
            coordinator.open_tournament(args_list[0])
            print_round(coordinator.current_round_view())
        elif command == "show":
            print_round(coordinator.current_round_view())
        elif command == "result":
            round_number, match_index = int(args_list[0]), int(args_list[1])
            coordinator.record_result(round_number, match_index, " ".join(args_list[2:]))
            print_round(coordinator.current_round_view())
        elif command == "advance":
            final = coordinator.advance_round()
            if final is not None:
                print(f"{Colors.GREEN}Tournament finished{Colors.ENDC}")
                print_standings(final)
            else:
                print_round(coordinator.current_round_view())
        elif command == "standings":
            print_standings(coordinator.standings_view())
        elif command == "timer":
            action = args_list[0] if args_list else ""
            if action == "start":
                coordinator.start_timer()
            elif action == "pause":
                coordinator.pause_timer()
            elif action == "reset":
                coordinator.reset_timer()
            else:
                print_help("timer")
                return
            print_clock(coordinator.current_round_view())
        elif command == "clock":
            print_clock(coordinator.current_round_view())
        elif command == "resync":
            coordinator.resync()
            print_round(coordinator.current_round_view())
        elif command == "delete":
            if coordinator.gateway.delete(args_list[0]):
                print(f"{Colors.GREEN}Deleted {args_list[0]}{Colors.ENDC}")
            else:
                print(f"{Colors.RED}No tournament {args_list[0]}{Colors.ENDC}")

    def run(self) -> int:
        print_banner()

        style = Style.from_dict(
            {
                "prompt": "#00aa00 bold",
            }
        )
        session = PromptSession(
            completer=create_completer(),
            history=InMemoryHistory(),
            style=style,
            bottom_toolbar=self.toolbar,
            refresh_interval=0.5,
        )

        try:
            while True:
                try:
                    self.flush_alerts()
                    user_input = session.prompt("cafe-bracket> ").strip()
                    self.qt_app.processEvents()

                    if not user_input:
                        continue
                    if user_input in ["exit", "quit", "q"]:
                        print(f"\n{Colors.GREEN}Goodbye!{Colors.ENDC}\n")
                        break
                    if user_input in ["help", "/help", "?"]:
                        print_help()
                        continue
                    if user_input.startswith("/help ") or user_input.startswith("help "):
                        print_help(user_input.split()[1].lstrip("/"))
                        continue

                    parts = shlex.split(user_input)
                    command = parts[0].lstrip("/")
                    if command not in COMMANDS:
                        print(f"{Colors.RED}Unknown command: {command}{Colors.ENDC}")
                        print(f"Type {Colors.BOLD}help{Colors.ENDC} to see available commands")
                        continue

                    try:
                        self.execute(command, parts[1:])
                    except SystemExit:
                        # argparse calls sys.exit on error
                        continue
                    except (IndexError, ValueError):
                        print(f"{Colors.RED}Missing or invalid arguments{Colors.ENDC}")
                        print_help(command)
                    except CafeBracketException as e:
                        print(f"{Colors.RED}{e}{Colors.ENDC}")

                except KeyboardInterrupt:
                    print(f"\n{Colors.YELLOW}Use 'exit' or 'quit' to leave{Colors.ENDC}")
                except EOFError:
                    print(f"\n{Colors.GREEN}Goodbye!{Colors.ENDC}\n")
                    break
        finally:
            self.coordinator.close()
        return 0


def run_interactive_mode(config: EngineConfig) -> int:
    """Run in interactive mode with autocomplete."""
    return InteractiveSession(config).run()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the cafe-bracket console."""
    parser = create_main_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except CafeBracketException as e:
        print(f"{Colors.RED}Configuration error: {e}{Colors.ENDC}")
        return 2

    if args.interactive or not hasattr(args, "func"):
        return run_interactive_mode(config)

    try:
        return args.func(args, config)
    except CafeBracketException as e:
        print(f"{Colors.RED}Error: {e}{Colors.ENDC}")
        logger.debug("Command failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
