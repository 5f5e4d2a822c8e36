"""Entry point for MathLogic Pro.

Usage:
    python -m mathlogic "Prove that the square root of 2 is irrational"
    python -m mathlogic "Prove that ..." --view json --raw-json
    python -m mathlogic "Prove that ..." --output output/sqrt2
    python -m mathlogic --interactive
    python -m mathlogic "Prove that ..." --mock
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from mathlogic import config
from mathlogic.controller import SolveController
from mathlogic.errors import GENERIC_FAILURE_MESSAGE
from mathlogic.models import View
from mathlogic.render import print_response
from mathlogic.session import MathSession
from mathlogic.utils import save_response
from shared.agents import MOCK_SCENARIOS, set_mock_mode

logger = logging.getLogger(__name__)

_HELP = "Commands: :view proof|json|python|all  :history  :quit"


def _selected_views(name: str) -> list[View]:
    return list(View) if name == "all" else [View(name)]


def _print_failure(console: Console) -> None:
    console.print(f"[bold red]Error:[/bold red] {GENERIC_FAILURE_MESSAGE}")


def _print_history(console: Console, session: MathSession) -> None:
    if not session.messages:
        console.print("[dim](no messages yet)[/dim]")
        return
    for i, message in enumerate(session.messages, 1):
        if message.is_response:
            summary = f"proof {message.content.machine_readable_json.proof_id} ({message.content.certainty.value})"
        else:
            summary = message.content
        console.print(f"{i:>3}. [bold]{message.role.value}[/bold]: ", Text(summary), sep="")


def run_interactive(console: Console, controller: SolveController, views: list[View], *, raw_json: bool = False) -> int:
    session = MathSession(solver=controller.solve)
    console.print("[bold]MathLogic Pro[/bold] - enter a problem, or " + _HELP)

    while True:
        try:
            line = console.input("[bold magenta]> [/bold magenta]").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            return 0

        if not line:
            continue
        if line in {":q", ":quit", ":exit"}:
            return 0
        if line == ":history":
            _print_history(console, session)
            continue
        if line.startswith(":view"):
            _, _, name = line.partition(" ")
            name = name.strip() or "all"
            if name not in {"all", *(v.value for v in View)}:
                console.print(_HELP)
                continue
            if session.last_response is None:
                console.print("[dim]No response to show yet.[/dim]")
                continue
            views = _selected_views(name)
            print_response(console, session.last_response, views, raw_json=raw_json)
            continue
        if line.startswith(":"):
            console.print(_HELP)
            continue

        try:
            response = session.submit(line)
        except Exception as exc:
            logger.debug("Query failed", exc_info=exc)
            _print_failure(console)
            continue
        print_response(console, response, views, raw_json=raw_json)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Natural-language math problem -> proof, logic trace and verification script")
    parser.add_argument("query", nargs="?", help="Problem text (omit for interactive mode)")
    parser.add_argument("--view", choices=["all", *(v.value for v in View)], default="all",
                        help="Which view(s) to print. Default: all")
    parser.add_argument("--raw-json", action="store_true", help="Also print the raw logic JSON")
    parser.add_argument("--output", metavar="BASE",
                        help="Write BASE.json and BASE.md with the full response")
    parser.add_argument("--interactive", "-i", action="store_true", help="Prompt for problems in a loop")
    parser.add_argument("--save-run", action="store_true",
                        help=f"Log prompts/responses under {config.RUNS_DIR}")
    parser.add_argument("--mock", action="store_true", help="Run without API calls (offline)")
    parser.add_argument("--mock-scenario", choices=list(MOCK_SCENARIOS), default="clean",
                        help="Mock behavior preset")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    level = logging.DEBUG if (args.verbose or config.VERBOSE_DEFAULT) else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    console = Console()

    if args.mock:
        set_mock_mode(True, scenario=args.mock_scenario)
    else:
        try:
            config.require_api_keys(allow_missing=False)
        except RuntimeError as exc:
            console.print(f"[bold red]Configuration error:[/bold red] {exc}")
            return 2

    controller = SolveController(console=console, save_runs=args.save_run or None)
    views = _selected_views(args.view)

    if args.interactive or not args.query:
        return run_interactive(console, controller, views, raw_json=args.raw_json)

    try:
        response = controller.solve(args.query)
    except Exception as exc:
        logger.debug("Query failed", exc_info=exc)
        _print_failure(console)
        return 1

    print_response(console, response, views, raw_json=args.raw_json)

    if args.output:
        md_path, json_path = save_response(response, Path(args.output))
        console.print("\nOutputs written:")
        console.print(f"  - {md_path}")
        console.print(f"  - {json_path}")
    if controller.last_run_dir is not None:
        console.print(f"Run dir (logs): {controller.last_run_dir}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
