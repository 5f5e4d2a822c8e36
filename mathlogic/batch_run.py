"""Batch runner: solve many problems sequentially and summarise the results."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from mathlogic import config
from mathlogic.controller import SolveController
from mathlogic.utils import Stopwatch, save_response
from shared.agents import MOCK_SCENARIOS, set_mock_mode
from shared.utils import safe_filename

logger = logging.getLogger(__name__)


def load_queries(path: Path) -> list[str]:
    """Read queries from a JSON list of strings, or one query per non-blank line."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
        if not isinstance(data, list) or not all(isinstance(q, str) for q in data):
            raise ValueError(f"{path}: expected a JSON list of strings")
        return [q for q in data if q.strip()]
    return [line.strip() for line in text.splitlines() if line.strip() and not line.lstrip().startswith("#")]


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Batch-solve problems listed in one or more files")
    p.add_argument("query_files", nargs="+", help="Text files (one problem per line) or JSON lists")
    p.add_argument("--outdir", default="output/batch", help="Where to write artifacts")
    p.add_argument("--summary", default="output/batch_summary.json", help="Summary JSON path")
    p.add_argument("--save-run", action="store_true", help="Also keep prompt/response logs per query")
    p.add_argument("--mock", action="store_true", help="Offline mock mode")
    p.add_argument("--mock-scenario", choices=list(MOCK_SCENARIOS), default="clean")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
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

    queries: list[str] = []
    for f in args.query_files:
        queries.extend(load_queries(Path(f)))

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    controller = SolveController(console=console, save_runs=args.save_run or None)

    rows = []
    for idx, query in enumerate(queries, 1):
        timer = Stopwatch()
        row = {"index": idx, "query": query, "status": "failed"}
        try:
            response = controller.solve(query)
        except Exception as exc:
            logger.warning("Query %d failed: %s", idx, exc)
            row["error"] = str(exc)
        else:
            problem = response.parsed_problem
            name = safe_filename(problem.id if problem else "") or "problem"
            _, json_path = save_response(response, outdir / f"{idx:03d}-{name}")
            row.update({
                "status": "solved",
                "problem_id": problem.id if problem else None,
                "difficulty": problem.difficulty_estimate.value if problem else None,
                "certainty": response.certainty.value,
                "steps": len(response.machine_readable_json.steps),
                "artifact": str(json_path),
            })
        row["runtime_s"] = round(timer.elapsed_s(), 2)
        if controller.last_run_dir is not None:
            row["run_dir"] = str(controller.last_run_dir)
        rows.append(row)

    table = Table(title="Batch summary")
    for col in ["#", "status", "problem_id", "difficulty", "certainty", "steps", "runtime_s"]:
        table.add_column(col)
    for r in rows:
        table.add_row(
            str(r["index"]), r["status"], str(r.get("problem_id") or ""),
            str(r.get("difficulty") or ""), str(r.get("certainty") or ""),
            str(r.get("steps") or ""), f"{r['runtime_s']:.2f}",
        )
    console.print(table)

    summary_path = Path(args.summary)
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    summary_path.write_text(
        json.dumps({"results": rows, "token_usage": controller.usage_totals}, indent=2),
        encoding="utf-8",
    )
    console.print(f"\nWrote summary: {summary_path}")

    return 0 if all(r["status"] == "solved" for r in rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
