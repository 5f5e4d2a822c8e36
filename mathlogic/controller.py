from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from mathlogic import config
from mathlogic.models import MathResponse
from mathlogic.operators import generate_proof, parse_problem
from mathlogic.utils import Stopwatch, save_response, save_usage
from shared.utils import ensure_dir, merge_usage, now_timestamp, safe_filename

logger = logging.getLogger(__name__)


def _new_run_dir(root: Optional[str | Path] = None) -> Path:
    base = Path(root or config.RUNS_DIR) / now_timestamp()
    candidate, n = base, 1
    while candidate.exists():
        n += 1
        candidate = base.with_name(f"{base.name}-{n}")
    return ensure_dir(candidate)


def solve_math_problem(
    query: str,
    *,
    run_dir: Optional[Path] = None,
    usage: Optional[dict[str, int]] = None,
) -> MathResponse:
    """Parse then prove `query`; failures of either stage propagate unchanged.

    If `usage` is given, token counters from both calls are merged into it.
    """
    if not query or not query.strip():
        raise ValueError("Query must be a non-empty string")

    timer = Stopwatch()
    totals = usage if usage is not None else {}
    try:
        parsed, parse_usage = parse_problem(query, run_dir=run_dir)
        merge_usage(totals, parse_usage)

        bundle, proof_usage = generate_proof(parsed, run_dir=run_dir)
        merge_usage(totals, proof_usage)
    except Exception as exc:
        logger.error("Solve failed after %.1fs: %s", timer.elapsed_s(), exc)
        raise

    response = MathResponse.from_bundle(bundle, parsed)
    logger.info("Solved %s in %.1fs", parsed.id, timer.elapsed_s())
    logger.debug("Usage: %s", totals)
    return response


async def asolve_math_problem(query: str, **kwargs) -> MathResponse:
    """Awaitable form of solve_math_problem; each call runs in its own worker thread."""
    return await asyncio.to_thread(solve_math_problem, query, **kwargs)


class SolveController:
    """Runs queries for the CLIs, keeping usage totals and optional run logs."""

    def __init__(
        self,
        *,
        console: Optional[Console] = None,
        run_root: Optional[str | Path] = None,
        save_runs: Optional[bool] = None,
    ):
        self.console = console or Console()
        self.run_root = Path(run_root or config.RUNS_DIR)
        self.save_runs = config.SAVE_RUNS if save_runs is None else save_runs
        self.usage_totals: dict[str, int] = {}
        self.last_run_dir: Optional[Path] = None

    def solve(self, query: str) -> MathResponse:
        run_dir = _new_run_dir(self.run_root) if self.save_runs else None
        self.last_run_dir = run_dir
        if run_dir is not None:
            (run_dir / "query.txt").write_text(query, encoding="utf-8")

        usage: dict[str, int] = {}
        try:
            with self.console.status("Reasoning...", spinner="dots"):
                response = solve_math_problem(query, run_dir=run_dir, usage=usage)
        finally:
            merge_usage(self.usage_totals, usage)
            if run_dir is not None:
                save_usage(usage, run_dir / "usage.json")

        if run_dir is not None:
            name = safe_filename(response.machine_readable_json.proof_id) or "proof"
            save_response(response, run_dir / name)
        return response
