#!/usr/bin/env python3
"""Sokobot command line.

Usage::

    python cli.py --list                  # list built-in puzzles
    python cli.py "Two Box Line"          # solve a built-in puzzle with A*
    python cli.py level.txt --greedy      # solve a level file greedily
    python cli.py "Six Down" -n 200000    # cap the number of expanded states
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from level import parse_level, replay_moves
from puzzles import PUZZLES, box_count, get_puzzle_names
from solver import DEFAULT_MAX_STATES, build_level, solve_level


app = typer.Typer(add_completion=False)


def _load(puzzle: str) -> str:
    if puzzle in PUZZLES:
        return PUZZLES[puzzle]
    path = Path(puzzle)
    if path.is_file():
        return path.read_text()
    raise typer.BadParameter(
        f"'{puzzle}' is neither a built-in puzzle nor a file."
    )


@app.command()
def main(
    puzzle: Optional[str] = typer.Argument(
        None, help="Built-in puzzle name or path to a level file.",
    ),
    greedy: bool = typer.Option(
        False, "--greedy",
        help="Order the open set by heuristic only.",
    ),
    max_states: int = typer.Option(
        DEFAULT_MAX_STATES, "-n", "--max-states",
        min=0,
        help="Stop after expanding this many states.",
    ),
    heuristic: Optional[str] = typer.Option(
        None, "--heuristic",
        help="Force a heuristic (basic, hardest_first, nearest_goal).",
    ),
    list_puzzles: bool = typer.Option(
        False, "--list",
        help="List built-in puzzles and exit.",
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose",
        help="Show search progress.",
    ),
) -> None:
    """Solve a Sokoban level and print the move string."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if list_puzzles:
        for name in get_puzzle_names():
            typer.echo(f"{name} ({box_count(name)} boxes)")
        return

    if puzzle is None:
        raise typer.BadParameter("Give a puzzle name or a level file.")

    try:
        layout = parse_level(_load(puzzle))
    except ValueError as e:
        typer.echo(f"Invalid level: {e}", err=True)
        raise typer.Exit(code=2)

    typer.echo(layout.to_text())
    typer.echo()

    try:
        result = solve_level(
            build_level(*layout),
            mode="greedy" if greedy else "astar",
            max_states=max_states,
            heuristic=heuristic,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e))

    if result is None:
        typer.echo("No solution found.")
        raise typer.Exit(code=1)

    typer.echo(f"Solved in {len(result.moves)} moves ({result.pushes} pushes), "
               f"{result.states_explored} states explored.")
    typer.echo(f"Moves: {result.moves}")
    typer.echo()
    typer.echo(replay_moves(layout, result.moves).to_text())


if __name__ == "__main__":
    app()
