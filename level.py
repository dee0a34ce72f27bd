"""
Level text handling for Sokobot.

The search engine consumes two equal-sized character grids: a structural map
(``#`` wall, `` `` floor, ``.`` goal) and an items grid (``@`` player, ``+``
player on goal, ``$`` box, ``*`` box on goal).  This module converts the usual
single-string level format into that pair, validates it, and replays move
strings against it so a solution can be checked without the solver.
"""

from __future__ import annotations

from typing import NamedTuple


MAP_SYMBOLS = {"#": "#", ".": ".", "+": ".", "*": "."}
ITEM_SYMBOLS = {"@": "@", "+": "+", "$": "$", "*": "*"}

MOVE_STEPS = {
    "u": (0, -1),
    "d": (0, 1),
    "l": (-1, 0),
    "r": (1, 0),
}


class Layout(NamedTuple):
    """A level split into its map and items grids (rows indexed by y)."""
    width: int
    height: int
    map_data: tuple[str, ...]
    items_data: tuple[str, ...]

    def player(self) -> tuple[int, int] | None:
        for y, row in enumerate(self.items_data):
            for x, ch in enumerate(row):
                if ch in "@+":
                    return (x, y)
        return None

    def boxes(self) -> list[tuple[int, int]]:
        return [
            (x, y)
            for y, row in enumerate(self.items_data)
            for x, ch in enumerate(row)
            if ch in "$*"
        ]

    def goals(self) -> list[tuple[int, int]]:
        return [
            (x, y)
            for y, row in enumerate(self.map_data)
            for x, ch in enumerate(row)
            if ch == "."
        ]

    def is_solved(self) -> bool:
        goals = set(self.goals())
        return all(box in goals for box in self.boxes())

    def to_text(self) -> str:
        """Join the two grids back into a standard level string."""
        return join_level(self.map_data, self.items_data)


def split_level(text: str) -> Layout:
    """Split a standard level string into map and items grids.

    Ragged rows are padded with floor to the width of the longest row.  No
    validation is done here; see parse_level().
    """
    lines = text.rstrip("\n").split("\n")
    height = len(lines)
    width = max((len(line) for line in lines), default=0)

    map_rows: list[str] = []
    item_rows: list[str] = []
    for line in lines:
        line = line.ljust(width)
        map_rows.append("".join(MAP_SYMBOLS.get(ch, " ") for ch in line))
        item_rows.append("".join(ITEM_SYMBOLS.get(ch, " ") for ch in line))

    return Layout(width, height, tuple(map_rows), tuple(item_rows))


def parse_level(text: str) -> Layout:
    """Parse and validate a level string.

    Raises ValueError when the level has no player, more than one player, no
    boxes, or a box count that differs from the goal count.
    """
    if not text or not text.strip():
        raise ValueError("Level is empty")

    layout = split_level(text)

    players = sum(row.count("@") + row.count("+") for row in layout.items_data)
    if players == 0:
        raise ValueError("Level has no player (@)")
    if players > 1:
        raise ValueError(f"Level has {players} players, expected exactly one")

    boxes = layout.boxes()
    goals = layout.goals()
    if not boxes:
        raise ValueError("Level has no boxes ($)")
    if len(boxes) != len(goals):
        raise ValueError(
            f"Box count ({len(boxes)}) != goal count ({len(goals)})"
        )

    return layout


def join_level(map_data, items_data) -> str:
    """Render a map grid and an items grid as one level string."""
    lines = []
    for map_row, item_row in zip(map_data, items_data):
        row = []
        for x, cell in enumerate(map_row):
            item = item_row[x] if x < len(item_row) else " "
            if cell == "#":
                row.append("#")
            elif item in "$*":
                row.append("*" if cell == "." else "$")
            elif item in "@+":
                row.append("+" if cell == "." else "@")
            else:
                row.append("." if cell == "." else " ")
        lines.append("".join(row).rstrip())
    return "\n".join(lines)


def replay_moves(layout: Layout, moves: str) -> Layout:
    """Apply a move string to a layout and return the resulting layout.

    Lower-case letters must be plain walks and upper-case letters must push a
    box, matching the solver's output convention.  Raises ValueError on the
    first move that is not legal from the current position.
    """
    player = layout.player()
    if player is None:
        raise ValueError("Level has no player (@)")
    boxes = set(layout.boxes())

    def is_wall(x: int, y: int) -> bool:
        if not (0 <= x < layout.width and 0 <= y < layout.height):
            return True
        return layout.map_data[y][x] == "#"

    for i, move in enumerate(moves):
        step = MOVE_STEPS.get(move.lower())
        if step is None:
            raise ValueError(f"Unknown move {move!r} at index {i}")
        dx, dy = step
        nx, ny = player[0] + dx, player[1] + dy
        if is_wall(nx, ny):
            raise ValueError(f"Move {move!r} at index {i} walks into a wall")

        if (nx, ny) in boxes:
            if move.islower():
                raise ValueError(f"Move {move!r} at index {i} pushes a box")
            bx, by = nx + dx, ny + dy
            if is_wall(bx, by) or (bx, by) in boxes:
                raise ValueError(f"Push {move!r} at index {i} is blocked")
            boxes.remove((nx, ny))
            boxes.add((bx, by))
        elif move.isupper():
            raise ValueError(f"Move {move!r} at index {i} pushes nothing")

        player = (nx, ny)

    goals = set(layout.goals())
    items = []
    for y in range(layout.height):
        row = []
        for x in range(layout.width):
            pos = (x, y)
            if pos in boxes:
                row.append("*" if pos in goals else "$")
            elif pos == player:
                row.append("+" if pos in goals else "@")
            else:
                row.append(" ")
        items.append("".join(row))

    return Layout(layout.width, layout.height, layout.map_data, tuple(items))
