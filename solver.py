"""
Sokobot — best-first Sokoban solver

One search loop, two interchangeable strategies: an open-set ordering (A* on
g + h, or greedy best-first on h alone) and a heuristic picked by box count.
States are pruned with a precomputed corner-deadlock table, a frozen-box test
and a player-reachability flood fill.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Iterator, NamedTuple

from level import join_level, parse_level


DEFAULT_MODE = "astar"
DEFAULT_MAX_STATES = 2_000_000
PROGRESS_INTERVAL = 50_000

BASIC_DISTANCE_WEIGHT = 3
BASIC_UNPLACED_PENALTY = 25
MATCHING_UNPLACED_PENALTY = 35


# ---------------------------------------------------------------------------
# Direction helpers
# ---------------------------------------------------------------------------

class Dir(NamedTuple):
    dx: int
    dy: int
    name: str

UP    = Dir( 0, -1, "u")
DOWN  = Dir( 0,  1, "d")
LEFT  = Dir(-1,  0, "l")
RIGHT = Dir( 1,  0, "r")
DIRS  = (UP, DOWN, LEFT, RIGHT)

Pos = tuple[int, int]     # (x, y); tuple order is the canonical box order


def _step(pos: Pos, d: Dir) -> Pos:
    return (pos[0] + d.dx, pos[1] + d.dy)


def _manhattan(a: Pos, b: Pos) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


# ---------------------------------------------------------------------------
# Grid and level
# ---------------------------------------------------------------------------

class Cell(Enum):
    WALL = "#"
    FLOOR = " "
    GOAL = "."


@dataclass(frozen=True)
class Grid:
    """Static wall/floor/goal matrix, indexed cells[y][x]."""
    width: int
    height: int
    cells: tuple[tuple[Cell, ...], ...]

    @classmethod
    def from_rows(cls, width: int, height: int, map_data) -> Grid:
        rows = []
        for y in range(height):
            line = map_data[y] if y < len(map_data) else ""
            row = []
            for x in range(width):
                ch = line[x] if x < len(line) else " "
                if ch == "#":
                    row.append(Cell.WALL)
                elif ch == ".":
                    row.append(Cell.GOAL)
                else:
                    row.append(Cell.FLOOR)
            rows.append(tuple(row))
        return cls(width, height, tuple(rows))

    def in_bounds(self, pos: Pos) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def is_wall(self, pos: Pos) -> bool:
        """True for wall cells and for anything outside the grid."""
        if not self.in_bounds(pos):
            return True
        return self.cells[pos[1]][pos[0]] is Cell.WALL

    def is_goal(self, pos: Pos) -> bool:
        return self.in_bounds(pos) and self.cells[pos[1]][pos[0]] is Cell.GOAL

    def goal_cells(self) -> tuple[Pos, ...]:
        """Goals in row-major scan order."""
        return tuple(
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.cells[y][x] is Cell.GOAL
        )


@dataclass(frozen=True)
class Level:
    """Immutable puzzle context shared by every part of the search."""
    grid: Grid
    goals: tuple[Pos, ...]
    goal_set: frozenset[Pos]
    dead_cells: frozenset[Pos]
    initial_player: Pos
    initial_boxes: tuple[Pos, ...]

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    def is_deadlock(self, pos: Pos) -> bool:
        return pos in self.dead_cells


def build_level(width: int, height: int, map_data, items_data) -> Level:
    """Build the grid, goal set, deadlock table and start position.

    The grids are assumed to be well formed (one player, as many boxes as
    goals); level.parse_level() is where that gets checked.
    """
    grid = Grid.from_rows(width, height, map_data)

    player: Pos | None = None
    boxes: list[Pos] = []
    for y in range(height):
        line = items_data[y] if y < len(items_data) else ""
        for x in range(min(width, len(line))):
            item = line[x]
            if item in "@+":
                player = (x, y)
            elif item in "$*":
                boxes.append((x, y))

    goals = grid.goal_cells()
    return Level(
        grid=grid,
        goals=goals,
        goal_set=frozenset(goals),
        dead_cells=_compute_dead_cells(grid),
        initial_player=player,
        initial_boxes=tuple(sorted(boxes)),
    )


def _compute_dead_cells(grid: Grid) -> frozenset[Pos]:
    """Floor cells with a wall on one vertical and one horizontal side.

    A box pushed into such a corner can never leave it.  Goals are skipped
    because a box may finish there.  Cells past the edge of the grid do not
    count as walls here.
    """
    def wall(x: int, y: int) -> bool:
        return grid.in_bounds((x, y)) and grid.cells[y][x] is Cell.WALL

    dead: set[Pos] = set()
    for y in range(grid.height):
        for x in range(grid.width):
            if grid.cells[y][x] is not Cell.FLOOR:
                continue
            vertical = wall(x, y - 1) or wall(x, y + 1)
            horizontal = wall(x - 1, y) or wall(x + 1, y)
            if vertical and horizontal:
                dead.add((x, y))
    return frozenset(dead)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class State:
    """One search node.  Equality and hashing look at player and boxes only."""
    player: Pos
    boxes: tuple[Pos, ...]
    moves: str = ""
    g: int = 0
    h: int = 0
    _hash: int | None = field(default=None, init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "boxes", tuple(sorted(self.boxes)))

    @cached_property
    def box_set(self) -> frozenset[Pos]:
        return frozenset(self.boxes)

    def __eq__(self, other):
        if not isinstance(other, State):
            return NotImplemented
        return self.player == other.player and self.boxes == other.boxes

    def __hash__(self) -> int:
        if self._hash is None:
            object.__setattr__(self, "_hash", hash((self.player, self.boxes)))
        return self._hash


def is_solved(level: Level, state: State) -> bool:
    return all(box in level.goal_set for box in state.boxes)


# ---------------------------------------------------------------------------
# Reachability
# ---------------------------------------------------------------------------

def player_can_reach(level: Level, state: State, target: Pos) -> bool:
    """Can the player walk to `target` without moving any box?"""
    if state.player == target:
        return True
    grid = level.grid
    if not grid.in_bounds(target):
        return False

    width, height = grid.width, grid.height
    occupied = [[False] * width for _ in range(height)]
    for bx, by in state.boxes:
        occupied[by][bx] = True

    visited = [[False] * width for _ in range(height)]
    px, py = state.player
    visited[py][px] = True
    queue: deque[Pos] = deque([state.player])

    while queue:
        x, y = queue.popleft()
        for d in DIRS:
            nx, ny = x + d.dx, y + d.dy
            if not (0 <= nx < width and 0 <= ny < height):
                continue
            if visited[ny][nx] or occupied[ny][nx]:
                continue
            if grid.cells[ny][nx] is Cell.WALL:
                continue
            if (nx, ny) == target:
                return True
            visited[ny][nx] = True
            queue.append((nx, ny))
    return False


# ---------------------------------------------------------------------------
# Heuristics, tiered by box count
# ---------------------------------------------------------------------------

Heuristic = Callable[[Sequence[Pos], Level], int]


def basic_heuristic(boxes: Sequence[Pos], level: Level) -> int:
    """Weighted distance to the nearest goal plus a flat penalty per box
    that is not yet placed.  Used below 6 boxes."""
    total = 0
    for box in boxes:
        if box in level.goal_set:
            continue
        nearest = min(_manhattan(box, goal) for goal in level.goals)
        total += BASIC_DISTANCE_WEIGHT * nearest + BASIC_UNPLACED_PENALTY
    return total


def _split_placed(boxes: Sequence[Pos], level: Level) -> tuple[list[Pos], list[Pos]]:
    """Return (boxes off goal, goals with no box on them).

    A box resting on a goal claims that goal before any matching starts.
    """
    occupied = set(boxes)
    loose = [box for box in boxes if box not in level.goal_set]
    free_goals = [goal for goal in level.goals if goal not in occupied]
    return loose, free_goals


def _claim_nearest(loose: Sequence[Pos], free_goals: list[Pos]) -> int:
    """Let each box in turn take its nearest unclaimed goal; sum distances.

    Ties go to the goal met first.  `free_goals` is consumed.
    """
    total = 0
    for box in loose:
        best = None
        best_dist = 0
        for i, goal in enumerate(free_goals):
            dist = _manhattan(box, goal)
            if best is None or dist < best_dist:
                best, best_dist = i, dist
        if best is None:
            break
        total += best_dist
        del free_goals[best]
    return total


def hardest_first_heuristic(boxes: Sequence[Pos], level: Level) -> int:
    """Greedy box-to-goal matching where the boxes farthest from any free
    goal pick first.  Used for 6 and 7 boxes."""
    loose, free_goals = _split_placed(boxes, level)
    if not loose:
        return 0
    loose.sort(
        key=lambda box: min((_manhattan(box, g) for g in free_goals), default=0),
        reverse=True,
    )
    return _claim_nearest(loose, free_goals) + MATCHING_UNPLACED_PENALTY * len(loose)


def nearest_goal_heuristic(boxes: Sequence[Pos], level: Level) -> int:
    """Greedy matching in box order, no sorting.  Used from 8 boxes up."""
    loose, free_goals = _split_placed(boxes, level)
    if not loose:
        return 0
    return _claim_nearest(loose, free_goals) + MATCHING_UNPLACED_PENALTY * len(loose)


HEURISTICS: dict[str, Heuristic] = {
    "basic": basic_heuristic,
    "hardest_first": hardest_first_heuristic,
    "nearest_goal": nearest_goal_heuristic,
}


def select_heuristic(box_count: int) -> Heuristic:
    if box_count >= 8:
        return nearest_goal_heuristic
    if box_count >= 6:
        return hardest_first_heuristic
    return basic_heuristic


# ---------------------------------------------------------------------------
# Open-set orderings
# ---------------------------------------------------------------------------

def astar_priority(state: State) -> int:
    return state.g + state.h


def greedy_priority(state: State) -> int:
    return state.h


ORDERINGS: dict[str, Callable[[State], int]] = {
    "astar": astar_priority,
    "greedy": greedy_priority,
}


# ---------------------------------------------------------------------------
# Deadlock detection
# ---------------------------------------------------------------------------

def _is_frozen(level: Level, state: State, box: Pos) -> bool:
    """A box off goal that cannot be pushed in any of the four directions.

    A push is ruled out when either the destination or the cell the player
    would stand on is a wall, off the grid, or holds another box.
    """
    if box in level.goal_set:
        return False
    grid = level.grid
    for d in DIRS:
        dest = _step(box, d)
        behind = (box[0] - d.dx, box[1] - d.dy)
        if grid.is_wall(dest) or dest in state.box_set:
            continue
        if grid.is_wall(behind) or behind in state.box_set:
            continue
        return False
    return True


def is_deadlocked(level: Level, state: State) -> bool:
    for box in state.boxes:
        if box in level.goal_set:
            continue
        if level.is_deadlock(box) or _is_frozen(level, state, box):
            return True
    return False


# ---------------------------------------------------------------------------
# Best-first search
# ---------------------------------------------------------------------------

@dataclass
class Solution:
    moves: str
    states_explored: int
    mode: str = DEFAULT_MODE

    @property
    def pushes(self) -> int:
        return sum(1 for m in self.moves if m.isupper())


def _successors(
    level: Level,
    state: State,
    estimate: Heuristic,
    prune_dead_pushes: bool,
) -> Iterator[State]:
    grid = level.grid
    for d in DIRS:
        target = _step(state.player, d)
        if grid.is_wall(target):
            continue

        if target in state.box_set:
            beyond = _step(target, d)
            if grid.is_wall(beyond) or beyond in state.box_set:
                continue
            if prune_dead_pushes and level.is_deadlock(beyond):
                continue
            push_from = (target[0] - d.dx, target[1] - d.dy)
            if not player_can_reach(level, state, push_from):
                continue
            boxes = tuple(sorted(beyond if b == target else b for b in state.boxes))
            yield State(target, boxes, state.moves + d.name.upper(),
                        state.g + 1, estimate(boxes, level))

        elif player_can_reach(level, state, target):
            yield State(target, state.boxes, state.moves + d.name,
                        state.g + 1, state.h)


def _lookup(table: dict, name: str, what: str):
    try:
        return table[name]
    except KeyError:
        choices = ", ".join(sorted(table))
        raise ValueError(f"Unknown {what} {name!r} (expected one of: {choices})") from None


def solve_level(
    level: Level,
    mode: str = DEFAULT_MODE,
    max_states: int = DEFAULT_MAX_STATES,
    heuristic: str | None = None,
    prune_dead_pushes: bool = True,
    progress_callback: Callable[[int], None] | None = None,
    progress_interval: int = PROGRESS_INTERVAL,
) -> Solution | None:
    """Run best-first search on a built Level.

    `mode` is "astar" (order by g + h) or "greedy" (order by h).  The
    heuristic defaults to the tier for the level's box count.  Returns None
    when the open set runs dry or `max_states` states have been expanded.
    """
    priority = _lookup(ORDERINGS, mode, "mode")
    if heuristic is None:
        estimate = select_heuristic(len(level.initial_boxes))
    else:
        estimate = _lookup(HEURISTICS, heuristic, "heuristic")
    if max_states < 0:
        raise ValueError("max_states must be >= 0")

    boxes = level.initial_boxes
    start = State(level.initial_player, boxes, "", 0, estimate(boxes, level))
    logging.info("Searching (%s, %d boxes, %s, limit %d)...",
                 mode, len(boxes), estimate.__name__, max_states)

    counter = itertools.count()
    open_heap: list[tuple[int, int, State]] = [(priority(start), next(counter), start)]
    closed: set[State] = set()
    states_explored = 0

    while open_heap and states_explored < max_states:
        key, _, state = heapq.heappop(open_heap)

        if is_solved(level, state):
            solution = Solution(state.moves, states_explored, mode)
            logging.info("Solution found in %d moves (%d pushes), %d states explored",
                         len(solution.moves), solution.pushes, states_explored)
            return solution

        if state in closed:
            continue
        closed.add(state)
        states_explored += 1

        if progress_interval and states_explored % progress_interval == 0:
            logging.info("Progress: %d explored, queue=%d, key=%d",
                         states_explored, len(open_heap), key)
            if progress_callback:
                progress_callback(states_explored)

        if is_deadlocked(level, state):
            continue

        for child in _successors(level, state, estimate, prune_dead_pushes):
            if child not in closed:
                heapq.heappush(open_heap, (priority(child), next(counter), child))

    if states_explored >= max_states:
        logging.info("Reached state exploration limit (%d)", max_states)
    logging.info("No solution found. States explored: %d", states_explored)
    return None


def solve(level_text: str, mode: str = DEFAULT_MODE,
          max_states: int = DEFAULT_MAX_STATES) -> Solution | None:
    """Parse a standard level string and solve it."""
    layout = parse_level(level_text)
    level = build_level(*layout)
    return solve_level(level, mode=mode, max_states=max_states)


def solve_sokoban_puzzle(
    width: int,
    height: int,
    map_data,
    items_data,
    mode: str = DEFAULT_MODE,
    max_states: int = DEFAULT_MAX_STATES,
) -> str:
    """Grid-level entry point: the move string, or "" if nothing was found."""
    level = build_level(width, height, map_data, items_data)
    result = solve_level(level, mode=mode, max_states=max_states)
    return result.moves if result else ""


# ---------------------------------------------------------------------------
# Pretty-print a state (for debugging)
# ---------------------------------------------------------------------------

def render_state(level: Level, state: State) -> str:
    """Render a state as a Sokoban level string."""
    map_rows = [
        "".join(cell.value for cell in row) for row in level.grid.cells
    ]
    item_rows = []
    for y in range(level.height):
        row = []
        for x in range(level.width):
            if (x, y) in state.box_set:
                row.append("$")
            elif (x, y) == state.player:
                row.append("@")
            else:
                row.append(" ")
        item_rows.append("".join(row))
    return join_level(map_rows, item_rows)
