"""
Route sequencing for multi-stop trips.

The visiting order is a greedy heuristic, not a shortest tour:
- the start stays first
- the resolved stop farthest from the start becomes the terminal
- the remaining resolved stops are chained nearest-unvisited-first
- stops without a position are appended after the terminal, untouched

Everything here is pure: inputs are never mutated and the same input always
yields the same output.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence

from station_monitor.core.geo import Coordinate, angular_distance


class ResolutionStatus(str, Enum):
    """Resolution state of a stop's current keyword"""
    IDLE = "idle"
    LOADING = "loading"
    OK = "ok"
    NO_MATCH = "no-match"


@dataclass(frozen=True)
class Stop:
    """
    One waypoint of a route-planning session.

    resolved_name and position are always set or cleared together.
    """
    id: str
    keyword: str = ""
    resolved_name: Optional[str] = None
    position: Optional[Coordinate] = None
    status: ResolutionStatus = ResolutionStatus.IDLE

    @property
    def is_resolved(self) -> bool:
        return self.position is not None

    @property
    def label(self) -> str:
        return self.resolved_name or self.keyword.strip()

    def with_keyword(self, keyword: str) -> "Stop":
        """New keyword; any previous resolution is dropped"""
        return replace(self, keyword=keyword, resolved_name=None, position=None, status=ResolutionStatus.IDLE)

    def with_resolution(self, name: str, position: Coordinate) -> "Stop":
        return replace(self, resolved_name=name, position=position, status=ResolutionStatus.OK)

    def with_status(self, status: ResolutionStatus) -> "Stop":
        return replace(self, status=status)


class SequencerOutcome(str, Enum):
    """Result of a sequencing request, rendered to the user as a message"""
    NEED_START_AND_END = "need_start_and_end"
    START_UNRESOLVED = "start_unresolved"
    NO_RESOLVED_DESTINATIONS = "no_resolved_destinations"
    OPTIMIZED_WITH_WARNING = "optimized_with_warning"
    OPTIMIZED = "optimized"


OUTCOME_MESSAGES = {
    SequencerOutcome.NEED_START_AND_END: "출발지와 도착지를 입력해주세요.",
    SequencerOutcome.START_UNRESOLVED: "출발지 위치를 먼저 확정해주세요.",
    SequencerOutcome.NO_RESOLVED_DESTINATIONS: "도착지/경유지 위치를 먼저 확정해주세요.",
    SequencerOutcome.OPTIMIZED_WITH_WARNING: "좌표 없는 경유지는 최적 경로 계산에서 제외되었습니다.",
    SequencerOutcome.OPTIMIZED: "최적 경로를 계산해 재배열했습니다.",
}


@dataclass
class SequencerResult:
    """Recommended order plus what happened"""
    ordered_stops: List[Stop]
    outcome: SequencerOutcome
    excluded: List[Stop] = field(default_factory=list)

    @property
    def optimized(self) -> bool:
        return self.outcome in (SequencerOutcome.OPTIMIZED, SequencerOutcome.OPTIMIZED_WITH_WARNING)

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]


def select_terminal(origin: Coordinate, candidates: Sequence[Stop]) -> Stop:
    """Farthest candidate from origin; the first one wins ties"""
    terminal = candidates[0]
    max_distance = -1.0
    for candidate in candidates:
        distance = angular_distance(origin, candidate.position)
        if distance > max_distance:
            max_distance = distance
            terminal = candidate
    return terminal


def chain_nearest(origin: Coordinate, candidates: Sequence[Stop]) -> List[Stop]:
    """Greedy nearest-unvisited ordering starting from origin (O(n^2))"""
    remaining = list(candidates)
    ordered: List[Stop] = []
    current = origin

    while remaining:
        best_index = 0
        best_distance = float("inf")
        for index, candidate in enumerate(remaining):
            distance = angular_distance(current, candidate.position)
            if distance < best_distance:
                best_distance = distance
                best_index = index
        picked = remaining.pop(best_index)
        ordered.append(picked)
        current = picked.position

    return ordered


def compute_order(stops: Sequence[Stop]) -> SequencerResult:
    """
    Suggest a visiting order for a stop list.

    Guards short-circuit with the input order unchanged:
    fewer than two stops, an unresolved start, or no resolved stop after it.
    """
    stops = list(stops)

    if len(stops) < 2:
        return SequencerResult(stops, SequencerOutcome.NEED_START_AND_END)

    start = stops[0]
    if not start.is_resolved:
        return SequencerResult(stops, SequencerOutcome.START_UNRESOLVED)

    tail = stops[1:]
    with_position = [stop for stop in tail if stop.is_resolved]
    without_position = [stop for stop in tail if not stop.is_resolved]

    if not with_position:
        return SequencerResult(stops, SequencerOutcome.NO_RESOLVED_DESTINATIONS, excluded=without_position)

    terminal = select_terminal(start.position, with_position)
    middle = [stop for stop in with_position if stop is not terminal]
    ordered = [start] + chain_nearest(start.position, middle) + [terminal] + without_position

    outcome = SequencerOutcome.OPTIMIZED_WITH_WARNING if without_position else SequencerOutcome.OPTIMIZED
    return SequencerResult(ordered, outcome, excluded=without_position)
