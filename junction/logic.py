import logging
import operator
from collections.abc import Sequence
from typing import Callable, Iterable, List, Optional, Tuple

from .models import Lane, Priority

logger = logging.getLogger(__name__)


def assign_priority(lane: Lane) -> Priority:
    """
    The priority rule: emergency lanes take the reserved top tier, every
    other lane is scored by the number of vehicles waiting in it.
    """
    if lane.emergency_vehicle:
        return Priority.emergency()
    return Priority.normal(lane.vehicle_count)


class DispatchSequence(Sequence):
    """
    Read-only, highest-priority-first ordering of a ring's lanes.

    Holds references to the ring's Lane objects; it never copies them.
    """
    def __init__(self, lanes: Iterable[Lane]):
        self._lanes: Tuple[Lane, ...] = tuple(lanes)

    def __getitem__(self, index):
        return self._lanes[index]

    def __len__(self) -> int:
        return len(self._lanes)

    @property
    def lane_numbers(self) -> List[int]:
        return [lane.lane_number for lane in self._lanes]

    def __eq__(self, other) -> bool:
        if isinstance(other, DispatchSequence):
            return self.lane_numbers == other.lane_numbers
        return NotImplemented

    def __str__(self) -> str:
        return " > ".join(f"Lane {lane.lane_number}" for lane in self._lanes)

    def __repr__(self) -> str:
        return f"DispatchSequence({self.lane_numbers})"


class PrioritySequencer:
    """
    Orders the lanes of a ring by descending priority.

    Lanes are inserted one at a time in ring order. Each goes in front of the
    first lane with a strictly lower priority, which places it after every
    lane of equal priority already inserted. Ties therefore keep ascending
    lane numbers, including ties between several emergency lanes.
    """
    def order(self, lanes: Iterable[Lane],
              priority_of: Optional[Callable[[Lane], Priority]] = None) -> DispatchSequence:
        """
        Builds the dispatch sequence.

        Args:
            lanes (Iterable[Lane]): The ring's lanes, in ring order.
            priority_of: Looks up a lane's priority. Defaults to the priority
                         stored on the lane.

        Returns:
            DispatchSequence: Every lane exactly once, highest priority first.
        """
        if priority_of is None:
            priority_of = operator.attrgetter('priority')

        ordered: List[Lane] = []
        for lane in lanes:
            position = len(ordered)
            for index, queued in enumerate(ordered):
                if priority_of(queued) < priority_of(lane):
                    position = index
                    break
            ordered.insert(position, lane)

        sequence = DispatchSequence(ordered)
        logger.debug("Dispatch sequence: %s", sequence)
        return sequence
