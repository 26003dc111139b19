# junction/models.py

import enum
import logging
import numbers
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple, Union

from .errors import InvalidInput, ResourceExhausted

logger = logging.getLogger(__name__)


class IntersectionType(enum.Enum):
    """
    The junction topologies the allocator knows about.

    The value of each member is the number of approaches (lanes) it has.
    """
    T_JUNCTION = 3
    PLUS_JUNCTION = 4

    @property
    def lane_count(self) -> int:
        return self.value

    @classmethod
    def parse(cls, value: Union["IntersectionType", int, str]) -> "IntersectionType":
        """
        Converts user-facing values into an IntersectionType.

        Accepts a member, the console codes 0 (T) and 1 (+), or the names
        't', 'plus' and '+' (case-insensitive).

        Raises:
            InvalidInput: If the value does not name a known topology.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, numbers.Integral) and not isinstance(value, bool):
            codes = {0: cls.T_JUNCTION, 1: cls.PLUS_JUNCTION}
            if value in codes:
                return codes[value]
        if isinstance(value, str):
            names = {'t': cls.T_JUNCTION, 'plus': cls.PLUS_JUNCTION, '+': cls.PLUS_JUNCTION}
            key = value.strip().lower()
            if key in names:
                return names[key]
        raise InvalidInput(f"Invalid intersection type: {value!r}")


@dataclass(frozen=True, order=True)
class Priority:
    """
    Dispatch priority of a lane for one cycle.

    Priorities form a single total order with one reserved top tier: any
    emergency priority beats every normal one, normal priorities compare by
    their score (the lane's vehicle count), and emergency priorities all
    compare equal so the sequencer breaks their ties by lane number.
    """
    tier: int
    score: int = 0

    NORMAL_TIER = 0
    EMERGENCY_TIER = 1

    @classmethod
    def normal(cls, score: int) -> "Priority":
        return cls(cls.NORMAL_TIER, score)

    @classmethod
    def emergency(cls) -> "Priority":
        return cls(cls.EMERGENCY_TIER, 0)

    @property
    def is_emergency(self) -> bool:
        return self.tier == self.EMERGENCY_TIER

    def __str__(self) -> str:
        return "EMERGENCY" if self.is_emergency else str(self.score)


class Lane:
    """
    Represents one approach to the intersection.

    Only `lane_number` identifies the lane. The counts and flags are written
    by a data feed before each cycle and every timing field is recomputed by
    the allocator; `waiting_time` is the single value carried from one cycle
    to the next.
    """
    def __init__(self, lane_number: int):
        """
        Initializes a Lane with all cycle fields zeroed.

        Args:
            lane_number (int): 1-based position of the lane in its ring.
        """
        self._lane_number = lane_number
        self.vehicle_count = 0
        self.emergency_vehicle = False
        self.green_time = 0
        self.red_time = 0
        self.priority = Priority.normal(0)
        self.preempted = False
        self.waiting_time = 0

    @property
    def lane_number(self) -> int:
        return self._lane_number

    def __repr__(self) -> str:
        emergency_status = " (E)" if self.emergency_vehicle else ""
        return f"Lane(number={self.lane_number}, vehicles={self.vehicle_count}{emergency_status})"


def _check_vehicle_count(value) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidInput(f"Vehicle count must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInput(f"Vehicle count cannot be negative, got {value}")
    return int(value)


def _check_emergency_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Integral) and value in (0, 1):
        return bool(value)
    raise InvalidInput(f"Emergency flag must be 0 or 1, got {value!r}")


class LaneRing:
    """
    The fixed, circular collection of an intersection's lanes.

    Lanes live in a list and the ring is closed with index arithmetic
    modulo the lane count, so walking forward from any lane comes back to it
    after exactly `lane_count` steps. No lane is added or removed after
    creation. The ring owns its lanes and releases them all at once in
    `destroy()`.
    """
    def __init__(self, intersection_type: Union[IntersectionType, int, str]):
        """
        Allocates the lanes for a junction of the given type.

        Args:
            intersection_type: An IntersectionType or a value accepted by
                               IntersectionType.parse().

        Raises:
            InvalidInput: If the type is unknown.
            ResourceExhausted: If the lanes cannot be allocated.
        """
        self.intersection_type = IntersectionType.parse(intersection_type)
        try:
            self._lanes = [Lane(number) for number in range(1, self.intersection_type.lane_count + 1)]
        except MemoryError as exc:
            raise ResourceExhausted("Memory allocation failed for lanes") from exc
        self._destroyed = False
        logger.debug("Created %s ring with %d lanes", self.intersection_type.name, len(self._lanes))

    @property
    def lane_count(self) -> int:
        return self.intersection_type.lane_count

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def lanes(self) -> Tuple[Lane, ...]:
        self._check_alive()
        return tuple(self._lanes)

    def _check_alive(self):
        if self._destroyed:
            raise InvalidInput("Lane ring has already been destroyed")

    def _index_of(self, lane_number: int) -> int:
        if (isinstance(lane_number, bool) or not isinstance(lane_number, numbers.Integral)
                or not 1 <= lane_number <= len(self._lanes)):
            raise InvalidInput(f"Lane {lane_number!r} does not exist on a {self.lane_count}-lane junction")
        return int(lane_number) - 1

    def lane(self, lane_number: int) -> Lane:
        """Returns the lane with the given 1-based number."""
        self._check_alive()
        return self._lanes[self._index_of(lane_number)]

    def next_lane(self, lane: Lane) -> Lane:
        """Returns the lane after `lane`, wrapping from the last back to the first."""
        self._check_alive()
        index = self._index_of(lane.lane_number)
        return self._lanes[(index + 1) % len(self._lanes)]

    def previous_lane(self, lane: Lane) -> Lane:
        """Returns the lane before `lane`, wrapping from the first to the last."""
        self._check_alive()
        index = self._index_of(lane.lane_number)
        return self._lanes[(index - 1) % len(self._lanes)]

    def walk(self, start: int = 1) -> Iterator[Lane]:
        """
        Yields every lane exactly once in ring order, beginning at `start`.

        Args:
            start (int): Lane number to begin with.
        """
        self._check_alive()
        first = self._index_of(start)
        count = len(self._lanes)
        for step in range(count):
            yield self._lanes[(first + step) % count]

    def for_each(self, visitor: Callable[[Lane], None], start: int = 1):
        """
        Applies `visitor` to each lane once, going around the ring from `start`.

        The pass always makes exactly `lane_count` calls, whichever lane it
        starts from.
        """
        for lane in self.walk(start):
            visitor(lane)

    def __iter__(self) -> Iterator[Lane]:
        return self.walk(1)

    def __len__(self) -> int:
        return self.lane_count

    def populate(self, lane_number: int, vehicle_count: int, emergency_vehicle):
        """
        Writes one lane's snapshot before a cycle.

        Args:
            lane_number (int): Lane to update.
            vehicle_count (int): Vehicles currently waiting, 0 or more.
            emergency_vehicle: True/False or 1/0.

        Raises:
            InvalidInput: If any value is outside its domain. The lane is left
                          untouched in that case.
        """
        lane = self.lane(lane_number)
        count = _check_vehicle_count(vehicle_count)
        flag = _check_emergency_flag(emergency_vehicle)
        lane.vehicle_count = count
        lane.emergency_vehicle = flag

    def destroy(self):
        """Releases every lane. Calling it again does nothing."""
        if self._destroyed:
            return
        self._lanes.clear()
        self._destroyed = True
        logger.debug("Destroyed %s ring", self.intersection_type.name)

    def __enter__(self) -> "LaneRing":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.destroy()

    def __repr__(self) -> str:
        if self._destroyed:
            return f"LaneRing(type={self.intersection_type.name}, destroyed)"
        return f"LaneRing(type={self.intersection_type.name}, lanes={self._lanes})"


def destroy_ring(ring: Optional[LaneRing]):
    """Destroys `ring`; passing None is allowed and does nothing."""
    if ring is not None:
        ring.destroy()
