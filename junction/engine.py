import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple, Union

from . import config
from .errors import InvalidInput
from .logic import DispatchSequence, PrioritySequencer, assign_priority
from .models import IntersectionType, Lane, LaneRing, Priority, destroy_ring

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocatorSettings:
    """
    Timing constants used by the SignalAllocator.

    Attributes:
        base_green_time: Seconds of green shared between the non-emergency lanes.
        preemption_green_time: Minimum green time for a lane with an emergency
                               vehicle. It is raised to the scale factor when that
                               is larger, so preemption never gets less green than
                               a normal lane could.
        zero_traffic_green_time: Green time for non-emergency lanes when no
                                 vehicle is waiting anywhere.
        scale_by_lane_count: Multiply base_green_time by the number of lanes.
    """
    base_green_time: int = config.BASE_GREEN_TIME
    preemption_green_time: int = config.PREEMPTION_GREEN_TIME
    zero_traffic_green_time: int = config.ZERO_TRAFFIC_GREEN_TIME
    scale_by_lane_count: bool = config.SCALE_BY_LANE_COUNT

    def __post_init__(self):
        for name in ('base_green_time', 'preemption_green_time', 'zero_traffic_green_time'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}")

    def scale_factor(self, lane_count: int) -> int:
        if self.scale_by_lane_count:
            return self.base_green_time * lane_count
        return self.base_green_time


@dataclass(frozen=True)
class LaneTiming:
    """The values computed for one lane in one cycle."""
    lane_number: int
    vehicle_count: int
    emergency_vehicle: bool
    green_time: int
    red_time: int
    priority: Priority
    preempted: bool = False
    # Carried across cycles, so it is left out of equality.
    waiting_time: int = field(default=0, compare=False)


@dataclass(frozen=True)
class CycleResult:
    """Everything one evaluation of the junction produced."""
    timings: Tuple[LaneTiming, ...]
    sequence: DispatchSequence
    total_vehicles: int
    total_time: int
    intersection_type: IntersectionType = field(default=IntersectionType.PLUS_JUNCTION)

    def timing_for(self, lane_number: int) -> LaneTiming:
        for timing in self.timings:
            if timing.lane_number == lane_number:
                return timing
        raise InvalidInput(f"No timing for lane {lane_number!r}")


class SignalAllocator:
    """
    Computes green time, red time and priority for every lane of a ring and
    derives the dispatch sequence.

    A cycle is three passes around the ring, in this order:
      1. Aggregate the vehicle counts.
      2. Give each lane its share of green time (or the preemption value if
         it carries an emergency vehicle) and add everything up.
      3. Derive red time from that total, and assign priorities.

    The results are staged and written to the lanes only once all passes have
    finished, so a failing cycle leaves the previous cycle's values in place.
    The allocator keeps no state between cycles; the only value carried over
    is each lane's waiting_time, which lives on the ring.
    """
    def __init__(self, settings: Optional[AllocatorSettings] = None,
                 sequencer: Optional[PrioritySequencer] = None):
        self.settings = settings or AllocatorSettings()
        self.sequencer = sequencer or PrioritySequencer()

    def _green_time(self, lane: Lane, total_vehicles: int, scale_factor: int) -> int:
        if lane.emergency_vehicle:
            return max(self.settings.preemption_green_time, scale_factor)
        if total_vehicles == 0:
            # Nobody is waiting; there is nothing to share out.
            return self.settings.zero_traffic_green_time
        return round(lane.vehicle_count / total_vehicles * scale_factor)

    def run_cycle(self, ring: LaneRing, accrue_waiting: bool = True) -> CycleResult:
        """
        Evaluates the ring's current snapshot.

        Args:
            ring (LaneRing): A ring whose counts and emergency flags have been
                             populated for this cycle.
            accrue_waiting (bool): Advance each lane's waiting_time. Pass False
                                   to preview a plan without counting it as a cycle.

        Returns:
            CycleResult: Per-lane timings and the dispatch sequence.
        """
        lanes = ring.lanes
        scale_factor = self.settings.scale_factor(ring.lane_count)

        # 1. --- Aggregate ---
        total_vehicles = 0
        for lane in ring:
            total_vehicles += lane.vehicle_count
        if total_vehicles == 0:
            logger.debug("No vehicles waiting; using fallback green time of %ds",
                         self.settings.zero_traffic_green_time)

        # 2. --- Green time ---
        greens: Dict[int, int] = {}
        total_time = 0
        for lane in ring:
            greens[lane.lane_number] = self._green_time(lane, total_vehicles, scale_factor)
            total_time += greens[lane.lane_number]

        # 3. --- Red time and priority ---
        staged = []
        for lane in ring:
            green = greens[lane.lane_number]
            staged.append(LaneTiming(
                lane_number=lane.lane_number,
                vehicle_count=lane.vehicle_count,
                emergency_vehicle=lane.emergency_vehicle,
                green_time=green,
                red_time=max(0, total_time - green),
                priority=assign_priority(lane),
                preempted=lane.emergency_vehicle,
            ))

        priorities = {timing.lane_number: timing.priority for timing in staged}
        sequence = self.sequencer.order(lanes, priority_of=lambda lane: priorities[lane.lane_number])
        if accrue_waiting:
            waiting = self._waiting_after(sequence, {t.lane_number: t.red_time for t in staged})
        else:
            waiting = {lane.lane_number: lane.waiting_time for lane in lanes}
        staged = [replace(timing, waiting_time=waiting[timing.lane_number]) for timing in staged]

        for lane, timing in zip(lanes, staged):
            lane.green_time = timing.green_time
            lane.red_time = timing.red_time
            lane.priority = timing.priority
            lane.preempted = timing.preempted
            lane.waiting_time = timing.waiting_time
        logger.debug("Cycle done: total_vehicles=%d total_time=%ds order=%s",
                     total_vehicles, total_time, sequence.lane_numbers)

        return CycleResult(
            timings=tuple(staged),
            sequence=sequence,
            total_vehicles=total_vehicles,
            total_time=total_time,
            intersection_type=ring.intersection_type,
        )

    @staticmethod
    def _waiting_after(sequence: DispatchSequence, reds: Dict[int, int]) -> Dict[int, int]:
        # The head of the sequence is serviced first; everyone else keeps waiting.
        waiting = {}
        for index, lane in enumerate(sequence):
            if index == 0:
                waiting[lane.lane_number] = 0
            else:
                waiting[lane.lane_number] = lane.waiting_time + reds[lane.lane_number]
        return waiting


def create_ring(intersection_type: Union[IntersectionType, int, str]) -> LaneRing:
    """Creates a ring with zeroed lanes for the given junction type."""
    return LaneRing(intersection_type)


def populate(ring: LaneRing, lane_number: int, vehicle_count: int, emergency_vehicle):
    """Writes one lane's vehicle count and emergency flag before a cycle."""
    ring.populate(lane_number, vehicle_count, emergency_vehicle)


def run_cycle(ring: LaneRing, settings: Optional[AllocatorSettings] = None) -> CycleResult:
    """Runs one allocation cycle over `ring` with the given (or default) settings."""
    return SignalAllocator(settings).run_cycle(ring)


__all__ = [
    'AllocatorSettings', 'CycleResult', 'LaneTiming', 'SignalAllocator',
    'create_ring', 'destroy_ring', 'populate', 'run_cycle',
]
