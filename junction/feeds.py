"""
Data feeds that fill a LaneRing with a fresh snapshot before each cycle.

Every feed writes through LaneRing.populate(), so out-of-range values are
rejected there with InvalidInput. Feeds are the only place the package reads
from the outside world or uses randomness.

- RandomFeed: simulated arrivals, for demos.
- InteractiveFeed: asks an operator for every lane's count and flag.
- HandoffFeed: one feed for the first snapshot, another afterwards.
- DatabaseFeed: reads the `lanes` table of a SQLite database.
"""
import logging
import numbers
import sqlite3
from contextlib import closing
from typing import Callable, Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from . import config
from .errors import FeedError, InvalidInput
from .models import LaneRing

logger = logging.getLogger(__name__)

LANE_COLUMNS = ['lane_number', 'vehicle_count', 'emergency_vehicle']


class RandomFeed:
    """
    Simulates vehicles arriving at the junction.

    Each refresh adds between 0 and `max_increment` vehicles to every lane and
    draws a new emergency flag per lane.
    """
    def __init__(self, seed: Optional[int] = None,
                 max_increment: int = config.RANDOM_MAX_INCREMENT,
                 emergency_probability: float = config.RANDOM_EMERGENCY_PROBABILITY):
        if max_increment < 0:
            raise InvalidInput("max_increment cannot be negative")
        if not 0.0 <= emergency_probability <= 1.0:
            raise InvalidInput("emergency_probability must be between 0 and 1")
        self.rng = np.random.default_rng(seed)
        self.max_increment = max_increment
        self.emergency_probability = emergency_probability

    def refresh(self, ring: LaneRing):
        arrivals = self.rng.integers(0, self.max_increment + 1, size=ring.lane_count)
        emergencies = self.rng.random(ring.lane_count) < self.emergency_probability
        for lane, arrived, emergency in zip(ring, arrivals, emergencies):
            ring.populate(lane.lane_number, lane.vehicle_count + int(arrived), bool(emergency))


class InteractiveFeed:
    """
    Prompts for each lane's vehicle count and emergency flag.

    By default the operator is asked once and later cycles reuse that
    snapshot, which is how the console tool has always behaved. Pass
    repeat=True to be asked again every cycle.
    """
    def __init__(self, input_func: Callable[[str], str] = input, repeat: bool = False):
        self.input_func = input_func
        self.repeat = repeat
        self._asked = False

    def _ask_int(self, prompt: str) -> int:
        try:
            answer = self.input_func(prompt)
        except EOFError as exc:
            raise FeedError("Input closed before all lanes were entered") from exc
        try:
            return int(answer.strip())
        except ValueError as exc:
            raise InvalidInput(f"Expected a whole number, got {answer!r}") from exc

    def refresh(self, ring: LaneRing):
        if self._asked and not self.repeat:
            return
        for lane in ring:
            count = self._ask_int(f"Enter vehicle count for lane {lane.lane_number}: ")
            emergency = self._ask_int(
                f"Is there an emergency vehicle in lane {lane.lane_number}? (0 for No, 1 for Yes): ")
            ring.populate(lane.lane_number, count, emergency)
        self._asked = True


def _whole_number(value, column: str, lane_label) -> int:
    """Reads a database cell as an int, rejecting fractions and text."""
    if isinstance(value, (bool, np.bool_)):
        raise InvalidInput(f"Lane {lane_label}: {column} must be a whole number, got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return int(value)
    raise InvalidInput(f"Lane {lane_label}: {column} must be a whole number, got {value!r}")


class DatabaseFeed:
    """
    Reads lane snapshots from a SQLite table with the columns
    lane_number, vehicle_count and emergency_vehicle.

    Rows are matched to lanes by lane_number. Lanes with no row keep their
    previous values; rows for lanes the junction does not have are skipped.
    The whole table is checked before any lane is written, so a bad row
    (fractional or text values, or two rows for one lane) leaves the ring
    untouched.
    """
    def __init__(self, path: str = config.DATABASE_PATH, table: str = config.LANE_TABLE):
        self.path = path
        self.table = table

    def read(self) -> pd.DataFrame:
        query = f"SELECT lane_number, vehicle_count, emergency_vehicle FROM {self.table}"
        try:
            with closing(sqlite3.connect(self.path)) as conn:
                frame = pd.read_sql_query(query, conn)
        except (sqlite3.Error, pd.errors.DatabaseError) as exc:
            raise FeedError(f"SELECT failed: {exc}") from exc
        if frame.isnull().values.any():
            raise FeedError(f"Table {self.table!r} contains empty values")
        return frame

    def snapshot(self, ring: LaneRing) -> Dict[int, Tuple[int, int]]:
        """
        Validates the table against the ring.

        Returns:
            dict: lane_number -> (vehicle_count, emergency_vehicle) for every
                  row that belongs to the junction.

        Raises:
            InvalidInput: On fractional, text, negative or out-of-range values.
            FeedError: If a lane appears in more than one row.
        """
        rows = {}
        for row in self.read().itertuples(index=False):
            lane_number = _whole_number(row.lane_number, 'lane_number', repr(row.lane_number))
            if not 1 <= lane_number <= ring.lane_count:
                logger.warning("Skipping row for lane %d: junction has %d lanes",
                               lane_number, ring.lane_count)
                continue
            if lane_number in rows:
                raise FeedError(f"Table {self.table!r} has more than one row for lane {lane_number}")
            count = _whole_number(row.vehicle_count, 'vehicle_count', lane_number)
            emergency = _whole_number(row.emergency_vehicle, 'emergency_vehicle', lane_number)
            if count < 0:
                raise InvalidInput(f"Lane {lane_number}: vehicle_count cannot be negative, got {count}")
            if emergency not in (0, 1):
                raise InvalidInput(f"Lane {lane_number}: emergency_vehicle must be 0 or 1, got {emergency}")
            rows[lane_number] = (count, emergency)
        return rows

    def refresh(self, ring: LaneRing):
        rows = self.snapshot(ring)
        for lane_number, (count, emergency) in rows.items():
            ring.populate(lane_number, count, emergency)

        missing = [lane.lane_number for lane in ring if lane.lane_number not in rows]
        if missing:
            logger.warning("No database row for lanes %s; keeping previous values", missing)


class HandoffFeed:
    """
    Uses `first` for the opening snapshot and `then` for every later cycle.

    This is how the console tool runs interactively: the operator enters the
    starting counts once, and simulated arrivals take over from there.
    """
    def __init__(self, first, then):
        self.first = first
        self.then = then
        self._started = False

    def refresh(self, ring: LaneRing):
        if not self._started:
            self.first.refresh(ring)
            self._started = True
        else:
            self.then.refresh(ring)


def seed_database(path: str, rows: Iterable[Tuple[int, int, int]], table: str = config.LANE_TABLE):
    """
    Creates (or replaces) the lanes table and fills it with `rows`.

    Args:
        path (str): SQLite database file.
        rows: (lane_number, vehicle_count, emergency_vehicle) tuples.
    """
    frame = pd.DataFrame(list(rows), columns=LANE_COLUMNS)
    with closing(sqlite3.connect(path)) as conn, conn:
        frame.to_sql(table, conn, if_exists='replace', index=False)
    logger.info("Wrote %d lane rows to %s", len(frame), path)
