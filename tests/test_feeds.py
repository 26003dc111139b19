import logging

import pytest

from junction.engine import run_cycle
from junction.errors import FeedError, InvalidInput, JunctionError
from junction.feeds import DatabaseFeed, HandoffFeed, InteractiveFeed, RandomFeed, seed_database
from junction.models import LaneRing


def answers(*values):
    replies = iter(values)

    def _input(prompt):
        try:
            return next(replies)
        except StopIteration:
            raise EOFError
    return _input


class TestRandomFeed:
    def test_same_seed_same_snapshot(self, plus_ring):
        other = LaneRing('plus')
        RandomFeed(seed=7).refresh(plus_ring)
        RandomFeed(seed=7).refresh(other)
        assert [(l.vehicle_count, l.emergency_vehicle) for l in plus_ring] == \
            [(l.vehicle_count, l.emergency_vehicle) for l in other]

    def test_counts_only_grow_by_bounded_steps(self, plus_ring):
        feed = RandomFeed(seed=1, max_increment=4)
        previous = [0] * plus_ring.lane_count
        for _ in range(20):
            feed.refresh(plus_ring)
            current = [lane.vehicle_count for lane in plus_ring]
            for before, after in zip(previous, current):
                assert 0 <= after - before <= 4
            previous = current

    @pytest.mark.parametrize("probability, expected", [(0.0, False), (1.0, True)])
    def test_emergency_probability_extremes(self, t_ring, probability, expected):
        RandomFeed(seed=3, emergency_probability=probability).refresh(t_ring)
        assert all(lane.emergency_vehicle is expected for lane in t_ring)

    @pytest.mark.parametrize("kwargs", [{'max_increment': -1}, {'emergency_probability': 1.5}])
    def test_bad_parameters(self, kwargs):
        with pytest.raises(InvalidInput):
            RandomFeed(**kwargs)


class TestInteractiveFeed:
    def test_prompts_every_lane(self, t_ring):
        prompts = []
        replies = iter(["10", "0", "5", "1", " 5 ", "0"])

        def _input(prompt):
            prompts.append(prompt)
            return next(replies)

        InteractiveFeed(input_func=_input).refresh(t_ring)
        assert [lane.vehicle_count for lane in t_ring] == [10, 5, 5]
        assert [lane.emergency_vehicle for lane in t_ring] == [False, True, False]
        assert prompts[0] == "Enter vehicle count for lane 1: "
        assert prompts[1] == "Is there an emergency vehicle in lane 1? (0 for No, 1 for Yes): "
        assert run_cycle(t_ring).sequence.lane_numbers == [2, 1, 3]

    def test_asks_once_unless_repeating(self, t_ring):
        feed = InteractiveFeed(input_func=answers("1", "0", "2", "0", "3", "0"))
        feed.refresh(t_ring)
        feed.refresh(t_ring)
        assert [lane.vehicle_count for lane in t_ring] == [1, 2, 3]

        repeating = InteractiveFeed(input_func=answers("1", "0", "2", "0", "3", "0"), repeat=True)
        repeating.refresh(t_ring)
        with pytest.raises(FeedError):
            repeating.refresh(t_ring)

    @pytest.mark.parametrize("replies", [
        ("abc",),
        ("-3", "0"),
        ("4", "2"),
    ])
    def test_invalid_answers(self, t_ring, replies):
        with pytest.raises(InvalidInput):
            InteractiveFeed(input_func=answers(*replies)).refresh(t_ring)


class TestDatabaseFeed:
    def test_reads_lanes_by_number(self, tmp_path, plus_ring):
        db = str(tmp_path / "traffic.db")
        seed_database(db, [(3, 8, 0), (1, 2, 1), (4, 0, 0), (2, 5, 0)])
        DatabaseFeed(db).refresh(plus_ring)
        assert [lane.vehicle_count for lane in plus_ring] == [2, 5, 8, 0]
        assert [lane.emergency_vehicle for lane in plus_ring] == [True, False, False, False]

    def test_unknown_and_missing_lanes_are_logged(self, tmp_path, t_ring, caplog):
        db = str(tmp_path / "traffic.db")
        seed_database(db, [(1, 4, 0), (4, 9, 1)])
        t_ring.populate(2, 6, 0)
        with caplog.at_level(logging.WARNING, logger="junction.feeds"):
            DatabaseFeed(db).refresh(t_ring)
        assert [lane.vehicle_count for lane in t_ring] == [4, 6, 0]
        assert "Skipping row for lane 4" in caplog.text
        assert "[2, 3]" in caplog.text

    def test_bad_values_are_rejected(self, tmp_path, t_ring):
        db = str(tmp_path / "traffic.db")
        seed_database(db, [(1, -4, 0)])
        with pytest.raises(InvalidInput):
            DatabaseFeed(db).refresh(t_ring)

    def test_missing_table_is_a_feed_error(self, tmp_path, t_ring):
        with pytest.raises(FeedError):
            DatabaseFeed(str(tmp_path / "empty.db")).refresh(t_ring)

    def test_whole_number_floats_are_accepted(self, tmp_path, t_ring):
        db = str(tmp_path / "traffic.db")
        seed_database(db, [(1, 3.0, 0), (2, 4, 1.0), (3.0, 0, 0)])
        DatabaseFeed(db).refresh(t_ring)
        assert [lane.vehicle_count for lane in t_ring] == [3, 4, 0]
        assert [lane.emergency_vehicle for lane in t_ring] == [False, True, False]

    @pytest.mark.parametrize("rows", [
        [(1, 2.7, 0), (2, 1, 0), (3, 1, 0)],
        [(1, 2, 0), (2, 1, 0.6), (3, 1, 0)],
        [(1.5, 2, 0), (2, 1, 0), (3, 1, 0)],
        [(1, "many", 0), (2, 1, 0), (3, 1, 0)],
        [(1, 2, 0), (2, 1, "yes"), (3, 1, 0)],
        [(1, 2, 0), (2, 1, 0), (3, 1, 2)],
    ])
    def test_fractional_and_text_values_are_rejected(self, tmp_path, t_ring, rows):
        db = str(tmp_path / "traffic.db")
        seed_database(db, rows)
        t_ring.populate(1, 9, 1)
        with pytest.raises(InvalidInput):
            DatabaseFeed(db).refresh(t_ring)
        # nothing from the table reached the ring
        assert [lane.vehicle_count for lane in t_ring] == [9, 0, 0]
        assert t_ring.lane(1).emergency_vehicle is True

    def test_duplicate_lane_rows_are_rejected(self, tmp_path, t_ring):
        db = str(tmp_path / "traffic.db")
        seed_database(db, [(1, 2, 0), (2, 1, 0), (1, 5, 1)])
        with pytest.raises(FeedError, match="more than one row for lane 1"):
            DatabaseFeed(db).refresh(t_ring)
        assert [lane.vehicle_count for lane in t_ring] == [0, 0, 0]

    def test_errors_are_junction_errors(self, tmp_path, t_ring):
        db = str(tmp_path / "traffic.db")
        seed_database(db, [(1, "many", 0)])
        with pytest.raises(JunctionError):
            DatabaseFeed(db).refresh(t_ring)


class TestHandoffFeed:
    def test_operator_snapshot_then_simulated_arrivals(self, t_ring):
        feed = HandoffFeed(
            InteractiveFeed(input_func=answers("1", "0", "2", "0", "3", "0")),
            RandomFeed(seed=5, emergency_probability=1.0),
        )
        feed.refresh(t_ring)
        assert [lane.vehicle_count for lane in t_ring] == [1, 2, 3]
        assert not any(lane.emergency_vehicle for lane in t_ring)

        # the operator is not asked again; a second prompt would hit EOF
        feed.refresh(t_ring)
        assert all(lane.emergency_vehicle for lane in t_ring)
        for lane, before in zip(t_ring, [1, 2, 3]):
            assert lane.vehicle_count >= before
