import pytest

from junction.engine import create_ring


@pytest.fixture
def t_ring():
    ring = create_ring('t')
    yield ring
    ring.destroy()


@pytest.fixture
def plus_ring():
    ring = create_ring('plus')
    yield ring
    ring.destroy()


@pytest.fixture
def fill():
    """Populates lanes 1..n with `counts`; lane numbers in `emergencies` get the flag."""
    def _fill(ring, counts, emergencies=()):
        for number, count in enumerate(counts, start=1):
            ring.populate(number, count, number in emergencies)
        return ring
    return _fill
