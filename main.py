# main.py

import argparse
import logging
import sys
import time

# Import our modules from the 'junction' package
from junction import config
from junction.engine import AllocatorSettings, SignalAllocator, create_ring, destroy_ring
from junction.errors import JunctionError
from junction.feeds import DatabaseFeed, HandoffFeed, InteractiveFeed, RandomFeed
from junction.report import format_report

logger = logging.getLogger("junction")


class JunctionController:
    """
    Runs the junction the way a roadside controller would: read the lanes,
    allocate the signals, report, wait, and go again.
    """
    def __init__(self, intersection_type, feed, settings: AllocatorSettings = None,
                 interval: float = config.CYCLE_INTERVAL_SECONDS):
        """
        Initializes the controller.

        Args:
            intersection_type: 't' or 'plus' (or an IntersectionType).
            feed: Any object with a refresh(ring) method.
            settings (AllocatorSettings): Timing constants for the allocator.
            interval (float): Seconds to wait between two cycles.
        """
        self.ring = create_ring(intersection_type)
        self.feed = feed
        self.allocator = SignalAllocator(settings)
        self.interval = interval
        self.cycles_run = 0

    def step(self):
        """Runs one full cycle and returns its result."""
        self.feed.refresh(self.ring)
        result = self.allocator.run_cycle(self.ring)
        self.cycles_run += 1
        return result

    def run(self, cycles: int = 0):
        """
        Runs the control loop.

        Args:
            cycles (int): How many cycles to run; 0 keeps going until interrupted.
        """
        print(f"\n--- Starting {self.ring.intersection_type.name} controller ---")
        try:
            while cycles == 0 or self.cycles_run < cycles:
                result = self.step()
                print(format_report(result))
                if cycles and self.cycles_run >= cycles:
                    break
                time.sleep(self.interval)
        except KeyboardInterrupt:
            print("\n--- Controller stopped ---")
        finally:
            destroy_ring(self.ring)


def build_feed(args):
    if args.source == 'interactive':
        if args.ask_every_cycle:
            return InteractiveFeed(repeat=True)
        # Operator enters the starting counts, simulated arrivals take over after that
        return HandoffFeed(InteractiveFeed(), RandomFeed(seed=args.seed))
    if args.source == 'database':
        return DatabaseFeed(args.db)
    return RandomFeed(seed=args.seed)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Allocate green/red signal times for a single junction")
    parser.add_argument("--type", choices=["t", "plus"], default="plus",
                        help="Junction topology: 't' (3 lanes) or 'plus' (4 lanes)")
    parser.add_argument("--source", choices=["random", "interactive", "database"], default="random",
                        help="Where vehicle counts come from (default random)")
    parser.add_argument("--db", default=config.DATABASE_PATH,
                        help=f"SQLite database for --source database (default {config.DATABASE_PATH})")
    parser.add_argument("--ask-every-cycle", action="store_true",
                        help="With --source interactive, prompt again on every cycle "
                             "instead of simulating arrivals after the first")
    parser.add_argument("--interval", type=float, default=config.CYCLE_INTERVAL_SECONDS,
                        help=f"Seconds between cycles (default {config.CYCLE_INTERVAL_SECONDS})")
    parser.add_argument("--cycles", type=int, default=0, help="Number of cycles to run, 0 for no limit")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for simulated arrivals (--source random or interactive)")
    parser.add_argument("--scale-by-lane-count", action="store_true",
                        help=f"Share {config.BASE_GREEN_TIME}s per lane instead of in total")
    parser.add_argument("--verbose", action="store_true", help="Log every allocation pass")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = AllocatorSettings(scale_by_lane_count=args.scale_by_lane_count)
        controller = JunctionController(args.type, build_feed(args), settings, args.interval)
        controller.run(args.cycles)
    except JunctionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
