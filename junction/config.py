"""
Central configuration for the junction signal allocator.

All timings are in seconds. The values mirror the classic fixed-cycle
controller: a base green time of 30 seconds shared between the lanes in
proportion to their queues, and a capped preemption window for lanes that
report an emergency vehicle.
"""

# ============================
# SIGNAL TIMING (seconds)
# ============================
BASE_GREEN_TIME = 30         # Green time shared between the lanes each cycle
PREEMPTION_GREEN_TIME = 60   # Green time granted to a lane with an emergency vehicle
ZERO_TRAFFIC_GREEN_TIME = 0  # Green time for every lane when nobody is waiting

# Multiply BASE_GREEN_TIME by the number of lanes (30s per lane instead of 30s total)
SCALE_BY_LANE_COUNT = False

# ============================
# CYCLE SCHEDULING
# ============================
CYCLE_INTERVAL_SECONDS = 10  # Wait between two evaluations of the junction

# ============================
# RANDOM FEED
# ============================
RANDOM_MAX_INCREMENT = 4            # New vehicles per lane per cycle: 0..4
RANDOM_EMERGENCY_PROBABILITY = 0.5  # Chance a lane reports an emergency vehicle

# ============================
# DATABASE FEED
# ============================
DATABASE_PATH = "traffic_management.db"
LANE_TABLE = "lanes"
