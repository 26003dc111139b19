import pandas as pd

from .engine import CycleResult


def format_report(result: CycleResult) -> str:
    """Renders a cycle as console text, lanes listed in dispatch order."""
    lines = ["", "Signal Timing and Priority Sequence:"]
    for lane in result.sequence:
        timing = result.timing_for(lane.lane_number)
        lines.append(
            f"Lane {timing.lane_number}: Green signal for {timing.green_time} seconds, "
            f"Red signal for {timing.red_time} seconds "
            f"(Priority: {timing.priority}, Emergency: {'Yes' if timing.emergency_vehicle else 'No'})"
        )
    lines.append("")
    lines.append(f"Priority Sequence: {result.sequence}")
    return "\n".join(lines)


def result_frame(result: CycleResult) -> pd.DataFrame:
    """One row per lane in dispatch order, for tables and CSV export."""
    rows = []
    for position, lane in enumerate(result.sequence, start=1):
        timing = result.timing_for(lane.lane_number)
        rows.append({
            'dispatch_order': position,
            'lane': timing.lane_number,
            'vehicles': timing.vehicle_count,
            'emergency': timing.emergency_vehicle,
            'green_time_s': timing.green_time,
            'red_time_s': timing.red_time,
            'priority': str(timing.priority),
            'waiting_time_s': timing.waiting_time,
        })
    return pd.DataFrame(rows)
