import streamlit as st

from junction.engine import AllocatorSettings, SignalAllocator, create_ring
from junction.errors import JunctionError
from junction.feeds import RandomFeed
from junction.models import IntersectionType
from junction.report import result_frame

# --- STREAMLIT APP UI ---

st.set_page_config(page_title="Junction Signal Allocator", layout="wide")

st.title("🚦 Junction Signal Allocator")

# --- SIDEBAR CONTROLS ---
st.sidebar.header("🛠️ Junction Setup")
JUNCTION_TYPES = {
    "T-junction (3 lanes)": IntersectionType.T_JUNCTION,
    "+-junction (4 lanes)": IntersectionType.PLUS_JUNCTION,
}
type_choice = st.sidebar.selectbox("Intersection Type", list(JUNCTION_TYPES.keys()), index=1)
intersection_type = JUNCTION_TYPES[type_choice]

st.sidebar.header("⏱️ Timing")
base_green = st.sidebar.slider("Base Green Time (s)", 10, 120, 30, 5)
preemption_green = st.sidebar.slider("Emergency Preemption Green Time (s)", 10, 180, 60, 5)
scale_by_lanes = st.sidebar.checkbox("Multiply base green time by lane count", value=False)

randomize_button = st.sidebar.button("🎲 Simulate Arrivals")
advance_button = st.sidebar.button("⏭️ Advance Cycle")

# --- SESSION STATE INITIALIZATION ---
if st.session_state.get('intersection_type') != intersection_type:
    st.session_state.intersection_type = intersection_type
    st.session_state.ring = create_ring(intersection_type)
    st.session_state.feed = RandomFeed()

ring = st.session_state.ring
if randomize_button:
    st.session_state.feed.refresh(ring)

# --- LANE INPUTS ---
st.subheader("🚗 Lane Snapshot", divider='blue')
lane_cols = st.columns(ring.lane_count)
for lane, column in zip(ring, lane_cols):
    with column:
        st.markdown(f"**Lane {lane.lane_number}**")
        count = st.number_input("Vehicles", min_value=0, value=lane.vehicle_count, step=1,
                                key=f"count_{intersection_type.name}_{lane.lane_number}_{lane.vehicle_count}")
        emergency = st.checkbox("🚑 Emergency vehicle", value=lane.emergency_vehicle,
                                key=f"ev_{intersection_type.name}_{lane.lane_number}_{lane.emergency_vehicle}")
        ring.populate(lane.lane_number, int(count), emergency)

# --- ALLOCATION ---
try:
    settings = AllocatorSettings(
        base_green_time=base_green,
        preemption_green_time=preemption_green,
        scale_by_lane_count=scale_by_lanes,
    )
    # Widget edits only preview the plan; waiting time advances on a new cycle.
    result = SignalAllocator(settings).run_cycle(ring, accrue_waiting=randomize_button or advance_button)
except JunctionError as exc:
    st.error(str(exc))
    st.stop()

st.subheader("📊 Signal Plan", divider='red')
metric_cols = st.columns(3)
metric_cols[0].metric("Vehicles Waiting", result.total_vehicles)
metric_cols[1].metric("Cycle Length (s)", result.total_time)
metric_cols[2].metric("Emergency Lanes", sum(t.emergency_vehicle for t in result.timings))

st.success(f"**Priority Sequence:** {result.sequence}")

plan = result_frame(result)
res_col1, res_col2 = st.columns(2)
with res_col1:
    st.dataframe(plan.set_index('dispatch_order'))
with res_col2:
    chart_data = plan.assign(lane=plan['lane'].map(lambda n: f"Lane {n}"))
    st.bar_chart(chart_data, x="lane", y=["green_time_s", "red_time_s"])

csv = plan.to_csv(index=False).encode('utf-8')
st.download_button(
    label="Download Plan as CSV",
    data=csv,
    file_name='signal_plan.csv',
    mime='text/csv',
)
