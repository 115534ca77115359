# app.py (Streamlit) - control room for the reactor plant simulator
# Run: streamlit run src/reactor_scada/app.py
from __future__ import annotations

import time

import pandas as pd
import streamlit as st

from reactor_scada.plant.maintenance import MaintenanceBoard
from reactor_scada.plant.simulation import PlantSimulator, SimulatorConfig


# ======================================================
# INIT
# ======================================================
st.set_page_config(page_title="Reactor Control Room", layout="wide")


def reset_session() -> None:
    st.session_state.sim = PlantSimulator(cfg=SimulatorConfig())
    st.session_state.maintenance = MaintenanceBoard()
    st.session_state.last_maintenance_t = time.monotonic()
    st.session_state.running = True


if "sim" not in st.session_state:
    reset_session()

sim: PlantSimulator = st.session_state.sim
board: MaintenanceBoard = st.session_state.maintenance


# ======================================================
# STEP FUNCTION
# ======================================================
def sim_step() -> None:
    published = sim.tick()
    board.observe_status(published.overall_status)
    now = time.monotonic()
    if now - st.session_state.last_maintenance_t >= board.cfg.period_s:
        board.step()
        st.session_state.last_maintenance_t = now


# ======================================================
# SIDEBAR
# ======================================================
st.sidebar.title("Simulation")
st.session_state.running = st.sidebar.toggle("Running (1 Hz)", value=st.session_state.running)

c1, c2 = st.sidebar.columns(2)
if c1.button("Step once"):
    sim_step()
if c2.button("Reset"):
    reset_session()
    st.rerun()

st.sidebar.divider()
st.sidebar.subheader("Reactor")
snap = sim.snapshot()
rod_val = st.sidebar.slider("Control rod target (%)", 0, 100, int(round(snap.rod_target)))
if st.sidebar.button("Apply rod target"):
    sim.set_rod_target(float(rod_val))

st.sidebar.subheader("Coolant")
p1, p2 = st.sidebar.columns(2)
if p1.button(f"Pump A {'OFF' if snap.state.pump_a_on else 'ON'}"):
    sim.toggle_pump("A")
if p2.button(f"Pump B {'OFF' if snap.state.pump_b_on else 'ON'}"):
    sim.toggle_pump("B")

st.sidebar.subheader("Grid")
if st.sidebar.button("Synchronize", disabled=snap.state.grid_sync != "DISCONNECTED"):
    sim.request_grid_sync()

st.sidebar.subheader("ECCS")
eccs_label = "CONFIRM ACTIVATION" if snap.eccs_confirm_pending else "MANUAL ACTIVATION"
if st.sidebar.button(eccs_label, disabled=snap.state.eccs_status != "STANDBY", type="primary"):
    if sim.activate_eccs() == "PENDING_CONFIRM":
        st.sidebar.warning("Click again within 5 seconds to confirm activation.")

st.sidebar.divider()
st.sidebar.subheader("Maintenance")
m_component = st.sidebar.text_input("Component", value="")
m_task = st.sidebar.text_input("Task", value="")
m_due = st.sidebar.text_input("Due", value="1 Week")
if st.sidebar.button("Add task") and m_component and m_task:
    board.add_task(m_component, m_task, m_due)


# ======================================================
# MAIN UI
# ======================================================
snap = sim.snapshot()
s = snap.state

st.title("Reactor Plant - Control Room")

a, b, c, d, e = st.columns(5)
a.metric("Overall status", s.overall_status)
mode_txt = snap.mode if snap.manual_remaining_s is None else f"{snap.mode} ({snap.manual_remaining_s:.0f}s)"
b.metric("Control mode", mode_txt)
c.metric("Grid", s.grid_sync)
d.metric("ECCS", s.eccs_status)
e.metric("Tick", f"{snap.tick}")

st.divider()

col1, col2, col3 = st.columns(3)

with col1:
    st.subheader("Reactor core")
    c1, c2 = st.columns(2)
    c1.metric("Temperature", f"{s.temperature_c:.2f} °C")
    c2.metric("Pressure", f"{s.pressure_bar:.2f} bar")
    c1, c2 = st.columns(2)
    c1.metric("Control rods", f"{s.rod_position_pct:.2f} %")
    c2.metric("Radiation", f"{s.radiation_msv_h:.4f} mSv/h")

with col2:
    st.subheader("Turbine / generator")
    c1, c2 = st.columns(2)
    c1.metric("Turbine", f"{s.turbine_rpm:.0f} RPM")
    c2.metric("Power", f"{s.power_mw:.2f} MW")
    c1, c2 = st.columns(2)
    c1.metric("Grid demand", f"{s.grid_demand_mw:.2f} MW")
    c2.metric("Rod target", f"{snap.rod_target:.1f} %")

with col3:
    st.subheader("Cooling / containment")
    c1, c2 = st.columns(2)
    c1.metric("Coolant flow", f"{s.coolant_flow:.2f} m³/s")
    c2.metric("Pumps A/B", f"{'ON' if s.pump_a_on else 'OFF'} / {'ON' if s.pump_b_on else 'OFF'}")
    c1, c2 = st.columns(2)
    c1.metric("Containment", f"{s.containment_pressure_bar:.3f} bar / {s.containment_temp_c:.1f} °C")
    c2.metric("ECCS reservoir", f"{s.eccs_reservoir_pct:.0f} %")

st.divider()

# History
rows = sim.history.rows()
if len(rows) > 5:
    st.subheader("Trends (last 5 minutes)")
    df = pd.DataFrame(rows).set_index("tick")
    t1, t2 = st.columns(2)
    t1.line_chart(df[["temperature_c", "pressure_bar"]])
    t2.line_chart(df[["power_mw", "grid_demand_mw"]])
    t1.line_chart(df[["turbine_rpm"]])
    t2.line_chart(df[["rod_position_pct", "coolant_flow"]])

st.divider()

# Alerts + maintenance
l, r = st.columns(2)
with l:
    st.subheader(f"Event log ({len(snap.alerts)})")
    if st.button("Acknowledge all"):
        sim.acknowledge_alerts()
        st.rerun()
    if snap.alerts:
        st.dataframe(
            pd.DataFrame([{"time": x.ts, "severity": x.severity, "message": x.message} for x in snap.alerts]),
            use_container_width=True,
            hide_index=True,
        )

with r:
    st.subheader("Maintenance schedule")
    st.dataframe(
        pd.DataFrame([{"component": t.component, "task": t.task, "due": t.due, "status": t.status} for t in board.tasks()]),
        use_container_width=True,
        hide_index=True,
    )

# ======================================================
# LOOP
# ======================================================
if st.session_state.running:
    sim_step()
    time.sleep(1.0)
    st.rerun()
