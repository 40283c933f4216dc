# app.py
import asyncio

import plotly.express as px
import streamlit as st
import structlog

from climate_clock import config
from climate_clock.driver import DashboardState
from climate_clock.formatting import format_value
from climate_clock.log_config import configure_logging
from climate_clock.metrics import ACCRUAL, METRIC_DEFINITIONS, accrual_frame, snapshot_frame
from climate_clock.providers import FallbackProvider, StaticProvider
from climate_clock.timeutil import now_millis, year_start

# --- 0. App Configuration ---
st.set_page_config(
    page_title="Climate Clock",
    page_icon="⏳",
    layout="wide",
    initial_sidebar_state="collapsed"
)

configure_logging()
logger = structlog.get_logger()

# Swap StaticProvider for a live source once one exists; FallbackProvider keeps the fallback policy.
provider = FallbackProvider(StaticProvider())


# --- 1. Data Loading ---
@st.cache_data(ttl=config.METRICS_REFRESH_SECONDS) # At most one fetch per refresh interval
def load_external_reading():
    """
    Fetches the external metric reading (CO2, temperature, sea level).
    Never fails: the provider degrades to fallback constants.
    """
    return asyncio.run(provider.fetch_snapshot())


def get_state():
    """One DashboardState per browser session; both fragments write into it."""
    if "dashboard" not in st.session_state:
        st.session_state.dashboard = DashboardState()
        logger.info("Dashboard session started", target=config.TARGET_DATE.isoformat())
    return st.session_state.dashboard


# --- 2. Helper Functions for UI ---
def df_to_csv_bytes(data_frame):
    """Converts a Pandas DataFrame to CSV bytes for download."""
    return data_frame.to_csv(index=False).encode('utf-8')


state = get_state()

# --- 3. Header ---
st.title("Climate Clock")
st.markdown(f"Time left until **{config.TARGET_DATE:%B %d, %Y}** (UTC), and what this year has cost so far.")
st.markdown("---")


# --- 4. Countdown ---
@st.fragment(run_every=config.COUNTDOWN_REFRESH_SECONDS)
def countdown_section():
    remaining = state.refresh_countdown(now_millis())
    if remaining.expired:
        st.error("The 2030 target date has passed.")

    cols = st.columns(5)
    units = [
        ("Years", remaining.years),
        ("Days", remaining.days),
        ("Hours", f"{remaining.hours:02d}"),
        ("Minutes", f"{remaining.minutes:02d}"),
        ("Seconds", f"{remaining.seconds:02d}"),
    ]
    for col, (label, value) in zip(cols, units):
        col.metric(label, value)
    st.caption("A year is counted as 365 days.")


countdown_section()
st.markdown("---")


# --- 5. Metrics ---
@st.fragment(run_every=config.METRICS_REFRESH_SECONDS)
def metrics_section():
    now = now_millis()
    snapshot = state.refresh_metrics(now, load_external_reading())
    values = snapshot.values()

    st.header("This Year So Far")
    cols = st.columns(3)
    for i, definition in enumerate(METRIC_DEFINITIONS):
        cols[i % 3].metric(
            f"{definition.label} ({definition.unit})",
            format_value(values[definition.key]),
            help=definition.explanation # Tooltip state lives in the browser, not in the snapshot
        )
    if snapshot.source != "external":
        st.info("CO₂, temperature and sea level show reference values; no live data source is connected.")

    st.subheader("Year-to-Date Accrual")
    accrual_data = accrual_frame(year_start(now), now)
    accrual_metrics = [d for d in METRIC_DEFINITIONS if d.source == ACCRUAL]
    tabs = st.tabs([d.label for d in accrual_metrics])
    for tab, definition in zip(tabs, accrual_metrics):
        with tab:
            fig = px.line(
                accrual_data[accrual_data["Metric"] == definition.label],
                x="Timestamp",
                y="Value",
                title=f"{definition.label} since January 1st ({definition.unit})"
            )
            st.plotly_chart(fig, use_container_width=True)

    table = snapshot_frame(snapshot)
    with st.expander("Snapshot data"):
        st.dataframe(table, hide_index=True)
        st.download_button(
            label="Download Metric Snapshot (CSV)",
            data=df_to_csv_bytes(table),
            file_name=f"climate_clock_snapshot_{snapshot.taken_at}.csv",
            mime="text/csv"
        )


metrics_section()

st.sidebar.markdown("---")
st.sidebar.info(
    "Accrual metrics are linear extrapolations from fixed rates since January 1st (UTC). "
    "Figures are illustrative."
)
