"""Keyword Analysis Dashboard -- Streamlit UI.

Upload a keyword-planner export, tune the nine analysis settings and view
the top, niche and low-bid keyword tables with CSV downloads and charts.
Run with: streamlit run dashboard/app.py
"""

import logging
import sys
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from plotly.subplots import make_subplots

# Ensure project root is on the path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from keyword_dashboard.exceptions import ParseError
from keyword_dashboard.models.config import DEFAULT_CONFIG, FIELD_KEYS
from keyword_dashboard.models.keyword import KeywordRecord
from keyword_dashboard.modules.keyword_research import KeywordAnalyzer
from keyword_dashboard.session import AnalysisSession
from keyword_dashboard.utils.helpers import format_number, slugify
from keyword_dashboard.utils.validators import validate_config

logger = logging.getLogger(__name__)

SECTION_FIELDS = {
    "top_keywords": ("Top Keywords", [
        ("count", "Count"),
        ("min_searches", "Min Searches"),
    ]),
    "niche_keywords": ("Niche Keywords", [
        ("count", "Count"),
        ("min_searches", "Min Searches"),
        ("max_searches", "Max Searches"),
        ("max_competition", "Max Competition"),
    ]),
    "low_bid_keywords": ("Low Bid Keywords", [
        ("count", "Count"),
        ("max_bid_percentile", "Max Bid Percentile"),
        ("min_search_percentile", "Min Search Percentile"),
    ]),
}

TABLE_TITLES = {"top": "Top Keywords", "niche": "Niche Keywords", "lowBid": "Low Bid Keywords"}

COLUMN_LABELS = {
    "keyword": "Keyword",
    "avg_monthly_searches": "Avg. Monthly Searches",
    "competition": "Competition",
    "top_page_bid_low": "Top Page Bid (Low)",
    "top_page_bid_high": "Top Page Bid (High)",
    "intention": "Intent",
}


def _get_session() -> AnalysisSession:
    """Return the per-browser-session AnalysisSession."""
    if "kw_session" not in st.session_state:
        st.session_state["kw_session"] = AnalysisSession()
    return st.session_state["kw_session"]


def _records_frame(records: list[KeywordRecord]) -> pd.DataFrame:
    frame = pd.DataFrame([r.to_dict() for r in records], columns=list(COLUMN_LABELS))
    return frame.rename(columns=COLUMN_LABELS)


# ------------------------------------------------------------------
# Section renderers
# ------------------------------------------------------------------

def _render_upload(session: AnalysisSession) -> None:
    """Render the file uploader and load the chosen export."""
    st.markdown("### Upload and Analyze")
    uploaded = st.file_uploader(
        "Keyword planner export (tab-separated)",
        type=["csv", "tsv", "txt"],
        key="kw_upload",
    )
    if uploaded is None:
        return

    # Only re-parse when a different file arrives.
    upload_id = (uploaded.name, uploaded.size)
    if st.session_state.get("kw_upload_id") == upload_id and session.has_document:
        return
    try:
        session.load_bytes(uploaded.getvalue(), uploaded.name)
        st.session_state["kw_upload_id"] = upload_id
    except ParseError as exc:
        st.session_state.pop("kw_upload_id", None)
        st.error("Could not read " + uploaded.name + ": " + str(exc))
        logger.error("Upload failed: %s", exc)
        return

    st.caption(
        "Uploaded file: " + session.filename + " -- "
        + str(len(session.records)) + " keywords, "
        + str(session.rejected_rows) + " rows rejected"
    )


def _render_config(session: AnalysisSession) -> None:
    """Render the nine numeric settings with modified markers."""
    st.markdown("### Analysis Configuration")
    modified = session.modified_fields
    if st.button("Reset to defaults", key="cfg_reset", disabled=not modified):
        session.reset_config()
        # Widget state would otherwise push the old values back in.
        for key in FIELD_KEYS:
            st.session_state.pop("cfg_" + key, None)
        st.rerun()

    columns = st.columns(3)
    for column, (section, (title, fields)) in zip(columns, SECTION_FIELDS.items()):
        with column:
            st.markdown("**" + title + "**")
            for field_name, label in fields:
                key = section + "." + field_name
                default = DEFAULT_CONFIG.get(key)
                is_modified = key in modified
                value = st.number_input(
                    label + (" *" if is_modified else ""),
                    value=int(session.config.get(key)),
                    step=1,
                    key="cfg_" + key,
                    help="Default: " + str(default),
                )
                if value != session.config.get(key):
                    session.update_config(section, field_name, int(value))
                if is_modified:
                    st.caption("Default: " + str(default))

    ok, warnings = validate_config(session.config)
    if not ok:
        for message in warnings:
            st.warning(message)


def _render_chart(records: list[KeywordRecord], kind: str) -> None:
    """Bar chart of monthly searches; low-bid also shows bid high on a second axis."""
    if not records:
        return
    names = [r.keyword for r in records]
    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(
        go.Bar(
            x=names,
            y=[r.avg_monthly_searches for r in records],
            name="Avg. Monthly Searches",
            marker_color="hsl(215, 70%, 60%)",
        ),
        secondary_y=False,
    )
    if kind == "lowBid":
        fig.add_trace(
            go.Bar(
                x=names,
                y=[r.top_page_bid_high for r in records],
                name="Top Page Bid (High)",
                marker_color="hsl(280, 60%, 65%)",
            ),
            secondary_y=True,
        )
    fig.update_layout(barmode="group", xaxis_tickangle=-45, height=500)
    st.plotly_chart(fig, use_container_width=True)


def _render_table(records: list[KeywordRecord], kind: str) -> None:
    """Render one selection with download and chart controls."""
    title = TABLE_TITLES[kind]
    st.markdown("### " + title)
    if not records:
        st.info("No keywords matched the current settings.")
        return

    st.dataframe(_records_frame(records), use_container_width=True, hide_index=True)
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "Download CSV",
            data=KeywordAnalyzer.keywords_to_csv_bytes(records),
            file_name=slugify(title) + ".csv",
            mime="text/csv",
            key="dl_" + kind,
        )
    with col2:
        show_chart = st.toggle("View Chart", key="chart_" + kind)
    if show_chart:
        _render_chart(records, kind)


def _render_results(session: AnalysisSession) -> None:
    result = session.result
    if result is None:
        return

    summary = KeywordAnalyzer.summarize(result.all_valid)
    m1, m2, m3, m4 = st.columns(4)
    with m1:
        st.metric("Total Keywords", summary["total_keywords"])
    with m2:
        st.metric("Total Monthly Searches", format_number(summary["total_monthly_searches"]))
    with m3:
        st.metric("Avg. Competition", summary["average_competition"])
    with m4:
        st.metric("Avg. Bid (High)", summary["average_bid_high"])

    for kind, records in result.as_tables().items():
        _render_table(records, kind)


def main() -> None:
    st.set_page_config(page_title="Keyword Analysis Dashboard", layout="wide")
    st.title("Keyword Analysis Dashboard")

    session = _get_session()
    _render_upload(session)
    _render_config(session)

    if st.button("Analyze Keywords", type="primary", disabled=not session.has_document):
        session.analyze()
    _render_results(session)


if __name__ == "__main__":
    main()
