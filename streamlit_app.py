"""Streamlit dashboard for Campaign Insight Lab.

Thin UI layer: parsing, aggregation, and model delegation all live in the
service layer; this module only wires widgets to it and renders results.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pandas as pd
import streamlit as st

from app.domain.marketing import UploadMetadata
from app.logging_utils import configure_logging
from app.services.aggregation_service import PREVIEW_ROWS, AggregationService
from app.services.dashboard_state import OperationState, UploadLedger, content_digest
from app.services.insight_service import InsightUnavailableError, PredictionTarget

st.set_page_config(page_title="Campaign Insight Lab", page_icon="CI", layout="wide")

_VIEWS = ["Data Lab", "Dashboard", "Semantic Search", "AI Auditor", "Revenue Predictor"]
_OPERATIONS = ("audit", "search", "predict")


@st.cache_resource(show_spinner=False)
def _load_backend_handles() -> dict[str, Any]:
    """Build the shared services once per process."""
    from app.services.dataset_ingestion_service import get_dataset_ingestion_service  # noqa: PLC0415
    from app.services.insight_service import get_insight_service  # noqa: PLC0415

    configure_logging()
    return {
        "ingestion": get_dataset_ingestion_service(),
        "insights": get_insight_service(),
        "aggregation": AggregationService(),
    }


# ── Session state defaults ─────────────────────────────────────────────────
if "upload_ledger" not in st.session_state:
    st.session_state.upload_ledger = UploadLedger()
if "operations" not in st.session_state:
    st.session_state.operations = {name: OperationState() for name in _OPERATIONS}


def _run_operation(name: str, label: str, call) -> None:
    """Run one gateway call and record in-progress / failed / completed state."""
    state: OperationState = st.session_state.operations[name]
    state.start()
    with st.spinner(label):
        try:
            state.succeed(call())
        except InsightUnavailableError as exc:
            state.fail(str(exc))
        except Exception as exc:  # noqa: BLE001
            state.fail(f"{type(exc).__name__}: {exc}")


def _render_operation_status(name: str) -> OperationState:
    state: OperationState = st.session_state.operations[name]
    if state.is_failed:
        st.error(state.error)
    return state


def _ingest_uploads(uploaded_files: list) -> None:
    """Register every new upload, then parse them concurrently."""
    ingestion = _load_backend_handles()["ingestion"]
    ledger: UploadLedger = st.session_state.upload_ledger
    pending: list[tuple[str, bytes]] = []
    for uploaded in uploaded_files:
        data = uploaded.getvalue()
        digest = content_digest(uploaded.name, data)
        if ledger.is_ingested(digest):
            continue
        record = ingestion.register_upload(
            UploadMetadata(name=uploaded.name, size=len(data), content_type=uploaded.type or "")
        )
        ledger.record(digest, record.id)
        pending.append((record.id, data))

    if not pending:
        return
    with ThreadPoolExecutor(max_workers=min(4, len(pending))) as pool:
        list(pool.map(lambda item: ingestion.ingest_bytes(*item), pending))


# ── Views ──────────────────────────────────────────────────────────────────
def _render_data_lab() -> None:
    handles = _load_backend_handles()
    ingestion = handles["ingestion"]

    left, right = st.columns([2, 1])
    with left:
        st.subheader("Ingest Raw Datasets")
        st.caption("Upload CSV files. They are parsed locally before any AI auditing.")
        uploaded_files = st.file_uploader(
            "Select CSV files",
            type=["csv"],
            accept_multiple_files=True,
            key=st.session_state.upload_ledger.uploader_key,
        )
        if uploaded_files:
            _ingest_uploads(uploaded_files)

        rows = ingestion.rows()
        st.subheader(f"Parsed rows: {len(rows):,}")
        if rows:
            preview = pd.DataFrame(
                [
                    {
                        "Campaign": row.campaign_name or "N/A",
                        "Spend": row.spend,
                        "Impressions": row.impressions,
                        "Clicks": row.clicks,
                        "CTR %": round(row.ctr * 100, 2),
                        "CPA": round(row.cpa, 2),
                    }
                    for row in rows[:PREVIEW_ROWS]
                ]
            )
            st.dataframe(preview, use_container_width=True)
        else:
            st.info("Repository empty.")

    with right:
        st.subheader("Active Source Registry")
        files = ingestion.list_files()
        if not files:
            st.caption("No active sources.")
        for record in files:
            cols = st.columns([4, 1])
            cols[0].markdown(f"**{record.name}**  \n{record.row_count} rows parsed · {record.status.value}")
            if record.error_message:
                cols[0].caption(record.error_message)
            if cols[1].button("Remove", key=f"remove-{record.id}"):
                ingestion.remove_file(record.id)
                st.session_state.upload_ledger.forget(record.id)
                st.rerun()


def _render_dashboard() -> None:
    handles = _load_backend_handles()
    rows = handles["ingestion"].rows()
    aggregation: AggregationService = handles["aggregation"]
    stats = aggregation.aggregate(rows)

    cols = st.columns(4)
    cols[0].metric("Raw Impressions", f"{stats.total_impressions:,.0f}")
    cols[1].metric("Parsed Revenue", f"${stats.total_revenue:,.2f}")
    cols[2].metric("Global Average CTR", f"{stats.global_ctr:.2f}%")
    cols[3].metric("Aggregated Spend", f"${stats.total_spend:,.2f}")

    if not rows:
        st.info("Upload CSV files in the Data Lab to populate the charts.")
        return

    left, right = st.columns(2)
    with left:
        st.caption("Performance distribution")
        spend_df = pd.DataFrame(aggregation.spend_revenue_series(rows)).reset_index()
        st.bar_chart(spend_df, x="index", y=["spend", "revenue"])
    with right:
        st.caption("Efficiency trend (CPA)")
        cpa_df = pd.DataFrame(aggregation.cpa_trend_series(rows)).reset_index()
        st.line_chart(cpa_df, x="index", y="cpa")


def _render_search() -> None:
    handles = _load_backend_handles()
    has_data = bool(handles["ingestion"].rows())

    query = st.text_input("Search the parsed repository", placeholder="e.g. summer discount ads")
    if st.button("Search AI", type="primary", disabled=not has_data):
        _run_operation("search", "Thinking...", lambda: handles["insights"].run_search(query))

    state = _render_operation_status("search")
    if not state.is_completed:
        if not state.is_failed:
            st.info("Enter a query to search the parsed repository.")
        return
    if not state.result:
        st.info("No matching campaigns found for this query.")
        return
    for hit in state.result:
        with st.container(border=True):
            st.markdown(f"**{hit.row.campaign_name or 'N/A'}**")
            st.caption(f"\"{hit.row.ad_copy or 'No copy available'}\"")
            st.write(
                f"ROI: {hit.roi:.2f}x · CTR: {hit.row.ctr * 100:.2f}% · CPA: ${hit.row.cpa:.2f}"
            )


def _render_auditor() -> None:
    handles = _load_backend_handles()
    has_data = bool(handles["ingestion"].rows())

    if st.button("Run Strategic Audit", type="primary", disabled=not has_data):
        _run_operation("audit", "Auditing campaigns...", handles["insights"].run_audit)

    state = _render_operation_status("audit")
    if not state.is_completed:
        if not has_data:
            st.info("Upload data before requesting an audit.")
        return

    audit = state.result
    st.subheader("Summary")
    st.write(audit.summary)
    st.subheader("Strategy")
    st.write(audit.strategy)
    left, right = st.columns(2)
    with left:
        st.markdown("**Strengths**")
        for item in audit.strengths:
            st.markdown(f"- {item}")
    with right:
        st.markdown("**Weaknesses**")
        for item in audit.weaknesses:
            st.markdown(f"- {item}")
    st.markdown("**Insights**")
    for item in audit.insights:
        st.markdown(f"- {item}")
    st.markdown("**Recommendations**")
    for index, item in enumerate(audit.recommendations, start=1):
        st.markdown(f"{index}. {item}")


def _render_predictor() -> None:
    handles = _load_backend_handles()
    has_data = bool(handles["ingestion"].rows())
    defaults = PredictionTarget.with_defaults()

    left, right = st.columns(2)
    with left:
        with st.form("prediction"):
            target_date = st.date_input("Date")
            campaign_name = st.text_input("Campaign", value=defaults.campaign_name)
            category = st.text_input("Category", value=defaults.category)
            impressions = st.number_input("Impressions", min_value=0, value=int(defaults.impressions))
            spend = st.number_input("Spend", min_value=0.0, value=float(defaults.spend))
            clicks = st.number_input("Clicks", min_value=0, value=int(defaults.clicks))
            leads = st.number_input("Leads", min_value=0, value=int(defaults.leads))
            orders = st.number_input("Orders", min_value=0, value=int(defaults.orders))
            submitted = st.form_submit_button("Run Prediction Pipeline", disabled=not has_data)

        if submitted:
            target = PredictionTarget(
                date=target_date.isoformat(),
                campaign_name=campaign_name,
                category=category,
                impressions=impressions,
                spend=spend,
                clicks=clicks,
                leads=leads,
                orders=orders,
            )
            _run_operation("predict", "Calibrating...", lambda: handles["insights"].run_prediction(target))

    with right:
        state = _render_operation_status("predict")
        if state.is_completed:
            st.metric("Predicted revenue", f"${state.result:,.2f}")
        elif not has_data:
            st.info("Upload historical data to enable predictions.")


# ── Layout ─────────────────────────────────────────────────────────────────
with st.sidebar:
    st.title("Campaign Insight Lab")
    view = st.radio("View", options=_VIEWS, index=0)

st.header(view)
{
    "Data Lab": _render_data_lab,
    "Dashboard": _render_dashboard,
    "Semantic Search": _render_search,
    "AI Auditor": _render_auditor,
    "Revenue Predictor": _render_predictor,
}[view]()
