"""
Audit workspace Streamlit interface: upload, dashboard, AI voice analyst, findings, report.
"""

import logging
import sys
import time
from pathlib import Path
from typing import List

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

# Ensure project-root imports work when Streamlit executes from audit_assistant/frontend.
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from audit_assistant.agents.coordinator_agent import AuditCoordinatorAgent
from audit_assistant.backend.aggregation import format_currency, format_percent
from audit_assistant.backend.csv_ingest import EXPECTED_FORMAT, records_to_frame
from audit_assistant.config import CONFIG, LLMBackend
from audit_assistant.core.llm_interface import LLMInterface, llm
from audit_assistant.core.models import AuditRecord, ViewState
from audit_assistant.core.state import AppState
from audit_assistant.utils.voice import (
    UNSUPPORTED_RECOGNITION_MESSAGE,
    UNSUPPORTED_SYNTHESIS_MESSAGE,
    VoicePlayer,
    detect_voice_capabilities,
)

logging.basicConfig(
    level=logging.INFO if not CONFIG.debug_mode else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

BACKEND_OPTIONS = [backend.value for backend in LLMBackend]
NAV_ITEMS = [
    (ViewState.UPLOAD, "Upload Data"),
    (ViewState.DASHBOARD, "Dashboard"),
    (ViewState.ANALYSIS, "AI Analysis"),
    (ViewState.FINDINGS, "Findings"),
    (ViewState.REPORT, "Report"),
]
STATUS_COLORS = {"Current": "#14532d", "Overdue": "#7c2d12", "Impaired": "#7f1d1d"}


def _inject_styles() -> None:
    st.markdown(
        """
<style>
.stApp {
  background: linear-gradient(180deg, #020617 0%, #0f172a 100%);
}

[data-testid="stSidebar"] {
  background: #0f172a;
  border-right: 1px solid #1e293b;
}

.flag-card {
  border-radius: 12px;
  padding: 14px 16px;
  margin-bottom: 10px;
}

.flag-alert { background: rgba(127, 29, 29, 0.18); border: 1px solid #991b1b; }
.flag-ok { background: rgba(20, 83, 45, 0.18); border: 1px solid #166534; }

.feature-card {
  background: #0f172a;
  border: 1px solid #1e293b;
  border-radius: 16px;
  padding: 18px;
  min-height: 130px;
}
</style>
""",
        unsafe_allow_html=True,
    )


def _initialize_state() -> None:
    st.session_state.setdefault("audit_state", AppState())
    st.session_state.setdefault("voice_notice_shown", False)
    st.session_state.setdefault("findings_query", "")
    st.session_state.setdefault("last_transcript_id", None)
    st.session_state.setdefault("last_upload_id", None)


def _coordinator(llm_client: LLMInterface) -> AuditCoordinatorAgent:
    return AuditCoordinatorAgent(state=st.session_state.audit_state, llm_client=llm_client)


def _voice_player(llm_client: LLMInterface) -> VoicePlayer:
    """Detect voice capabilities once per session."""
    if "voice_capabilities" not in st.session_state:
        st.session_state.voice_capabilities = detect_voice_capabilities(llm_client)
        st.session_state.voice_player = VoicePlayer(st.session_state.voice_capabilities.synthesizer)
    return st.session_state.voice_player


def _go(coordinator: AuditCoordinatorAgent, view: ViewState) -> None:
    if coordinator.navigate(view):
        st.rerun()


def _records_table(records: List[AuditRecord]) -> pd.DataFrame:
    frame = records_to_frame(records)
    view = pd.DataFrame({
        "Customer Name": frame["customerName"],
        "Balance": frame["totalBalance"].map(format_currency),
        "Aging (Days)": frame["agingDays"],
        "Status": frame["status"],
        "Invoice Date": frame["invoiceDate"],
    })
    return view


def _render_sidebar(coordinator: AuditCoordinatorAgent) -> None:
    state = coordinator.state
    with st.sidebar:
        st.markdown("## Audit Assistant")
        for view, label in NAV_ITEMS:
            disabled = not coordinator.session.can_open(view)
            button_type = "primary" if state.view == view else "secondary"
            if st.button(label, key=f"nav_{view.value}", disabled=disabled, type=button_type, use_container_width=True):
                _go(coordinator, view)

        st.divider()
        with st.expander("AI Configuration", expanded=False):
            backend_index = BACKEND_OPTIONS.index(llm.backend.value)
            llm_backend = st.selectbox("LLM Backend", BACKEND_OPTIONS, index=backend_index)
            default_model = llm.model_name if llm_backend == llm.backend.value else LLMInterface.DEFAULT_MODELS[LLMBackend(llm_backend)]
            llm_model = st.text_input("Model", value=default_model)
            llm_api_key = st.text_input("API key", type="password", help="Needed for Gemini, OpenAI, or Anthropic")
            llm.apply_runtime_settings({"backend": llm_backend, "model_name": llm_model, "api_key": llm_api_key})

            if st.button("Check LLM Connection", use_container_width=True):
                if llm.health_check():
                    st.success(f"LLM reachable ({llm.backend.value}/{llm.model_name})")
                else:
                    st.error(f"LLM check failed: {llm.last_error or 'No response'}")

        if st.button("Exit Session", use_container_width=True):
            coordinator.exit()
            st.rerun()


def _render_landing(coordinator: AuditCoordinatorAgent) -> None:
    st.markdown("# Audit Assistant")
    st.markdown(
        "The next generation of audit intelligence. Automate your receivables testing, calculate "
        "Expected Credit Loss (ECL), and converse with your data using Voice AI."
    )
    if st.button("Start Audit Session", type="primary"):
        coordinator.start()
        st.rerun()

    features = [
        ("AI Analysis", "Gemini-powered voice assistant to query your audit data instantly."),
        ("Risk Detection", "Automated flagging of high-risk accounts and negative balances."),
        ("Visual Insights", "Interactive dashboard for aging analysis and Pareto charts."),
    ]
    for column, (title, desc) in zip(st.columns(3), features):
        with column:
            st.markdown(f"<div class='feature-card'><h4>{title}</h4><p>{desc}</p></div>", unsafe_allow_html=True)


def _render_upload(coordinator: AuditCoordinatorAgent) -> None:
    st.markdown("## Upload Working Paper (KKP)")
    st.caption(f"Upload your .csv file containing receivables data. Expected columns: {EXPECTED_FORMAT}")

    if coordinator.state.error:
        st.error(coordinator.state.error)

    uploaded_file = st.file_uploader("Receivables ledger", type=["csv"], key=f"upload_{coordinator.state.uploads}")
    if uploaded_file is not None and uploaded_file.file_id != st.session_state.last_upload_id:
        st.session_state.last_upload_id = uploaded_file.file_id
        with st.spinner("Processing..."):
            time.sleep(CONFIG.ingest_delay_seconds)
            coordinator.load_bytes(uploaded_file.getvalue())
        st.rerun()

    st.markdown("Or")
    if st.button("Load Sample Audit Data"):
        with st.spinner("Processing..."):
            time.sleep(CONFIG.ingest_delay_seconds)
            coordinator.load_sample()
        st.rerun()


def _render_dashboard(coordinator: AuditCoordinatorAgent) -> None:
    st.markdown("## Audit Dashboard")
    dashboard = coordinator.dashboard()
    kpis = dashboard.kpis

    col_1, col_2, col_3, col_4 = st.columns(4)
    with col_1:
        st.metric("Total Exposure", format_currency(kpis.total_exposure), help="Gross Receivables")
    with col_2:
        st.metric("Total Customers", str(kpis.total_customers), help="Active Accounts")
    with col_3:
        st.metric("Impaired (>90 Days)", format_currency(kpis.impaired_total), help="High Risk")
    with col_4:
        st.metric("NPL Ratio", format_percent(kpis.npl_ratio), help="Portfolio Health")

    pie_col, bar_col = st.columns(2)
    with pie_col:
        pie = go.Figure(
            go.Pie(
                labels=[bucket.name for bucket in dashboard.buckets],
                values=[bucket.value for bucket in dashboard.buckets],
                marker={"colors": [bucket.color for bucket in dashboard.buckets]},
                hole=0.6,
                sort=False,
            )
        )
        pie.update_layout(title="Aging Analysis", paper_bgcolor="rgba(0,0,0,0)", height=340)
        st.plotly_chart(pie, use_container_width=True)

    with bar_col:
        bar_frame = pd.DataFrame(
            {"name": [bar.label for bar in dashboard.top_debtors], "Balance": [bar.balance for bar in dashboard.top_debtors]}
        )
        bar = px.bar(
            bar_frame,
            x="Balance",
            y="name",
            orientation="h",
            title=f"Top {len(bar_frame)} Debtors",
            color_discrete_sequence=["#0ea5e9"],
        )
        bar.update_layout(yaxis={"autorange": "reversed", "title": ""}, paper_bgcolor="rgba(0,0,0,0)", height=340)
        st.plotly_chart(bar, use_container_width=True)


def _render_analysis(coordinator: AuditCoordinatorAgent, player: VoicePlayer) -> None:
    st.markdown("## AI Voice Analyst")
    capabilities = st.session_state.voice_capabilities

    if not st.session_state.voice_notice_shown:
        if not capabilities.can_listen:
            st.warning(UNSUPPORTED_RECOGNITION_MESSAGE)
        if not capabilities.can_speak:
            st.warning(UNSUPPORTED_SYNTHESIS_MESSAGE)
        st.session_state.voice_notice_shown = True

    for message in coordinator.state.messages:
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.write(message.content)

    if player.current is not None:
        st.audio(player.current.audio, format="audio/mp3", autoplay=True)
        # Played once; later reruns must not repeat it.
        player.cancel()

    question = None
    if capabilities.can_listen:
        recording = st.audio_input("Speak a question")
        if recording is not None and recording.file_id != st.session_state.last_transcript_id:
            st.session_state.last_transcript_id = recording.file_id
            try:
                question = capabilities.transcriber.transcribe(recording.getvalue(), mime_type=recording.type or "audio/wav")
            except Exception as e:
                logger.error(f"Transcription failed: {str(e)}")
                st.error("Could not transcribe the recording. Please type your question instead.")

    typed = st.chat_input("Speak or type a question about your audit data...")
    question = question or typed

    if question:
        with st.spinner("Professor Audit is thinking..."):
            answer = coordinator.ask(question)
        if answer:
            player.speak(answer)
        st.rerun()


def _render_findings(coordinator: AuditCoordinatorAgent) -> None:
    st.markdown("## Findings & Exceptions")
    findings = coordinator.findings()
    if not findings.has_exceptions:
        st.success("No exceptions identified in the current ledger.")

    for column, flag in zip(st.columns(2), findings.flags):
        with column:
            st.markdown(
                f"<div class='flag-card flag-{flag.severity}'><h4>{flag.title}</h4><p>{flag.message}</p></div>",
                unsafe_allow_html=True,
            )

    query = st.text_input("Search findings...", key="findings_query")
    matches = coordinator.search(query)
    st.caption(f"{len(matches)} of {len(coordinator.records)} record(s)")
    st.dataframe(_records_table(matches), use_container_width=True, hide_index=True)


def _render_report(coordinator: AuditCoordinatorAgent) -> None:
    st.markdown("## Audit Report")
    kpis = coordinator.dashboard().kpis
    findings = coordinator.findings()

    st.markdown(
        f"- Total exposure: **{format_currency(kpis.total_exposure)}** across {kpis.total_customers} customers\n"
        f"- Impaired balance: **{format_currency(kpis.impaired_total)}** (NPL ratio {format_percent(kpis.npl_ratio)})\n"
        f"- {findings.negative_balance.message}\n"
        f"- {findings.impairment_risk.message}"
    )

    include_conversation = st.checkbox("Include AI analysis notes", value=True)
    if st.button("Generate PDF Report", type="primary"):
        with st.spinner("Building report..."):
            st.session_state.report_pdf = coordinator.report_pdf(include_conversation=include_conversation)
        if st.session_state.report_pdf is None:
            st.error("Report generation failed. See logs for details.")

    if st.session_state.get("report_pdf"):
        st.download_button(
            "Download Findings Report",
            data=st.session_state.report_pdf,
            file_name="receivables_audit_findings.pdf",
            mime="application/pdf",
        )


_inject_styles()
_initialize_state()

coordinator = _coordinator(llm)
player = _voice_player(llm)

if coordinator.state.view != ViewState.LANDING:
    _render_sidebar(coordinator)

current_view = coordinator.state.view
if current_view == ViewState.LANDING:
    _render_landing(coordinator)
elif current_view == ViewState.UPLOAD:
    _render_upload(coordinator)
elif current_view == ViewState.DASHBOARD:
    _render_dashboard(coordinator)
elif current_view == ViewState.ANALYSIS:
    _render_analysis(coordinator, player)
elif current_view == ViewState.FINDINGS:
    _render_findings(coordinator)
elif current_view == ViewState.REPORT:
    _render_report(coordinator)
else:
    _render_landing(coordinator)
