import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import List, Optional

from spend_core.charts import site_share_chart
from spend_core.models import CategorySummary, GroupedDetail, HeadlineStat
from spend_core.session import DashboardSession
from spend_core.settings import configure_logging, settings
from spend_core.sheet_loader import load_sheet_records

configure_logging()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;margin-bottom: 10px;}
        .app-top-bar .badge {color: #059669;font-size: 0.7rem;font-weight: 800;letter-spacing: 0.15em;}
        .app-top-bar .page-title {font-size: 1.8rem;font-weight: 900;color: #1a1a1a;}
        .card {border: 1px solid #e5e7eb;border-radius: 24px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 700;font-size: 1.05rem;color: #111827;}
        .card-actions {font-size: 0.75rem;color: #94a3b8;font-weight: 700;text-transform: uppercase;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_currency(value: float) -> str:
    return f"{value:,.0f} 원"


def get_session() -> DashboardSession:
    if "dashboard" not in st.session_state:
        st.session_state["dashboard"] = DashboardSession()
    return st.session_state["dashboard"]


def reload_data(session: DashboardSession):
    with st.spinner("실시간 데이터 동기화 중..."):
        session.reload(lambda config: load_sheet_records(settings.SHEET_ID, settings.SHEET_GID, config))


# ---------- Sections ----------
def render_header(session: DashboardSession):
    inject_base_styles()
    c1, c2, c3 = st.columns([6, 2, 2])
    with c1:
        st.markdown(
            "<div class='app-top-bar'><div class='page-title'>디라이트 2관 지출</div>"
            "<div class='badge'>LIVE DASHBOARD SYSTEM</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if st.button("데이터 갱신", use_container_width=True):
            reload_data(session)
    with c3:
        if st.button(
            "AI 정밀 분석",
            use_container_width=True,
            disabled=session.analyzing or not session.records,
        ):
            with st.spinner("AI가 데이터를 분석하고 있습니다..."):
                session.run_narrative()


def render_error(session: DashboardSession):
    err = session.error or {}
    st.error(err.get("error") or "데이터 로드 중 예상치 못한 오류가 발생했습니다.")
    if err.get("detail"):
        with st.expander("상세 정보"):
            st.code(str(err["detail"]))
    if st.button("다시 시도"):
        reload_data(session)
        st.rerun()


def render_stats(stats: List[HeadlineStat]):
    with card("지출 통계", "Real-time stats"):
        st.caption("주요 지표 누적 총액 (날짜 제외)")
        if not stats:
            st.info("합산할 수 있는 숫자 열이 없습니다.")
        for stat in stats:
            st.metric(stat.label, format_currency(stat.value))


def render_site_list(session: DashboardSession, summary: List[CategorySummary]):
    with card("최근 집계 현황", "Site Breakdown"):
        if not summary:
            st.info("표시할 현장이 없습니다.")
        for idx, item in enumerate(summary, start=1):
            share = f"{item.share_pct:.1f}%" if item.share_pct is not None else "N/A"
            label = f"{idx}. {item.name} · {format_currency(item.value)} · {share}"
            selected = session.selected_site == item.name
            if st.button(label, key=f"site-{item.name}", type="primary" if selected else "secondary", use_container_width=True):
                session.select_site(item.name)
                st.rerun()


def render_detail(session: DashboardSession, detail: List[GroupedDetail]):
    if not session.selected_site:
        with card("상세 내역", "Drill-down"):
            st.info("왼쪽 목록에서 현장을 선택하면 공종/계정별 상세 내역이 표시됩니다.")
        return
    with card(f"{session.selected_site} 상세 내역", "Drill-down"):
        if st.button("← 목록으로"):
            session.clear_site()
            st.rerun()
        for group in detail:
            st.markdown(f"**{group.type}** · {format_currency(group.total)}")
            df = pd.DataFrame([{"계정": i.account, "금액": format_currency(i.value)} for i in group.items])
            st.dataframe(df, hide_index=True, use_container_width=True)


def render_share_chart(summary: List[CategorySummary], total: float):
    with card("현장별 비중", f"Total {format_currency(total)}"):
        chart = site_share_chart(summary)
        if chart is None:
            st.info("차트를 그릴 데이터가 없습니다.")
        else:
            st.altair_chart(chart, use_container_width=True)


def render_narrative(session: DashboardSession):
    with card("AI 분석 리포트", "Narrative"):
        if session.analyzing:
            st.info("분석 중입니다...")
        elif session.narrative:
            st.markdown(session.narrative)
        else:
            st.caption("상단의 'AI 정밀 분석' 버튼을 눌러 데이터 요약을 생성하세요.")


# ---------- UI setup ----------
st.set_page_config(page_title="디라이트 2관 지출", layout="wide")

dashboard = get_session()
if not dashboard.records and dashboard.error is None and not st.session_state.get("_initial_load_done"):
    st.session_state["_initial_load_done"] = True
    reload_data(dashboard)

render_header(dashboard)

if dashboard.error:
    render_error(dashboard)
    st.stop()

engine = dashboard.engine()
site_summary = engine.site_shares()
total_sum = float(sum(s.value for s in site_summary))

cols = st.columns(3)
with cols[0]:
    render_stats(engine.headline_stats())
with cols[1]:
    render_site_list(dashboard, site_summary)
with cols[2]:
    render_detail(dashboard, engine.grouped_detail(dashboard.selected_site))

chart_col, narrative_col = st.columns([5, 7])
with chart_col:
    render_share_chart(site_summary, total_sum)
with narrative_col:
    render_narrative(dashboard)

st.caption(f"{engine.record_count:,} rows · primary metric: {engine.primary_metric or 'N/A'}")
