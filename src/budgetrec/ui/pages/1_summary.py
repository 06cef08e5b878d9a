import pandas as pd
import streamlit as st
from budgetrec.config import settings
from budgetrec.errors import BudgetRecError
from budgetrec.insights import build_insights, team_variance_percentage
from budgetrec.normalize.team import is_valid_storage_team, team_storage_to_display
from budgetrec.reconcile import reconcile
from budgetrec.ui.state import get_period, set_period, get_team, set_team

st.title("Executive Summary")

ALL_TEAMS = "All teams"
team_options = [ALL_TEAMS] + [
    team_storage_to_display(t) for t in settings.RECOGNIZED_TEAMS if is_valid_storage_team(t)
]

c1, c2 = st.columns(2)
period = c1.text_input("Period", value=get_period(), help="e.g. 'May 2025' or '202505'")
current_team = get_team()
team = c2.selectbox(
    "Team",
    team_options,
    index=team_options.index(current_team) if current_team in team_options else 0,
)

if not st.button("Analyse", type="primary"):
    st.stop()

set_period(period)
set_team(None if team == ALL_TEAMS else team)

try:
    with st.spinner("Reading budget and billed hours..."):
        summary = reconcile(period, get_team())
except BudgetRecError as e:
    st.error(f"❌ Analysis failed ({type(e).__name__}): {e}")
    st.stop()

insights = build_insights(summary)

st.caption(f"Period code: {summary.period}")

# --- Status Cards ---
m1, m2, m3, m4 = st.columns(4)
m1.metric("Budgeted hours", f"{summary.total_budgeted:,.1f}")
m2.metric("Billed hours", f"{summary.total_billed:,.1f}")
m3.metric("Variance", f"{summary.budget_variance:+,.1f} h", delta=f"{insights.variance_percentage:+.1f}%", delta_color="inverse")
m4.metric("Utilization", f"{summary.utilization_rate:.1f}%")

if not summary.employee_analysis:
    st.info("ℹ️ No employees matched between budget and billed hours for this period.")

for alert in insights.alerts:
    if alert.type.value == "warning":
        st.warning(alert.message)
    else:
        st.info(alert.message)

if insights.recommendations:
    st.subheader("Recommendations")
    for rec in insights.recommendations:
        st.write(f"- {rec}")

st.divider()

# --- Teams ---
st.subheader("Teams")
if summary.team_summary:
    team_rows = [
        {
            "Team": name,
            "Budgeted": t.budgeted,
            "Billed": t.billed,
            "Variance": t.variance,
            "Variance %": round(team_variance_percentage(t), 1),
            "Employees": t.employee_count,
        }
        for name, t in summary.team_summary.items()
    ]
    st.dataframe(pd.DataFrame(team_rows), hide_index=True, use_container_width=True)

# --- Employees ---
st.subheader("Employees")
if summary.employee_analysis:
    df = pd.DataFrame([e.to_dict() for e in summary.employee_analysis])
    df["variancePercentage"] = df["variancePercentage"].round(1)
    st.dataframe(df.sort_values("variance", key=abs, ascending=False), hide_index=True, use_container_width=True)

# --- Join diagnostics ---
diagnostics = summary.diagnostics
if diagnostics.has_misses:
    with st.expander(
        f"⚠️ Unmatched employees: {len(diagnostics.unmatched_actuals)} billed without budget, "
        f"{len(diagnostics.unmatched_budget)} budgeted without billed hours"
    ):
        if diagnostics.unmatched_actuals:
            st.caption("Billed hours with no budget row")
            st.dataframe(pd.DataFrame([u.to_dict() for u in diagnostics.unmatched_actuals]), hide_index=True)
        if diagnostics.unmatched_budget:
            st.caption("Budget rows with no billed hours")
            st.dataframe(pd.DataFrame([u.to_dict() for u in diagnostics.unmatched_budget]), hide_index=True)
if diagnostics.duplicate_budget:
    with st.expander(f"Ignored budget rows: {len(diagnostics.duplicate_budget)}"):
        st.caption("Only the first budget row per employee is compared")
        st.dataframe(pd.DataFrame([d.to_dict() for d in diagnostics.duplicate_budget]), hide_index=True)
