import streamlit as st
from typing import Optional
from budgetrec.normalize.period import current_period_code, period_label

def init_session():
    """Initialize session state variables."""
    if "period" not in st.session_state:
        st.session_state["period"] = period_label(current_period_code())
    if "team" not in st.session_state:
        st.session_state["team"] = None
    if "chat_history" not in st.session_state:
        st.session_state["chat_history"] = []

def get_period() -> str:
    return st.session_state.get("period") or period_label(current_period_code())

def set_period(period: str):
    st.session_state["period"] = period

def get_team() -> Optional[str]:
    """Currently selected team filter, None for all teams."""
    return st.session_state.get("team")

def set_team(team: Optional[str]):
    st.session_state["team"] = team or None
