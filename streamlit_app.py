import streamlit as st
from budgetrec.ui.validation import run_all_checks
from budgetrec.ui.state import init_session

# Page configuration
st.set_page_config(
    page_title="Budget vs. Billed Hours",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Run pre-flight checks
errors = run_all_checks()

if errors:
    st.error("🚨 System Configuration Errors")
    for err in errors:
        st.write(f"- {err}")
    st.stop()

# Initialize State
init_session()

# Navigation
st.sidebar.title("Budget Reconciliation")

pg = st.navigation([
    st.Page("src/budgetrec/ui/pages/1_summary.py", title="Executive Summary", icon="📊"),
    st.Page("src/budgetrec/ui/pages/2_assistant.py", title="Assistant", icon="🤖"),
])

pg.run()
