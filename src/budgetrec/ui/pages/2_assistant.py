import streamlit as st
from budgetrec.agent.runner import run_agent_loop

st.title("Budget Assistant")

history = st.session_state.setdefault("chat_history", [])

for msg in history:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])

prompt = st.chat_input("e.g. How did CST III do against budget in May 2025?")
if prompt:
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.spinner("Analysing..."):
        result = run_agent_loop(prompt, history=list(history))

    with st.chat_message("assistant"):
        st.markdown(result.final_answer or f"_No answer ({result.stopped_reason})_")

        tool_steps = [s for s in result.steps if s.role == "tool"]
        if tool_steps:
            with st.expander(f"🔧 {len(tool_steps)} tool call(s) - stopped: {result.stopped_reason}"):
                for step in tool_steps:
                    st.markdown(f"**{step.tool_name}** ({step.duration_ms} ms)")
                    st.json(step.tool_args)
                    st.json(step.tool_result, expanded=False)

    history.append({"role": "user", "content": prompt})
    history.append({"role": "assistant", "content": result.final_answer})
