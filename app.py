"""Streamlit UI — registration plus a chat-driven walk through the verification steps."""

import streamlit as st
from langgraph.types import Command
from langgraph.checkpoint.memory import MemorySaver

from integrations import otp_channel, profile_store
from integrations.profile_store import DuplicateUser
from verification.builder import build_graph
from verification.evaluator import evaluate
from verification.state import UserRole, initial_state
from langsmith_tracing import flow_trace, continue_flow_trace, clear_flow_trace

# ── Page config ─────────────────────────────────────────────────────────
st.set_page_config(page_title="Voter Verification", page_icon="🗳️", layout="centered")

# ── Custom CSS ──────────────────────────────────────────────────────────
st.markdown("""
<style>
    .stApp { max-width: 800px; margin: 0 auto; }
    div[data-testid="stChatMessage"] {
        border-radius: 12px;
        margin-bottom: 8px;
    }
    .step-chip {
        display: inline-block; padding: 3px 10px; border-radius: 8px;
        margin: 2px 4px; font-size: 0.78em; font-weight: 500;
    }
    .step-pending  { background: #FEF3C7; color: #92400E; }
    .step-verified { background: #D1FAE5; color: #065F46; }
</style>
""", unsafe_allow_html=True)

ROLE_LABELS = {
    UserRole.VOTER: "Voter",
    UserRole.OVERSEAS_VOTER: "Overseas Voter",
    UserRole.CANDIDATE: "Candidate",
    UserRole.STATE_OFFICIAL: "State Official",
    UserRole.ADMIN: "Admin",
}


# ── Session state init ──────────────────────────────────────────────────
def _deliver_to_inbox(user_id: str, channel: str, code: str) -> None:
    """Local delivery: codes land in the sidebar inbox instead of a real email/SMS gateway."""
    st.session_state.inbox.append({"channel": channel, "code": code})


def _init_session():
    if "graph" not in st.session_state:
        st.session_state.graph = build_graph(checkpointer=MemorySaver())
        st.session_state.thread_id = "streamlit-main"
        st.session_state.config = {"configurable": {"thread_id": "streamlit-main"}}
        st.session_state.user_id = None
        st.session_state.started = False
        st.session_state.messages = []
        st.session_state.pending_interrupt = None
        st.session_state.inbox = []
        otp_channel.set_sender(_deliver_to_inbox)

_init_session()

graph = st.session_state.graph
config = st.session_state.config
thread_id = st.session_state.thread_id


def get_interrupt():
    snapshot = graph.get_state(config)
    if snapshot and snapshot.tasks:
        for task in snapshot.tasks:
            if hasattr(task, "interrupts") and task.interrupts:
                return task.interrupts[0].value
    return None


def get_state_values():
    snapshot = graph.get_state(config)
    return snapshot.values if snapshot else {}


def say(content: str, role: str = "assistant"):
    avatar = "🗳️" if role == "assistant" else "👤"
    st.session_state.messages.append({"role": role, "content": content, "avatar": avatar})


def run_graph(input_data):
    """Invoke the flow inside the LangSmith trace, then queue the next prompt."""
    if st.session_state.started:
        ctx = continue_flow_trace(thread_id)
    else:
        ctx = flow_trace(thread_id, user_id=st.session_state.user_id or "")

    with ctx:
        result = graph.invoke(input_data, config)

    if result.get("last_message") and result.get("last_failure") is None and st.session_state.started:
        say(result["last_message"])

    interrupt_data = get_interrupt()
    st.session_state.pending_interrupt = interrupt_data
    if interrupt_data:
        say(interrupt_data.get("message", ""))


def resume_payload(interrupt_data: dict, text: str):
    """Shape free text into the payload each step type expects."""
    kind = interrupt_data.get("type")
    if kind == "identity_document":
        return {"document_id": text}
    if kind == "otp":
        return {"code": text}
    if kind == "party_selection":
        return {"party_id": text}
    if kind == "face_capture":
        return {"captured": text.strip().lower() in ("captured", "yes", "done")}
    return text


# ── Sidebar ─────────────────────────────────────────────────────────────
with st.sidebar:
    st.markdown("### 🗳️ Verification")

    if st.session_state.user_id:
        user = profile_store.get(st.session_state.user_id)
        report = evaluate(user)
        st.caption(f"{ROLE_LABELS[user.role]} · {user.id}")
        st.progress(report.percent / 100, text=f"{report.percent}% complete")

        for status in report.steps:
            state_class = "verified" if status.completed else "pending"
            emoji = "✅" if status.completed else "⏳"
            st.markdown(
                f'<span class="step-chip step-{state_class}">{emoji} {status.step.label}</span>',
                unsafe_allow_html=True,
            )

        if report.next_incomplete:
            st.info(f"Next step: {report.next_incomplete.label}")
        else:
            st.success("✅ Fully verified")

    if st.session_state.inbox:
        with st.expander("📨 Inbox", expanded=True):
            for item in reversed(st.session_state.inbox[-5:]):
                st.caption(f"{item['channel'].title()} code: `{item['code']}`")

    if st.button("🔄 Reset"):
        otp_channel.reset()
        clear_flow_trace(thread_id)
        for key in list(st.session_state.keys()):
            del st.session_state[key]
        st.rerun()


# ── Main ────────────────────────────────────────────────────────────────
st.title("🗳️ Voter Verification")
st.caption("Verify your identity to take part in elections.")

# Registration
if not st.session_state.user_id:
    with st.form("register"):
        name = st.text_input("Full name")
        email = st.text_input("Email")
        phone = st.text_input("Phone")
        role = st.selectbox("Register as", list(ROLE_LABELS), format_func=ROLE_LABELS.get)
        submitted = st.form_submit_button("Register", type="primary", use_container_width=True)

    if submitted:
        try:
            user = profile_store.create(role, name=name or None, email=email or None, phone=phone or None)
        except DuplicateUser as e:
            st.error(str(e))
        else:
            st.session_state.user_id = user.id
            st.rerun()

# Chat history
for msg in st.session_state.messages:
    with st.chat_message(msg["role"], avatar=msg.get("avatar")):
        st.markdown(msg["content"])

if not st.session_state.user_id:
    st.stop()

# Start button
if not st.session_state.started:
    if st.button("🚀 Start Verification", type="primary", use_container_width=True):
        user = profile_store.get(st.session_state.user_id)
        run_graph(initial_state(user, post_login=True))
        st.session_state.started = True
        st.rerun()

# Step input
elif not get_state_values().get("finished", False):
    interrupt_data = st.session_state.pending_interrupt or {}

    if interrupt_data.get("type") == "face_capture":
        photo = st.camera_input("Capture your face")
        if photo is not None:
            say("📸 Photo captured", role="user")
            run_graph(Command(resume={"captured": True}))
            st.rerun()

    if user_text := st.chat_input("Type your response..."):
        say(user_text, role="user")
        try:
            run_graph(Command(resume=resume_payload(interrupt_data, user_text)))
        except Exception as e:
            say(f"⚠️ {e}")
        st.rerun()
else:
    action = get_state_values().get("action") or {}
    clear_flow_trace(thread_id)
    if action.get("kind") == "grant_access":
        st.balloons()
        st.success("🎉 Your account is fully verified. You can now take part in elections.")
    else:
        st.warning("Verification stopped before completion. Reset to try again.")
