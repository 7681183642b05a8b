"""Graph assembly — builds and compiles the FlowState graph with all nodes and edges."""

from functools import partial

from langgraph.graph import StateGraph, START, END
from langgraph.checkpoint.memory import MemorySaver

from verification.state import FlowState
from verification.router import router, STEP_NODE_MAP, OTP_SEND_NODE_MAP
from verification.verification_nodes import (
    identity_document_node,
    send_otp_node,
    verify_otp_node,
    face_node,
    party_node,
    finish_node,
)


def _named(func, node_name, **kwargs):
    node_func = partial(func, **kwargs)
    # Partial functions don't have __name__; add_node gets an explicit name anyway
    node_func.__name__ = node_name
    return node_func


def build_graph(checkpointer=None):
    """
    Assemble the verification flow graph.
    Returns a compiled graph ready for invoke/stream.
    """
    builder = StateGraph(FlowState)

    # ── Register step nodes ─────────────────────────────────────────────
    for step_id, node_name in STEP_NODE_MAP.items():
        if step_id in ("aadhaar", "passport"):
            builder.add_node(node_name, _named(identity_document_node, node_name, doc_type=step_id))
        elif step_id in OTP_SEND_NODE_MAP:
            builder.add_node(node_name, _named(verify_otp_node, node_name, channel=step_id))
        elif step_id == "face":
            builder.add_node(node_name, face_node)
        elif step_id == "party":
            builder.add_node(node_name, party_node)

    for channel, node_name in OTP_SEND_NODE_MAP.items():
        builder.add_node(node_name, _named(send_otp_node, node_name, channel=channel))

    builder.add_node("finish", finish_node)

    # ── Entry: the snapshot decides where the flow starts ───────────────
    builder.add_conditional_edges(START, router)

    # ── Conditional edges: every step → router ──────────────────────────
    for node_name in [*STEP_NODE_MAP.values(), *OTP_SEND_NODE_MAP.values()]:
        builder.add_conditional_edges(node_name, router)

    # ── Finish → END ────────────────────────────────────────────────────
    builder.add_edge("finish", END)

    # ── Compile with checkpointer (required for interrupt) ──────────────
    if checkpointer is None:
        checkpointer = MemorySaver()

    return builder.compile(checkpointer=checkpointer)
