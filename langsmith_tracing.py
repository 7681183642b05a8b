"""LangSmith tracing — one verification flow = one trace across interrupts."""

import logging
import os
from contextlib import contextmanager

import langsmith as ls
from langsmith.run_trees import RunTree

from config import LANGSMITH_TRACING, LANGSMITH_PROJECT, LANGSMITH_API_KEY

TRACE_TAGS = ["election-verification", "flow"]

# In-memory store: thread_id -> parent RunTree (for REST API stateless resume)
_thread_trace_store: dict[str, RunTree] = {}


def _ensure_env():
    """Ensure LangSmith env vars are set when tracing is enabled."""
    if LANGSMITH_TRACING:
        os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
        os.environ.setdefault("LANGCHAIN_PROJECT", LANGSMITH_PROJECT)
        if LANGSMITH_API_KEY:
            os.environ.setdefault("LANGSMITH_API_KEY", LANGSMITH_API_KEY)


@contextmanager
def flow_trace(thread_id: str, user_id: str = "", role: str = ""):
    """
    Create a parent trace for a verification flow. All graph invokes inside this
    context are grouped under one trace. Use the same thread_id for start + all resumes.
    """
    if not LANGSMITH_TRACING:
        yield
        return

    _ensure_env()
    metadata = {"thread_id": thread_id, "user_id": user_id or thread_id, "role": role}
    root = RunTree(
        name="verification_flow",
        run_type="chain",
    )
    root.add_metadata(metadata)
    root.add_tags(TRACE_TAGS)
    root.post()
    _thread_trace_store[thread_id] = root

    with ls.tracing_context(
        project_name=LANGSMITH_PROJECT,
        enabled=True,
        parent=root,
        metadata=metadata,
        tags=TRACE_TAGS,
    ):
        yield str(root.id)


@contextmanager
def continue_flow_trace(thread_id: str):
    """
    Continue an existing flow trace (for resume invokes). Use the parent run
    stored when the flow started.
    """
    if not LANGSMITH_TRACING:
        yield
        return

    _ensure_env()
    root = _thread_trace_store.get(thread_id)
    if not root:
        yield
        return

    with ls.tracing_context(
        project_name=LANGSMITH_PROJECT,
        enabled=True,
        parent=root,
        metadata={"thread_id": thread_id},
        tags=[*TRACE_TAGS, "resume"],
    ):
        yield


def clear_flow_trace(thread_id: str) -> None:
    """End the root run and remove from store when flow completes or resets."""
    root = _thread_trace_store.pop(thread_id, None)
    if root:
        try:
            root.end()
            root.patch()
        except Exception as e:
            logging.warning(f"Could not close trace for {thread_id}: {e}")
