"""FastAPI entrypoint — registration, verification reports, and the verification flow via REST."""

import logging
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator
from langgraph.types import Command

from config import HOST, PORT, LOG_LEVEL
from integrations import party_directory, profile_store
from integrations.profile_store import DuplicateUser, UserNotFound
from verification.builder import build_graph
from verification.errors import InvalidResultError, InvalidRoleError, InvalidSnapshotError, RoleMismatchError
from verification.evaluator import evaluate
from verification.mutations import FailureReason
from verification.router import action_to_dict, decide_route
from verification.state import UserSnapshot, VerificationFlag, initial_state
from langsmith_tracing import flow_trace, continue_flow_trace, clear_flow_trace

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ── App + graph ─────────────────────────────────────────────────────────
app = FastAPI(title="Election Verification", version="1.0.0")
graph = build_graph()


# ── Request / Response models ───────────────────────────────────────────
class RegisterRequest(BaseModel):
    role: str
    user_id: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    state: str | None = None


class VerificationResultRequest(BaseModel):
    """Outcome of an external check, reported by the caller that performed it."""
    flag: VerificationFlag
    success: bool = True
    reason: Optional[FailureReason] = None
    party_id: str | None = None

    @field_validator("reason")
    @classmethod
    def reason_is_reportable(cls, v):
        if v is FailureReason.ALREADY_VERIFIED:
            raise ValueError("already_verified is decided by the engine and cannot be reported")
        return v


class StartRequest(BaseModel):
    user_id: str
    post_login: bool = False


class ResumeRequest(BaseModel):
    thread_id: str
    data: dict | str | None = None  # user input passed via Command(resume=...)


# ── Users ───────────────────────────────────────────────────────────────

@app.post("/users", status_code=201)
def register_user(req: RegisterRequest):
    """Create a user with every verification flag unset."""
    profile = req.model_dump(exclude={"role", "user_id"}, exclude_none=True)
    try:
        snapshot = profile_store.create(req.role, user_id=req.user_id, **profile)
    except InvalidRoleError as e:
        raise HTTPException(422, str(e))
    except DuplicateUser as e:
        raise HTTPException(409, str(e))
    return _user_view(snapshot)


@app.get("/users/{user_id}/report")
def get_report(user_id: str):
    """Verification progress plus where the user should be sent next."""
    return _user_view(_get_user(user_id))


@app.post("/users/{user_id}/verifications")
def record_verification(user_id: str, req: VerificationResultRequest):
    """Apply one externally decided verification result."""
    _get_user(user_id)
    try:
        outcome = profile_store.apply(user_id, req.flag, _outcome(req))
    except RoleMismatchError as e:
        logging.error(f"Role mismatch for {user_id}: {e}")
        raise HTTPException(409, str(e))
    except (InvalidSnapshotError, InvalidResultError) as e:
        raise HTTPException(422, str(e))

    return {
        **_user_view(outcome.snapshot),
        "applied": outcome.applied,
        "failure": outcome.failure.as_dict() if outcome.failure else None,
    }


@app.get("/parties")
def list_parties(search: str = ""):
    return [p.model_dump() for p in party_directory.search(search)]


# ── Verification flow ───────────────────────────────────────────────────

@app.post("/verification/start")
def start_verification(req: StartRequest):
    """Create a verification flow thread and run until the first interrupt."""
    snapshot = _get_user(req.user_id)
    thread_id = str(uuid.uuid4())
    config = {"configurable": {"thread_id": thread_id}}

    with flow_trace(thread_id, snapshot.id, snapshot.role.value):
        result = graph.invoke(initial_state(snapshot, post_login=req.post_login), config)

    if result.get("finished"):
        clear_flow_trace(thread_id)

    return {
        "thread_id": thread_id,
        "state": _public_state(result),
        "interrupt": _get_interrupt(config),
    }


@app.post("/verification/resume")
def resume_verification(req: ResumeRequest):
    """Resume the flow after an interrupt with user-provided data."""
    config = {"configurable": {"thread_id": req.thread_id}}

    # Check there is a pending interrupt
    snapshot = graph.get_state(config)
    if not snapshot or not snapshot.tasks:
        raise HTTPException(404, "No pending interrupt for this thread.")

    with continue_flow_trace(req.thread_id):
        result = graph.invoke(Command(resume=req.data), config)

    # Clear trace when flow is complete
    if result.get("finished"):
        clear_flow_trace(req.thread_id)

    return {
        "thread_id": req.thread_id,
        "state": _public_state(result),
        "interrupt": _get_interrupt(config),
    }


@app.get("/verification/state/{thread_id}")
def get_flow_state(thread_id: str):
    """Retrieve current state for a thread."""
    config = {"configurable": {"thread_id": thread_id}}
    snapshot = graph.get_state(config)
    if not snapshot or not snapshot.values:
        raise HTTPException(404, "Thread not found.")
    return {
        "thread_id": thread_id,
        "state": snapshot.values,
        "interrupt": _get_interrupt(config),
    }


# ── Helpers ─────────────────────────────────────────────────────────────
def _get_user(user_id: str) -> UserSnapshot:
    try:
        return profile_store.get(user_id)
    except UserNotFound:
        raise HTTPException(404, f"User {user_id} not found.")


def _user_view(snapshot: UserSnapshot) -> dict:
    report = evaluate(snapshot)
    return {
        "user": snapshot.model_dump(mode="json"),
        "report": report.as_dict(),
        "action": action_to_dict(decide_route(report)),
    }


def _outcome(req: VerificationResultRequest):
    """Translate the request body into a mutation result."""
    if not req.success:
        return req.reason or FailureReason.NOT_FOUND
    if req.flag is VerificationFlag.PARTY_REGISTERED:
        party = party_directory.get(req.party_id or "")
        if party is None:
            return FailureReason.MALFORMED if not (req.party_id or "").strip() else FailureReason.NOT_FOUND
        return party.party_id
    return True


def _public_state(values: dict) -> dict:
    """Drop graph-internal keys (e.g. __interrupt__) from invoke results."""
    return {k: v for k, v in values.items() if not k.startswith("__")}


def _get_interrupt(config: dict) -> dict | None:
    """Extract the pending interrupt payload, if any."""
    snapshot = graph.get_state(config)
    if snapshot and snapshot.tasks:
        for task in snapshot.tasks:
            if hasattr(task, "interrupts") and task.interrupts:
                return task.interrupts[0].value
    return None


# ── Run ─────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
