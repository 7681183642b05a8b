"""Deterministic routing — NO I/O, pure rule-based branching.

Two layers:
  * ``decide_route``: report → Action (RedirectTo / GrantAccess) for any caller.
  * ``router``: the flow-graph edge function, built on top of ``decide_route``.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Union

from config import MAX_STEPS_GUARD
from verification.evaluator import VerificationReport, evaluate
from verification.state import FlowState


DASHBOARD_ROUTE = "/dashboard"


@dataclass(frozen=True)
class RedirectTo:
    route: str
    step_id: str
    kind: Literal["redirect"] = "redirect"


@dataclass(frozen=True)
class GrantAccess:
    route: str = DASHBOARD_ROUTE
    kind: Literal["grant_access"] = "grant_access"


Action = Union[RedirectTo, GrantAccess]


@dataclass(frozen=True)
class RouteContext:
    """Facts about how the user arrived. Carried for callers; never changes the decision."""
    post_login: bool = False
    current_path: Optional[str] = None


def decide_route(report: VerificationReport, context: Optional[RouteContext] = None) -> Action:
    """
    Map a report to the single next action.
    Always targets the FIRST incomplete step, even if the user is already on it.
    """
    if report.next_incomplete is not None:
        step = report.next_incomplete
        return RedirectTo(route=step.route_hint, step_id=step.id)
    return GrantAccess()


def action_to_dict(action: Action) -> dict:
    if isinstance(action, RedirectTo):
        return {"kind": action.kind, "route": action.route, "step_id": action.step_id}
    return {"kind": action.kind, "route": action.route}


# ── Flow-graph router ───────────────────────────────────────────────────

# All valid destinations for add_conditional_edges
RouterDest = Literal[
    "verify_aadhaar", "verify_passport",
    "send_email_otp", "verify_email",
    "send_phone_otp", "verify_phone",
    "verify_face", "select_party",
    "finish",
]

# Mapping: step id → node name
STEP_NODE_MAP: dict[str, str] = {
    "aadhaar": "verify_aadhaar",
    "passport": "verify_passport",
    "email": "verify_email",
    "phone": "verify_phone",
    "face": "verify_face",
    "party": "select_party",
}

# OTP steps need a live challenge before the code prompt
OTP_SEND_NODE_MAP: dict[str, str] = {
    "email": "send_email_otp",
    "phone": "send_phone_otp",
}


def router(state: FlowState) -> RouterDest:
    """
    Rule-based router.  Priority: termination > policy decision.
    Called via add_conditional_edges after every node.
    """
    # Guard: hard terminate if exceeded
    if state["max_steps_guard"] > MAX_STEPS_GUARD:
        return "finish"

    # Already done
    if state["finished"]:
        return "finish"

    action = decide_route(evaluate(state["snapshot"]))
    if isinstance(action, GrantAccess):
        return "finish"

    step_id = action.step_id
    if step_id in OTP_SEND_NODE_MAP and step_id not in state["pending_challenges"]:
        return OTP_SEND_NODE_MAP[step_id]
    return STEP_NODE_MAP[step_id]
