"""Verification nodes — one human-in-the-loop step per identity proof, via interrupt().

Each node presents its step, waits for the user's input, asks the external
collaborator for a verdict, and hands that verdict to the profile store
(which applies it through the mutation API). The router then decides where
to go next from the refreshed snapshot, so a failed step is simply
presented again with the reason attached.

Anything before interrupt() re-runs on resume, so nodes only read state
there. Side effects (lookups, store writes) happen after it.
"""

import logging
from typing import Any, Dict, Optional

from langgraph.types import interrupt

from config import OTP_LENGTH
from integrations import identity_directory, otp_channel, party_directory, profile_store
from integrations.identity_directory import DirectoryUnavailable
from integrations.otp_channel import OtpCheck, OtpDeliveryError
from prompts.step_prompts import FAILURE_MESSAGES, SUCCESS_MESSAGES, get_step_prompt
from verification.catalog import step_for_flag
from verification.errors import RoleMismatchError
from verification.evaluator import evaluate
from verification.mutations import FailureReason, Outcome
from verification.router import action_to_dict, decide_route
from verification.state import FlowState, VerificationFlag


OTP_FLAGS = {
    "email": VerificationFlag.EMAIL_VERIFIED,
    "phone": VerificationFlag.PHONE_VERIFIED,
}

OTP_RESULTS: dict[OtpCheck, Outcome] = {
    OtpCheck.ACCEPTED: True,
    OtpCheck.MISMATCH: FailureReason.NOT_FOUND,
    OtpCheck.MALFORMED: FailureReason.MALFORMED,
    OtpCheck.EXPIRED: FailureReason.EXPIRED,
    OtpCheck.EXHAUSTED: FailureReason.EXPIRED,
    OtpCheck.UNKNOWN: FailureReason.EXPIRED,
}


# ── Helpers ─────────────────────────────────────────────────────────────
def _input_text(user_input: Any, key: str) -> str:
    """Accept either a bare string or {key: value} from the resume payload."""
    if isinstance(user_input, dict):
        return str(user_input.get(key) or "")
    return str(user_input or "")


def _previous_failure(state: FlowState, flag: VerificationFlag) -> Optional[str]:
    failure = state.get("last_failure")
    if failure and failure.get("flag") == flag.value:
        return failure["reason"]
    return None


def _record(state: FlowState, flag: VerificationFlag, result: Outcome, detail: str = "") -> Dict[str, Any]:
    """Apply one verdict through the store and build the state update."""
    step = step_for_flag(flag)
    try:
        outcome = profile_store.apply(state["user_id"], flag, result, detail=detail)
    except RoleMismatchError as e:
        logging.error(f"Flow presented the wrong step to {state['user_id']}: {e}")
        raise

    update: Dict[str, Any] = {
        "snapshot": outcome.snapshot.model_dump(mode="json"),
        "context": {**state["context"], "current_path": step.route_hint},
        "max_steps_guard": state["max_steps_guard"] + 1,
    }
    if outcome.ok:
        update["last_failure"] = None
        update["last_message"] = SUCCESS_MESSAGES[step.id]
    else:
        update["last_failure"] = outcome.failure.as_dict()
        update["last_message"] = FAILURE_MESSAGES[outcome.failure.reason.value]
    return update


# ── Identity documents ──────────────────────────────────────────────────
def identity_document_node(state: FlowState, doc_type: str) -> Dict[str, Any]:
    """Aadhaar or passport: validate format, then look the number up."""
    flag = VerificationFlag.AADHAAR_VERIFIED if doc_type == "aadhaar" else VerificationFlag.PASSPORT_VERIFIED
    step = step_for_flag(flag)

    user_input = interrupt({
        "type": "identity_document",
        "step": step.id,
        "route": step.route_hint,
        "document_type": doc_type,
        "message": get_step_prompt(step.id, _previous_failure(state, flag)),
    })

    # ── Runs only on resume (after interrupt returns) ──
    doc_id = _input_text(user_input, "document_id")
    if not identity_directory.is_well_formed(doc_type, doc_id):
        return _record(state, flag, FailureReason.MALFORMED, detail=f"{doc_type} id failed format check")

    try:
        found = identity_directory.lookup(doc_type, doc_id)
    except DirectoryUnavailable as e:
        logging.error(f"{doc_type} lookup failed for {state['user_id']}: {e}")
        return _record(state, flag, FailureReason.SERVICE_UNAVAILABLE, detail=str(e))

    return _record(state, flag, found)


# ── OTP (email / phone) ────────────────────────────────────────────────
def send_otp_node(state: FlowState, channel: str) -> Dict[str, Any]:
    """Issue a challenge. Kept separate from the code prompt so resume never re-sends."""
    pending = dict(state["pending_challenges"])
    update: Dict[str, Any] = {"max_steps_guard": state["max_steps_guard"] + 1}
    try:
        challenge = otp_channel.send_code(state["user_id"], channel)
        pending[channel] = challenge.challenge_id
    except OtpDeliveryError as e:
        logging.error(f"OTP delivery via {channel} failed for {state['user_id']}: {e}")
        pending[channel] = ""  # no live challenge; the code prompt reports the outage
        update["last_failure"] = {
            "flag": OTP_FLAGS[channel].value,
            "reason": FailureReason.SERVICE_UNAVAILABLE.value,
            "detail": str(e),
        }
    update["pending_challenges"] = pending
    return update


def verify_otp_node(state: FlowState, channel: str) -> Dict[str, Any]:
    flag = OTP_FLAGS[channel]
    step = step_for_flag(flag)
    challenge_id = state["pending_challenges"].get(channel)

    user_input = interrupt({
        "type": "otp",
        "step": step.id,
        "route": step.route_hint,
        "channel": channel,
        "message": get_step_prompt(step.id, _previous_failure(state, flag), length=OTP_LENGTH),
    })

    # ── Runs only on resume ──
    pending = dict(state["pending_challenges"])
    if not challenge_id:
        pending.pop(channel, None)
        update = _record(state, flag, FailureReason.SERVICE_UNAVAILABLE, detail="no live challenge")
    else:
        check = otp_channel.check_code(challenge_id, _input_text(user_input, "code"))
        if check not in (OtpCheck.MISMATCH, OtpCheck.MALFORMED):
            pending.pop(channel, None)  # consumed or dead; router sends a fresh one if needed
        update = _record(state, flag, OTP_RESULTS[check], detail=check.value)

    update["pending_challenges"] = pending
    return update


# ── Face capture ────────────────────────────────────────────────────────
def face_node(state: FlowState) -> Dict[str, Any]:
    """Confirms a face capture happened. No biometric matching is performed."""
    flag = VerificationFlag.FACE_VERIFIED
    step = step_for_flag(flag)

    user_input = interrupt({
        "type": "face_capture",
        "step": step.id,
        "route": step.route_hint,
        "message": get_step_prompt(step.id, _previous_failure(state, flag)),
    })

    if isinstance(user_input, dict):
        captured = bool(user_input.get("captured"))
    else:
        captured = _input_text(user_input, "captured").strip().lower() in ("captured", "yes", "true", "done")

    if not captured:
        return _record(state, flag, FailureReason.MALFORMED, detail="no capture received")
    return _record(state, flag, True)


# ── Party registration (candidates) ─────────────────────────────────────
def party_node(state: FlowState) -> Dict[str, Any]:
    flag = VerificationFlag.PARTY_REGISTERED
    step = step_for_flag(flag)
    parties = party_directory.list_parties()
    listing = "\n".join(f"  • `{p.party_id}` — {p.name} ({p.short_name})" for p in parties)

    user_input = interrupt({
        "type": "party_selection",
        "step": step.id,
        "route": step.route_hint,
        "parties": [p.model_dump() for p in parties],
        "message": get_step_prompt(step.id, _previous_failure(state, flag), parties=listing),
    })

    party_id = _input_text(user_input, "party_id").strip()
    if not party_id:
        return _record(state, flag, FailureReason.MALFORMED, detail="no party selected")
    party = party_directory.get(party_id)
    if party is None:
        return _record(state, flag, FailureReason.NOT_FOUND, detail=f"unknown party {party_id}")
    return _record(state, flag, party.party_id)


def finish_node(state: FlowState) -> Dict[str, Any]:
    """Terminal node — records the final routing decision."""
    action = decide_route(evaluate(state["snapshot"]))
    return {"finished": True, "action": action_to_dict(action)}
