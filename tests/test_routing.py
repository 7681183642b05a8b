"""Tests for the routing policy and the flow-graph router."""

import pytest

from conftest import fully_verified_flags, make_snapshot
from config import MAX_STEPS_GUARD
from verification.evaluator import evaluate
from verification.router import (
    GrantAccess,
    RedirectTo,
    RouteContext,
    action_to_dict,
    decide_route,
    router,
)
from verification.state import UserRole, initial_state


class TestDecideRoute:

    def test_overseas_voter_missing_face(self) -> None:
        snapshot = make_snapshot(
            UserRole.OVERSEAS_VOTER,
            passport_verified=True, email_verified=True, phone_verified=True,
        )
        action = decide_route(evaluate(snapshot))

        assert action == RedirectTo(route="/verify/face", step_id="face")

    def test_always_targets_first_incomplete_step(self) -> None:
        snapshot = make_snapshot(UserRole.CANDIDATE, email_verified=True, face_verified=True)

        assert decide_route(evaluate(snapshot)).route == "/verify/aadhaar"

    @pytest.mark.parametrize("role", list(UserRole))
    def test_grant_access_when_fully_verified(self, role) -> None:
        action = decide_route(evaluate(make_snapshot(role, **fully_verified_flags(role))))

        assert isinstance(action, GrantAccess)
        assert action.route == "/dashboard"

    def test_already_on_target_route_gets_same_redirect(self) -> None:
        report = evaluate(make_snapshot(UserRole.VOTER))
        here = RouteContext(post_login=False, current_path="/verify/aadhaar")

        assert decide_route(report, here) == decide_route(report)

    def test_context_never_changes_decision(self) -> None:
        report = evaluate(make_snapshot(UserRole.VOTER, aadhaar_verified=True))

        assert decide_route(report, RouteContext(post_login=True)) == decide_route(report, RouteContext())

    def test_action_to_dict(self) -> None:
        assert action_to_dict(RedirectTo(route="/verify/email", step_id="email")) == {
            "kind": "redirect", "route": "/verify/email", "step_id": "email",
        }
        assert action_to_dict(GrantAccess()) == {"kind": "grant_access", "route": "/dashboard"}


class TestFlowRouter:

    def test_starts_at_identity_proof(self) -> None:
        assert router(initial_state(make_snapshot(UserRole.VOTER))) == "verify_aadhaar"
        assert router(initial_state(make_snapshot(UserRole.OVERSEAS_VOTER))) == "verify_passport"

    def test_otp_step_sends_code_first(self) -> None:
        state = initial_state(make_snapshot(UserRole.VOTER, aadhaar_verified=True))

        assert router(state) == "send_email_otp"

        state["pending_challenges"] = {"email": "challenge-1"}
        assert router(state) == "verify_email"

    def test_party_step_for_candidate(self) -> None:
        flags = {**fully_verified_flags(UserRole.CANDIDATE), "party_id": None}

        assert router(initial_state(make_snapshot(UserRole.CANDIDATE, **flags))) == "select_party"

    def test_fully_verified_finishes(self) -> None:
        state = initial_state(make_snapshot(UserRole.ADMIN, **fully_verified_flags(UserRole.ADMIN)))

        assert router(state) == "finish"

    def test_guard_terminates(self) -> None:
        state = initial_state(make_snapshot(UserRole.VOTER))
        state["max_steps_guard"] = MAX_STEPS_GUARD + 1

        assert router(state) == "finish"

    def test_finished_flag_terminates(self) -> None:
        state = initial_state(make_snapshot(UserRole.VOTER))
        state["finished"] = True

        assert router(state) == "finish"
