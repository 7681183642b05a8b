"""Tests for the verification step catalog."""

import pytest

from verification.catalog import CATALOG, required_flags, step_for_flag, steps_for_role
from verification.errors import InvalidRoleError
from verification.state import UserRole, VerificationFlag


def _ids(role):
    return [s.id for s in steps_for_role(role)]


class TestStepsForRole:

    def test_voter_gets_base_four_steps(self) -> None:
        assert _ids(UserRole.VOTER) == ["aadhaar", "email", "phone", "face"]

    def test_overseas_voter_uses_passport(self) -> None:
        assert _ids(UserRole.OVERSEAS_VOTER) == ["passport", "email", "phone", "face"]

    def test_candidate_gets_party_step_last(self) -> None:
        assert _ids(UserRole.CANDIDATE) == ["aadhaar", "email", "phone", "face", "party"]

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.STATE_OFFICIAL])
    def test_officials_follow_base_list(self, role) -> None:
        assert _ids(role) == ["aadhaar", "email", "phone", "face"]

    @pytest.mark.parametrize("role", list(UserRole))
    def test_non_empty_and_deterministic(self, role) -> None:
        first = steps_for_role(role)
        assert first
        assert steps_for_role(role) == first

    def test_accepts_role_strings(self) -> None:
        assert steps_for_role("overseas_voter") == steps_for_role(UserRole.OVERSEAS_VOTER)
        assert steps_for_role(" Candidate ") == steps_for_role(UserRole.CANDIDATE)

    def test_unknown_role_raises(self) -> None:
        with pytest.raises(InvalidRoleError):
            steps_for_role("superuser")
        with pytest.raises(InvalidRoleError):
            steps_for_role(None)


class TestCatalogLookups:

    def test_route_hints(self) -> None:
        routes = {s.id: s.route_hint for s in CATALOG}
        assert routes == {
            "aadhaar": "/verify/aadhaar",
            "passport": "/verify/passport",
            "email": "/verify/email",
            "phone": "/verify/phone",
            "face": "/verify/face",
            "party": "/verify/party",
        }

    def test_step_for_flag(self) -> None:
        assert step_for_flag(VerificationFlag.PARTY_REGISTERED).id == "party"
        assert step_for_flag("email_verified").id == "email"

    def test_required_flags_for_candidate(self) -> None:
        assert required_flags(UserRole.CANDIDATE)[-1] is VerificationFlag.PARTY_REGISTERED
        assert VerificationFlag.PASSPORT_VERIFIED not in required_flags(UserRole.CANDIDATE)
