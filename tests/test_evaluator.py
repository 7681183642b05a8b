"""Tests for the verification evaluator."""

import pytest

from conftest import fully_verified_flags, make_snapshot
from verification.errors import InvalidRoleError, InvalidSnapshotError
from verification.evaluator import evaluate, percent_complete
from verification.state import UserRole


class TestEvaluate:

    def test_voter_with_nothing_verified(self) -> None:
        report = evaluate(make_snapshot(UserRole.VOTER))

        assert [s.step.id for s in report.steps] == ["aadhaar", "email", "phone", "face"]
        assert report.percent == 0
        assert report.completed_count == 0
        assert report.next_incomplete.id == "aadhaar"
        assert report.fully_verified is False

    def test_candidate_missing_only_party(self) -> None:
        snapshot = make_snapshot(
            UserRole.CANDIDATE,
            aadhaar_verified=True, email_verified=True, phone_verified=True, face_verified=True,
        )
        report = evaluate(snapshot)

        assert report.percent == 80
        assert report.next_incomplete.id == "party"
        assert report.fully_verified is False
        assert report.missing_labels == ["Party Registration"]

    def test_overseas_voter_next_is_face(self) -> None:
        snapshot = make_snapshot(
            UserRole.OVERSEAS_VOTER,
            passport_verified=True, email_verified=True, phone_verified=True,
        )
        report = evaluate(snapshot)

        assert report.next_incomplete.id == "face"
        assert report.percent == 75

    @pytest.mark.parametrize("role", list(UserRole))
    def test_all_required_flags_means_fully_verified(self, role) -> None:
        report = evaluate(make_snapshot(role, **fully_verified_flags(role)))

        assert report.fully_verified is True
        assert report.next_incomplete is None
        assert report.percent == 100

    def test_empty_party_id_is_not_registered(self) -> None:
        flags = {**fully_verified_flags(UserRole.CANDIDATE), "party_id": ""}
        report = evaluate(make_snapshot(UserRole.CANDIDATE, **flags))

        assert report.next_incomplete.id == "party"

    def test_next_step_follows_catalog_order_not_recency(self) -> None:
        # face and phone done, aadhaar and email missing: aadhaar comes first
        report = evaluate(make_snapshot(UserRole.VOTER, face_verified=True, phone_verified=True))

        assert report.next_incomplete.id == "aadhaar"

    def test_irrelevant_flags_are_ignored(self) -> None:
        # passport means nothing for a voter
        report = evaluate(make_snapshot(UserRole.VOTER, passport_verified=True))

        assert report.completed_count == 0

    def test_accepts_store_rows(self) -> None:
        report = evaluate({"id": "u1", "role": "state_official", "email_verified": True})

        assert report.role is UserRole.STATE_OFFICIAL
        assert report.completed_count == 1

    def test_as_dict(self) -> None:
        data = evaluate(make_snapshot(UserRole.VOTER, aadhaar_verified=True)).as_dict()

        assert data["percent"] == 25
        assert data["next_incomplete"] == "email"
        assert data["steps"][0] == {
            "id": "aadhaar", "label": "Aadhaar Verification",
            "route": "/verify/aadhaar", "completed": True,
        }


class TestMalformedInput:

    def test_unknown_role_in_row(self) -> None:
        with pytest.raises(InvalidRoleError):
            evaluate({"id": "u1", "role": "emperor"})

    def test_missing_fields(self) -> None:
        with pytest.raises(InvalidSnapshotError):
            evaluate({"role": "voter"})

    def test_not_a_snapshot(self) -> None:
        with pytest.raises(InvalidSnapshotError):
            evaluate(["voter"])

    @pytest.mark.parametrize("value", ["yes", 1, "on", "true", None])
    def test_non_bool_flag_is_rejected(self, value) -> None:
        row = {"id": "u1", "role": "voter", **fully_verified_flags(UserRole.VOTER)}
        row["aadhaar_verified"] = value

        with pytest.raises(InvalidSnapshotError):
            evaluate(row)

    def test_truthy_strings_never_grant_access(self) -> None:
        row = {
            "id": "u1", "role": "voter", "aadhaar_verified": "yes",
            "email_verified": 1, "phone_verified": "on", "face_verified": "true",
        }

        with pytest.raises(InvalidSnapshotError):
            evaluate(row)

    def test_non_bool_verified_cache_is_rejected(self) -> None:
        with pytest.raises(InvalidSnapshotError):
            evaluate({"id": "u1", "role": "voter", "verified": "false"})

    def test_overclaiming_verified_flag_is_rejected(self) -> None:
        with pytest.raises(InvalidSnapshotError):
            evaluate(make_snapshot(UserRole.VOTER, email_verified=True, verified=True))

    def test_stale_unverified_flag_is_tolerated(self) -> None:
        snapshot = make_snapshot(UserRole.VOTER, **fully_verified_flags(UserRole.VOTER))
        assert snapshot.verified is False

        assert evaluate(snapshot).fully_verified is True


class TestPercent:

    @pytest.mark.parametrize("completed,total,expected", [
        (0, 4, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),   # 12.5 rounds half up
        (4, 5, 80),
        (5, 5, 100),
        (0, 0, 0),
    ])
    def test_round_half_up(self, completed, total, expected) -> None:
        assert percent_complete(completed, total) == expected
