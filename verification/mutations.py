"""Verification mutation API — apply one externally-decided result to a snapshot.

The actual checks (directory lookup, OTP match, face capture, party pick)
happen elsewhere. This module only encodes the state transition:

    Unverified ──(check succeeds)──▶ Verified        (no way back)

Every call returns a MutationResult. The input snapshot is never modified;
on success a new snapshot is returned with exactly one field changed and
``verified`` recomputed from the evaluator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from verification.errors import InvalidResultError, RoleMismatchError
from verification.evaluator import evaluate
from verification.state import UserRole, UserSnapshot, VerificationFlag, coerce_snapshot


class FailureReason(str, Enum):
    NOT_FOUND = "not_found"                      # ID/code not known to the directory or channel
    MALFORMED = "malformed"                      # failed structural validation
    ALREADY_VERIFIED = "already_verified"        # idempotent no-op
    EXPIRED = "expired"                          # OTP challenge expired, used up, or superseded
    SERVICE_UNAVAILABLE = "service_unavailable"  # collaborator failed; translated by the caller


@dataclass(frozen=True)
class VerificationFailed:
    flag: VerificationFlag
    reason: FailureReason
    detail: str = ""

    def as_dict(self) -> dict:
        return {"flag": self.flag.value, "reason": self.reason.value, "detail": self.detail}


@dataclass(frozen=True)
class MutationResult:
    snapshot: UserSnapshot
    applied: bool
    failure: Optional[VerificationFailed] = None

    @property
    def ok(self) -> bool:
        return self.applied or (
            self.failure is not None and self.failure.reason is FailureReason.ALREADY_VERIFIED
        )


# success | failure reason | party id (party_registered only)
Outcome = Union[bool, FailureReason, str]


def _check_role(flag: VerificationFlag, role: UserRole) -> None:
    if flag is VerificationFlag.AADHAAR_VERIFIED and role is UserRole.OVERSEAS_VOTER:
        raise RoleMismatchError(flag, role)
    if flag is VerificationFlag.PASSPORT_VERIFIED and role is not UserRole.OVERSEAS_VOTER:
        raise RoleMismatchError(flag, role)
    if flag is VerificationFlag.PARTY_REGISTERED and role is not UserRole.CANDIDATE:
        raise RoleMismatchError(flag, role)


def _interpret(flag: VerificationFlag, result: Outcome) -> Tuple[Optional[FailureReason], Optional[str]]:
    """Returns (failure_reason, party_id). Both None means plain success."""
    if isinstance(result, FailureReason):
        if result is FailureReason.ALREADY_VERIFIED:
            raise InvalidResultError("ALREADY_VERIFIED is decided by the engine, not reported by callers")
        return result, None
    if flag is VerificationFlag.PARTY_REGISTERED:
        if isinstance(result, str):
            party_id = result.strip()
            return (None, party_id) if party_id else (FailureReason.MALFORMED, None)
        if result is False:
            return FailureReason.NOT_FOUND, None
        raise InvalidResultError("Party registration requires the chosen party id")
    if isinstance(result, bool):
        return (None, None) if result else (FailureReason.NOT_FOUND, None)
    raise InvalidResultError(f"Unsupported verification result for {flag.value}: {result!r}")


def apply_verification(snapshot, flag, result: Outcome, detail: str = "") -> MutationResult:
    """
    Apply one verification result.

    Order of checks: role gating (raises) → already verified (no-op) →
    failure (unchanged snapshot) → success (new snapshot).
    """
    snapshot = coerce_snapshot(snapshot)
    try:
        flag = VerificationFlag(flag)
    except ValueError as e:
        raise InvalidResultError(f"Unknown verification flag: {flag!r}") from e

    _check_role(flag, snapshot.role)
    reason, party_id = _interpret(flag, result)

    if snapshot.flag_value(flag):
        return MutationResult(
            snapshot=snapshot,
            applied=False,
            failure=VerificationFailed(flag, FailureReason.ALREADY_VERIFIED, detail),
        )

    if reason is not None:
        return MutationResult(
            snapshot=snapshot,
            applied=False,
            failure=VerificationFailed(flag, reason, detail),
        )

    if flag is VerificationFlag.PARTY_REGISTERED:
        updated = snapshot.model_copy(update={"party_id": party_id})
    else:
        updated = snapshot.model_copy(update={flag.value: True})

    return MutationResult(snapshot=reconcile(updated), applied=True)


def reconcile(snapshot) -> UserSnapshot:
    """Recompute the cached ``verified`` flag from the underlying flags."""
    snapshot = coerce_snapshot(snapshot)
    # evaluate() rejects an overclaiming cache, so judge the flags without it
    fully_verified = evaluate(snapshot.model_copy(update={"verified": False})).fully_verified
    if fully_verified == snapshot.verified:
        return snapshot
    return snapshot.model_copy(update={"verified": fully_verified})


def apply_all(snapshot, results: Iterable[Tuple[VerificationFlag, Outcome]]) -> MutationResult:
    """
    Fold several results in order. All or nothing: the first failure other
    than ALREADY_VERIFIED returns the original snapshot with that failure.
    """
    original = current = coerce_snapshot(snapshot)
    applied = False
    for flag, result in results:
        step = apply_verification(current, flag, result)
        if step.failure and step.failure.reason is not FailureReason.ALREADY_VERIFIED:
            return MutationResult(snapshot=original, applied=False, failure=step.failure)
        current = step.snapshot
        applied = applied or step.applied
    return MutationResult(snapshot=current, applied=applied)
