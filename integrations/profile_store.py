"""Thread-safe store for user verification snapshots.

Stands in for the hosted profile table. Every write goes through the
mutation API under one lock, so a read-modify-write of a single user is
atomic and concurrent results for different flags cannot lose each other.
"""

import logging
import threading
import uuid
from typing import Any, Mapping

from verification.mutations import MutationResult, Outcome, apply_verification, reconcile
from verification.state import UserRole, UserSnapshot, VerificationFlag, coerce_snapshot, new_snapshot


class UserNotFound(KeyError):
    """No profile exists for the requested user id."""


class DuplicateUser(ValueError):
    """A profile with this id or email already exists."""


_lock = threading.Lock()
_profiles: dict[str, UserSnapshot] = {}   # user_id → snapshot


def create(
    role,
    user_id: str | None = None,
    name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    state: str | None = None,
) -> UserSnapshot:
    """Register a new user with every flag unset. Role strings are parsed here."""
    role = UserRole.parse(role)
    user_id = user_id or f"user-{uuid.uuid4().hex[:12]}"
    email = email.strip().lower() if email else None

    with _lock:
        if user_id in _profiles:
            raise DuplicateUser(f"User {user_id} already exists")
        if email and any(p.email == email for p in _profiles.values()):
            raise DuplicateUser(f"Email {email} already registered")
        snapshot = new_snapshot(user_id, role, name=name, email=email, phone=phone, state=state)
        _profiles[user_id] = snapshot

    logging.info(f"Registered {role.value} {user_id}")
    return snapshot


def load(row: Mapping[str, Any]) -> UserSnapshot:
    """Import an externally stored row, recomputing the cached verified flag."""
    snapshot = reconcile(coerce_snapshot(row))
    with _lock:
        _profiles[snapshot.id] = snapshot
    return snapshot


def get(user_id: str) -> UserSnapshot:
    with _lock:
        try:
            return _profiles[user_id]
        except KeyError:
            raise UserNotFound(user_id) from None


def apply(user_id: str, flag, result: Outcome, detail: str = "") -> MutationResult:
    """
    Atomic read-modify-write: apply one verification result to the stored snapshot.
    Only a successful mutation is written back. RoleMismatchError propagates.
    """
    flag = VerificationFlag(flag)
    with _lock:
        try:
            current = _profiles[user_id]
        except KeyError:
            raise UserNotFound(user_id) from None
        outcome = apply_verification(current, flag, result, detail=detail)
        if outcome.applied:
            _profiles[user_id] = outcome.snapshot

    if outcome.applied:
        logging.info(f"{user_id}: {flag.value} set (verified={outcome.snapshot.verified})")
    elif outcome.failure is not None:
        logging.info(f"{user_id}: {flag.value} not applied ({outcome.failure.reason.value})")
    return outcome


def list_users() -> list[UserSnapshot]:
    with _lock:
        return list(_profiles.values())


def reset() -> None:
    """Clear all state. Used for testing and session resets."""
    with _lock:
        _profiles.clear()
