"""Core schemas — user roles, verification flags, the user snapshot, and the flow state."""

from enum import Enum
from typing import TypedDict, Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError

from verification.errors import InvalidRoleError, InvalidSnapshotError


class UserRole(str, Enum):
    """Closed set of account roles. Fixed at registration."""
    VOTER = "voter"
    CANDIDATE = "candidate"
    ADMIN = "admin"
    STATE_OFFICIAL = "state_official"
    OVERSEAS_VOTER = "overseas_voter"

    @classmethod
    def parse(cls, value) -> "UserRole":
        """Translate an external role representation into the enum."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidRoleError(value)


class VerificationFlag(str, Enum):
    """One identity-proof fact about a user."""
    EMAIL_VERIFIED = "email_verified"
    PHONE_VERIFIED = "phone_verified"
    AADHAAR_VERIFIED = "aadhaar_verified"
    PASSPORT_VERIFIED = "passport_verified"
    FACE_VERIFIED = "face_verified"
    PARTY_REGISTERED = "party_registered"  # backed by party_id, not a bool


class UserSnapshot(BaseModel):
    """Immutable copy of one user's verification state.

    ``verified`` is a cached summary. Only the mutation API recomputes it;
    nothing else should set it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    role: UserRole
    # Strict: a store row holding "yes" or 1 is malformed, not verified
    email_verified: StrictBool = False
    phone_verified: StrictBool = False
    aadhaar_verified: StrictBool = False
    passport_verified: StrictBool = False
    face_verified: StrictBool = False
    party_id: Optional[str] = None
    verified: StrictBool = False

    # Profile details carried alongside; the engine never branches on them
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    state: Optional[str] = None

    def flag_value(self, flag: VerificationFlag) -> bool:
        if flag is VerificationFlag.PARTY_REGISTERED:
            return bool(self.party_id)
        return bool(getattr(self, flag.value))


def new_snapshot(user_id: str, role, **profile) -> UserSnapshot:
    """Factory — a freshly registered user with nothing verified."""
    return UserSnapshot(id=user_id, role=UserRole.parse(role), **profile)


def coerce_snapshot(obj) -> UserSnapshot:
    """Accept a UserSnapshot or a plain mapping (e.g. a store row)."""
    if isinstance(obj, UserSnapshot):
        return obj
    if not isinstance(obj, Mapping):
        raise InvalidSnapshotError(f"Expected a user snapshot, got {type(obj).__name__}")
    if "role" not in obj:
        raise InvalidSnapshotError("Snapshot is missing 'role'")
    data = {**obj, "role": UserRole.parse(obj["role"])}
    try:
        return UserSnapshot.model_validate(data)
    except ValidationError as e:
        raise InvalidSnapshotError(str(e)) from e


class FlowState(TypedDict):
    """Flat state dict for one user's verification flow."""

    user_id: str
    snapshot: Dict[str, Any]              # UserSnapshot.model_dump(mode="json")
    context: Dict[str, Any]               # {post_login, current_path}

    pending_challenges: Dict[str, str]    # {channel: challenge_id}
    last_message: Optional[str]
    last_failure: Optional[Dict[str, Any]]  # {flag, reason, detail}

    max_steps_guard: int                  # Incremented every node; terminate if > 25
    finished: bool
    action: Optional[Dict[str, Any]]      # final routing decision


def initial_state(snapshot: UserSnapshot, post_login: bool = False) -> FlowState:
    """Factory — returns a clean starting state for a snapshot."""
    return FlowState(
        user_id=snapshot.id,
        snapshot=snapshot.model_dump(mode="json"),
        context={"post_login": post_login, "current_path": None},
        pending_challenges={},
        last_message=None,
        last_failure=None,
        max_steps_guard=0,
        finished=False,
        action=None,
    )
