"""Verification step catalog — which identity proofs each role must complete, in order.

Data-driven: one ordered tuple of steps, filtered per role. The order here is
the order users are walked through and the order progress is rendered in.
"""

from dataclasses import dataclass
from typing import FrozenSet, Tuple

from verification.state import UserRole, VerificationFlag


ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)


@dataclass(frozen=True)
class VerificationStep:
    id: str
    label: str
    flag: VerificationFlag
    applicable_roles: FrozenSet[UserRole]
    route_hint: str

    def applies_to(self, role: UserRole) -> bool:
        return role in self.applicable_roles


# ── Catalog (global order) ──────────────────────────────────────────────
CATALOG: Tuple[VerificationStep, ...] = (
    VerificationStep(
        id="aadhaar",
        label="Aadhaar Verification",
        flag=VerificationFlag.AADHAAR_VERIFIED,
        applicable_roles=ALL_ROLES - {UserRole.OVERSEAS_VOTER},
        route_hint="/verify/aadhaar",
    ),
    VerificationStep(
        id="passport",
        label="Passport Verification",
        flag=VerificationFlag.PASSPORT_VERIFIED,
        applicable_roles=frozenset({UserRole.OVERSEAS_VOTER}),
        route_hint="/verify/passport",
    ),
    VerificationStep(
        id="email",
        label="Email Verification",
        flag=VerificationFlag.EMAIL_VERIFIED,
        applicable_roles=ALL_ROLES,
        route_hint="/verify/email",
    ),
    VerificationStep(
        id="phone",
        label="Phone Verification",
        flag=VerificationFlag.PHONE_VERIFIED,
        applicable_roles=ALL_ROLES,
        route_hint="/verify/phone",
    ),
    VerificationStep(
        id="face",
        label="Face Verification",
        flag=VerificationFlag.FACE_VERIFIED,
        applicable_roles=ALL_ROLES,
        route_hint="/verify/face",
    ),
    VerificationStep(
        id="party",
        label="Party Registration",
        flag=VerificationFlag.PARTY_REGISTERED,
        applicable_roles=frozenset({UserRole.CANDIDATE}),
        route_hint="/verify/party",
    ),
)

_BY_FLAG = {step.flag: step for step in CATALOG}


def steps_for_role(role) -> Tuple[VerificationStep, ...]:
    """Ordered steps required for a role. Strings are parsed; unknown roles raise InvalidRoleError."""
    role = UserRole.parse(role)
    return tuple(step for step in CATALOG if step.applies_to(role))


def required_flags(role) -> Tuple[VerificationFlag, ...]:
    return tuple(step.flag for step in steps_for_role(role))


def step_for_flag(flag: VerificationFlag) -> VerificationStep:
    return _BY_FLAG[VerificationFlag(flag)]
