"""Verification evaluator — pure snapshot → report computation. No I/O."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from verification.catalog import VerificationStep, steps_for_role
from verification.errors import InvalidSnapshotError
from verification.state import UserRole, coerce_snapshot


@dataclass(frozen=True)
class StepStatus:
    step: VerificationStep
    completed: bool


@dataclass(frozen=True)
class VerificationReport:
    role: UserRole
    steps: Tuple[StepStatus, ...]
    completed_count: int
    total_count: int
    percent: int
    next_incomplete: Optional[VerificationStep]
    fully_verified: bool

    @property
    def missing_labels(self) -> List[str]:
        return [s.step.label for s in self.steps if not s.completed]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "steps": [
                {
                    "id": s.step.id,
                    "label": s.step.label,
                    "route": s.step.route_hint,
                    "completed": s.completed,
                }
                for s in self.steps
            ],
            "completed_count": self.completed_count,
            "total_count": self.total_count,
            "percent": self.percent,
            "next_incomplete": self.next_incomplete.id if self.next_incomplete else None,
            "fully_verified": self.fully_verified,
        }


def percent_complete(completed: int, total: int) -> int:
    """Round-half-up integer percentage; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def evaluate(snapshot) -> VerificationReport:
    """
    Build the verification report for a snapshot.
    Steps keep catalog order; the first incomplete one is next, regardless of
    which flags were set most recently.
    """
    snapshot = coerce_snapshot(snapshot)
    steps = steps_for_role(snapshot.role)

    statuses = tuple(StepStatus(step, snapshot.flag_value(step.flag)) for step in steps)
    completed = sum(1 for s in statuses if s.completed)
    total = len(statuses)
    next_step = next((s.step for s in statuses if not s.completed), None)
    fully_verified = completed == total

    # The cached flag may lag behind (stale False) but must never overclaim
    if snapshot.verified and not fully_verified:
        raise InvalidSnapshotError(
            f"User {snapshot.id} is marked verified but {total - completed} step(s) are incomplete"
        )

    return VerificationReport(
        role=snapshot.role,
        steps=statuses,
        completed_count=completed,
        total_count=total,
        percent=percent_complete(completed, total),
        next_incomplete=next_step,
        fully_verified=fully_verified,
    )
