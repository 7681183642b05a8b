"""Engine error taxonomy.

These are contract violations raised to the caller. Expected verification
outcomes (a document not found, a malformed code) are NOT exceptions; they
come back as ``VerificationFailed`` values from the mutation API.
"""


class VerificationEngineError(Exception):
    """Base class for engine contract violations."""


class InvalidRoleError(VerificationEngineError, ValueError):
    """Role value outside the closed UserRole enumeration."""

    def __init__(self, role):
        self.role = role
        super().__init__(f"Unknown user role: {role!r}")


class InvalidSnapshotError(VerificationEngineError, ValueError):
    """Snapshot failed structural validation or violates its own invariant."""


class RoleMismatchError(VerificationEngineError):
    """A verification flag was applied to a role it does not belong to.

    Indicates a caller bug (the wrong step was shown for this role), so
    callers should log it rather than surface it as a user error.
    """

    def __init__(self, flag, role):
        self.flag = flag
        self.role = role
        super().__init__(f"Flag {flag} is not valid for role {role}")


class InvalidResultError(VerificationEngineError, ValueError):
    """A verification result the mutation API cannot interpret.

    Raised for a result of the wrong shape for its flag, or for an outcome
    only the engine itself may produce (``ALREADY_VERIFIED``).
    """
