import pytest

from integrations import identity_directory, otp_channel, profile_store
from verification.state import UserRole, UserSnapshot


@pytest.fixture(autouse=True)
def _reset_collaborators():
    """Module-level stores are process-wide; start every test clean."""
    profile_store.reset()
    otp_channel.reset()
    identity_directory.reset()
    yield
    profile_store.reset()
    otp_channel.reset()
    identity_directory.reset()


@pytest.fixture
def outbox():
    """Capture delivered OTP codes as {(user_id, channel): code}."""
    codes = {}

    def sender(user_id, channel, code):
        codes[(user_id, channel)] = code

    otp_channel.set_sender(sender)
    return codes


def make_snapshot(role=UserRole.VOTER, user_id="user-1", **flags) -> UserSnapshot:
    return UserSnapshot(id=user_id, role=role, **flags)


def fully_verified_flags(role: UserRole) -> dict:
    flags = {"email_verified": True, "phone_verified": True, "face_verified": True}
    if role is UserRole.OVERSEAS_VOTER:
        flags["passport_verified"] = True
    else:
        flags["aadhaar_verified"] = True
    if role is UserRole.CANDIDATE:
        flags["party_id"] = "BJP001"
    return flags
