"""OTP channel — issues and checks one-time codes for email and phone.

Codes are random, stored only as hashes, expire after OTP_TTL_SECONDS, are
single use, and lock after OTP_MAX_ATTEMPTS wrong tries. Sending a new code
for the same user and channel supersedes the previous challenge.

Delivery is pluggable via ``set_sender``; the default sender only logs that a
code was issued (the code itself at DEBUG level, for local development).
"""

import hashlib
import hmac
import logging
import secrets
import threading
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Literal, Optional

from config import OTP_LENGTH, OTP_MAX_ATTEMPTS, OTP_TTL_SECONDS

Channel = Literal["email", "phone"]
Sender = Callable[[str, str, str], None]   # (user_id, channel, code)


class OtpDeliveryError(RuntimeError):
    """The code could not be delivered; no challenge was left active."""


class OtpCheck(str, Enum):
    ACCEPTED = "accepted"
    MISMATCH = "mismatch"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"   # too many wrong attempts
    UNKNOWN = "unknown"       # never issued, already used, or superseded


@dataclass(frozen=True)
class Challenge:
    challenge_id: str
    user_id: str
    channel: str
    expires_at: float


@dataclass
class _Entry:
    challenge: Challenge
    code_hash: str
    attempts: int = 0


def _log_sender(user_id: str, channel: str, code: str) -> None:
    logging.info(f"OTP issued to {user_id} via {channel}")
    logging.debug(f"OTP for {user_id} via {channel}: {code}")


_lock = threading.Lock()
_challenges: dict[str, _Entry] = {}        # challenge_id → entry
_latest: dict[tuple[str, str], str] = {}   # (user_id, channel) → challenge_id
_sender: Sender = _log_sender


def _hash(challenge_id: str, code: str) -> str:
    return hashlib.sha256(f"{challenge_id}:{code}".encode("utf-8")).hexdigest()


def _generate_code() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))


def set_sender(sender: Optional[Sender]) -> None:
    """Install a delivery function; None restores the logging sender."""
    global _sender
    _sender = sender or _log_sender


def send_code(user_id: str, channel: Channel, now: Optional[float] = None) -> Challenge:
    """Issue a fresh challenge and deliver its code."""
    if channel not in ("email", "phone"):
        raise ValueError(f"Unknown OTP channel: {channel!r}")
    now = time.time() if now is None else now
    challenge = Challenge(
        challenge_id=uuid.uuid4().hex,
        user_id=user_id,
        channel=channel,
        expires_at=now + OTP_TTL_SECONDS,
    )
    code = _generate_code()

    with _lock:
        previous = _latest.pop((user_id, channel), None)
        if previous:
            _challenges.pop(previous, None)
        _challenges[challenge.challenge_id] = _Entry(challenge, _hash(challenge.challenge_id, code))
        _latest[(user_id, channel)] = challenge.challenge_id
        sender = _sender

    try:
        sender(user_id, channel, code)
    except Exception as e:
        with _lock:
            _discard(challenge.challenge_id, (user_id, channel))
        raise OtpDeliveryError(f"Could not deliver code via {channel}: {e}") from e
    return challenge


def check_code(challenge_id: str, code: str, now: Optional[float] = None) -> OtpCheck:
    """Check a submitted code. A correct code consumes the challenge."""
    code = (code or "").strip()
    if len(code) != OTP_LENGTH or not code.isdigit():
        return OtpCheck.MALFORMED
    now = time.time() if now is None else now

    with _lock:
        entry = _challenges.get(challenge_id)
        if entry is None:
            return OtpCheck.UNKNOWN
        key = (entry.challenge.user_id, entry.challenge.channel)

        if now >= entry.challenge.expires_at:
            _discard(challenge_id, key)
            logging.info(f"OTP challenge for {key[0]} via {key[1]} expired")
            return OtpCheck.EXPIRED

        if hmac.compare_digest(entry.code_hash, _hash(challenge_id, code)):
            _discard(challenge_id, key)
            return OtpCheck.ACCEPTED

        entry.attempts += 1
        if entry.attempts >= OTP_MAX_ATTEMPTS:
            _discard(challenge_id, key)
            logging.warning(f"OTP challenge for {key[0]} via {key[1]} locked after {entry.attempts} attempts")
            return OtpCheck.EXHAUSTED
        return OtpCheck.MISMATCH


def _discard(challenge_id: str, key: tuple[str, str]) -> None:
    # caller holds _lock
    _challenges.pop(challenge_id, None)
    if _latest.get(key) == challenge_id:
        del _latest[key]


def reset() -> None:
    """Clear all state. Used for testing and session resets."""
    global _sender
    with _lock:
        _challenges.clear()
        _latest.clear()
        _sender = _log_sender
