"""Identity document directory — Aadhaar and passport lookups.

The registry below is seeded with demo records so the flow can be exercised
end to end. A deployment replaces it (``register_record`` / ``reset``) with
data from the real registry; nothing in the engine depends on these IDs.
"""

import logging
import re
import threading
from typing import Any, Literal

DocumentType = Literal["aadhaar", "passport"]

AADHAAR_PATTERN = re.compile(r"^\d{12}$")
PASSPORT_PATTERN = re.compile(r"^[A-Z0-9]{8,10}$")


class DirectoryUnavailable(RuntimeError):
    """The directory could not be consulted (network, outage, misconfiguration)."""


# ── Demo records ────────────────────────────────────────────────────────
DEMO_RECORDS: dict[str, dict[str, dict[str, Any]]] = {
    "aadhaar": {
        "123456789012": {"name": "Rahul Sharma", "state": "Delhi", "dob": "1990-05-15"},
        "987654321098": {"name": "Priya Patel", "state": "Gujarat", "dob": "1988-11-02"},
        "567890123456": {"name": "Arjun Reddy", "state": "Telangana", "dob": "1995-01-23"},
    },
    "passport": {
        "A1234567": {"name": "Meera Iyer", "nationality": "Indian", "expiry_date": "2031-08-30"},
        "B7654321": {"name": "Vikram Singh", "nationality": "Indian", "expiry_date": "2029-03-14"},
    },
}

_lock = threading.Lock()
_records: dict[str, dict[str, dict[str, Any]]] = {k: dict(v) for k, v in DEMO_RECORDS.items()}
_available = True


def normalize_document_id(doc_type: DocumentType, doc_id: str) -> str:
    """Strip separators users commonly type: '1234 5678 9012', 'a1234567'."""
    cleaned = re.sub(r"[\s-]", "", doc_id or "")
    return cleaned.upper() if doc_type == "passport" else cleaned


def is_well_formed(doc_type: DocumentType, doc_id: str) -> bool:
    normalized = normalize_document_id(doc_type, doc_id)
    if doc_type == "aadhaar":
        return bool(AADHAAR_PATTERN.match(normalized))
    if doc_type == "passport":
        return bool(PASSPORT_PATTERN.match(normalized))
    raise ValueError(f"Unknown document type: {doc_type!r}")


def lookup(doc_type: DocumentType, doc_id: str) -> bool:
    """True if the document ID exists in the directory. Raises DirectoryUnavailable."""
    if doc_type not in ("aadhaar", "passport"):
        raise ValueError(f"Unknown document type: {doc_type!r}")
    normalized = normalize_document_id(doc_type, doc_id)
    with _lock:
        if not _available:
            raise DirectoryUnavailable(f"{doc_type} directory is offline")
        found = normalized in _records[doc_type]
    logging.debug(f"{doc_type} lookup: found={found}")
    return found


def register_record(doc_type: DocumentType, doc_id: str, **details: Any) -> None:
    normalized = normalize_document_id(doc_type, doc_id)
    if not is_well_formed(doc_type, normalized):
        raise ValueError(f"Malformed {doc_type} id: {doc_id!r}")
    with _lock:
        _records[doc_type][normalized] = details


def set_available(available: bool) -> None:
    """Toggle directory availability (maintenance windows, tests)."""
    global _available
    with _lock:
        _available = available


def reset() -> None:
    """Restore demo records and availability."""
    global _available
    with _lock:
        _records.clear()
        _records.update({k: dict(v) for k, v in DEMO_RECORDS.items()})
        _available = True
