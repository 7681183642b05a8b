"""Party directory — the registerable political parties for candidates."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Party(BaseModel):
    model_config = ConfigDict(frozen=True)

    party_id: str
    name: str
    short_name: str
    symbol_url: Optional[str] = None


PARTIES: tuple[Party, ...] = (
    Party(party_id="BJP001", name="Bharatiya Janata Party", short_name="BJP"),
    Party(party_id="INC002", name="Indian National Congress", short_name="INC"),
    Party(party_id="AAP003", name="Aam Aadmi Party", short_name="AAP"),
)

_BY_ID = {p.party_id: p for p in PARTIES}


def list_parties() -> list[Party]:
    return list(PARTIES)


def search(term: str) -> list[Party]:
    """Case-insensitive match on full or short name. Empty term returns all."""
    needle = (term or "").strip().lower()
    if not needle:
        return list_parties()
    return [p for p in PARTIES if needle in p.name.lower() or needle in p.short_name.lower()]


def get(party_id: str) -> Optional[Party]:
    return _BY_ID.get((party_id or "").strip().upper())
