"""Case-insensitive participant handle matching."""

from typing import Iterable, Mapping, Optional


def normalize(participant_id: str) -> str:
    """Canonical form of a chat handle."""
    return participant_id.strip().casefold()


def same(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return normalize(a) == normalize(b)


def contains(ids: Iterable[str], participant_id: str) -> bool:
    key = normalize(participant_id)
    return any(normalize(i) == key for i in ids)


def find_key(mapping: Mapping[str, object], participant_id: str) -> Optional[str]:
    """Return the stored key matching participant_id, if any."""
    key = normalize(participant_id)
    for existing in mapping:
        if normalize(existing) == key:
            return existing
    return None
