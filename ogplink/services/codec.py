import re
from typing import Optional

from sqids import Sqids

# Printable ASCII without space: alnum plus punctuation
PUBLIC_ID_CHARS = re.compile(r"[!-~]+")


class RoomIdCodec:
    """Reversible mapping between a room's primary key and its public id."""

    def __init__(self, min_length: int = 8, alphabet: Optional[str] = None):
        self.min_length = min_length
        if alphabet is None:
            self._sqids = Sqids(min_length=min_length)
        else:
            self._sqids = Sqids(alphabet=alphabet, min_length=min_length)

    def encode(self, room_pk: int) -> str:
        if isinstance(room_pk, bool) or not isinstance(room_pk, int) or room_pk < 1:
            raise ValueError(f"Room id must be a positive integer, got {room_pk!r}")
        return self._sqids.encode([room_pk])

    def is_valid_public_id(self, code: object) -> bool:
        return (
            isinstance(code, str)
            and len(code) >= self.min_length
            and PUBLIC_ID_CHARS.fullmatch(code) is not None
        )

    def decode(self, code: str) -> Optional[int]:
        if not self.is_valid_public_id(code):
            return None
        numbers = self._sqids.decode(code)
        if len(numbers) != 1 or numbers[0] < 1:
            return None
        # Several strings can decode to the same number; only the canonical one is valid
        if self._sqids.encode(numbers) != code:
            return None
        return numbers[0]
