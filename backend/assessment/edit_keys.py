from __future__ import annotations
import secrets
from typing import Callable

from .errors import EditKeyExhausted

# No 0/O/1/I so keys survive being read aloud or copied by hand
EDIT_KEY_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
EDIT_KEY_LENGTH = 6


def generate_edit_key() -> str:
	return "".join(secrets.choice(EDIT_KEY_ALPHABET) for _ in range(EDIT_KEY_LENGTH))


def normalize_edit_key(key: str | None) -> str:
	return (key or "").strip().upper()


def is_well_formed(key: str) -> bool:
	return len(key) == EDIT_KEY_LENGTH and all(c in EDIT_KEY_ALPHABET for c in key)


def mint_unique_edit_key(
	exists: Callable[[str], bool],
	*,
	attempts: int,
	generate: Callable[[], str] = generate_edit_key,
) -> str:
	"""Return a fresh key that `exists` reports unused, or raise EditKeyExhausted."""
	for _ in range(max(1, attempts)):
		key = generate()
		if not exists(key):
			return key
	raise EditKeyExhausted(f"no unused edit key after {attempts} attempts")
