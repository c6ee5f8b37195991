"""Tests for edit key generation."""

from __future__ import annotations

import pytest

from assessment.edit_keys import (
	EDIT_KEY_ALPHABET,
	generate_edit_key,
	is_well_formed,
	mint_unique_edit_key,
	normalize_edit_key,
)
from assessment.errors import EditKeyExhausted


def test_alphabet_has_32_unambiguous_symbols() -> None:
	assert len(EDIT_KEY_ALPHABET) == 32
	assert len(set(EDIT_KEY_ALPHABET)) == 32
	assert not set("0O1I") & set(EDIT_KEY_ALPHABET)


def test_generated_keys_are_well_formed() -> None:
	for _ in range(500):
		key = generate_edit_key()
		assert len(key) == 6
		assert is_well_formed(key)
		assert not set("0O1I") & set(key)


def test_normalize_uppercases_and_strips() -> None:
	assert normalize_edit_key(" ab3xyz ") == "AB3XYZ"
	assert normalize_edit_key(None) == ""


def test_mint_retries_past_collisions() -> None:
	taken = {"AAAAAA", "BBBBBB"}
	candidates = iter(["AAAAAA", "BBBBBB", "CCCCCC"])
	key = mint_unique_edit_key(lambda k: k in taken, attempts=5, generate=lambda: next(candidates))
	assert key == "CCCCCC"


def test_mint_gives_up_after_attempts() -> None:
	with pytest.raises(EditKeyExhausted):
		mint_unique_edit_key(lambda k: True, attempts=3, generate=lambda: "AAAAAA")
