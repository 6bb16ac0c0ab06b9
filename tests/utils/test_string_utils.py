from __future__ import annotations

import pytest

from utils.string_utils import StringUtils


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("House", "house"),
        ("  garden\n", "garden"),
        ("Café", "café"),
        (None, ""),
        ("", ""),
    ],
)
def test_normalize_word(raw: str | None, expected: str) -> None:
    assert StringUtils.normalize_word(raw) == expected


def test_is_same_word() -> None:
    assert StringUtils.is_same_word("Taxi", " taxi ")
    assert not StringUtils.is_same_word("house", "maison")


def test_ensure_str() -> None:
    assert StringUtils.ensure_str(None) == ""
    assert StringUtils.ensure_str("x") == "x"
