"""Domain Types — sid minting, bounds and lifecycle enum."""

import pytest

from session_cache.core.domain_types import (
    DEFAULT_SID_LENGTH, MAX_GC_INTERVAL_HOURS, SID_ALPHABET,
    SessionState, mint_session_id,
)


def test_minted_id_has_default_length_and_alphabet():
    sid = mint_session_id()
    assert len(sid) == DEFAULT_SID_LENGTH == 64
    assert set(sid) <= set(SID_ALPHABET)


def test_minted_ids_are_unique():
    assert len({mint_session_id() for _ in range(500)}) == 500


def test_custom_length():
    assert len(mint_session_id(16)) == 16


def test_non_positive_length_rejected():
    with pytest.raises(ValueError):
        mint_session_id(0)


def test_gc_interval_upper_bound():
    assert MAX_GC_INTERVAL_HOURS == 720


def test_session_state_values():
    assert {s.value for s in SessionState} == {"absent", "loading", "active"}
