"""Tests for null-identity detection and address derivation."""
import pytest

from owned.identity import NULL_ADDRESS, derive_address, is_null, normalize


@pytest.mark.parametrize("value", [None, "", "   ", "0", "0x0", NULL_ADDRESS, "0X" + "0" * 64])
def test_null_identities(value):
    assert is_null(value)
    assert normalize(value) is None


@pytest.mark.parametrize("value", ["alice", "0x01", "0x" + "0" * 39 + "1", "00a"])
def test_real_identities(value):
    assert not is_null(value)
    assert normalize(f" {value} ") == value


def test_derive_address_is_deterministic_with_salt():
    assert derive_address("alice", "1") == derive_address("alice", "1")
    assert derive_address("alice", "1") != derive_address("alice", "2")
    assert not is_null(derive_address("alice"))
