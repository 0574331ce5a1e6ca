"""
Hashing Unit Tests
Tests for core/crypto/hashing.py

Tests:
- leaf hashing is pure and domain separated
- combine is order sensitive and size checked
- algorithm table and wire codes
- to_hex/from_hex
"""
import hashlib

import pytest

from core.crypto.hashing import (
    ALGORITHM_CODES,
    DEFAULT_HASHER,
    LEAF_PREFIX,
    NODE_PREFIX,
    Hasher,
    combine,
    from_hex,
    hash_leaf,
    sha256,
    to_hex,
)
from core.schemas.errors import UnsupportedHashAlgorithmError


class TestSha256:
    """Tests for sha256() function."""

    def test_sha256_known_value(self):
        """Test sha256 produces correct hash for known input."""
        assert sha256(b"hello").hex() == (
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_sha256_empty_bytes(self):
        assert sha256(b"") == hashlib.sha256(b"").digest()


class TestHashLeaf:
    """Tests for the Leaf Hasher."""

    def test_leaf_is_prefixed_hash(self):
        """Leaf digest is H(0x00 || record)."""
        expected = hashlib.sha256(b"\x00" + b"record").digest()
        assert hash_leaf(b"record") == expected

    def test_leaf_deterministic(self):
        """Identical records give identical digests."""
        assert hash_leaf(b"same") == hash_leaf(b"same")
        assert hash_leaf(b"same") == Hasher("sha256").hash_leaf(b"same")

    def test_different_records_different_leaves(self):
        assert hash_leaf(b"a") != hash_leaf(b"b")

    def test_leaf_differs_from_raw_hash(self):
        """Domain tag keeps leaf digests apart from plain hashes."""
        assert hash_leaf(b"record") != sha256(b"record")

    def test_empty_record_allowed(self):
        assert hash_leaf(b"") == hashlib.sha256(LEAF_PREFIX).digest()

    def test_bytearray_and_memoryview_accepted(self):
        assert hash_leaf(bytearray(b"abc")) == hash_leaf(b"abc")
        assert hash_leaf(memoryview(b"abc")) == hash_leaf(b"abc")

    def test_str_rejected(self):
        """Strings are never implicitly encoded."""
        with pytest.raises(TypeError):
            hash_leaf("not bytes")

    def test_leaf_size_matches_algorithm(self):
        assert len(Hasher("sha512").hash_leaf(b"x")) == 64
        assert len(Hasher("blake2s").hash_leaf(b"x")) == 32


class TestCombine:
    """Tests for parent combination."""

    def test_combine_is_prefixed_concat(self):
        """Parent digest is H(0x01 || left || right)."""
        a = hash_leaf(b"a")
        b = hash_leaf(b"b")
        expected = hashlib.sha256(NODE_PREFIX + a + b).digest()
        assert combine(a, b) == expected

    def test_combine_order_sensitive(self):
        a = hash_leaf(b"a")
        b = hash_leaf(b"b")
        assert combine(a, b) != combine(b, a)

    def test_combine_with_itself_is_new_digest(self):
        """Duplicate pairing still hashes, it does not pass the node through."""
        a = hash_leaf(b"a")
        assert combine(a, a) != a

    def test_combine_not_identity(self):
        a = hash_leaf(b"a")
        b = hash_leaf(b"b")
        assert combine(a, b) not in (a, b)

    def test_combine_differs_from_leaf_of_concat(self):
        """An interior digest cannot be reproduced as a leaf digest."""
        a = hash_leaf(b"a")
        b = hash_leaf(b"b")
        assert combine(a, b) != hash_leaf(a + b)

    def test_combine_wrong_size_rejected(self):
        a = hash_leaf(b"a")
        with pytest.raises(ValueError, match="32 bytes"):
            combine(a, b"short")
        with pytest.raises(ValueError):
            combine(a + b"\x00", a)

    def test_combine_non_bytes_rejected(self):
        with pytest.raises(TypeError):
            combine("a" * 32, hash_leaf(b"a"))


class TestHasher:
    """Tests for Hasher construction and algorithm table."""

    def test_default_is_sha256(self):
        assert DEFAULT_HASHER.algorithm == "sha256"
        assert DEFAULT_HASHER.digest_size == 32

    @pytest.mark.parametrize("algorithm", sorted(ALGORITHM_CODES))
    def test_supported_algorithms(self, algorithm):
        hasher = Hasher(algorithm)
        assert hasher.digest_size == hashlib.new(algorithm).digest_size
        assert Hasher.from_code(hasher.code) == hasher

    def test_name_normalized(self):
        assert Hasher("SHA3-256").algorithm == "sha3_256"

    @pytest.mark.parametrize("algorithm", ["md6", "shake_128", "shake_256", ""])
    def test_unsupported_algorithm(self, algorithm):
        with pytest.raises(UnsupportedHashAlgorithmError) as exc_info:
            Hasher(algorithm)
        assert exc_info.value.code == "UNSUPPORTED_HASH_ALGORITHM"

    def test_unknown_code(self):
        with pytest.raises(UnsupportedHashAlgorithmError):
            Hasher.from_code(200)

    def test_codes_are_unique(self):
        assert len(set(ALGORITHM_CODES.values())) == len(ALGORITHM_CODES)

    def test_hasher_is_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_HASHER.algorithm = "sha512"

    def test_equal_hashers(self):
        assert Hasher("sha256") == DEFAULT_HASHER
        assert Hasher("sha256") != Hasher("sha512")


class TestHexConversion:
    """Tests for to_hex() and from_hex()."""

    def test_round_trip(self):
        data = hash_leaf(b"x")
        assert from_hex(to_hex(data)) == data

    def test_to_hex_prefix(self):
        assert to_hex(bytes.fromhex("deadbeef")) == "0xdeadbeef"

    def test_from_hex_requires_prefix(self):
        with pytest.raises(ValueError, match="0x"):
            from_hex("deadbeef")

    def test_from_hex_odd_length(self):
        with pytest.raises(ValueError, match="even length"):
            from_hex("0xabc")

    def test_from_hex_invalid_chars(self):
        with pytest.raises(ValueError, match="Invalid hex"):
            from_hex("0xzz")
