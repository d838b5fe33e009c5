"""Tests for CKB hashing"""

import hashlib

import pytest

from ckb_client.codec import Hasher, HasherFinalizedError, blake160, ckb_hash
from ckb_client.codec.hashes import hash_witness_to_hasher

EMPTY_HASH = "44f4c69744d5f8c55d642062949dcae49bc4e7ef43d388c5a12f42b5633d163e"


class TestHasher:

    def test_empty_hash(self):
        assert ckb_hash(b"").hex() == EMPTY_HASH

    def test_personalization(self):
        expected = hashlib.blake2b(b"abc", digest_size=32, person=b"ckb-default-hash").digest()
        assert ckb_hash(b"abc") == expected
        assert ckb_hash(b"abc") != hashlib.blake2b(b"abc", digest_size=32).digest()

    def test_split_updates_match_one_shot(self):
        """Chunking the input never changes the digest"""
        data = bytes(range(200))
        one_shot = ckb_hash(data)
        for split in (0, 1, 64, 199, 200):
            assert Hasher().update(data[:split]).update(data[split:]).digest() == one_shot

    def test_order_sensitive(self):
        assert Hasher().update(b"a").update(b"b").digest() != Hasher().update(b"b").update(b"a").digest()

    def test_ckb_hash_concatenates(self):
        assert ckb_hash(b"ab", "0x63") == ckb_hash(b"abc")

    def test_digest_finalizes(self):
        hasher = Hasher().update(b"data")
        first = hasher.digest()
        assert hasher.finalized
        assert hasher.digest() == first
        with pytest.raises(HasherFinalizedError):
            hasher.update(b"more")

    def test_hexdigest(self):
        assert Hasher().hexdigest() == "0x" + EMPTY_HASH

    def test_blake160(self):
        assert blake160(b"key") == ckb_hash(b"key")[:20]
        assert len(blake160(b"key")) == 20

    def test_witness_framing(self):
        hasher = Hasher()
        hash_witness_to_hasher(b"\xaa\xbb", hasher)
        assert hasher.digest() == ckb_hash(b"\x02" + b"\x00" * 7 + b"\xaa\xbb")
