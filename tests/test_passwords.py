from __future__ import annotations

from hrms.security import PasslibHasher


def test_hash_verifies_only_the_original_password():
    hasher = PasslibHasher()
    encoded = hasher.hash("s3cret-password")

    assert encoded.startswith("$argon2")
    assert encoded != "s3cret-password"
    assert hasher.verify("s3cret-password", encoded)
    assert not hasher.verify("other-password", encoded)


def test_hashes_are_salted():
    hasher = PasslibHasher()
    assert hasher.hash("same") != hasher.hash("same")


def test_malformed_encoding_does_not_verify():
    hasher = PasslibHasher()
    assert not hasher.verify("anything", "not-a-hash")
    assert not hasher.verify("anything", "")
