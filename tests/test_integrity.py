"""Digest and clean-client checks."""

import pytest

from client_manager import integrity
from client_manager.constants import CLEAN_CLIENT_MD5


SAMPLE = bytes(range(256)) * 8


class TestDigest:

    def test_empty_buffer_has_its_own_digest(self):
        assert integrity.digest(b"") == "d41d8cd98f00b204e9800998ecf8427e"

    def test_digest_is_lowercase_hex(self):
        value = integrity.digest(SAMPLE)
        assert len(value) == 32
        assert value == value.lower()
        int(value, 16)

    def test_reference_digest_is_not_clean_for_random_data(self):
        assert not integrity.is_clean(SAMPLE)
        assert CLEAN_CLIENT_MD5 == "45892bdedd0ad70aed4ccd22d9fb5984"


class TestIsClean:
    """Digest sensitivity against a substituted reference image."""

    @pytest.fixture(autouse=True)
    def sample_is_reference(self, monkeypatch):
        monkeypatch.setattr(integrity, "CLEAN_CLIENT_MD5", integrity.digest(SAMPLE))

    def test_reference_bytes_are_clean(self):
        assert integrity.is_clean(SAMPLE)
        assert integrity.is_clean(bytearray(SAMPLE))

    @pytest.mark.parametrize("offset", [0, 1, 777, len(SAMPLE) - 1])
    @pytest.mark.parametrize("bit", [0, 3, 7])
    def test_single_bit_flip_is_not_clean(self, offset, bit):
        mutated = bytearray(SAMPLE)
        mutated[offset] ^= 1 << bit
        assert not integrity.is_clean(mutated)

    def test_truncated_image_is_not_clean(self):
        assert not integrity.is_clean(SAMPLE[:-1])
