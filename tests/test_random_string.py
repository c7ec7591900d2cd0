"""Tests for generators/random_string.py module."""

import base64
import binascii
import string
from unittest.mock import patch

import pytest

from kube_secretgen.exceptions import RandomSourceError, UnsupportedEncodingError
from kube_secretgen.generators.random_string import VALUE_KEY, RandomStringGenerator, generate_random_string
from kube_secretgen.models import GenerationConstraint, GeneratorOptions


class TestCharacterLength:
    """Tests for lengths counted in rendered characters."""

    @pytest.mark.parametrize("encoding", ["base64", "base64url", "base32", "hex", "raw"])
    def test_exact_length(self, encoding):
        """Test the rendered value has exactly the requested length."""
        value = generate_random_string(GenerationConstraint(length=37, is_byte_length=False, encoding=encoding))
        assert len(value) == 37

    def test_hex_alphabet(self):
        """Test hex values only contain hex digits."""
        value = generate_random_string(GenerationConstraint(length=64, is_byte_length=False, encoding="hex"))
        assert set(value.decode()) <= set(string.hexdigits)

    def test_raw_is_alphanumeric(self):
        """Test raw character values are printable alphanumerics."""
        value = generate_random_string(GenerationConstraint(length=50, is_byte_length=False, encoding="raw"))
        assert value.decode().isalnum()

    def test_values_are_unique(self):
        """Test repeated generation does not repeat values."""
        constraint = GenerationConstraint(length=40, is_byte_length=False, encoding="base64")
        values = {generate_random_string(constraint) for _ in range(1000)}
        assert len(values) == 1000


class TestByteLength:
    """Tests for lengths counted in raw bytes."""

    def test_base64_decodes_to_requested_bytes(self):
        """Test 10 random bytes render as decodable base64."""
        value = generate_random_string(GenerationConstraint(length=10, is_byte_length=True, encoding="base64"))
        assert len(base64.b64decode(value)) == 10

    def test_hex_doubles_length(self):
        """Test hex renders two characters per byte."""
        value = generate_random_string(GenerationConstraint(length=16, is_byte_length=True, encoding="hex"))
        assert len(value) == 32
        assert len(binascii.unhexlify(value)) == 16

    def test_raw_returns_bytes(self):
        """Test raw byte lengths return unencoded bytes."""
        value = generate_random_string(GenerationConstraint(length=24, is_byte_length=True, encoding="raw"))
        assert len(value) == 24


class TestErrors:
    """Tests for generation failures."""

    def test_unsupported_encoding(self):
        """Test an unknown encoding is rejected."""
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            generate_random_string(GenerationConstraint(length=10, is_byte_length=False, encoding="rot13"))

        assert "rot13" in str(exc_info.value)
        assert exc_info.value.retryable is False

    def test_random_source_failure_is_retryable(self):
        """Test an OS random failure surfaces as a retryable error."""
        with patch("secrets.token_bytes", side_effect=OSError("no entropy")):
            with pytest.raises(RandomSourceError) as exc_info:
                generate_random_string(GenerationConstraint(length=10, is_byte_length=False, encoding="base64"))

        assert exc_info.value.retryable is True


class TestRandomStringGenerator:
    """Tests for the generator wrapper."""

    def test_generate_returns_single_value(self):
        """Test the generator returns one value under the value key."""
        constraint = GenerationConstraint(length=12, is_byte_length=False, encoding="base64")
        result = RandomStringGenerator().generate(constraint, GeneratorOptions())

        assert list(result) == [VALUE_KEY]
        assert len(result[VALUE_KEY]) == 12
