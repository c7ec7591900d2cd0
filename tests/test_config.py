"""Tests for config.py module."""

import pytest

from kube_secretgen.config import GeneratorConfig


class TestGeneratorConfig:
    """Tests for generator defaults."""

    def test_defaults(self):
        """Test built-in defaults."""
        config = GeneratorConfig()

        assert config.secret_length == 40
        assert config.ssh_key_length == 2048
        assert config.secret_encoding == "base64"
        assert config.regenerate_insecure is False
        assert config.retry_backoff == 30.0

    def test_from_env(self, monkeypatch):
        """Test environment variables override the defaults."""
        monkeypatch.setenv("SECRET_LENGTH", "64")
        monkeypatch.setenv("SSH_KEY_LENGTH", "4096")
        monkeypatch.setenv("SECRET_ENCODING", "hex")
        monkeypatch.setenv("REGENERATE_INSECURE", "true")
        monkeypatch.setenv("RETRY_BACKOFF", "5")

        config = GeneratorConfig.from_env()

        assert config == GeneratorConfig(
            secret_length=64, ssh_key_length=4096, secret_encoding="hex", regenerate_insecure=True, retry_backoff=5.0
        )

    def test_from_env_unset(self, monkeypatch):
        """Test unset variables keep the defaults."""
        for name in ("SECRET_LENGTH", "SSH_KEY_LENGTH", "SECRET_ENCODING", "REGENERATE_INSECURE", "RETRY_BACKOFF"):
            monkeypatch.delenv(name, raising=False)

        assert GeneratorConfig.from_env() == GeneratorConfig()

    def test_from_env_invalid_integer(self, monkeypatch):
        """Test a non-numeric length is rejected with the variable name."""
        monkeypatch.setenv("SECRET_LENGTH", "long")

        with pytest.raises(ValueError) as exc_info:
            GeneratorConfig.from_env()

        assert "SECRET_LENGTH" in str(exc_info.value)

    def test_frozen(self):
        """Test configurations cannot be changed after creation."""
        config = GeneratorConfig()
        with pytest.raises(AttributeError):
            config.secret_length = 10
