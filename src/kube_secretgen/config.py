"""Generator defaults.

Defaults are an explicit value passed to the reconciler rather than process
globals, so every caller (and every test) can use its own.
"""

import os
from dataclasses import dataclass

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ValueError(f"Environment variable {name} must be an integer, got '{raw}'") from err


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Fallback values for generation, overridable per field.

    Attributes:
        secret_length: Length used when a field declares none.
        ssh_key_length: RSA key size in bits used when a spec declares none.
        secret_encoding: Encoding used when a field declares none.
        regenerate_insecure: Regenerate annotated secrets not marked secure.
        retry_backoff: Seconds the host should wait before retrying a
            failed generation.

    """

    secret_length: int = 40
    ssh_key_length: int = 2048
    secret_encoding: str = "base64"
    regenerate_insecure: bool = False
    retry_backoff: float = 30.0

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a configuration from environment variables.

        Reads SECRET_LENGTH, SSH_KEY_LENGTH, SECRET_ENCODING,
        REGENERATE_INSECURE and RETRY_BACKOFF; unset variables keep
        the defaults.

        Returns:
            The resulting GeneratorConfig.

        Raises:
            ValueError: If a numeric variable is not an integer.

        """
        defaults = cls()
        return cls(
            secret_length=_env_int("SECRET_LENGTH", defaults.secret_length),
            ssh_key_length=_env_int("SSH_KEY_LENGTH", defaults.ssh_key_length),
            secret_encoding=os.environ.get("SECRET_ENCODING") or defaults.secret_encoding,
            regenerate_insecure=_env_bool("REGENERATE_INSECURE", default=defaults.regenerate_insecure),
            retry_backoff=float(_env_int("RETRY_BACKOFF", int(defaults.retry_backoff))),
        )
