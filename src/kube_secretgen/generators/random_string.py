"""Random string generation.

Random bytes come from the ``secrets`` module and are rendered through the
requested encoding. Without a byte suffix the length is the number of
characters in the rendered value; with one it is the number of random bytes
fed to the encoder.
"""

import base64
import binascii
import math
import secrets
import string
from collections.abc import Callable

from icecream import ic

from kube_secretgen.exceptions import RandomSourceError, UnsupportedEncodingError
from kube_secretgen.generators.base import ValueGenerator
from kube_secretgen.models import GenerationConstraint, GeneratorOptions, SecretKind

RAW_ENCODING = "raw"
VALUE_KEY = "value"

_ALPHANUMERIC = string.ascii_letters + string.digits

# encoder and the number of bits of entropy each output character carries
_ENCODINGS: dict[str, tuple[Callable[[bytes], bytes], int]] = {
    "base64": (base64.b64encode, 6),
    "base64url": (base64.urlsafe_b64encode, 6),
    "base32": (base64.b32encode, 5),
    "hex": (binascii.hexlify, 4),
}

SUPPORTED_ENCODINGS = (*_ENCODINGS, RAW_ENCODING)


def _random_bytes(count: int) -> bytes:
    try:
        return secrets.token_bytes(count)
    except (OSError, NotImplementedError) as err:
        raise RandomSourceError(f"Random source failed: {err}") from err


def _random_alphanumeric(count: int) -> bytes:
    try:
        return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(count)).encode()
    except (OSError, NotImplementedError) as err:
        raise RandomSourceError(f"Random source failed: {err}") from err


def generate_random_string(constraint: GenerationConstraint) -> bytes:
    """Generate a random value for the given constraint.

    Args:
        constraint: Length, byte-length flag and encoding of the value.

    Returns:
        The rendered value. With a byte length its length depends on the
        encoding; otherwise it is exactly constraint.length characters.

    Raises:
        UnsupportedEncodingError: If the encoding is not supported.
        RandomSourceError: If the random source fails.

    """
    encoding = constraint.encoding
    if encoding not in SUPPORTED_ENCODINGS:
        raise UnsupportedEncodingError(
            f"Unsupported encoding '{encoding}'. Supported: {', '.join(SUPPORTED_ENCODINGS)}"
        )

    ic(constraint)

    if encoding == RAW_ENCODING:
        if constraint.is_byte_length:
            return _random_bytes(constraint.length)
        return _random_alphanumeric(constraint.length)

    encoder, bits_per_char = _ENCODINGS[encoding]
    if constraint.is_byte_length:
        return encoder(_random_bytes(constraint.length))

    byte_count = math.ceil(constraint.length * bits_per_char / 8)
    rendered = encoder(_random_bytes(byte_count)).rstrip(b"=")
    return rendered[: constraint.length]


class RandomStringGenerator(ValueGenerator):
    """Generates a single random value per call."""

    kind = SecretKind.RANDOM_STRING

    def generate(self, constraint: GenerationConstraint, options: GeneratorOptions) -> dict[str, bytes]:
        return {VALUE_KEY: generate_random_string(constraint)}
