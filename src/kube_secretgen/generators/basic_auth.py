"""Basic-auth credential generation.

Produces a random password, its bcrypt hash and an htpasswd line
("user:hash") suitable for ingress basic authentication.
"""

from typing import NamedTuple

import bcrypt

from kube_secretgen.exceptions import HashGenerationError
from kube_secretgen.generators.base import ValueGenerator
from kube_secretgen.generators.random_string import generate_random_string
from kube_secretgen.models import DEFAULT_USERNAME, GenerationConstraint, GeneratorOptions, SecretKind

FIELD_AUTH = "auth"
FIELD_USERNAME = "username"
FIELD_PASSWORD = "password"

BCRYPT_COST = 10


class BasicAuthCredentials(NamedTuple):
    """A generated basic-auth credential set."""

    username: str
    password: bytes
    password_hash: bytes

    @property
    def combined_credential(self) -> bytes:
        """The htpasswd line for this credential."""
        return self.username.encode() + b":" + self.password_hash

    def as_fields(self) -> dict[str, bytes]:
        return {
            FIELD_USERNAME: self.username.encode(),
            FIELD_PASSWORD: self.password,
            FIELD_AUTH: self.combined_credential,
        }


def hash_password(password: bytes) -> bytes:
    """Hash a password with bcrypt.

    Args:
        password: The password to hash.

    Returns:
        The salted bcrypt hash.

    Raises:
        HashGenerationError: If bcrypt rejects the password or fails.

    """
    try:
        return bcrypt.hashpw(password, bcrypt.gensalt(rounds=BCRYPT_COST))
    except (ValueError, TypeError) as err:
        raise HashGenerationError(f"Could not hash password: {err}") from err


def generate_basic_auth(username: str, constraint: GenerationConstraint) -> BasicAuthCredentials:
    """Generate a basic-auth credential set.

    Args:
        username: The user name; empty means "admin".
        constraint: Constraint for the generated password.

    Returns:
        The generated credentials.

    Raises:
        UnsupportedEncodingError: If the password encoding is not supported.
        RandomSourceError: If the random source fails.
        HashGenerationError: If hashing fails.

    """
    password = generate_random_string(constraint)
    return BasicAuthCredentials(
        username=username or DEFAULT_USERNAME,
        password=password,
        password_hash=hash_password(password),
    )


class BasicAuthGenerator(ValueGenerator):
    """Generates the username, password and auth fields together."""

    kind = SecretKind.BASIC_AUTH

    def generate(self, constraint: GenerationConstraint, options: GeneratorOptions) -> dict[str, bytes]:
        return generate_basic_auth(options.effective_username, constraint).as_fields()
