"""Value generators subpackage.

This package contains the length parser and the three generators. The set
of kinds is closed; ``generator_for`` maps each kind to its generator.
"""

from kube_secretgen.generators.base import ValueGenerator
from kube_secretgen.generators.basic_auth import BasicAuthGenerator, generate_basic_auth, hash_password
from kube_secretgen.generators.length import build_constraint, parse_length, resolve_encoding
from kube_secretgen.generators.random_string import RandomStringGenerator, generate_random_string
from kube_secretgen.generators.ssh_keypair import (
    SSHKeypairGenerator,
    generate_ssh_keypair,
    private_key_from_pem,
    restore_public_key,
)
from kube_secretgen.models import SecretKind


def generator_for(kind: SecretKind) -> ValueGenerator:
    """Return the generator for a specification kind.

    Args:
        kind: The specification kind.

    Returns:
        A generator instance serving that kind.

    """
    match kind:
        case SecretKind.RANDOM_STRING:
            return RandomStringGenerator()
        case SecretKind.BASIC_AUTH:
            return BasicAuthGenerator()
        case SecretKind.SSH_KEYPAIR:
            return SSHKeypairGenerator()


__all__ = [
    "generator_for",
    "ValueGenerator",
    # length
    "parse_length",
    "resolve_encoding",
    "build_constraint",
    # random string
    "RandomStringGenerator",
    "generate_random_string",
    # basic auth
    "BasicAuthGenerator",
    "generate_basic_auth",
    "hash_password",
    # ssh
    "SSHKeypairGenerator",
    "generate_ssh_keypair",
    "private_key_from_pem",
    "restore_public_key",
]
