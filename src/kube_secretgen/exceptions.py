"""Custom exceptions for kube-secretgen.

This module defines the exception hierarchy used throughout the application.
Every error carries a ``retryable`` flag so the reconciler can tell the host
whether to requeue the request after a backoff or to give up on it.
"""


class SecretGeneratorError(Exception):
    """Base exception for all kube-secretgen errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all kube-secretgen errors with a single
    except clause if desired.
    """

    retryable: bool = False


class SpecificationError(SecretGeneratorError):
    """Raised when a specification is malformed.

    This can occur when:
    - The manifest kind is unknown and cannot be inferred from its spec
    - A required attribute (name, spec) is missing
    - An attribute has the wrong type
    """


class ManifestParsingError(SpecificationError):
    """Raised when parsing a manifest file fails.

    This can occur when:
    - The file does not exist
    - The file is not valid YAML
    - The YAML does not represent a single Kubernetes resource
    """


class DuplicateFieldError(SpecificationError):
    """Raised when a field name is declared more than once in a field list."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Field '{name}' is declared more than once")
        self.name = name


class InvalidLengthFormatError(SecretGeneratorError):
    """Raised when a length string cannot be parsed.

    The fallback length is attached so callers may decide to continue
    with the default instead of aborting.
    """

    def __init__(self, value: str, fallback: int, reason: str = "expected an integer with an optional 'b' suffix") -> None:
        super().__init__(f"Invalid length '{value}': {reason}")
        self.value = value
        self.fallback = fallback


class UnsupportedEncodingError(SecretGeneratorError):
    """Raised when a random string is requested in an unknown encoding."""


class InvalidPrivateKeyPEMError(SecretGeneratorError):
    """Raised when a supplied or stored private key is not a PKCS#1 RSA PEM.

    Generation is blocked instead of silently replacing the key, so a key
    the caller meant to keep is never discarded.
    """


class RandomSourceError(SecretGeneratorError):
    """Raised when the operating system random source fails."""

    retryable = True


class HashGenerationError(SecretGeneratorError):
    """Raised when hashing a generated password fails."""

    retryable = True


class KeyGenerationError(SecretGeneratorError):
    """Raised when RSA key generation or serialization fails."""

    retryable = True


class StoreError(SecretGeneratorError):
    """Raised when the material store rejects a read or write.

    Persistence errors are the host's to retry; the reconciler never
    swallows them.
    """

    retryable = True


class ClusterConnectionError(StoreError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """
