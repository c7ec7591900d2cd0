"""kube-secretgen: Generate secret material for Kubernetes secret specifications.

This package reconciles StringSecret, BasicAuth and SSHKeyPair
specifications, as well as annotated Secrets, into Secret objects holding
random strings, bcrypt hashed credentials or RSA key pairs.

Example usage:
    from kube_secretgen import InMemoryStore, Reconciler, SecretKind, SecretSpec
    from kube_secretgen.models import FieldSpec

    reconciler = Reconciler(InMemoryStore())
    result = reconciler.reconcile(
        SecretSpec(kind=SecretKind.RANDOM_STRING, name="db", fields=[FieldSpec("password")])
    )
"""

__version__ = "0.1.0"

from kube_secretgen.cli import cli
from kube_secretgen.config import GeneratorConfig
from kube_secretgen.exceptions import (
    ClusterConnectionError,
    DuplicateFieldError,
    HashGenerationError,
    InvalidLengthFormatError,
    InvalidPrivateKeyPEMError,
    KeyGenerationError,
    ManifestParsingError,
    RandomSourceError,
    SecretGeneratorError,
    SpecificationError,
    StoreError,
    UnsupportedEncodingError,
)
from kube_secretgen.models import Outcome, ReconcileResult, SecretKind, SecretMaterial, SecretSpec
from kube_secretgen.reconcile import Reconciler
from kube_secretgen.store import InMemoryStore, KubernetesStore, MaterialStore

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Classes
    "GeneratorConfig",
    "InMemoryStore",
    "KubernetesStore",
    "MaterialStore",
    "Outcome",
    "ReconcileResult",
    "Reconciler",
    "SecretKind",
    "SecretMaterial",
    "SecretSpec",
    # Exceptions
    "SecretGeneratorError",
    "ClusterConnectionError",
    "DuplicateFieldError",
    "HashGenerationError",
    "InvalidLengthFormatError",
    "InvalidPrivateKeyPEMError",
    "KeyGenerationError",
    "ManifestParsingError",
    "RandomSourceError",
    "SpecificationError",
    "StoreError",
    "UnsupportedEncodingError",
]
