"""Data models for kube-secretgen.

This module provides type-safe data structures for specifications,
persisted secret material and reconciliation results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from kube_secretgen.exceptions import SecretGeneratorError

API_GROUP = "secretgenerator.mittwald.de"
API_VERSION = f"{API_GROUP}/v1alpha1"

DEFAULT_USERNAME = "admin"
DEFAULT_PRIVATE_KEY_FIELD = "ssh-privatekey"
DEFAULT_PUBLIC_KEY_FIELD = "ssh-publickey"


class SecretKind(str, Enum):
    """Supported specification kinds.

    The value is the custom resource kind, which is also the kind written
    into the owner reference of generated material.
    """

    RANDOM_STRING = "StringSecret"
    BASIC_AUTH = "BasicAuth"
    SSH_KEYPAIR = "SSHKeyPair"

    @property
    def plural(self) -> str:
        """The lowercase plural resource name used by the API server."""
        return f"{self.value.lower()}s"


class Action(str, Enum):
    """What the merge policy does with a single field."""

    KEEP = "keep"
    OVERWRITE_STATIC = "overwrite-static"
    GENERATE = "generate"


class Outcome(str, Enum):
    """Result of a single reconciliation pass."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class OwnerReference(NamedTuple):
    """An ownership marker on a material object."""

    api_version: str
    kind: str
    name: str
    uid: str = ""
    controller: bool = True


class ObjectReference(NamedTuple):
    """Locator of persisted material, recorded in specification status."""

    name: str
    namespace: str
    uid: str = ""
    resource_version: str = ""
    kind: str = "Secret"
    api_version: str = "v1"


@dataclass(frozen=True, slots=True)
class GenerationConstraint:
    """Parsed generation constraint for a single value.

    Attributes:
        length: Number of characters, or raw bytes when is_byte_length is set.
        is_byte_length: Whether length counts raw random bytes before encoding.
        encoding: Name of the encoding the random bytes are rendered in.

    """

    length: int
    is_byte_length: bool
    encoding: str


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """A generated field declared by a specification.

    Empty length or encoding means the spec-level value applies.
    """

    name: str
    length: str = ""
    encoding: str = ""


@dataclass(frozen=True, slots=True)
class GeneratorOptions:
    """Kind-specific generator attributes.

    Attributes:
        username: BasicAuth user name; empty means "admin".
        private_key: SSHKeyPair seed key (PEM) used instead of a fresh key.
        private_key_field: Field that stores the SSH private key.
        public_key_field: Field that stores the SSH public key.

    """

    username: str = ""
    private_key: str = ""
    private_key_field: str = ""
    public_key_field: str = ""

    @property
    def effective_username(self) -> str:
        return self.username or DEFAULT_USERNAME

    @property
    def effective_private_key_field(self) -> str:
        return self.private_key_field or DEFAULT_PRIVATE_KEY_FIELD

    @property
    def effective_public_key_field(self) -> str:
        return self.public_key_field or DEFAULT_PUBLIC_KEY_FIELD


@dataclass(slots=True)
class SecretSpec:
    """Desired state of a piece of secret material.

    Attributes:
        kind: Which generator produces the material.
        name: Name of the specification, reused for the material.
        namespace: Namespace of the specification and the material.
        fields: Generated fields, in declaration order.
        length: Spec-level length used when a field declares none.
        encoding: Spec-level encoding used when a field declares none.
        static_data: Values written verbatim instead of being generated.
        force_regenerate: Regenerate every generated field.
        regenerate_fields: Explicit fields to regenerate; overrides force_regenerate.
        options: Kind-specific generator attributes.
        secret_type: Kubernetes secret type of the material.
        uid: UID of the specification object, used for owner references.
        labels: Labels copied onto created material.
        status_reference: Reference currently recorded in the status.

    """

    kind: SecretKind
    name: str
    namespace: str = "default"
    fields: list[FieldSpec] = field(default_factory=list)
    length: str = ""
    encoding: str = ""
    static_data: dict[str, str] = field(default_factory=dict)
    force_regenerate: bool = False
    regenerate_fields: tuple[str, ...] | None = None
    options: GeneratorOptions = field(default_factory=GeneratorOptions)
    secret_type: str = "Opaque"
    uid: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    status_reference: ObjectReference | None = None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(slots=True)
class SecretMaterial:
    """Persisted secret material.

    Attributes:
        name: Name of the material object.
        namespace: Namespace of the material object.
        values: Field name to raw value.
        owner_references: Ownership markers.
        annotations: Object annotations.
        labels: Object labels.
        secret_type: Kubernetes secret type.
        uid: UID assigned by the store.
        resource_version: Resource version assigned by the store.

    """

    name: str
    namespace: str = "default"
    values: dict[str, bytes] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    secret_type: str = "Opaque"
    uid: str = ""
    resource_version: str = ""

    @property
    def owner_kinds(self) -> list[str]:
        return [ref.kind for ref in self.owner_references]


@dataclass(slots=True)
class ReconcileResult:
    """What a reconciliation pass did and what the host should do next.

    Attributes:
        outcome: The outcome of the pass.
        material: The material as persisted (or as found, when skipped).
        reference: Reference to the persisted material.
        requeue_after: Seconds after which the host should retry, if any.
        error: The engine error that failed the pass.
        status_error: Message of a failed status update; material is kept.

    """

    outcome: Outcome
    material: SecretMaterial | None = None
    reference: ObjectReference | None = None
    requeue_after: float | None = None
    error: SecretGeneratorError | None = None
    status_error: str | None = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None
