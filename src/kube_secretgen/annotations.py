"""Annotation grammar for plain Secrets.

A Secret can ask for generated values through annotations instead of a
custom resource. The Secret then acts as its own specification.
"""

from datetime import datetime, timezone

from kube_secretgen.exceptions import SpecificationError
from kube_secretgen.models import FieldSpec, GeneratorOptions, SecretKind, SecretMaterial, SecretSpec

ANNOTATION_PREFIX = "secret-generator.v1.mittwald.de/"

ANNOTATION_AUTOGENERATE = f"{ANNOTATION_PREFIX}autogenerate"
ANNOTATION_GENERATED_AT = f"{ANNOTATION_PREFIX}autogenerate-generated-at"
ANNOTATION_REGENERATE = f"{ANNOTATION_PREFIX}regenerate"
ANNOTATION_SECURE = f"{ANNOTATION_PREFIX}secure"
ANNOTATION_TYPE = f"{ANNOTATION_PREFIX}type"
ANNOTATION_LENGTH = f"{ANNOTATION_PREFIX}length"
ANNOTATION_ENCODING = f"{ANNOTATION_PREFIX}encoding"
ANNOTATION_BASIC_AUTH_USERNAME = f"{ANNOTATION_PREFIX}basic-auth-username"

SECURE_VALUE = "yes"
_REGENERATE_ALL = frozenset({"yes", "true"})

TYPE_KINDS: dict[str, SecretKind] = {
    "string": SecretKind.RANDOM_STRING,
    "basic-auth": SecretKind.BASIC_AUTH,
    "ssh-keypair": SecretKind.SSH_KEYPAIR,
}


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def is_managed(material: SecretMaterial) -> bool:
    """Whether the Secret asks for generated values at all."""
    annotations = material.annotations
    return ANNOTATION_AUTOGENERATE in annotations or annotations.get(ANNOTATION_TYPE, "") in TYPE_KINDS


def is_secure(material: SecretMaterial) -> bool:
    """Whether the values were generated by a secure random source."""
    return material.annotations.get(ANNOTATION_SECURE) == SECURE_VALUE


def spec_from_annotations(material: SecretMaterial) -> SecretSpec:
    """Build a specification from the annotations of a Secret.

    An unknown or missing type falls back to a random string as long as
    fields are listed for generation. The regenerate annotation accepts
    "yes"/"true" for everything or a comma separated list of fields.

    Args:
        material: The annotated Secret.

    Returns:
        The specification the annotations describe.

    Raises:
        SpecificationError: If the Secret is not annotated for generation.

    """
    annotations = material.annotations
    if not is_managed(material):
        raise SpecificationError(f"Secret {material.namespace}/{material.name} is not annotated for generation")

    kind = TYPE_KINDS.get(annotations.get(ANNOTATION_TYPE, ""), SecretKind.RANDOM_STRING)
    fields = [FieldSpec(name) for name in _split_names(annotations.get(ANNOTATION_AUTOGENERATE, ""))]

    force_regenerate = False
    regenerate_fields: tuple[str, ...] | None = None
    regenerate = annotations.get(ANNOTATION_REGENERATE, "").strip()
    if regenerate:
        if regenerate.lower() in _REGENERATE_ALL or kind is not SecretKind.RANDOM_STRING:
            force_regenerate = True
        else:
            regenerate_fields = tuple(_split_names(regenerate))

    return SecretSpec(
        kind=kind,
        name=material.name,
        namespace=material.namespace,
        fields=fields if kind is SecretKind.RANDOM_STRING else [],
        length=annotations.get(ANNOTATION_LENGTH, ""),
        encoding=annotations.get(ANNOTATION_ENCODING, ""),
        force_regenerate=force_regenerate,
        regenerate_fields=regenerate_fields,
        options=GeneratorOptions(username=annotations.get(ANNOTATION_BASIC_AUTH_USERNAME, "")),
        secret_type=material.secret_type,
    )


def type_annotation_for(kind: SecretKind) -> str:
    return next(name for name, candidate in TYPE_KINDS.items() if candidate is kind)


def finalize_annotations(material: SecretMaterial, kind: SecretKind, *, changed: bool, now: datetime | None = None) -> None:
    """Update bookkeeping annotations after a generation pass.

    The regenerate request is consumed, the type is made explicit and the
    values are marked as securely generated. The generation timestamp only
    moves when values actually changed.

    Args:
        material: The Secret being reconciled; modified in place.
        kind: The kind the Secret was reconciled as.
        changed: Whether any value changed in this pass.
        now: Timestamp to record; defaults to the current UTC time.

    """
    annotations = material.annotations
    annotations.pop(ANNOTATION_REGENERATE, None)
    annotations[ANNOTATION_TYPE] = type_annotation_for(kind)
    annotations[ANNOTATION_SECURE] = SECURE_VALUE
    if changed:
        moment = now or datetime.now(timezone.utc)
        annotations[ANNOTATION_GENERATED_AT] = moment.isoformat(timespec="seconds")
