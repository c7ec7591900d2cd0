"""Ownership markers and status references.

Material may only be changed by the specification kind that created it.
The marker is a controller owner reference naming that kind.
"""

from kube_secretgen.models import API_VERSION, ObjectReference, OwnerReference, SecretKind, SecretMaterial, SecretSpec


def is_owned_by(material: SecretMaterial, kind: SecretKind) -> bool:
    """Check whether any ownership marker names the given kind.

    Args:
        material: The persisted material.
        kind: The specification kind currently reconciling.

    Returns:
        True if the material may be mutated by this kind.

    """
    return any(ref.kind == kind.value for ref in material.owner_references)


def owner_reference_for(spec: SecretSpec) -> OwnerReference:
    """Build the controller owner reference pointing at a specification."""
    return OwnerReference(api_version=API_VERSION, kind=spec.kind.value, name=spec.name, uid=spec.uid)


def add_owner_reference(material: SecretMaterial, spec: SecretSpec) -> None:
    """Attach the specification's owner reference unless it is already present."""
    reference = owner_reference_for(spec)
    if reference not in material.owner_references:
        material.owner_references.append(reference)


def object_reference(material: SecretMaterial) -> ObjectReference:
    """Return the reference recorded in specification status for the material."""
    return ObjectReference(
        name=material.name,
        namespace=material.namespace,
        uid=material.uid,
        resource_version=material.resource_version,
    )
