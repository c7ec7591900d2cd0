"""Manifest parsing and rendering.

This module reads specification and Secret manifests from YAML and renders
material back into Secret manifests.
"""

import base64
import binascii
from typing import Any

import yaml

from kube_secretgen.exceptions import DuplicateFieldError, ManifestParsingError, SpecificationError
from kube_secretgen.models import (
    FieldSpec,
    GeneratorOptions,
    ObjectReference,
    OwnerReference,
    SecretKind,
    SecretMaterial,
    SecretSpec,
)

SECRET_KIND = "Secret"


def parse_manifest_file(manifest_path: str) -> dict[str, Any] | None:
    """Parse a YAML manifest file.

    Args:
        manifest_path: Path to the manifest file.

    Returns:
        The parsed YAML document as a dictionary, or None if empty.

    Raises:
        ManifestParsingError: If the file does not exist, contains multiple
            documents, contains malformed YAML, or is not a YAML mapping.

    """
    try:
        with open(manifest_path) as stream:
            docs = [doc for doc in yaml.safe_load_all(stream) if doc is not None]
            if len(docs) > 1:
                raise ManifestParsingError(
                    f"File '{manifest_path}' contains multiple YAML documents. Only single document files are supported."
                )
            if not docs:
                return None
            result = docs[0]
            if not isinstance(result, dict):
                raise ManifestParsingError(
                    f"File '{manifest_path}' does not contain a valid YAML mapping. "
                    "Expected a Kubernetes resource document."
                )
            return result
    except FileNotFoundError as err:
        raise ManifestParsingError(f"Manifest file '{manifest_path}' does not exist") from err
    except yaml.YAMLError as err:
        raise ManifestParsingError(f"Manifest file '{manifest_path}' contains malformed YAML: {err}") from err


def is_secret_manifest(doc: dict[str, Any]) -> bool:
    return doc.get("kind") == SECRET_KIND


def _metadata(doc: dict[str, Any]) -> dict[str, Any]:
    metadata = doc.get("metadata")
    if not isinstance(metadata, dict) or not metadata.get("name"):
        raise SpecificationError("Manifest has no metadata.name")
    return metadata


def infer_kind(kind_name: str, spec: dict[str, Any]) -> SecretKind:
    """Determine the specification kind of a manifest.

    An explicit, known kind wins. Otherwise the kind is inferred from the
    spec: a username means BasicAuth, a field list means StringSecret and
    key settings mean SSHKeyPair.

    Raises:
        SpecificationError: If no kind can be determined.

    """
    try:
        return SecretKind(kind_name)
    except ValueError:
        pass

    if "username" in spec:
        return SecretKind.BASIC_AUTH
    if "fields" in spec or "fieldNames" in spec:
        return SecretKind.RANDOM_STRING
    if {"privateKey", "privateKeyField", "publicKeyField"} & spec.keys():
        return SecretKind.SSH_KEYPAIR
    raise SpecificationError(f"Cannot determine the secret kind of manifest with kind '{kind_name}'")


def _ensure_unique(names: list[str]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateFieldError(name)
        seen.add(name)


def _fields_from_spec(spec: dict[str, Any]) -> list[FieldSpec]:
    """Combine the flat fieldNames list with the detailed fields list.

    A name in both lists takes its length and encoding from the detailed
    entry. A name repeated within one list is an error.
    """
    flat = [str(name) for name in spec.get("fieldNames") or []]
    detailed = spec.get("fields") or []
    if not isinstance(detailed, list):
        raise SpecificationError("spec.fields must be a list")

    detailed_fields: list[FieldSpec] = []
    for entry in detailed:
        if not isinstance(entry, dict) or not entry.get("fieldName"):
            raise SpecificationError("Every entry of spec.fields needs a fieldName")
        detailed_fields.append(
            FieldSpec(
                name=str(entry["fieldName"]),
                length=str(entry.get("length") or ""),
                encoding=str(entry.get("encoding") or ""),
            )
        )

    _ensure_unique(flat)
    _ensure_unique([f.name for f in detailed_fields])

    overrides = {f.name: f for f in detailed_fields}
    fields = [overrides.pop(name, FieldSpec(name)) for name in flat]
    return fields + list(overrides.values())


def _regenerate_fields(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return tuple(name.strip() for name in value.split(",") if name.strip())
    if isinstance(value, list):
        return tuple(str(name) for name in value)
    raise SpecificationError("spec.regenerate must be a list or a comma separated string")


def _force_regenerate(spec: dict[str, Any]) -> bool:
    """Read the force flag; forceRecreate is accepted as an older spelling."""
    value = spec["forceRegenerate"] if "forceRegenerate" in spec else spec.get("forceRecreate")
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SpecificationError(f"spec.forceRegenerate must be a boolean, got '{value}'")
    return value


def _status_reference(doc: dict[str, Any]) -> ObjectReference | None:
    secret = (doc.get("status") or {}).get("secret")
    if not secret:
        return None
    return ObjectReference(
        name=secret.get("name", ""),
        namespace=secret.get("namespace", ""),
        uid=secret.get("uid", ""),
        resource_version=secret.get("resourceVersion", ""),
        kind=secret.get("kind", SECRET_KIND),
        api_version=secret.get("apiVersion", "v1"),
    )


def spec_from_manifest(doc: dict[str, Any]) -> SecretSpec:
    """Build a specification from a StringSecret, BasicAuth or SSHKeyPair manifest.

    Args:
        doc: The parsed manifest.

    Returns:
        The specification.

    Raises:
        SpecificationError: If the manifest is malformed or its kind unknown.
        DuplicateFieldError: If a field list repeats a name.

    """
    metadata = _metadata(doc)
    spec = doc.get("spec") or {}
    if not isinstance(spec, dict):
        raise SpecificationError("Manifest spec must be a mapping")

    kind = infer_kind(str(doc.get("kind", "")), spec)

    return SecretSpec(
        kind=kind,
        name=str(metadata["name"]),
        namespace=str(metadata.get("namespace") or "default"),
        fields=_fields_from_spec(spec) if kind is SecretKind.RANDOM_STRING else [],
        length=str(spec.get("length") or ""),
        encoding=str(spec.get("encoding") or ""),
        static_data={str(k): str(v) for k, v in (spec.get("data") or {}).items()},
        force_regenerate=_force_regenerate(spec),
        regenerate_fields=_regenerate_fields(spec.get("regenerate")),
        options=GeneratorOptions(
            username=str(spec.get("username") or ""),
            private_key=str(spec.get("privateKey") or ""),
            private_key_field=str(spec.get("privateKeyField") or ""),
            public_key_field=str(spec.get("publicKeyField") or ""),
        ),
        secret_type=str(spec.get("type") or "Opaque"),
        uid=str(metadata.get("uid") or ""),
        labels={str(k): str(v) for k, v in (metadata.get("labels") or {}).items()},
        status_reference=_status_reference(doc),
    )


def material_from_manifest(doc: dict[str, Any]) -> SecretMaterial:
    """Build material from a Secret manifest.

    Values in stringData take precedence over data, as on the API server.

    Raises:
        SpecificationError: If the manifest is not a Secret or has no name.
        ManifestParsingError: If a data value is not valid base64.

    """
    if not is_secret_manifest(doc):
        raise SpecificationError(f"Expected a Secret manifest, got kind '{doc.get('kind')}'")
    metadata = _metadata(doc)

    values: dict[str, bytes] = {}
    for key, value in (doc.get("data") or {}).items():
        try:
            values[str(key)] = base64.b64decode(str(value or ""), validate=True)
        except binascii.Error as err:
            raise ManifestParsingError(f"Secret data '{key}' is not valid base64") from err
    for key, value in (doc.get("stringData") or {}).items():
        values[str(key)] = str(value).encode()

    return SecretMaterial(
        name=str(metadata["name"]),
        namespace=str(metadata.get("namespace") or "default"),
        values=values,
        owner_references=[
            OwnerReference(
                api_version=ref.get("apiVersion", ""),
                kind=ref.get("kind", ""),
                name=ref.get("name", ""),
                uid=ref.get("uid", ""),
                controller=bool(ref.get("controller", False)),
            )
            for ref in metadata.get("ownerReferences") or []
        ],
        annotations={str(k): str(v) for k, v in (metadata.get("annotations") or {}).items()},
        labels={str(k): str(v) for k, v in (metadata.get("labels") or {}).items()},
        secret_type=str(doc.get("type") or "Opaque"),
        uid=str(metadata.get("uid") or ""),
        resource_version=str(metadata.get("resourceVersion") or ""),
    )


def material_to_manifest(material: SecretMaterial) -> dict[str, Any]:
    """Render material as a Secret manifest with base64 encoded data."""
    metadata: dict[str, Any] = {"name": material.name, "namespace": material.namespace}
    if material.labels:
        metadata["labels"] = dict(material.labels)
    if material.annotations:
        metadata["annotations"] = dict(material.annotations)
    if material.owner_references:
        metadata["ownerReferences"] = [
            {
                "apiVersion": ref.api_version,
                "kind": ref.kind,
                "name": ref.name,
                "uid": ref.uid,
                "controller": ref.controller,
                "blockOwnerDeletion": ref.controller,
            }
            for ref in material.owner_references
        ]

    return {
        "apiVersion": "v1",
        "kind": SECRET_KIND,
        "metadata": metadata,
        "type": material.secret_type,
        "data": {key: base64.b64encode(value).decode() for key, value in material.values.items()},
    }


def dump_manifest(doc: dict[str, Any]) -> str:
    return yaml.safe_dump(doc, sort_keys=False)
