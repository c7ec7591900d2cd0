"""Material stores.

This module defines the interface the reconciler uses to read and write
material, plus two implementations: an in-memory store for offline
rendering and tests, and a store backed by the Kubernetes API.
"""

import base64
import copy
import uuid
from abc import ABC, abstractmethod
from typing import Any

from icecream import ic
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from kube_secretgen import console
from kube_secretgen.exceptions import ClusterConnectionError, StoreError
from kube_secretgen.models import API_GROUP, ObjectReference, OwnerReference, SecretMaterial, SecretSpec
from kube_secretgen.ownership import add_owner_reference


class MaterialStore(ABC):
    """Host interface for persisting material and specification status."""

    @abstractmethod
    def get_material(self, namespace: str, name: str) -> SecretMaterial | None:
        """Fetch material, or None if it does not exist."""

    @abstractmethod
    def create_material(self, material: SecretMaterial) -> None:
        """Persist new material; uid and resource_version are filled in."""

    @abstractmethod
    def update_material(self, material: SecretMaterial) -> None:
        """Replace existing material; resource_version is refreshed."""

    @abstractmethod
    def set_status_reference(self, spec: SecretSpec, reference: ObjectReference) -> None:
        """Record a reference to the material in the specification's status."""

    def set_owner_marker(self, material: SecretMaterial, spec: SecretSpec) -> None:
        """Mark material as owned by the specification."""
        add_owner_reference(material, spec)


class InMemoryStore(MaterialStore):
    """Dictionary-backed store.

    Objects are deep-copied on the way in and out, so callers never share
    state with the store.

    Attributes:
        statuses: Recorded status references keyed by (kind, namespace, name).

    """

    def __init__(self, materials: list[SecretMaterial] | None = None) -> None:
        self._materials: dict[tuple[str, str], SecretMaterial] = {}
        self._version = 0
        self.statuses: dict[tuple[str, str, str], ObjectReference] = {}
        for material in materials or []:
            self._materials[(material.namespace, material.name)] = copy.deepcopy(material)

    def __repr__(self) -> str:
        return f"InMemoryStore(materials={len(self._materials)}, statuses={len(self.statuses)})"

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def get_material(self, namespace: str, name: str) -> SecretMaterial | None:
        material = self._materials.get((namespace, name))
        return copy.deepcopy(material) if material is not None else None

    def create_material(self, material: SecretMaterial) -> None:
        key = (material.namespace, material.name)
        if key in self._materials:
            raise StoreError(f"Secret {material.namespace}/{material.name} already exists")
        material.uid = material.uid or str(uuid.uuid4())
        material.resource_version = self._next_version()
        self._materials[key] = copy.deepcopy(material)

    def update_material(self, material: SecretMaterial) -> None:
        key = (material.namespace, material.name)
        if key not in self._materials:
            raise StoreError(f"Secret {material.namespace}/{material.name} does not exist")
        material.resource_version = self._next_version()
        self._materials[key] = copy.deepcopy(material)

    def set_status_reference(self, spec: SecretSpec, reference: ObjectReference) -> None:
        self.statuses[(spec.kind.value, spec.namespace, spec.name)] = reference
        spec.status_reference = reference


def material_from_v1_secret(secret: Any) -> SecretMaterial:
    """Convert a kubernetes V1Secret into SecretMaterial."""
    metadata = secret.metadata
    return SecretMaterial(
        name=metadata.name,
        namespace=metadata.namespace,
        values={key: base64.b64decode(value) for key, value in (secret.data or {}).items()},
        owner_references=[
            OwnerReference(
                api_version=ref.api_version,
                kind=ref.kind,
                name=ref.name,
                uid=ref.uid or "",
                controller=bool(ref.controller),
            )
            for ref in metadata.owner_references or []
        ],
        annotations=dict(metadata.annotations or {}),
        labels=dict(metadata.labels or {}),
        secret_type=secret.type or "Opaque",
        uid=metadata.uid or "",
        resource_version=metadata.resource_version or "",
    )


def material_to_v1_secret(material: SecretMaterial) -> client.V1Secret:
    """Convert SecretMaterial into a kubernetes V1Secret."""
    return client.V1Secret(
        api_version="v1",
        kind="Secret",
        metadata=client.V1ObjectMeta(
            name=material.name,
            namespace=material.namespace,
            labels=material.labels or None,
            annotations=material.annotations or None,
            resource_version=material.resource_version or None,
            owner_references=[
                client.V1OwnerReference(
                    api_version=ref.api_version,
                    kind=ref.kind,
                    name=ref.name,
                    uid=ref.uid,
                    controller=ref.controller,
                    block_owner_deletion=ref.controller,
                )
                for ref in material.owner_references
            ]
            or None,
        ),
        type=material.secret_type,
        data={key: base64.b64encode(value).decode() for key, value in material.values.items()},
    )


def reference_to_dict(reference: ObjectReference) -> dict[str, str]:
    """Render an ObjectReference the way the API server stores it."""
    return {
        "kind": reference.kind,
        "apiVersion": reference.api_version,
        "name": reference.name,
        "namespace": reference.namespace,
        "uid": reference.uid,
        "resourceVersion": reference.resource_version,
    }


class KubernetesStore(MaterialStore):
    """Store backed by the Kubernetes API.

    Material is kept in core/v1 Secrets; status references are written to
    the status subresource of the specification's custom resource.

    Attributes:
        context: The kubeconfig context in use, or None for in-cluster config.

    """

    def __init__(self, *, context: str | None = None, in_cluster: bool = False) -> None:
        """Load cluster configuration.

        Args:
            context: Kubeconfig context to use; None means the current one.
            in_cluster: Use the service account of the running pod instead
                of a kubeconfig. Must be passed as a keyword argument.

        Raises:
            ClusterConnectionError: If no usable configuration is found.

        """
        try:
            if in_cluster:
                config.load_incluster_config()
                self.context: str | None = None
            else:
                config.load_kube_config(context=context)
                self.context = context
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

        self._core = client.CoreV1Api()
        self._custom = client.CustomObjectsApi()
        console.action(f"Working with {console.highlight(context or 'current')} cluster context")

    def __repr__(self) -> str:
        return f"KubernetesStore(context={self.context!r})"

    @staticmethod
    def _describe(material: SecretMaterial) -> str:
        return f"{material.namespace}/{material.name}"

    def get_material(self, namespace: str, name: str) -> SecretMaterial | None:
        try:
            secret = self._core.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise StoreError(f"Could not read secret {namespace}/{name}: {e.reason}") from e
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        return material_from_v1_secret(secret)

    def create_material(self, material: SecretMaterial) -> None:
        ic(self._describe(material))
        try:
            created = self._core.create_namespaced_secret(
                namespace=material.namespace, body=material_to_v1_secret(material)
            )
        except ApiException as e:
            raise StoreError(f"Could not create secret {self._describe(material)}: {e.reason}") from e
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        material.uid = created.metadata.uid or ""
        material.resource_version = created.metadata.resource_version or ""

    def update_material(self, material: SecretMaterial) -> None:
        ic(self._describe(material))
        try:
            updated = self._core.replace_namespaced_secret(
                name=material.name, namespace=material.namespace, body=material_to_v1_secret(material)
            )
        except ApiException as e:
            raise StoreError(f"Could not update secret {self._describe(material)}: {e.reason}") from e
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        material.resource_version = updated.metadata.resource_version or ""

    def set_status_reference(self, spec: SecretSpec, reference: ObjectReference) -> None:
        body = {"status": {"secret": reference_to_dict(reference)}}
        ic(body)
        try:
            self._custom.patch_namespaced_custom_object_status(
                group=API_GROUP,
                version="v1alpha1",
                namespace=spec.namespace,
                plural=spec.kind.plural,
                name=spec.name,
                body=body,
            )
        except ApiException as e:
            raise StoreError(f"Could not update status of {spec.kind.value} {spec.namespace}/{spec.name}: {e.reason}") from e
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        spec.status_reference = reference
