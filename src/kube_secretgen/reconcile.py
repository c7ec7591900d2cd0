"""Reconciliation orchestrator.

This module provides the Reconciler class, which ties the merge policy,
the ownership guard and the material store together into the create and
update flows run by the host for every specification.
"""

import copy

from icecream import ic

from kube_secretgen import console
from kube_secretgen.annotations import finalize_annotations, is_managed, is_secure, spec_from_annotations
from kube_secretgen.config import GeneratorConfig
from kube_secretgen.exceptions import SecretGeneratorError, StoreError
from kube_secretgen.merge import merge_values
from kube_secretgen.models import Outcome, ReconcileResult, SecretMaterial, SecretSpec
from kube_secretgen.ownership import is_owned_by, object_reference
from kube_secretgen.store import MaterialStore


def _changed_fields(before: dict[str, bytes], after: dict[str, bytes]) -> list[str]:
    return sorted(name for name in after if before.get(name) != after[name])


class Reconciler:
    """Computes and persists secret material for specifications.

    The reconciler keeps no state between calls; the host serializes passes
    for the same specification and may run passes for different ones
    concurrently.

    Attributes:
        store: The material store supplied by the host.
        config: Generation defaults.

    """

    def __init__(self, store: MaterialStore, config: GeneratorConfig | None = None) -> None:
        """Initialize the reconciler.

        Args:
            store: The material store supplied by the host.
            config: Generation defaults; None means the built-in defaults.

        """
        self.store = store
        self.config = config or GeneratorConfig()

    def __repr__(self) -> str:
        return f"Reconciler(store={self.store!r}, config={self.config!r})"

    def _failed(self, err: SecretGeneratorError, material: SecretMaterial | None = None) -> ReconcileResult:
        if err.retryable:
            console.warning(f"Generation failed, retrying in {self.config.retry_backoff:g}s: {err}")
            return ReconcileResult(
                outcome=Outcome.FAILED, material=material, requeue_after=self.config.retry_backoff, error=err
            )
        console.error(f"Reconciliation failed: {err}")
        return ReconcileResult(outcome=Outcome.FAILED, material=material, error=err)

    def _record_status(self, spec: SecretSpec, result: ReconcileResult) -> ReconcileResult:
        """Write the material reference into the spec's status.

        A failure is reported on the result and requeued, but the material
        write that preceded it stands.
        """
        if result.reference is None or spec.status_reference == result.reference:
            return result
        try:
            self.store.set_status_reference(spec, result.reference)
        except StoreError as err:
            console.warning(f"Could not record secret reference in status of {spec.name}: {err}")
            result.status_error = str(err)
            result.requeue_after = self.config.retry_backoff
        return result

    def reconcile(self, spec: SecretSpec) -> ReconcileResult:
        """Run one reconciliation pass for a specification.

        Creates the material when it does not exist yet, otherwise updates
        it if it is owned by the specification's kind.

        Args:
            spec: The specification to reconcile.

        Returns:
            The result of the pass.

        Raises:
            StoreError: If the store fails to read or write material.

        """
        console.action(f"Reconciling {spec.kind.value} {console.highlight(f'{spec.namespace}/{spec.name}')}")
        existing = self.store.get_material(spec.namespace, spec.name)

        if existing is None:
            result = self._create(spec)
        else:
            result = self._update(spec, existing)
        return self._record_status(spec, result)

    def _create(self, spec: SecretSpec) -> ReconcileResult:
        try:
            values = merge_values(spec, {}, self.config)
        except SecretGeneratorError as err:
            return self._failed(err)

        material = SecretMaterial(
            name=spec.name,
            namespace=spec.namespace,
            values=values,
            labels=dict(spec.labels),
            secret_type=spec.secret_type,
        )
        self.store.set_owner_marker(material, spec)
        self.store.create_material(material)
        console.success(f"Created secret with {len(values)} field(s)")
        return ReconcileResult(outcome=Outcome.CREATED, material=material, reference=object_reference(material))

    def _update(self, spec: SecretSpec, existing: SecretMaterial) -> ReconcileResult:
        if not is_owned_by(existing, spec.kind):
            console.info(f"Secret {existing.namespace}/{existing.name} is not owned by a {spec.kind.value}, skipping")
            ic(existing.owner_kinds)
            return ReconcileResult(outcome=Outcome.SKIPPED, material=existing)

        try:
            values = merge_values(spec, existing.values, self.config)
        except SecretGeneratorError as err:
            return self._failed(err, existing)

        changed = _changed_fields(existing.values, values)
        if not changed:
            console.step("Secret is up to date")
            return ReconcileResult(outcome=Outcome.UNCHANGED, material=existing, reference=object_reference(existing))

        target = copy.deepcopy(existing)
        target.values = values
        self.store.update_material(target)
        console.success(f"Updated field(s): {', '.join(changed)}")
        return ReconcileResult(outcome=Outcome.UPDATED, material=target, reference=object_reference(target))

    def reconcile_annotated(self, material: SecretMaterial) -> ReconcileResult:
        """Run one reconciliation pass for a Secret driven by annotations.

        Args:
            material: The annotated Secret as currently persisted.

        Returns:
            The result of the pass.

        Raises:
            StoreError: If the store fails to write the Secret.

        """
        if not is_managed(material):
            ic(material.annotations)
            return ReconcileResult(outcome=Outcome.SKIPPED, material=material)

        console.action(f"Reconciling annotated secret {console.highlight(f'{material.namespace}/{material.name}')}")
        try:
            spec = spec_from_annotations(material)
            force_all = self.config.regenerate_insecure and not is_secure(material)
            values = merge_values(spec, material.values, self.config, force_all=force_all)
        except SecretGeneratorError as err:
            return self._failed(err, material)

        changed = _changed_fields(material.values, values)
        target = copy.deepcopy(material)
        target.values = values
        finalize_annotations(target, spec.kind, changed=bool(changed))

        if target == material:
            console.step("Secret is up to date")
            return ReconcileResult(outcome=Outcome.UNCHANGED, material=material, reference=object_reference(material))

        self.store.update_material(target)
        if changed:
            console.success(f"Updated field(s): {', '.join(changed)}")
        return ReconcileResult(outcome=Outcome.UPDATED, material=target, reference=object_reference(target))
