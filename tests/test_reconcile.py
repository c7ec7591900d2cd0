"""Tests for reconcile.py module."""

from unittest.mock import patch

import pytest

from kube_secretgen.annotations import ANNOTATION_AUTOGENERATE, ANNOTATION_GENERATED_AT, ANNOTATION_SECURE
from kube_secretgen.config import GeneratorConfig
from kube_secretgen.exceptions import RandomSourceError, StoreError
from kube_secretgen.models import FieldSpec, Outcome, SecretKind, SecretMaterial, SecretSpec
from kube_secretgen.reconcile import Reconciler
from kube_secretgen.store import InMemoryStore


def _spec(**kwargs) -> SecretSpec:
    defaults = {"kind": SecretKind.RANDOM_STRING, "name": "app", "fields": [FieldSpec("password")]}
    defaults.update(kwargs)
    return SecretSpec(**defaults)


class TestReconcileCreate:
    """Tests for creating material."""

    def test_creates_material(self, store, config):
        """Test a missing Secret is created with an owner marker."""
        result = Reconciler(store, config).reconcile(_spec(static_data={"user": "admin"}))

        assert result.outcome is Outcome.CREATED
        persisted = store.get_material("default", "app")
        assert persisted.owner_kinds == ["StringSecret"]
        assert persisted.values["user"] == b"admin"
        assert len(persisted.values["password"]) == config.secret_length

    def test_records_status_reference(self, store, config):
        """Test the status reference points at the created material."""
        spec = _spec()
        result = Reconciler(store, config).reconcile(spec)

        reference = store.statuses[("StringSecret", "default", "app")]
        assert reference == result.reference
        assert reference.uid == store.get_material("default", "app").uid
        assert spec.status_reference == reference

    def test_copies_labels_and_type(self, store, config):
        """Test created material carries labels and type of the spec."""
        Reconciler(store, config).reconcile(_spec(labels={"team": "a"}, secret_type="kubernetes.io/basic-auth"))

        persisted = store.get_material("default", "app")
        assert persisted.labels == {"team": "a"}
        assert persisted.secret_type == "kubernetes.io/basic-auth"


class TestReconcileUpdate:
    """Tests for updating existing material."""

    def test_unchanged_second_pass(self, store, config):
        """Test reconciling twice leaves the material untouched."""
        reconciler = Reconciler(store, config)
        reconciler.reconcile(_spec())
        before = store.get_material("default", "app")

        result = reconciler.reconcile(_spec())

        assert result.outcome is Outcome.UNCHANGED
        assert store.get_material("default", "app") == before

    def test_adds_new_field(self, config, owned_material):
        """Test a newly declared field is generated and old ones are kept."""
        store = InMemoryStore([owned_material(SecretKind.RANDOM_STRING, {"password": b"old"})])
        result = Reconciler(store, config).reconcile(_spec(fields=[FieldSpec("password"), FieldSpec("token")]))

        assert result.outcome is Outcome.UPDATED
        values = store.get_material("default", "app").values
        assert values["password"] == b"old"
        assert values["token"]

    def test_skips_foreign_material(self, config, owned_material):
        """Test material owned by another kind is never changed."""
        foreign = owned_material(SecretKind.BASIC_AUTH, {"password": b""})
        store = InMemoryStore([foreign])

        result = Reconciler(store, config).reconcile(_spec(force_regenerate=True))

        assert result.outcome is Outcome.SKIPPED
        assert store.get_material("default", "app") == foreign
        assert store.statuses == {}

    def test_regenerate_list(self, config, owned_material):
        """Test only listed fields change on update."""
        store = InMemoryStore([owned_material(SecretKind.RANDOM_STRING, {"a": b"old-a", "b": b"old-b"})])
        spec = _spec(fields=[FieldSpec("a"), FieldSpec("b")], regenerate_fields=("a",))

        result = Reconciler(store, config).reconcile(spec)

        assert result.outcome is Outcome.UPDATED
        values = store.get_material("default", "app").values
        assert values["a"] != b"old-a"
        assert values["b"] == b"old-b"


class TestReconcileFailures:
    """Tests for failed passes."""

    def test_non_retryable_error(self, store, config):
        """Test an input error fails without requeue and without writes."""
        result = Reconciler(store, config).reconcile(_spec(fields=[FieldSpec("a", length="abc")]))

        assert result.outcome is Outcome.FAILED
        assert result.requeue is False
        assert store.get_material("default", "app") is None

    def test_retryable_error_requeues(self, store, config):
        """Test a random source failure requeues after the backoff."""
        with patch("secrets.token_bytes", side_effect=OSError("no entropy")):
            result = Reconciler(store, config).reconcile(_spec())

        assert result.outcome is Outcome.FAILED
        assert result.requeue_after == config.retry_backoff
        assert isinstance(result.error, RandomSourceError)
        assert store.get_material("default", "app") is None

    def test_status_failure_keeps_material(self, store, config):
        """Test a failed status write is reported and the material stays."""
        with patch.object(store, "set_status_reference", side_effect=StoreError("conflict")):
            result = Reconciler(store, config).reconcile(_spec())

        assert result.outcome is Outcome.CREATED
        assert result.status_error == "conflict"
        assert result.requeue_after == config.retry_backoff
        assert store.get_material("default", "app") is not None

    def test_store_error_propagates(self, store, config):
        """Test persistence errors are left to the host."""
        with patch.object(store, "create_material", side_effect=StoreError("denied")):
            with pytest.raises(StoreError):
                Reconciler(store, config).reconcile(_spec())


class TestReconcileAnnotated:
    """Tests for annotation driven Secrets."""

    def test_generates_annotated_fields(self, config):
        """Test listed fields are generated and bookkeeping annotations set."""
        material = SecretMaterial(name="web", annotations={ANNOTATION_AUTOGENERATE: "password"})
        store = InMemoryStore([material])

        result = Reconciler(store, config).reconcile_annotated(store.get_material("default", "web"))

        assert result.outcome is Outcome.UPDATED
        persisted = store.get_material("default", "web")
        assert len(persisted.values["password"]) == config.secret_length
        assert persisted.annotations[ANNOTATION_SECURE] == "yes"
        assert ANNOTATION_GENERATED_AT in persisted.annotations

    def test_second_pass_unchanged(self, config):
        """Test a finalized Secret is left alone."""
        store = InMemoryStore([SecretMaterial(name="web", annotations={ANNOTATION_AUTOGENERATE: "password"})])
        reconciler = Reconciler(store, config)
        reconciler.reconcile_annotated(store.get_material("default", "web"))

        result = reconciler.reconcile_annotated(store.get_material("default", "web"))

        assert result.outcome is Outcome.UNCHANGED

    def test_unmanaged_secret_skipped(self, config):
        """Test a Secret without annotations is skipped."""
        result = Reconciler(InMemoryStore(), config).reconcile_annotated(SecretMaterial(name="plain"))
        assert result.outcome is Outcome.SKIPPED

    def test_regenerate_insecure(self):
        """Test values not marked secure are regenerated when configured."""
        material = SecretMaterial(
            name="web", values={"password": b"weak"}, annotations={ANNOTATION_AUTOGENERATE: "password"}
        )
        store = InMemoryStore([material])
        config = GeneratorConfig(regenerate_insecure=True)

        Reconciler(store, config).reconcile_annotated(store.get_material("default", "web"))

        assert store.get_material("default", "web").values["password"] != b"weak"
