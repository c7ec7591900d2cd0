#!/usr/bin/env python
"""Command-line interface for kube-secretgen.

This module provides the main CLI entry point. It acts as a host for the
reconciler: it reads a manifest, runs a single reconciliation pass either
offline against an in-memory store or against a cluster, and reports the
outcome.
"""

import sys
from dataclasses import replace
from typing import Any

import click
from icecream import ic

from kube_secretgen import __version__, console
from kube_secretgen.config import GeneratorConfig
from kube_secretgen.exceptions import ClusterConnectionError, SecretGeneratorError
from kube_secretgen.manifest import (
    dump_manifest,
    is_secret_manifest,
    material_from_manifest,
    material_to_manifest,
    parse_manifest_file,
    spec_from_manifest,
)
from kube_secretgen.models import Outcome, ReconcileResult, SecretMaterial
from kube_secretgen.reconcile import Reconciler
from kube_secretgen.store import InMemoryStore, KubernetesStore, MaterialStore


def build_config(
    *,
    secret_length: int | None = None,
    ssh_key_length: int | None = None,
    secret_encoding: str | None = None,
    regenerate_insecure: bool = False,
) -> GeneratorConfig:
    """Build the generator configuration from the environment and CLI options.

    Options that were not given keep the value read from the environment.

    Raises:
        click.ClickException: If an environment variable holds an invalid value.

    """
    try:
        config = GeneratorConfig.from_env()
    except ValueError as err:
        raise click.ClickException(str(err)) from err

    overrides: dict[str, Any] = {
        "secret_length": secret_length,
        "ssh_key_length": ssh_key_length,
        "secret_encoding": secret_encoding,
    }
    if regenerate_insecure:
        overrides["regenerate_insecure"] = True
    return replace(config, **{key: value for key, value in overrides.items() if value is not None})


def _load_manifest(path: str) -> dict[str, Any]:
    doc = parse_manifest_file(path)
    if doc is None:
        raise click.ClickException(f"Manifest file '{path}' is empty")
    return doc


def build_offline_store(doc: dict[str, Any], existing: str | None) -> InMemoryStore:
    """Create an in-memory store seeded with the current state.

    Args:
        doc: The manifest being reconciled.
        existing: Path to the current Secret manifest, if any.

    Returns:
        The seeded store.

    """
    materials: list[SecretMaterial] = []
    if is_secret_manifest(doc):
        materials.append(material_from_manifest(doc))
    if existing:
        materials.append(material_from_manifest(_load_manifest(existing)))
    return InMemoryStore(materials)


def run_reconcile(reconciler: Reconciler, doc: dict[str, Any]) -> ReconcileResult:
    """Run one reconciliation pass for a parsed manifest.

    Args:
        reconciler: The reconciler to use.
        doc: A specification manifest or an annotated Secret manifest.

    Returns:
        The result of the pass.

    Raises:
        click.ClickException: If an annotated Secret does not exist in the store.

    """
    if not is_secret_manifest(doc):
        return reconciler.reconcile(spec_from_manifest(doc))

    requested = material_from_manifest(doc)
    current = reconciler.store.get_material(requested.namespace, requested.name)
    if current is None:
        raise click.ClickException(f"Secret {requested.namespace}/{requested.name} does not exist")
    return reconciler.reconcile_annotated(current)


def show_summary(result: ReconcileResult) -> None:
    """Print a summary panel for a reconciliation result. Values are never shown."""
    items = {"Outcome": result.outcome.value}
    if result.material is not None:
        items["Secret"] = f"{result.material.namespace}/{result.material.name}"
        items["Fields"] = ", ".join(sorted(result.material.values)) or "-"
    if result.error is not None:
        items["Error"] = str(result.error)
    if result.requeue_after is not None:
        items["Retry after"] = f"{result.requeue_after:g}s"
    if result.status_error is not None:
        items["Status"] = result.status_error

    console.newline()
    console.summary_panel("Reconciliation", items, failed=result.outcome is Outcome.FAILED)


def write_output(material: SecretMaterial, output: str | None) -> None:
    rendered = dump_manifest(material_to_manifest(material))
    if output is None:
        click.echo(rendered, nl=False)
        return
    try:
        with open(output, "w") as stream:
            stream.write(rendered)
    except OSError as err:
        raise click.ClickException(f"Cannot write to output path '{output}': {err.strerror}") from err
    console.success(f"Saved to {console.highlight(output)}")


@click.command(help="Generate secret material for Kubernetes secret specifications")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--file", "-f", "manifest", required=False, help="StringSecret, BasicAuth, SSHKeyPair or annotated Secret manifest")
@click.option("--existing", "-e", required=False, help="current Secret manifest (offline mode)")
@click.option("--output", "-o", required=False, help="file to write the rendered Secret to (offline mode)")
@click.option("--apply", required=False, is_flag=True, help="reconcile against the cluster")
@click.option("--context", required=False, help="kubeconfig context to use with --apply")
@click.option("--secret-length", type=int, help="default length of generated strings [env: SECRET_LENGTH, default: 40]")
@click.option(
    "--ssh-key-length", type=int, help="default size of generated ssh keys in bits [env: SSH_KEY_LENGTH, default: 2048]"
)
@click.option("--secret-encoding", help="default encoding of generated strings [env: SECRET_ENCODING, default: base64]")
@click.option(
    "--regenerate-insecure", is_flag=True,
    help="regenerate annotated secrets that are not marked secure [env: REGENERATE_INSECURE]",
)
def cli(
    version: bool,
    debug: bool,
    manifest: str | None,
    existing: str | None,
    output: str | None,
    apply: bool,
    context: str | None,
    secret_length: int | None,
    ssh_key_length: int | None,
    secret_encoding: str | None,
    regenerate_insecure: bool,
) -> None:
    """Process CLI arguments and run a reconciliation pass.

    Args:
        version: Print version and exit.
        debug: Enable debug output.
        manifest: Path to the manifest to reconcile.
        existing: Path to the current Secret manifest (offline mode).
        output: Path to write the rendered Secret to (offline mode).
        apply: Reconcile against the cluster instead of offline.
        context: Kubeconfig context to use with --apply.
        secret_length: Default length of generated strings.
        ssh_key_length: Default ssh key size in bits.
        secret_encoding: Default encoding of generated strings.
        regenerate_insecure: Regenerate annotated secrets not marked secure.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    if manifest is None:
        raise click.UsageError("Missing option '--file' / '-f'.")

    config = build_config(
        secret_length=secret_length,
        ssh_key_length=ssh_key_length,
        secret_encoding=secret_encoding,
        regenerate_insecure=regenerate_insecure,
    )
    ic(config)

    try:
        doc = _load_manifest(manifest)
        store: MaterialStore
        if apply:
            store = KubernetesStore(context=context)
        else:
            store = build_offline_store(doc, existing)
        with console.spinner("Generating secret material..."):
            result = run_reconcile(Reconciler(store, config), doc)
    except ClusterConnectionError as e:
        console.error(f"Cluster connection failed: {e}")
        sys.exit(1)
    except SecretGeneratorError as e:
        raise click.ClickException(str(e)) from None

    show_summary(result)

    if result.outcome is Outcome.FAILED:
        sys.exit(1)

    if not apply and result.outcome is not Outcome.SKIPPED and result.material is not None:
        write_output(result.material, output)


if __name__ == "__main__":
    cli()
