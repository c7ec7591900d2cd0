"""Field merge and regeneration policy.

Decides per field whether to keep the persisted value, write a static
value or generate a new one, and computes the complete set of values to
persist. Everything here is pure apart from the random, hashing and key
generation calls made for fields selected for generation.
"""

from collections.abc import Mapping

from kube_secretgen.config import GeneratorConfig
from kube_secretgen.exceptions import DuplicateFieldError
from kube_secretgen.generators import generator_for
from kube_secretgen.generators.basic_auth import FIELD_AUTH, FIELD_PASSWORD
from kube_secretgen.generators.length import build_constraint, parse_length
from kube_secretgen.generators.random_string import VALUE_KEY
from kube_secretgen.generators.ssh_keypair import restore_public_key
from kube_secretgen.models import Action, FieldSpec, GenerationConstraint, SecretKind, SecretSpec


def decide_action(existing: bytes | None, *, is_static: bool, force: bool, listed: bool) -> Action:
    """Decide what to do with a single field.

    Static fields are sticky: once set they are only rewritten when listed
    explicitly. Generated fields are produced when missing, listed, or when
    regeneration is forced.

    Args:
        existing: The persisted value, or None if absent.
        is_static: Whether the field comes from static data.
        force: Whether regeneration of all generated fields is forced.
        listed: Whether the field is named in the regenerate list.

    Returns:
        The action to take.

    """
    has_value = bool(existing)
    if is_static:
        if has_value and not listed:
            return Action.KEEP
        return Action.OVERWRITE_STATIC
    if not has_value or listed or force:
        return Action.GENERATE
    return Action.KEEP


def regeneration_request(spec: SecretSpec) -> tuple[bool, frozenset[str]]:
    """Resolve the regenerate flag and list of a specification.

    An explicit list takes precedence over the boolean flag.

    Returns:
        A (force, listed_field_names) tuple.

    """
    if spec.regenerate_fields is not None:
        return False, frozenset(spec.regenerate_fields)
    return spec.force_regenerate, frozenset()


def validate_spec(spec: SecretSpec) -> None:
    """Reject specifications that declare a field name twice.

    Raises:
        DuplicateFieldError: On the first repeated name.

    """
    seen: set[str] = set()
    for name in spec.field_names:
        if name in seen:
            raise DuplicateFieldError(name)
        seen.add(name)


def field_constraint(spec: SecretSpec, field: FieldSpec, config: GeneratorConfig) -> GenerationConstraint:
    """Constraint for a generated field; field values win over spec-level ones."""
    return build_constraint(
        field.length or spec.length,
        field.encoding or spec.encoding,
        fallback_length=config.secret_length,
        fallback_encoding=config.secret_encoding,
    )


def ssh_constraint(spec: SecretSpec, config: GeneratorConfig) -> GenerationConstraint:
    """Constraint for an SSH key; the length is the key size in bits."""
    bits, _ = parse_length(spec.length, config.ssh_key_length)
    return GenerationConstraint(length=bits, is_byte_length=False, encoding="pem")


def plan_actions(
    spec: SecretSpec,
    existing: Mapping[str, bytes],
    *,
    force_all: bool = False,
) -> dict[str, Action]:
    """Compute the action for every field the specification declares.

    Args:
        spec: The specification.
        existing: The persisted values.
        force_all: Force regeneration regardless of the specification.

    Returns:
        Mapping of field name to action, static data first.

    """
    force, listed = regeneration_request(spec)
    force = force or force_all
    actions: dict[str, Action] = {}

    for name in spec.static_data:
        actions[name] = decide_action(existing.get(name), is_static=True, force=force, listed=name in listed)

    match spec.kind:
        case SecretKind.RANDOM_STRING:
            for name in spec.field_names:
                if name not in actions:
                    actions[name] = decide_action(
                        existing.get(name), is_static=False, force=force, listed=name in listed
                    )
        case SecretKind.BASIC_AUTH:
            group = [name for name in (FIELD_AUTH, FIELD_PASSWORD) if name not in actions]
            decisions = [
                decide_action(existing.get(name), is_static=False, force=force, listed=name in listed) for name in group
            ]
            group_action = Action.GENERATE if Action.GENERATE in decisions else Action.KEEP
            for name in group:
                actions[name] = group_action
        case SecretKind.SSH_KEYPAIR:
            private_field = spec.options.effective_private_key_field
            public_field = spec.options.effective_public_key_field
            if private_field not in actions:
                actions[private_field] = decide_action(
                    existing.get(private_field),
                    is_static=False,
                    force=force,
                    listed=private_field in listed or public_field in listed,
                )
                if public_field not in actions:
                    actions[public_field] = actions[private_field]

    return actions


def merge_values(
    spec: SecretSpec,
    existing: Mapping[str, bytes],
    config: GeneratorConfig,
    *,
    force_all: bool = False,
) -> dict[str, bytes]:
    """Compute the complete set of values to persist.

    Values the specification does not declare are carried over unchanged.
    Nothing is returned until every field has been computed, so a failure
    never yields a partial result.

    Args:
        spec: The specification.
        existing: The persisted values (empty when there is no material).
        config: Generation defaults.
        force_all: Force regeneration regardless of the specification.

    Returns:
        The proposed values.

    Raises:
        DuplicateFieldError: If a field name is declared twice.
        InvalidLengthFormatError: If a length string is malformed.
        UnsupportedEncodingError: If an encoding is not supported.
        InvalidPrivateKeyPEMError: If a seed, static or stored private key is invalid.
        RandomSourceError: If the random source fails.
        HashGenerationError: If hashing a password fails.
        KeyGenerationError: If RSA key generation fails.

    """
    validate_spec(spec)
    actions = plan_actions(spec, existing, force_all=force_all)
    values = dict(existing)

    for name, value in spec.static_data.items():
        if actions[name] is Action.OVERWRITE_STATIC:
            values[name] = value.encode()

    generator = generator_for(spec.kind)

    match spec.kind:
        case SecretKind.RANDOM_STRING:
            constraints = {f.name: field_constraint(spec, f, config) for f in spec.fields}
            for name, constraint in constraints.items():
                if actions[name] is Action.GENERATE:
                    values[name] = generator.generate(constraint, spec.options)[VALUE_KEY]

        case SecretKind.BASIC_AUTH:
            constraint = build_constraint(
                spec.length,
                spec.encoding,
                fallback_length=config.secret_length,
                fallback_encoding=config.secret_encoding,
            )
            if Action.GENERATE in (actions.get(FIELD_AUTH), actions.get(FIELD_PASSWORD)):
                generated = generator.generate(constraint, spec.options)
                values.update({k: v for k, v in generated.items() if k not in spec.static_data})

        case SecretKind.SSH_KEYPAIR:
            constraint = ssh_constraint(spec, config)
            private_field = spec.options.effective_private_key_field
            public_field = spec.options.effective_public_key_field
            private_action = actions.get(private_field)
            if private_action is Action.GENERATE:
                generated = generator.generate(constraint, spec.options)
                values.update({k: v for k, v in generated.items() if k not in spec.static_data})
            elif private_action is Action.OVERWRITE_STATIC:
                # a written static private key always brings its own public key
                public_key = restore_public_key(values[private_field])
                if public_field not in spec.static_data:
                    values[public_field] = public_key
            elif values.get(private_field) and not values.get(public_field):
                # a missing public key is repaired, never skipped
                values[public_field] = restore_public_key(values[private_field])

    return values
