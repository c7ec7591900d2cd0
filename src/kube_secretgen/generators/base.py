"""Common interface of the value generators."""

from abc import ABC, abstractmethod

from kube_secretgen.models import GenerationConstraint, GeneratorOptions, SecretKind


class ValueGenerator(ABC):
    """A strategy that turns a constraint into freshly generated fields.

    Attributes:
        kind: The specification kind this generator serves.

    """

    kind: SecretKind

    @abstractmethod
    def generate(self, constraint: GenerationConstraint, options: GeneratorOptions) -> dict[str, bytes]:
        """Generate field values.

        Args:
            constraint: Length and encoding constraint of the generated value.
            options: Kind-specific generator attributes.

        Returns:
            Mapping of field name to generated value.

        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r})"
