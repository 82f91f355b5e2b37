"""Pydantic models for prefix records.

This module defines the single entity handled by the storage layer, a
network prefix together with its opaque allocation payload, and the
composite key that identifies it.
"""

from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, Field, JsonValue, ValidationError, field_validator

from prefixstore.errors import InvalidPrefixError

DEFAULT_NAMESPACE = "root"


class PrefixKey(NamedTuple):
    """Identity of a stored prefix: unique across the whole store."""

    cidr: str
    namespace: str


class Prefix(BaseModel):
    """A network prefix record.

    The storage layer owns ``version`` and the identity fields. Everything
    under ``payload`` belongs to the caller and is copied, never inspected.

    Attributes:
        cidr: Canonical textual form of the block, e.g. "10.0.0.0/16"
        parent_cidr: The block this prefix was allocated from, if any
        namespace: Logical partition the prefix lives in
        version: Optimistic concurrency counter, bumped on every update
        payload: Opaque allocation state (child bitsets, IP bookkeeping, ...)

    Example:
        >>> prefix = Prefix(cidr="10.0.0.0/16", namespace="tenant-a")
        >>> prefix.key
        PrefixKey(cidr='10.0.0.0/16', namespace='tenant-a')
    """

    cidr: str = ""
    parent_cidr: Optional[str] = None
    namespace: str = Field(default=DEFAULT_NAMESPACE, max_length=255)
    version: int = Field(default=0, ge=0)
    payload: dict[str, JsonValue] = Field(default_factory=dict)

    @field_validator("namespace", mode="before")
    @classmethod
    def default_namespace(cls, value: Any) -> Any:
        """Map an unset namespace to the default namespace.

        Args:
            value: The raw namespace value

        Returns:
            The namespace, or DEFAULT_NAMESPACE when None or empty
        """
        if value is None or value == "":
            return DEFAULT_NAMESPACE
        return value

    @property
    def key(self) -> PrefixKey:
        """Composite identity key of this prefix."""
        return PrefixKey(self.cidr, self.namespace)

    def validated_copy(self, **update: Any) -> "Prefix":
        """Return an independent copy with ``update`` applied, re-validated.

        model_copy() and attribute assignment skip validation, so a payload
        mutated after construction may hold values that are not JSON. This
        rebuilds the record through the validators, which also copies every
        nested container.

        Raises:
            InvalidPrefixError: If a field, typically the payload, is invalid
        """
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        fields.update(update)
        try:
            return type(self).model_validate(fields)
        except ValidationError as exc:
            raise InvalidPrefixError(f"Prefix {self.cidr!r} cannot be stored: {exc}") from exc

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored by relational backends.

        Returns:
            JSON-compatible dictionary holding every field
        """
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Prefix":
        """Rebuild a prefix from a stored JSON document.

        Args:
            document: Dictionary produced by to_document()

        Returns:
            A new Prefix instance
        """
        return cls.model_validate(document)

    def __str__(self) -> str:
        return f"{self.cidr}@{self.namespace} (v{self.version})"
