"""
Rule configuration for attribute comment rules.

A rule section comes in one of two shapes:

Simple, a flat list of names sharing one optional message:

    rule "module_attribute_comments" {
      enabled         = true
      attribute_names = ["instance_type", "count"]
      message         = "Explain why this differs from the default."
    }

Explicit, one entry per attribute with its own message:

    rule "module_attribute_comments" {
      enabled = true
      attribute {
        name    = "instance_type"
        message = "Must explain override."
      }
    }

YAML and TOML configuration use an `attributes` list for the explicit shape.
Both shapes normalize into the same ordered tuple of FieldSpec.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Tuple

from commentcheck.errors import ConfigurationError

DEFAULT_BLOCK_TYPE = "module"

SIMPLE_KEYS = ("attribute_names", "message")
EXPLICIT_KEYS = ("attribute", "attributes")
COMMON_KEYS = ("enabled", "block_type")


@dataclass(frozen=True)
class FieldSpec:
    """An attribute that must carry a comment, with an optional explanation."""
    name: str
    message: str = ""


class ConfigShape(Enum):
    SIMPLE = "simple"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class RuleConfig:
    """Decoded rule section. Build it with one of the constructors."""
    shape: ConfigShape
    fields: Tuple[FieldSpec, ...] = field(default_factory=tuple)
    enabled: bool = True
    block_type: str = DEFAULT_BLOCK_TYPE

    @classmethod
    def from_attribute_names(cls, names: Iterable[str], message: str = "",
                             enabled: bool = True,
                             block_type: str = DEFAULT_BLOCK_TYPE) -> "RuleConfig":
        fields = tuple(FieldSpec(name=name, message=message) for name in names)
        return cls(ConfigShape.SIMPLE, fields, enabled, block_type)

    @classmethod
    def from_attributes(cls, specs: Iterable[FieldSpec], enabled: bool = True,
                        block_type: str = DEFAULT_BLOCK_TYPE) -> "RuleConfig":
        return cls(ConfigShape.EXPLICIT, tuple(specs), enabled, block_type)

    @classmethod
    def empty(cls) -> "RuleConfig":
        return cls(ConfigShape.EXPLICIT)

    @classmethod
    def decode(cls, payload: Optional[Mapping[str, Any]], rule_name: str = "rule") -> "RuleConfig":
        """
        Decode a rule section into a RuleConfig.

        Raises ConfigurationError on unknown keys, wrong types, entries
        without a name, or a section mixing both shapes.
        """
        if payload is None:
            return cls.empty()
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"rule {rule_name!r}: section must be a mapping, "
                                     f"got {type(payload).__name__}")

        unknown = sorted(set(payload) - set(SIMPLE_KEYS + EXPLICIT_KEYS + COMMON_KEYS))
        if unknown:
            raise ConfigurationError(f"rule {rule_name!r}: unsupported option(s) {', '.join(unknown)}")

        enabled = _expect(payload, "enabled", bool, True, rule_name)
        block_type = _expect(payload, "block_type", str, DEFAULT_BLOCK_TYPE, rule_name)

        simple = [key for key in SIMPLE_KEYS if key in payload]
        explicit = [key for key in EXPLICIT_KEYS if key in payload]
        if simple and explicit:
            raise ConfigurationError(
                f"rule {rule_name!r}: use either attribute_names or attribute entries, not both")
        if len(explicit) > 1:
            raise ConfigurationError(
                f"rule {rule_name!r}: use either 'attribute' or 'attributes', not both")

        if explicit:
            entries = payload[explicit[0]]
            if not isinstance(entries, list):
                raise ConfigurationError(f"rule {rule_name!r}: {explicit[0]} must be a list")
            specs = [_decode_entry(entry, index, rule_name) for index, entry in enumerate(entries)]
            return cls.from_attributes(specs, enabled=enabled, block_type=block_type)

        names = payload.get("attribute_names", [])
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ConfigurationError(f"rule {rule_name!r}: attribute_names must be a list of strings")
        message = _expect(payload, "message", str, "", rule_name)
        return cls.from_attribute_names(names, message=message, enabled=enabled,
                                        block_type=block_type)


def _expect(payload: Mapping[str, Any], key: str, kind: type, default: Any, rule_name: str) -> Any:
    value = payload.get(key, default)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ConfigurationError(f"rule {rule_name!r}: {key} must be a {kind.__name__}, "
                                 f"got {type(value).__name__}")
    return value


def _decode_entry(entry: Any, index: int, rule_name: str) -> FieldSpec:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"rule {rule_name!r}: attribute #{index + 1} must be a mapping")
    unknown = sorted(set(entry) - {"name", "message"})
    if unknown:
        raise ConfigurationError(
            f"rule {rule_name!r}: attribute #{index + 1} has unsupported option(s) {', '.join(unknown)}")
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"rule {rule_name!r}: attribute #{index + 1} requires a name")
    message = _expect(entry, "message", str, "", rule_name)
    return FieldSpec(name=name, message=message)
