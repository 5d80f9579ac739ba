"""Type definitions collected from a spec and the rules for emitting them."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


class DuplicateTypeError(ValueError):
    """Raised when two different definitions want the same type name."""


@dataclass
class TypeDefinition:
    """A named type to be generated, with the facts about its schema that matter here."""

    type_name: str
    json_name: str = ""
    go_type: str = ""
    enum_values: dict[str, str] = field(default_factory=dict)
    has_additional_properties: bool = False
    union_elements: tuple[str, ...] = ()

    def equivalent(self, other: TypeDefinition) -> bool:
        """True when both describe the same type, whatever spec name they came from."""
        return (
            self.type_name == other.type_name
            and self.go_type == other.go_type
            and self.enum_values == other.enum_values
            and self.has_additional_properties == other.has_additional_properties
            and tuple(self.union_elements) == tuple(other.union_elements)
        )


@dataclass
class EnumDefinition:
    """An enumerated type and how its constants are named."""

    type_name: str
    enum_values: dict[str, str] = field(default_factory=dict)
    value_wrapper: str = ""
    prefix_type_name: bool = False

    def values(self) -> dict[str, str]:
        """Constant names mapped to their values, prefixed with the type name if required."""
        if not self.prefix_type_name:
            return dict(self.enum_values)
        return {
            self.type_name + name[:1].upper() + name[1:]: value
            for name, value in self.enum_values.items()
        }


def dedupe_types(types: Iterable[TypeDefinition]) -> list[TypeDefinition]:
    """Drop repeated equivalent definitions; raise on conflicting ones."""
    seen: dict[str, TypeDefinition] = {}
    result: list[TypeDefinition] = []
    for typ in types:
        previous = seen.get(typ.type_name)
        if previous is not None:
            if previous.equivalent(typ):
                continue
            raise DuplicateTypeError(
                f"duplicate typename '{typ.type_name}' detected, can't auto-rename, "
                "please use x-go-name to specify your own name for one of them"
            )
        seen[typ.type_name] = typ
        result.append(typ)
    return result


def collect_enums(types: Iterable[TypeDefinition], always_prefix: bool = False) -> list[EnumDefinition]:
    """Build enum definitions, prefixing constants with the type name where names collide."""
    types = list(types)
    enums: list[EnumDefinition] = []
    seen: set[str] = set()
    for typ in types:
        if typ.type_name in seen:
            continue
        seen.add(typ.type_name)
        if typ.enum_values:
            enums.append(
                EnumDefinition(
                    type_name=typ.type_name,
                    enum_values=dict(typ.enum_values),
                    value_wrapper='"' if typ.go_type == "string" else "",
                    prefix_type_name=always_prefix,
                )
            )

    for pos, first in enumerate(enums):
        for second in enums[pos + 1:]:
            second_values = second.values()
            if any(name in second_values for name in first.values()):
                first.prefix_type_name = True
                second.prefix_type_name = True

        for typ in types:
            if typ.enum_values:
                continue
            if typ.type_name in first.enum_values:
                first.prefix_type_name = True

        if first.type_name in first.values():
            first.prefix_type_name = True

    return enums


def security_provider_names(provider_names: Iterable[str]) -> list[str]:
    """Return the distinct security scheme provider names in sorted order."""
    return sorted(set(provider_names))


def additional_property_types(types: Iterable[TypeDefinition]) -> list[TypeDefinition]:
    """Distinct types (by name, first wins) that carry additional properties."""
    seen: set[str] = set()
    result: list[TypeDefinition] = []
    for typ in types:
        if typ.type_name in seen:
            continue
        seen.add(typ.type_name)
        if typ.has_additional_properties:
            result.append(typ)
    return result


def union_types(types: Iterable[TypeDefinition]) -> list[TypeDefinition]:
    """Types that are unions of other types."""
    return [typ for typ in types if typ.union_elements]


def union_and_additional_types(types: Iterable[TypeDefinition]) -> list[TypeDefinition]:
    """Union types that also carry additional properties."""
    return [typ for typ in types if typ.union_elements and typ.has_additional_properties]