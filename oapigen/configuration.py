"""Code generation settings and their YAML representation."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Callable


class ConfigurationError(ValueError):
    """Raised when a configuration is malformed or invalid."""


def _opt(yaml_key: str, kind: str, **kwargs: Any) -> Any:
    return field(metadata={"yaml": yaml_key, "kind": kind}, **kwargs)


def _as_bool(value: Any, where: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into bool")


def _as_str(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into string")


def _as_str_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into a list")
    return [_as_str(item, f"{where}[{pos}]") for pos, item in enumerate(value)]


def _as_str_map(value: Any, where: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into a mapping")
    return {_as_str(k, where): _as_str(v, f"{where}.{k}") for k, v in value.items()}


_CONVERTERS: dict[str, Callable[[Any, str], Any]] = {
    "bool": _as_bool,
    "str": _as_str,
    "strlist": _as_str_list,
    "strmap": _as_str_map,
}


def _check_mapping(data: Any, where: str) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(data).__name__}")
    return data


def _check_unknown(known: set[str], data: Mapping, strict: bool, where: str) -> None:
    if not strict:
        return
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ConfigurationError(f"{where}: unknown field(s) {', '.join(unknown)}")


def _load_flat(cls: type, data: Any, strict: bool, where: str) -> Any:
    mapping = _check_mapping(data, where)
    specs = {f.metadata["yaml"]: f for f in fields(cls)}
    _check_unknown(set(specs), mapping, strict, where)
    kwargs = {
        spec.name: _CONVERTERS[spec.metadata["kind"]](mapping[key], f"{where}.{key}")
        for key, spec in specs.items()
        if key in mapping
    }
    return cls(**kwargs)


def _dump_flat(obj: Any, always: frozenset[str] = frozenset()) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spec in fields(obj):
        key = spec.metadata["yaml"]
        value = getattr(obj, spec.name)
        if value or key in always:
            result[key] = list(value) if isinstance(value, list) else (
                dict(value) if isinstance(value, dict) else value
            )
    return result


@dataclass
class AdditionalImport:
    """An extra import added to generated code."""

    package: str = _opt("package", "str", default="")
    alias: str = _opt("alias", "str", default="")


@dataclass
class GenerateOptions:
    """Which kinds of output are generated."""

    chi_server: bool = _opt("chi-server", "bool", default=False)
    echo_server: bool = _opt("echo-server", "bool", default=False)
    gin_server: bool = _opt("gin-server", "bool", default=False)
    gorilla_server: bool = _opt("gorilla-server", "bool", default=False)
    strict: bool = _opt("strict-server", "bool", default=False)
    client: bool = _opt("client", "bool", default=False)
    models: bool = _opt("models", "bool", default=False)
    embedded_spec: bool = _opt("embedded-spec", "bool", default=False)

    def is_empty(self) -> bool:
        """True when no output kind is selected."""
        return not any(getattr(self, spec.name) for spec in fields(self))


@dataclass
class CompatibilityOptions:
    """Switches that restore older generator behaviour."""

    old_merge_schemas: bool = _opt("old-merge-schemas", "bool", default=False)
    old_enum_conflicts: bool = _opt("old-enum-conflicts", "bool", default=False)
    old_aliasing: bool = _opt("old-aliasing", "bool", default=False)
    disable_flatten_additional_properties: bool = _opt(
        "disable-flatten-additional-properties", "bool", default=False
    )
    disable_required_read_only_as_pointer: bool = _opt(
        "disable-required-readonly-as-pointer", "bool", default=False
    )
    always_prefix_enum_values: bool = _opt("always-prefix-enum-values", "bool", default=False)
    apply_chi_middleware_first_to_last: bool = _opt(
        "apply-chi-middleware-first-to-last", "bool", default=False
    )
    apply_gorilla_middleware_first_to_last: bool = _opt(
        "apply-gorilla-middleware-first-to-last", "bool", default=False
    )


@dataclass
class OutputOptions:
    """Options that alter the generated output."""

    skip_fmt: bool = _opt("skip-fmt", "bool", default=False)
    skip_prune: bool = _opt("skip-prune", "bool", default=False)
    include_tags: list[str] = _opt("include-tags", "strlist", default_factory=list)
    exclude_tags: list[str] = _opt("exclude-tags", "strlist", default_factory=list)
    user_templates: dict[str, str] = _opt("user-templates", "strmap", default_factory=dict)
    exclude_schemas: list[str] = _opt("exclude-schemas", "strlist", default_factory=list)
    response_type_suffix: str = _opt("response-type-suffix", "str", default="")
    client_type_name: str = _opt("client-type-name", "str", default="")


_CONFIG_KEYS = frozenset(
    {"package", "generate", "compatibility", "output-options", "import-mapping", "additional-imports"}
)


@dataclass
class Configuration:
    """Code generation customizations."""

    package_name: str = ""
    generate: GenerateOptions = field(default_factory=GenerateOptions)
    compatibility: CompatibilityOptions = field(default_factory=CompatibilityOptions)
    output_options: OutputOptions = field(default_factory=OutputOptions)
    import_mapping: dict[str, str] = field(default_factory=dict)
    additional_imports: list[AdditionalImport] = field(default_factory=list)

    def update_defaults(self) -> Configuration:
        """Return a copy with default generation targets filled in when none are set."""
        if self.generate.is_empty():
            return dataclasses.replace(
                self,
                generate=GenerateOptions(echo_server=True, models=True, embedded_spec=True),
            )
        return dataclasses.replace(self)

    def validate(self) -> None:
        """Raise ConfigurationError if the configuration cannot be used."""
        if not self.package_name:
            raise ConfigurationError("package name must be specified")
        servers = sum(
            (self.generate.chi_server, self.generate.echo_server, self.generate.gin_server)
        )
        if servers > 1:
            raise ConfigurationError("only one server type is supported at a time")

    def to_dict(self) -> dict[str, Any]:
        """Return the YAML-ready mapping, leaving out empty sections."""
        result: dict[str, Any] = {"package": self.package_name}
        sections = (
            ("generate", _dump_flat(self.generate)),
            ("compatibility", _dump_flat(self.compatibility)),
            ("output-options", _dump_flat(self.output_options)),
        )
        for key, value in sections:
            if value:
                result[key] = value
        if self.import_mapping:
            result["import-mapping"] = dict(self.import_mapping)
        if self.additional_imports:
            result["additional-imports"] = [
                _dump_flat(item, always=frozenset({"package"})) for item in self.additional_imports
            ]
        return result

    @classmethod
    def from_dict(cls, data: Any, strict: bool = False) -> Configuration:
        """Build a configuration from a parsed YAML mapping.

        With ``strict`` set, unknown keys are rejected.
        """
        mapping = _check_mapping(data, "configuration")
        _check_unknown(set(_CONFIG_KEYS), mapping, strict, "configuration")
        raw_imports = mapping.get("additional-imports")
        if raw_imports is None:
            raw_imports = []
        if not isinstance(raw_imports, list):
            raise ConfigurationError(
                f"additional-imports: cannot unmarshal {type(raw_imports).__name__} into a list"
            )
        return cls(
            package_name=_as_str(mapping.get("package"), "package"),
            generate=_load_flat(GenerateOptions, mapping.get("generate"), strict, "generate"),
            compatibility=_load_flat(
                CompatibilityOptions, mapping.get("compatibility"), strict, "compatibility"
            ),
            output_options=_load_flat(
                OutputOptions, mapping.get("output-options"), strict, "output-options"
            ),
            import_mapping=_as_str_map(mapping.get("import-mapping"), "import-mapping"),
            additional_imports=[
                _load_flat(AdditionalImport, item, strict, f"additional-imports[{pos}]")
                for pos, item in enumerate(raw_imports)
            ],
        )