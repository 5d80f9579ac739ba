"""Command-line front end: flags, configuration files and how they combine."""

from __future__ import annotations

import argparse
import copy
import dataclasses
import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any

import yaml

from .configuration import (
    CompatibilityOptions,
    Configuration,
    ConfigurationError,
    GenerateOptions,
)

DEFAULT_GENERATE = "types,client,server,spec"

_DEPRECATED_FLAGS = (
    "include_tags",
    "exclude_tags",
    "import_mapping",
    "exclude_schemas",
    "response_type_suffix",
)

_TARGETS = {
    "chi-server": "chi_server",
    "chi": "chi_server",
    "server": "echo_server",
    "echo-server": "echo_server",
    "echo": "echo_server",
    "gin": "gin_server",
    "gin-server": "gin_server",
    "gorilla": "gorilla_server",
    "gorilla-server": "gorilla_server",
    "strict-server": "strict",
    "client": "client",
    "types": "models",
    "models": "models",
    "spec": "embedded_spec",
    "embedded-spec": "embedded_spec",
}

_SEPARATORS = frozenset("-#@!$&=.+:;_~ (){}[]")


class CliError(Exception):
    """Raised when the command line or configuration cannot be used."""


# ---------------------------------------------------------------------------
# Small parsing helpers


def _parse_list(text: str | None) -> list[str]:
    """Split a comma-separated list, dropping blank entries."""
    if not text:
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def _split_quoted(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` except where it appears inside double quotes."""
    parts: list[str] = []
    current: list[str] = []
    quoted = False
    for char in text:
        if char == '"':
            quoted = not quoted
            current.append(char)
        elif char == sep and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _parse_map(text: str) -> dict[str, str]:
    """Parse ``key:value,key:value``; keys or values may be double-quoted."""
    result: dict[str, str] = {}
    for pair in _split_quoted(text, ","):
        pieces = _split_quoted(pair, ":")
        if len(pieces) != 2:
            raise CliError(f"expected key:value, got :{pair}")
        key, value = (piece.strip().strip('"') for piece in pieces)
        result[key] = value
    return result


def _to_camel_case(text: str) -> str:
    chars: list[str] = []
    cap_next = True
    for char in text.strip(" "):
        if char.isupper() or char.isdigit():
            chars.append(char)
        elif char.islower():
            chars.append(char.upper() if cap_next else char)
        cap_next = char in _SEPARATORS
    return "".join(chars)


def _lowercase_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def _scalar(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into string")


def _optional_list(value: Any, where: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into a list")
    return [_scalar(item, f"{where}[{pos}]") for pos, item in enumerate(value)]


def _optional_map(value: Any, where: str) -> dict[str, str] | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where}: cannot unmarshal {type(value).__name__} into a mapping")
    return {_scalar(k, where): _scalar(v, f"{where}.{k}") for k, v in value.items()}


# ---------------------------------------------------------------------------
# Configuration file shapes

_OLD_KEYS = frozenset(
    {
        "package",
        "generate",
        "output",
        "include-tags",
        "exclude-tags",
        "templates",
        "import-mapping",
        "exclude-schemas",
        "response-type-suffix",
        "compatibility",
    }
)


@dataclass
class OldConfiguration:
    """The deprecated flat configuration file format."""

    package_name: str = ""
    generate_targets: list[str] | None = None
    output_file: str = ""
    include_tags: list[str] | None = None
    exclude_tags: list[str] | None = None
    templates_dir: str = ""
    import_mapping: dict[str, str] | None = None
    exclude_schemas: list[str] | None = None
    response_type_suffix: str = ""
    compatibility: CompatibilityOptions = field(default_factory=CompatibilityOptions)

    @classmethod
    def from_dict(cls, data: Any, strict: bool = False) -> OldConfiguration:
        """Build from a parsed YAML mapping; ``strict`` rejects unknown keys."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"configuration: expected a mapping, got {type(data).__name__}")
        if strict:
            unknown = sorted(str(key) for key in data if key not in _OLD_KEYS)
            if unknown:
                raise ConfigurationError(f"configuration: unknown field(s) {', '.join(unknown)}")
        compatibility = Configuration.from_dict(
            {"compatibility": data.get("compatibility")}, strict
        ).compatibility
        return cls(
            package_name=_scalar(data.get("package"), "package"),
            generate_targets=_optional_list(data.get("generate"), "generate"),
            output_file=_scalar(data.get("output"), "output"),
            include_tags=_optional_list(data.get("include-tags"), "include-tags"),
            exclude_tags=_optional_list(data.get("exclude-tags"), "exclude-tags"),
            templates_dir=_scalar(data.get("templates"), "templates"),
            import_mapping=_optional_map(data.get("import-mapping"), "import-mapping"),
            exclude_schemas=_optional_list(data.get("exclude-schemas"), "exclude-schemas"),
            response_type_suffix=_scalar(data.get("response-type-suffix"), "response-type-suffix"),
            compatibility=compatibility,
        )


@dataclass
class CommandConfiguration:
    """A generator configuration together with the file to write output to."""

    configuration: Configuration = field(default_factory=Configuration)
    output_file: str = ""

    @classmethod
    def from_dict(cls, data: Any, strict: bool = False) -> CommandConfiguration:
        """Build from a parsed YAML mapping; ``strict`` rejects unknown keys."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"configuration: expected a mapping, got {type(data).__name__}")
        output = data.get("output")
        if output is None:
            output = ""
        elif not isinstance(output, str):
            raise ConfigurationError(
                f"output: cannot unmarshal {type(output).__name__} into string"
            )
        rest = {key: value for key, value in data.items() if key != "output"}
        return cls(Configuration.from_dict(rest, strict), output)

    def to_dict(self) -> dict[str, Any]:
        """Return the YAML-ready mapping."""
        result = self.configuration.to_dict()
        if self.output_file:
            result["output"] = self.output_file
        return result


# ---------------------------------------------------------------------------
# Command line


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise CliError(message)


class _VersionAction(argparse.Action):
    def __init__(self, option_strings: Sequence[str], dest: str, **kwargs: Any) -> None:
        super().__init__(
            option_strings, dest, nargs=0, default=argparse.SUPPRESS, help=kwargs.get("help")
        )

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        name = __package__ or "oapigen"
        try:
            version = metadata.version(name)
        except metadata.PackageNotFoundError:
            parser.exit(1, "error reading build info\n")
        print(name)
        print(version)
        parser.exit(0)


def _flag(parser: argparse.ArgumentParser, name: str, **kwargs: Any) -> None:
    parser.add_argument(f"-{name}", f"--{name}", **kwargs)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line; the single positional argument is the spec path."""
    parser = _Parser(prog="oapigen", add_help=False, allow_abbrev=False)
    parser.add_argument("-h", "-help", "--help", action="help", help="show this help and exit")
    _flag(parser, "o", dest="output_file", default="",
          help="Where to output generated code, stdout is default")
    _flag(parser, "old-config-style", dest="old_config_style", action="store_true",
          help="whether to use the older style config file format")
    _flag(parser, "output-config", dest="output_config", action="store_true",
          help="when true, outputs a configuration file using current settings")
    _flag(parser, "config", dest="config_file", default="",
          help="a YAML config file that controls generator behavior")
    _flag(parser, "version", action=_VersionAction, help="print version and exit")
    _flag(parser, "package", dest="package_name", default="",
          help="The package name for generated code")
    _flag(parser, "generate", dest="generate", default=None,
          help=f"Comma-separated list of code to generate (default {DEFAULT_GENERATE})")
    _flag(parser, "include-tags", dest="include_tags", default=None,
          help="Only include operations with the given tags. Comma-separated list of tags.")
    _flag(parser, "exclude-tags", dest="exclude_tags", default=None,
          help="Exclude operations that are tagged with the given tags.")
    _flag(parser, "templates", dest="templates_dir", default="",
          help="Path to directory containing user templates")
    _flag(parser, "import-mapping", dest="import_mapping", default=None,
          help="A dict from the external reference to package path")
    _flag(parser, "exclude-schemas", dest="exclude_schemas", default=None,
          help="A comma separated list of schemas which must be excluded from generation")
    _flag(parser, "response-type-suffix", dest="response_type_suffix", default=None,
          help="the suffix used for responses types")
    _flag(parser, "alias-types", dest="alias_types", action="store_true",
          help="Alias type declarations of possible")
    parser.add_argument("spec", nargs="*")

    args = parser.parse_args(None if argv is None else list(argv))
    if not args.spec:
        raise CliError("Please specify a path to a OpenAPI 3.0 spec file")
    if len(args.spec) > 1:
        raise CliError(
            "Only one OpenAPI 3.0 spec file is accepted and it must be the last CLI argument"
        )
    args.spec = args.spec[0]
    return args


def _generate_flag(args: argparse.Namespace) -> str:
    return DEFAULT_GENERATE if args.generate is None else args.generate


def _has_deprecated_flag(args: argparse.Namespace) -> bool:
    return args.alias_types or any(getattr(args, name) is not None for name in _DEPRECATED_FLAGS)


def load_template_overrides(templates_dir: str) -> dict[str, str]:
    """Read every file under ``templates_dir``, keyed by its path relative to it."""
    if not templates_dir:
        return {}
    templates: dict[str, str] = {}
    for entry in sorted(Path(templates_dir).iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            for sub_name, text in load_template_overrides(str(entry)).items():
                templates[f"{entry.name}/{sub_name}"] = text
        else:
            templates[entry.name] = entry.read_text(encoding="utf-8")
    return templates


def generation_targets(config: Configuration, targets: Sequence[str]) -> Configuration:
    """Return a copy of ``config`` generating exactly the given targets."""
    result = copy.deepcopy(config)
    chosen: dict[str, bool] = {}
    for target in targets:
        attr = _TARGETS.get(target)
        if attr is not None:
            chosen[attr] = True
        elif target == "skip-fmt":
            result.output_options.skip_fmt = True
        elif target == "skip-prune":
            result.output_options.skip_prune = True
        else:
            raise CliError(f'unknown generate option "{target}"')
    result.generate = GenerateOptions(**chosen)
    return result


def update_config_from_flags(
    config: CommandConfiguration, args: argparse.Namespace
) -> CommandConfiguration:
    """Return ``config`` with command-line flags applied; flags win over the file."""
    cfg = copy.deepcopy(config.configuration)
    if args.package_name:
        cfg.package_name = args.package_name
    generate = _generate_flag(args)
    if generate != DEFAULT_GENERATE:
        cfg = generation_targets(cfg, _parse_list(generate))
    out = cfg.output_options
    if args.include_tags:
        out.include_tags = _parse_list(args.include_tags)
    if args.exclude_tags:
        out.exclude_tags = _parse_list(args.exclude_tags)
    if args.templates_dir:
        try:
            out.user_templates = load_template_overrides(args.templates_dir)
        except OSError as exc:
            raise CliError(f'load templates from "{args.templates_dir}": {exc}') from exc
    if args.import_mapping:
        cfg.import_mapping = _parse_map(args.import_mapping)
    if args.exclude_schemas:
        out.exclude_schemas = _parse_list(args.exclude_schemas)
    if args.response_type_suffix:
        out.response_type_suffix = args.response_type_suffix
    if args.alias_types:
        raise CliError("--alias-types isn't supported any more")
    return CommandConfiguration(cfg, config.output_file or args.output_file)


def update_old_config_from_flags(
    old: OldConfiguration, args: argparse.Namespace
) -> OldConfiguration:
    """Fill fields left unset in an old-style file from flags; the file wins."""
    import_mapping = old.import_mapping
    if import_mapping is None and args.import_mapping:
        try:
            import_mapping = _parse_map(args.import_mapping)
        except CliError as exc:
            raise CliError(f"error parsing import-mapping: {exc}") from exc
    return dataclasses.replace(
        old,
        package_name=old.package_name or args.package_name,
        generate_targets=(
            _parse_list(_generate_flag(args))
            if old.generate_targets is None
            else old.generate_targets
        ),
        include_tags=_parse_list(args.include_tags) if old.include_tags is None else old.include_tags,
        exclude_tags=_parse_list(args.exclude_tags) if old.exclude_tags is None else old.exclude_tags,
        templates_dir=old.templates_dir or args.templates_dir,
        import_mapping=import_mapping,
        exclude_schemas=(
            _parse_list(args.exclude_schemas) if old.exclude_schemas is None else old.exclude_schemas
        ),
        output_file=old.output_file or args.output_file,
    )


def new_config_from_old_config(
    old: OldConfiguration, args: argparse.Namespace
) -> CommandConfiguration:
    """Translate an old-style configuration, with flags applied, to the current form."""
    old = update_old_config_from_flags(old, args)
    cfg = Configuration(package_name=old.package_name)
    cfg.output_options.response_type_suffix = args.response_type_suffix or ""
    cfg = generation_targets(cfg, old.generate_targets or [])
    cfg.output_options.include_tags = list(old.include_tags or [])
    cfg.output_options.exclude_tags = list(old.exclude_tags or [])
    cfg.output_options.exclude_schemas = list(old.exclude_schemas or [])
    try:
        cfg.output_options.user_templates = load_template_overrides(old.templates_dir)
    except OSError as exc:
        raise CliError(f"error loading template overrides: {exc}") from exc
    cfg.import_mapping = dict(old.import_mapping or {})
    cfg.compatibility = copy.deepcopy(old.compatibility)
    return CommandConfiguration(cfg, old.output_file)


def _read_config(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise CliError(f"error reading config file '{path}': {exc}") from exc


def detect_config_style(args: argparse.Namespace) -> bool:
    """Return True when the old configuration style is in use."""
    if args.old_config_style:
        return True
    if args.config_file:
        text = _read_config(args.config_file)
        old_error: Exception | None = None
        new_error: Exception | None = None
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            old_error = new_error = exc
        else:
            try:
                OldConfiguration.from_dict(data, strict=True)
            except ConfigurationError as exc:
                old_error = exc
            try:
                CommandConfiguration.from_dict(data, strict=True)
            except ConfigurationError as exc:
                new_error = exc
        if old_error is not None and new_error is None:
            return False
        if old_error is None and new_error is not None:
            return True
        if old_error is not None and new_error is not None:
            raise CliError(
                f"error parsing configuration style as old version or new version: {new_error}"
            )
    return _has_deprecated_flag(args)


def _package_from_go_list(directory: str) -> str | None:
    command = ["go", "list", "-f", "{{.Name}}", directory]
    try:
        proc = subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    except OSError as exc:
        raise CliError(f'detect package name for "{directory}" output: "": {exc}') from exc
    if proc.returncode == 0:
        return proc.stdout.strip()
    output = proc.stdout
    if "expected 'package', found 'EOF'" in output or output.startswith("no Go files in"):
        return None
    raise CliError(
        f'detect package name for "{directory}" output: "{output}": '
        f"exit status {proc.returncode}"
    )


def detect_package_name(config: CommandConfiguration, spec_path: str) -> CommandConfiguration:
    """Return ``config`` with a package name, worked out if none was given."""
    if config.configuration.package_name:
        return config
    name = None
    if config.output_file:
        # The package name is empty here, so its directory is the current one.
        name = _package_from_go_list(os.path.dirname(config.configuration.package_name) or ".")
    if not name:
        base = os.path.basename(spec_path) or "."
        name = _lowercase_first(_to_camel_case(base.split(".")[0]))
    return dataclasses.replace(
        config, configuration=dataclasses.replace(config.configuration, package_name=name)
    )


def _load_yaml(path: str, text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CliError(f"error parsing '{path}' as YAML: {exc}") from exc


def build_configuration(argv: Sequence[str] | None = None) -> CommandConfiguration:
    """Turn a command line, and any configuration file it names, into a checked configuration."""
    args = parse_args(argv)
    old_style = detect_config_style(args)
    if not old_style:
        if args.config_file:
            data = _load_yaml(args.config_file, _read_config(args.config_file))
            try:
                opts = CommandConfiguration.from_dict(data)
            except ConfigurationError as exc:
                raise CliError(f"error parsing '{args.config_file}' as YAML: {exc}") from exc
        else:
            opts = CommandConfiguration(
                Configuration(
                    generate=GenerateOptions(
                        echo_server=True, client=True, models=True, embedded_spec=True
                    )
                ),
                args.output_file,
            )
        try:
            opts = update_config_from_flags(opts, args)
        except CliError as exc:
            raise CliError(f"error processing flags: {exc}") from exc
    else:
        old = OldConfiguration()
        if args.config_file:
            data = _load_yaml(args.config_file, _read_config(args.config_file))
            try:
                old = OldConfiguration.from_dict(data)
            except ConfigurationError as exc:
                raise CliError(f"error parsing '{args.config_file}' as YAML: {exc}") from exc
        opts = new_config_from_old_config(old, args)

    opts = dataclasses.replace(opts, configuration=opts.configuration.update_defaults())
    opts = detect_package_name(opts, args.spec)
    try:
        opts.configuration.validate()
    except ConfigurationError as exc:
        raise CliError(f"configuration error: {exc}") from exc
    return opts