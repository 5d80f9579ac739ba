# oapigen

`oapigen` holds the front half of a generator that turns OpenAPI 3.0
specifications into Go code: the generator's configuration model and its YAML
form, the command-line option handling that decides how a configuration file
and flags combine, the parsing of `x-go-*` vendor extensions, and the rules for
de-duplicating type definitions and naming enum constants. It also ships a
small in-memory pet store showing the behaviour a generated pet store server
is expected to have.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Configuration

`oapigen.configuration.Configuration` is built from the mapping a YAML
configuration file holds. It has the sections `generate`
(`GenerateOptions`), `compatibility` (`CompatibilityOptions`),
`output-options` (`OutputOptions`), `import-mapping` and
`additional-imports` (a list of `AdditionalImport`).

- `Configuration.from_dict(data, strict)` reads the mapping; with `strict`
  set, unknown keys are rejected. Values of the wrong type raise
  `ConfigurationError`.
- `update_defaults()` returns a copy that generates the echo server, models
  and the embedded spec when no generation target was chosen
  (`GenerateOptions.is_empty()`).
- `validate()` raises `ConfigurationError` when the package name is missing
  or more than one of the chi, echo and gin servers is selected.
- `to_dict()` returns the YAML-ready mapping, leaving out empty sections.

```python
import yaml

from oapigen.configuration import Configuration, ConfigurationError

with open("config.yaml") as fh:
    data = yaml.safe_load(fh)

config = Configuration.from_dict(data, strict=True).update_defaults()
try:
    config.validate()
except ConfigurationError as exc:
    print(f"configuration error: {exc}")

print(yaml.safe_dump(config.to_dict()))
```

## Command-line options

`oapigen.cli.build_configuration(argv)` takes an argument list and returns a
`CommandConfiguration` (a `Configuration` plus the output file name). It
parses the flags, works out whether the configuration file is in the current
or the older flat layout (`OldConfiguration`), applies the flags, fills in
defaults, finds a package name and validates the result. Any problem is
raised as `CliError`.

```python
from oapigen.cli import build_configuration

opts = build_configuration(["-package", "api", "-generate", "types,client", "petstore.yaml"])
print(opts.configuration.generate)
```

The spec path is the single positional argument; none, or more than one, is
an error. The flags are:

| Flag | Meaning |
| --- | --- |
| `-o` | output file |
| `-config` | YAML configuration file |
| `-old-config-style` | treat the configuration file as the older layout |
| `-output-config` | recorded by `parse_args` |
| `-package` | package name for the generated code |
| `-generate` | comma-separated targets (default `types,client,server,spec`) |
| `-include-tags`, `-exclude-tags` | comma-separated operation tags |
| `-templates` | directory of user templates |
| `-import-mapping` | `key:value,key:value` mapping of external references to packages |
| `-exclude-schemas` | comma-separated schema names |
| `-response-type-suffix` | suffix for response types |
| `-alias-types` | no longer supported; rejected with the current layout |
| `-version` | print the package name and version, then exit |
| `-h`, `-help` | show help and exit |

Generate targets are `chi-server`/`chi`, `server`/`echo-server`/`echo`,
`gin`/`gin-server`, `gorilla`/`gorilla-server`, `strict-server`, `client`,
`types`/`models`, `spec`/`embedded-spec`, plus `skip-fmt` and `skip-prune`.

With the current layout, flags override the file. With the older layout, the
file wins and flags only fill fields it leaves unset. When neither
`-old-config-style` nor the file decides the layout, any of the deprecated
flags (`-include-tags`, `-exclude-tags`, `-import-mapping`,
`-exclude-schemas`, `-response-type-suffix`, `-alias-types`) selects the older
one.

When no package name is given and an output file is set,
`detect_package_name` runs `go list` on the current directory to find it;
otherwise, or if that finds no Go files, the name is derived from the spec
file name (`pet-store.yaml` gives `petStore`).

The steps are also available on their own: `parse_args`,
`detect_config_style`, `update_config_from_flags`,
`update_old_config_from_flags`, `new_config_from_old_config`,
`generation_targets`, `load_template_overrides` and `detect_package_name`.

## Vendor extensions

`oapigen.extension` names the supported extensions (`EXT_PROP_GO_TYPE`,
`EXT_GO_NAME`, `EXT_PROP_OMIT_EMPTY`, `EXT_ENUM_VAR_NAMES` and others) and
provides functions that check and convert their values, raising
`ExtensionError` when a value has the wrong type: `ext_string`,
`ext_type_name`, `ext_parse_go_field_name`, `ext_parse_omit_empty`,
`ext_extra_tags`, `ext_parse_go_json_ignore`, `ext_parse_enum_var_names` and
`ext_parse_deprecation_reason`.

```python
from oapigen.extension import ExtensionError, ext_type_name

ext_type_name("uint64")  # "uint64"

try:
    ext_type_name(12)
except ExtensionError as exc:
    print(exc)  # failed to convert type: int
```

## Type definitions

`oapigen.typedefs` works on `TypeDefinition` objects:

- `dedupe_types` drops repeated equivalent definitions and raises
  `DuplicateTypeError` when two different definitions share a type name.
- `collect_enums(types, always_prefix)` builds `EnumDefinition` objects and
  decides which must prefix their constant names with the type name: when
  constants collide across enums, when a constant matches another type's
  name, or when it matches its own type name. `EnumDefinition.values()`
  returns the constant names with any prefix applied.
- `security_provider_names` returns distinct provider names, sorted.
- `additional_property_types`, `union_types` and
  `union_and_additional_types` select the types that need extra support code.

## Pet store

`oapigen.petstore.PetStore` is a thread-safe in-memory pet store. New pets get
ids counting up from 1000.

```python
from oapigen.petstore import NewPet, PetNotFoundError, PetStore

store = PetStore()
pet = store.add_pet(NewPet.from_dict({"name": "Spot", "tag": "TagOfSpot"}))
assert store.find_pet_by_id(pet.id) == pet
print(store.find_pets(tags=["TagOfSpot"], limit=None))

store.delete_pet(pet.id)
try:
    store.find_pet_by_id(pet.id)
except PetNotFoundError as exc:
    print(exc)  # Could not find pet with ID 1000
```

`NewPet.from_dict` raises `PetError` with code 400 for a malformed body;
`PetNotFoundError` carries code 404. `PetError.to_dict()` gives the error
body, `Pet.to_dict()` and `Pet.from_dict()` the pet's JSON form.

## What this package does not do

- It does not generate Go code. There are no templates, no loading of
  OpenAPI specifications and no writing of output files; `build_configuration`
  stops at a validated configuration.
- It installs no console command; the command-line handling is used from
  Python by passing an argument list.
- It does not manage Go import aliases for external references.
- It contains no HTTP server, request validation or token authentication;
  the pet store is plain Python objects without a web layer.