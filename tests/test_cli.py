import pytest

from oapigen.cli import (
    CliError,
    CommandConfiguration,
    OldConfiguration,
    build_configuration,
    detect_config_style,
    detect_package_name,
    generation_targets,
    load_template_overrides,
    new_config_from_old_config,
    parse_args,
    update_config_from_flags,
    update_old_config_from_flags,
)
from oapigen.configuration import Configuration, ConfigurationError, GenerateOptions


def _write(tmp_path, text, name="cfg.yaml"):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_parse_args_requires_spec():
    with pytest.raises(CliError, match="Please specify a path"):
        parse_args([])


def test_parse_args_rejects_two_specs():
    with pytest.raises(CliError, match="Only one OpenAPI 3.0 spec file"):
        parse_args(["a.yaml", "b.yaml"])


def test_parse_args_reads_flags():
    args = parse_args(["--config=cfg.yaml", "-package", "api", "-o", "out.go", "spec.yaml"])
    assert args.config_file == "cfg.yaml"
    assert args.package_name == "api"
    assert args.output_file == "out.go"
    assert args.spec == "spec.yaml"
    assert args.generate is None


def test_parse_args_unknown_flag():
    with pytest.raises(CliError):
        parse_args(["-nonsense", "spec.yaml"])


def test_generation_targets_sets_only_chosen():
    cfg = generation_targets(Configuration(), ["chi", "client", "skip-fmt"])
    assert cfg.generate == GenerateOptions(chi_server=True, client=True)
    assert cfg.output_options.skip_fmt is True
    assert cfg.output_options.skip_prune is False


def test_generation_targets_aliases():
    cfg = generation_targets(Configuration(), ["types", "spec", "server", "skip-prune"])
    assert cfg.generate == GenerateOptions(models=True, embedded_spec=True, echo_server=True)
    assert cfg.output_options.skip_prune is True


def test_generation_targets_unknown():
    with pytest.raises(CliError, match='unknown generate option "bogus"'):
        generation_targets(Configuration(), ["bogus"])


def test_generation_targets_does_not_mutate_input():
    original = Configuration(generate=GenerateOptions(models=True))
    generation_targets(original, ["client"])
    assert original.generate == GenerateOptions(models=True)


def test_load_template_overrides(tmp_path):
    (tmp_path / "typedef.tmpl").write_text("//blah")
    sub = tmp_path / "echo"
    sub.mkdir()
    (sub / "server.tmpl").write_text("server")
    result = load_template_overrides(str(tmp_path))
    assert result == {"typedef.tmpl": "//blah", "echo/server.tmpl": "server"}


def test_load_template_overrides_empty_dir_name():
    assert load_template_overrides("") == {}


def test_load_template_overrides_missing(tmp_path):
    with pytest.raises(OSError):
        load_template_overrides(str(tmp_path / "missing"))


def test_update_config_from_flags_rejects_alias_types():
    args = parse_args(["-alias-types", "s.yaml"])
    with pytest.raises(CliError, match="alias-types"):
        update_config_from_flags(CommandConfiguration(), args)


def test_update_config_from_flags_lists_and_output():
    args = parse_args(["-include-tags", "a, b,", "-exclude-schemas", "X", "-o", "flag.go", "s.yaml"])
    result = update_config_from_flags(CommandConfiguration(output_file="file.go"), args)
    assert result.configuration.output_options.include_tags == ["a", "b"]
    assert result.configuration.output_options.exclude_schemas == ["X"]
    assert result.output_file == "file.go"
    empty = update_config_from_flags(CommandConfiguration(), args)
    assert empty.output_file == "flag.go"


def test_update_config_from_flags_import_mapping():
    args = parse_args(
        ["-import-mapping", 'a.yaml:pkg/a,"https://example.com/b.yaml":pkg/b', "s.yaml"]
    )
    result = update_config_from_flags(CommandConfiguration(), args)
    assert result.configuration.import_mapping == {
        "a.yaml": "pkg/a",
        "https://example.com/b.yaml": "pkg/b",
    }


def test_update_config_from_flags_bad_import_mapping():
    args = parse_args(["-import-mapping", "novalue", "s.yaml"])
    with pytest.raises(CliError, match="expected key:value"):
        update_config_from_flags(CommandConfiguration(), args)


def test_update_config_default_generate_keeps_file_targets():
    args = parse_args(["-generate", "types,client,server,spec", "s.yaml"])
    config = CommandConfiguration(Configuration(generate=GenerateOptions(gin_server=True)))
    result = update_config_from_flags(config, args)
    assert result.configuration.generate == GenerateOptions(gin_server=True)


def test_update_old_config_file_wins():
    args = parse_args(["-package", "flagpkg", "-include-tags", "x", "s.yaml"])
    old = OldConfiguration(package_name="filepkg", include_tags=["y"])
    result = update_old_config_from_flags(old, args)
    assert result.package_name == "filepkg"
    assert result.include_tags == ["y"]
    assert result.generate_targets == ["types", "client", "server", "spec"]


def test_new_config_from_old_config():
    args = parse_args(["-response-type-suffix", "Resp", "s.yaml"])
    old = OldConfiguration(
        package_name="api", generate_targets=["types", "client"], exclude_schemas=["A"]
    )
    result = new_config_from_old_config(old, args)
    cfg = result.configuration
    assert cfg.package_name == "api"
    assert cfg.generate == GenerateOptions(models=True, client=True)
    assert cfg.output_options.response_type_suffix == "Resp"
    assert cfg.output_options.exclude_schemas == ["A"]


def test_detect_style_new_file(tmp_path):
    path = _write(tmp_path, "package: api\ngenerate:\n  models: true\n")
    assert detect_config_style(parse_args(["-config", path, "s.yaml"])) is False


def test_detect_style_old_file(tmp_path):
    path = _write(tmp_path, "package: api\ngenerate:\n  - types\n  - client\n")
    assert detect_config_style(parse_args(["-config", path, "s.yaml"])) is True


def test_detect_style_ambiguous_uses_flags(tmp_path):
    path = _write(tmp_path, "package: api\noutput: out.go\n")
    assert detect_config_style(parse_args(["-config", path, "s.yaml"])) is False
    assert detect_config_style(parse_args(["-config", path, "-exclude-schemas", "A", "s.yaml"])) is True


def test_detect_style_flag_forces_old():
    assert detect_config_style(parse_args(["-old-config-style", "s.yaml"])) is True


def test_detect_style_neither(tmp_path):
    path = _write(tmp_path, "package: api\nbogus: 1\n")
    with pytest.raises(CliError, match="error parsing configuration style"):
        detect_config_style(parse_args(["-config", path, "s.yaml"]))


def test_detect_style_missing_file(tmp_path):
    with pytest.raises(CliError, match="error reading config file"):
        detect_config_style(parse_args(["-config", str(tmp_path / "none.yaml"), "s.yaml"]))


def test_detect_package_name_keeps_given():
    config = CommandConfiguration(Configuration(package_name="api"), "out.go")
    assert detect_package_name(config, "x/pets.yaml").configuration.package_name == "api"


def test_detect_package_name_from_spec():
    config = CommandConfiguration()
    result = detect_package_name(config, "dir/petstore-expanded.yaml")
    assert result.configuration.package_name == "petstoreExpanded"


def test_old_configuration_strict_unknown():
    with pytest.raises(ConfigurationError):
        OldConfiguration.from_dict({"package": "api", "extra": 1}, strict=True)
    loose = OldConfiguration.from_dict({"package": "api", "extra": 1})
    assert loose.package_name == "api"
    assert loose.generate_targets is None


def test_command_configuration_round_trip():
    config = CommandConfiguration(
        Configuration(package_name="api", generate=GenerateOptions(models=True)), "out.go"
    )
    data = config.to_dict()
    assert data["output"] == "out.go"
    assert data["package"] == "api"
    assert CommandConfiguration.from_dict(data, strict=True) == config


def test_command_configuration_rejects_bad_output():
    with pytest.raises(ConfigurationError):
        CommandConfiguration.from_dict({"output": ["x"]})


def test_build_configuration_defaults():
    result = build_configuration(["-package", "api", "spec.yaml"])
    assert result.configuration.package_name == "api"
    assert result.configuration.generate == GenerateOptions(
        echo_server=True, client=True, models=True, embedded_spec=True
    )
    assert result.output_file == ""


def test_build_configuration_package_from_spec():
    result = build_configuration(["some/petstore-expanded.yaml"])
    assert result.configuration.package_name == "petstoreExpanded"


def test_build_configuration_new_file_with_flag_override(tmp_path):
    path = _write(tmp_path, "package: api\ngenerate:\n  models: true\n")
    result = build_configuration(["-config", path, "-package", "other", "spec.yaml"])
    assert result.configuration.package_name == "other"
    assert result.configuration.generate == GenerateOptions(models=True)


def test_build_configuration_old_file(tmp_path):
    path = _write(tmp_path, "package: api\ngenerate:\n  - types\n  - client\n")
    result = build_configuration(["-config", path, "spec.yaml"])
    assert result.configuration.generate == GenerateOptions(models=True, client=True)
    assert result.configuration.package_name == "api"


def test_build_configuration_two_servers(tmp_path):
    path = _write(
        tmp_path, "package: api\ngenerate:\n  chi-server: true\n  echo-server: true\n"
    )
    with pytest.raises(CliError, match="only one server type"):
        build_configuration(["-config", path, "spec.yaml"])


def test_build_configuration_unknown_generate():
    with pytest.raises(CliError, match="unknown generate option"):
        build_configuration(["-package", "api", "-generate", "bogus", "spec.yaml"])


def test_build_configuration_output_round_trips(tmp_path):
    result = build_configuration(["-package", "api", "-generate", "types,skip-fmt", "spec.yaml"])
    assert result.configuration.output_options.skip_fmt is True
    again = CommandConfiguration.from_dict(result.to_dict(), strict=True)
    assert again == result