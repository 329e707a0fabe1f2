"""
Configuration loader.

Finds and decodes the configuration file into per-rule sections. Rule
sections are handed to each rule unparsed; rules decode their own options.

Supported files (searched in this order in the linted directory):

    .commentcheck.yaml / .commentcheck.yml
    .commentcheck.toml
    .tflint.hcl

An explicit path, or the COMMENTCHECK_CONFIG environment variable, skips the
search.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Use tomllib (Python 3.11+) or tomli as fallback
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from commentcheck.errors import ConfigurationError
from commentcheck.parser import Block, LexerError, ParseError, parse_source

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "COMMENTCHECK_CONFIG"

CONFIG_FILENAMES = (
    ".commentcheck.yaml",
    ".commentcheck.yml",
    ".commentcheck.toml",
    ".tflint.hcl",
)


@dataclass
class LintConfig:
    """Loaded configuration: rule name -> raw rule section."""

    rules: dict[str, dict[str, Any]] = field(default_factory=dict)
    config_path: Path | None = None

    def rule_payload(self, name: str) -> dict[str, Any] | None:
        """The section for a rule, or None when the file does not mention it."""
        return self.rules.get(name)


def find_config(directory: Path) -> Path | None:
    """Return the first configuration file present in directory."""
    for filename in CONFIG_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | str | None = None, search_dir: Path | None = None) -> LintConfig:
    """
    Load configuration.

    Args:
        path: Explicit config file. Must exist.
        search_dir: Directory searched for a config file when no path is
            given (and the environment variable is unset).

    Returns:
        LintConfig; empty when no file was found.

    Raises:
        ConfigurationError: If the file cannot be read or decoded.
    """
    if path is None and os.environ.get(CONFIG_ENV_VAR):
        path = os.environ[CONFIG_ENV_VAR]
        logger.debug("Using config from $%s", CONFIG_ENV_VAR)

    if path is None:
        if search_dir is None:
            return LintConfig()
        found = find_config(search_dir)
        if found is None:
            logger.info("No configuration file found in %s", search_dir)
            return LintConfig()
        path = found

    path = Path(path)
    if not path.is_file():
        raise ConfigurationError("config file not found", str(path))

    config = load_config_file(path)
    logger.info("Loaded configuration from %s (%d rule section(s))", path, len(config.rules))
    return config


def load_config_file(path: Path) -> LintConfig:
    """Decode a config file, picking the format from its suffix."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ConfigurationError(str(e), str(path)) from e

    if path.suffix in (".yaml", ".yml"):
        rules = parse_yaml_config(data, str(path))
    elif path.suffix == ".toml":
        rules = parse_toml_config(data, str(path))
    elif path.suffix == ".hcl":
        rules = parse_hcl_config(data, str(path))
    else:
        raise ConfigurationError(f"unsupported config format {path.suffix!r}", str(path))

    return LintConfig(rules=rules, config_path=path)


def _rules_section(data: Any, filename: str) -> dict[str, dict[str, Any]]:
    """Validate the {rules: {name: {...}}} layout shared by YAML and TOML."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("top level must be a mapping", filename)
    unknown = sorted(set(data) - {"rules"})
    if unknown:
        raise ConfigurationError(f"unsupported top-level key(s) {', '.join(unknown)}", filename)
    rules = data.get("rules") or {}
    if not isinstance(rules, dict):
        raise ConfigurationError("'rules' must be a mapping of rule name to options", filename)
    for name, section in rules.items():
        if section is None:
            rules[name] = {}
        elif not isinstance(section, dict):
            raise ConfigurationError(f"rule {name!r} must be a mapping", filename)
    return rules


def parse_yaml_config(data: bytes, filename: str = "<config>") -> dict[str, dict[str, Any]]:
    try:
        loaded = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML: {e}", filename) from e
    return _rules_section(loaded, filename)


def parse_toml_config(data: bytes, filename: str = "<config>") -> dict[str, dict[str, Any]]:
    try:
        loaded = tomllib.loads(data.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"invalid TOML: {e}", filename) from e
    return _rules_section(loaded, filename)


def parse_hcl_config(data: bytes, filename: str = "<config>") -> dict[str, dict[str, Any]]:
    """
    Read `rule "<name>" { ... }` blocks from a .tflint.hcl style file.

    Attributes become keys with their literal values; nested blocks become
    lists of mappings keyed by block type (so `attribute { ... }` entries
    collect under "attribute"). Other top-level blocks are ignored.
    """
    try:
        file = parse_source(data, filename)
    except (LexerError, ParseError) as e:
        raise ConfigurationError(e.message, f"{filename}:{e.line}:{e.column}") from e

    rules: dict[str, dict[str, Any]] = {}
    for block in file.body.get_blocks("rule"):
        if len(block.labels) != 1:
            raise ConfigurationError(
                f"rule block at line {block.type_range.start.line} needs exactly one label", filename)
        name = block.labels[0]
        if name in rules:
            raise ConfigurationError(
                f"rule {name!r} is configured more than once (line {block.type_range.start.line})",
                filename)
        rules[name] = _block_to_section(block, filename)
    return rules


def _block_to_section(block: Block, filename: str) -> dict[str, Any]:
    section: dict[str, Any] = {}
    for name, attribute in block.body.attributes.items():
        try:
            section[name] = attribute.expr.value()
        except ParseError as e:
            raise ConfigurationError(
                f"{name}: {e.message}", f"{filename}:{attribute.range.start.line}") from e
    for nested in block.body.blocks:
        if nested.type in section and not isinstance(section[nested.type], list):
            raise ConfigurationError(
                f"{nested.type!r} is set both as an argument and as a block", filename)
        section.setdefault(nested.type, []).append(_block_to_section(nested, filename))
    return section
