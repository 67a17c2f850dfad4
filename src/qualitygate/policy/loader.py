"""Load and resolve Profile objects from YAML rule-weight configuration files."""

from __future__ import annotations

import dataclasses
import importlib.resources
import re
from pathlib import Path

import yaml

from qualitygate.errors import ConfigError
from qualitygate.policy.models import GatePolicy, Profile, ScoringPolicy
from qualitygate.scanner.models import Category, ScanConfig, Severity
from qualitygate.scanner.rules import DEFAULT_RULES, Rule, check_categories

_PRESET_PREFIX = "preset:"
_MAPPING_KEYS = ("weights", "severity_weights", "gate", "scan")
_RULE_CATEGORIES = (Category.STYLE, Category.SECURITY)
_UNDISABLEABLE = frozenset({"io-error", "scan-timeout", "scan-crash"})
_SCAN_FIELDS = {f.name: f for f in dataclasses.fields(ScanConfig)}


def load_profile(ref: str | Path, _resolved: set[str] | None = None) -> Profile:
    """Load a profile from a YAML file path or a ``preset:NAME`` reference."""
    data = _resolve_ref(str(ref), _resolved if _resolved is not None else set(), None)
    return _build_profile(data)


def load_profile_from_string(text: str) -> Profile:
    """Parse a YAML string into a Profile, resolving inheritance."""
    data = _parse_yaml(text, "<string>")
    return _build_profile(_resolve_data(data, set(), None))


def preset_names() -> list[str]:
    pkg = importlib.resources.files("qualitygate.policy.presets")
    return sorted(
        entry.name[: -len(".yaml")]
        for entry in pkg.iterdir()
        if entry.name.endswith(".yaml")
    )


def _parse_yaml(text: str, source: str) -> dict:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {source} must be a mapping")
    return data


def _resolve_ref(ref: str, _resolved: set[str], base_dir: Path | None) -> dict:
    if ref.startswith(_PRESET_PREFIX):
        key = ref
        path = None
    else:
        path = Path(ref)
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        key = str(path.resolve())

    # Circular inheritance detection
    if key in _resolved:
        raise ConfigError(f"Circular profile inheritance detected: {ref}")

    if path is None:
        name = ref[len(_PRESET_PREFIX) :]
        pkg = importlib.resources.files("qualitygate.policy.presets")
        resource = pkg.joinpath(f"{name}.yaml")
        if not resource.is_file():
            raise ConfigError(f"Unknown preset: {name}")
        text = resource.read_text(encoding="utf-8")
    else:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration {ref}: {e}") from e
        base_dir = path.parent

    _resolved.add(key)
    try:
        return _resolve_data(_parse_yaml(text, ref), _resolved, base_dir)
    finally:
        _resolved.discard(key)


def _resolve_data(data: dict, _resolved: set[str], base_dir: Path | None) -> dict:
    """Merge inherited configurations under this one.

    Relative inherit paths resolve against the directory of the file that
    names them. Mapping sections are merged key by key with this file winning,
    own rules come before inherited rules, and disabled checks accumulate.
    """
    name = data.get("name", "unnamed")

    inherit_list = data.get("inherit", [])
    if isinstance(inherit_list, str):
        inherit_list = [inherit_list]

    merged: dict = {}
    inherited_rules: list = []
    disabled: list = []
    for ref in inherit_list:
        parent = _resolve_ref(str(ref), _resolved, base_dir)
        for key in _MAPPING_KEYS:
            merged.setdefault(key, {}).update(parent.get(key) or {})
        inherited_rules.extend(parent.get("rules") or [])
        disabled.extend(parent.get("disable") or [])

    for key in _MAPPING_KEYS:
        section = data.get(key) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"'{key}' must be a mapping")
        merged.setdefault(key, {}).update(section)

    own_rules = data.get("rules") or []
    if not isinstance(own_rules, list):
        raise ConfigError("'rules' must be a list")
    merged["rules"] = list(own_rules) + inherited_rules
    merged["disable"] = disabled + list(data.get("disable") or [])
    merged["name"] = name
    merged["description"] = data.get("description", "")
    merged["inherit"] = list(inherit_list)
    return merged


def _build_profile(data: dict) -> Profile:
    custom_rules = _parse_rules(data.get("rules", []))
    disabled = frozenset(str(c) for c in data.get("disable", []))
    blocked = disabled & _UNDISABLEABLE
    if blocked:
        names = ", ".join(sorted(blocked))
        raise ConfigError(f"Cannot disable pipeline checks: {names}")

    rules = tuple(
        r for r in custom_rules + list(DEFAULT_RULES) if r.check_id not in disabled
    )
    check_categories(rules)

    return Profile(
        name=data.get("name", "unnamed"),
        scan=_parse_scan(data.get("scan", {})),
        scoring=_parse_scoring(
            data.get("weights", {}), data.get("severity_weights", {})
        ),
        gate=_parse_gate(data.get("gate", {})),
        rules=rules,
        disabled=disabled,
        description=data.get("description", ""),
        inherit=tuple(data.get("inherit", ())),
    )


def _number(value, label: str, minimum: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{label}' must be a number, got {value!r}")
    if value < minimum:
        raise ConfigError(f"'{label}' must be at least {minimum:g}, got {value!r}")
    return value


def _integer(value, label: str, minimum: float = 0.0) -> int:
    number = _number(value, label, minimum)
    if not float(number).is_integer():
        raise ConfigError(f"'{label}' must be a whole number, got {value!r}")
    return int(number)


def _parse_scoring(weights_data: dict, severity_data: dict) -> ScoringPolicy:
    defaults = ScoringPolicy()
    weights = dict(defaults.weights)
    for key, value in weights_data.items():
        try:
            category = Category(key)
        except ValueError as e:
            raise ConfigError(f"Unknown category in weights: {key}") from e
        weights[category] = _integer(value, f"weights.{key}")

    total = sum(weights.values())
    if total != 100:
        raise ConfigError(f"Category weights must sum to 100, got {total}")

    severity_weights = dict(defaults.severity_weights)
    for key, value in severity_data.items():
        try:
            severity = Severity(key)
        except ValueError as e:
            raise ConfigError(f"Unknown severity in severity_weights: {key}") from e
        severity_weights[severity] = float(_number(value, f"severity_weights.{key}"))

    return ScoringPolicy(weights=weights, severity_weights=severity_weights)


def _parse_gate(data: dict) -> GatePolicy:
    gate = GatePolicy()
    if "min_overall_score" in data:
        value = _number(data["min_overall_score"], "gate.min_overall_score")
        if value > 100:
            raise ConfigError("'gate.min_overall_score' must be between 0 and 100")
        gate = dataclasses.replace(gate, min_overall_score=float(value))
    if "max_critical_findings" in data:
        value = _integer(data["max_critical_findings"], "gate.max_critical_findings")
        gate = dataclasses.replace(gate, max_critical_findings=value)
    unknown = set(data) - {"min_overall_score", "max_critical_findings"}
    if unknown:
        raise ConfigError(f"Unknown gate settings: {', '.join(sorted(unknown))}")
    return gate


def _parse_scan(data: dict) -> ScanConfig:
    changes: dict = {}
    for key, value in data.items():
        field = _SCAN_FIELDS.get(key)
        if field is None:
            raise ConfigError(f"Unknown scan setting: {key}")
        if key == "exclude":
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list):
                raise ConfigError("'scan.exclude' must be a list of glob patterns")
            changes[key] = tuple(str(v) for v in value)
        elif key == "timeout":
            changes[key] = float(_number(value, "scan.timeout"))
            if not changes[key] > 0:
                raise ConfigError("'scan.timeout' must be greater than 0")
        elif key == "min_coverage":
            changes[key] = float(_number(value, "scan.min_coverage"))
        else:
            changes[key] = _integer(value, f"scan.{key}", minimum=1)
    return dataclasses.replace(ScanConfig(), **changes)


def _parse_rules(rules_data: list) -> list[Rule]:
    rules: list[Rule] = []
    for r in rules_data:
        if not isinstance(r, dict):
            raise ConfigError(f"Rule entries must be mappings, got {r!r}")
        try:
            check_id = str(r["check_id"])
            pattern = str(r["pattern"])
        except KeyError as e:
            raise ConfigError(f"Rule is missing required key {e}") from e

        try:
            category = Category(r.get("category", "security"))
            severity = Severity(r.get("severity", "warning"))
        except ValueError as e:
            raise ConfigError(f"Rule '{check_id}': {e}") from e
        if category not in _RULE_CATEGORIES:
            raise ConfigError(
                f"Rule '{check_id}': pattern rules must be 'style' or 'security'"
            )

        try:
            regex = re.compile(pattern, re.IGNORECASE if r.get("ignore_case") else 0)
        except re.error as e:
            raise ConfigError(f"Rule '{check_id}': invalid pattern: {e}") from e

        extensions = r.get("extensions", ())
        if isinstance(extensions, str):
            extensions = (extensions,)
        rules.append(
            Rule(
                check_id=check_id,
                category=category,
                severity=severity,
                regex=regex,
                message=str(r.get("message", check_id)),
                extensions=tuple(
                    e.lower() if e.startswith(".") else f".{e.lower()}"
                    for e in extensions
                ),
            )
        )
    return rules
