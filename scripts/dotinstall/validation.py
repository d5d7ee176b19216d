from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path

from .utils import repo_root

DATA_FILES = ("tools.json", "links.json", "checks.json")

JSON_TYPES: dict[str, type] = {
    "string": str,
    "object": dict,
    "array": list,
}

ItemValidator = Callable[[int, dict, dict, list[str]], None]
ListValidator = Callable[[list, list[str]], None]


def _load(path: Path) -> dict | list:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _type_error(prop_schema: dict, value: object) -> str | None:
    type_name = prop_schema.get("type", "")
    expected = JSON_TYPES.get(type_name)
    if expected is None or isinstance(value, expected):
        return None
    article = "an" if type_name[0] in "aeiou" else "a"
    return f"must be {article} {type_name}"


def item_errors(prefix: str, item: object, item_schema: dict) -> list[str]:
    """Field-level problems of one array entry against its ``items`` schema."""
    if not isinstance(item, dict):
        return [f"{prefix}: must be an object"]

    properties: dict = item_schema.get("properties", {})
    errors = [
        f"{prefix}: missing required field: {name}"
        for name in item_schema.get("required", [])
        if name not in item
    ]
    if item_schema.get("additionalProperties") is False:
        errors += [f"{prefix}: unexpected field: {name}" for name in item if name not in properties]

    for name, prop_schema in properties.items():
        if name not in item:
            continue
        value = item[name]
        problem = _type_error(prop_schema, value)
        if problem:
            errors.append(f"{prefix}.{name}: {problem}")
            continue
        allowed = prop_schema.get("enum")
        if allowed and value not in allowed:
            errors.append(f"{prefix}.{name}: must be one of {allowed}, got '{value}'")
    return errors


def validate_json_schema(
    json_path: Path,
    schema_path: Path,
    array_key: str,
    *,
    extra_item_validator: ItemValidator | None = None,
    extra_validator: ListValidator | None = None,
) -> list[str]:
    """Check a data file against the subset of JSON Schema its sibling schema uses."""
    try:
        data = _load(json_path)
    except (json.JSONDecodeError, OSError) as exc:
        return [f"cannot load {json_path.name}: {exc}"]
    try:
        schema = _load(schema_path)
    except (json.JSONDecodeError, OSError) as exc:
        return [f"cannot load schema: {exc}"]
    if not isinstance(data, dict):
        return ["root must be an object"]

    errors = [f"missing required key: {key}" for key in schema.get("required", []) if key not in data]
    if schema.get("additionalProperties") is False:
        known = schema.get("properties", {})
        errors += [f"unexpected key: {key}" for key in data if key not in known]

    items = data.get(array_key)
    if items is None:
        return errors
    if not isinstance(items, list):
        return [*errors, f"'{array_key}' must be an array"]

    item_schema = schema.get("properties", {}).get(array_key, {}).get("items", {})
    for i, item in enumerate(items):
        errors += item_errors(f"{array_key}[{i}]", item, item_schema)
        if extra_item_validator and isinstance(item, dict):
            extra_item_validator(i, item, item_schema, errors)
    if extra_validator:
        extra_validator(items, errors)
    return errors


def _unique(field: str, array_key: str) -> ListValidator:
    def check(items: list, errors: list[str]) -> None:
        seen: set[str] = set()
        for i, item in enumerate(items):
            value = item.get(field) if isinstance(item, dict) else None
            if not isinstance(value, str):
                continue
            if value in seen:
                errors.append(f"{array_key}[{i}].{field}: duplicate value '{value}'")
            seen.add(value)

    return check


def validate_tools_schema() -> list[str]:
    def _item_validator(i: int, item: dict, item_schema: dict, errors: list[str]) -> None:
        install = item.get("install")
        if not isinstance(install, dict):
            return
        install_schema = item_schema.get("properties", {}).get("install", {})
        allowed = install_schema.get("propertyNames", {}).get("enum", [])
        if not install:
            errors.append(f"tools[{i}].install: must list at least one installer")
        for via, spec in install.items():
            if allowed and via not in allowed:
                errors.append(
                    f"tools[{i}].install: unknown installer '{via}', expected one of {allowed}"
                )
            if not isinstance(spec, str):
                errors.append(f"tools[{i}].install.{via}: must be a string")
        if item.get("alt") and item.get("kind") != "command":
            errors.append(f"tools[{i}].alt: only valid for kind 'command'")

    return validate_json_schema(
        repo_root() / "scripts" / "tools.json",
        repo_root() / "scripts" / "tools.schema.json",
        "tools",
        extra_item_validator=_item_validator,
        extra_validator=_unique("label", "tools"),
    )


def validate_links_schema() -> list[str]:
    return validate_json_schema(
        repo_root() / "scripts" / "links.json",
        repo_root() / "scripts" / "links.schema.json",
        "links",
        extra_validator=_unique("target", "links"),
    )


def validate_checks_schema() -> list[str]:
    def _item_validator(i: int, item: dict, item_schema: dict, errors: list[str]) -> None:
        pattern = item.get("pattern")
        if item.get("kind") == "contains" and pattern is None:
            errors.append(f"checks[{i}]: kind 'contains' requires a pattern")
        if isinstance(pattern, str):
            try:
                re.compile(pattern)
            except re.error as exc:
                errors.append(f"checks[{i}].pattern: invalid regex: {exc}")

    return validate_json_schema(
        repo_root() / "scripts" / "checks.json",
        repo_root() / "scripts" / "checks.schema.json",
        "checks",
        extra_item_validator=_item_validator,
    )


def check_json_formatting(file_path: Path) -> bool:
    with open(file_path, encoding="utf-8") as f:
        raw = f.read()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return False
    return raw == json.dumps(data, indent=2) + "\n"


def check_hardcoded_paths(file_path: Path) -> list[tuple[int, str]]:
    regex = re.compile(r"/(Users|home)/[^\s/]+")
    violations: list[tuple[int, str]] = []
    with open(file_path, encoding="utf-8", errors="ignore") as f:
        for lineno, line in enumerate(f, start=1):
            if regex.search(line):
                violations.append((lineno, line.rstrip()))
    return violations
