from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path
from typing import Any, Iterable

from envgen.core.settings import SETTING_ALIASES

SETTINGS_EXCLUDE = {"settings_path", "save_settings_path", "command", "func", "verbose"}


def add_settings_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--settings",
        dest="settings_path",
        default=None,
        help="Load option defaults (an envelope settings record) from json or csv.",
    )
    parser.add_argument(
        "--save-settings",
        dest="save_settings_path",
        default=None,
        help="Save current option values to a settings file (json or csv).",
    )


def _take_value(args: list[str], i: int, flag: str) -> str:
    if i + 1 >= len(args):
        raise SystemExit(f"{flag} requires a path.")
    return args[i + 1]


def strip_settings_args(
    argv: Iterable[str],
) -> tuple[list[str], str | None, str | None]:
    """Pull --settings/--save-settings out of argv wherever they appear."""
    args = list(argv)
    cleaned: list[str] = []
    paths: dict[str, str | None] = {"--settings": None, "--save-settings": None}

    i = 0
    while i < len(args):
        arg = args[i]
        flag, eq, value = arg.partition("=")
        if flag in paths:
            if eq:
                paths[flag] = value
                i += 1
            else:
                paths[flag] = _take_value(args, i, flag)
                i += 2
            continue
        cleaned.append(arg)
        i += 1

    return cleaned, paths["--settings"], paths["--save-settings"]


def detect_command(argv: Iterable[str]) -> str | None:
    for arg in argv:
        if not arg.startswith("-"):
            return arg
    return None


def _parse_csv_value(raw: str) -> Any:
    text = raw.strip()
    if text == "":
        return ""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _load_csv(path: Path) -> dict[str, Any]:
    data: dict[str, Any] = {}
    with path.open("r", newline="", encoding="utf-8") as handle:
        for row in csv.reader(handle):
            if not row or not row[0].strip():
                continue
            key = row[0].strip()
            if key.lower() == "key":
                continue
            data[key] = _parse_csv_value(row[1]) if len(row) > 1 else ""
    return data


def _save_csv(path: Path, data: dict[str, Any]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["key", "value"])
        for key in sorted(data):
            writer.writerow([key, json.dumps(data[key], ensure_ascii=True)])


def load_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise SystemExit(f"Settings file not found: {path}")
    if path.suffix.lower() == ".csv":
        return _load_csv(path)

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        return data
    raise SystemExit(f"Settings file must be a JSON object: {path}")


def save_settings(
    path: Path,
    settings: dict[str, Any],
    *,
    command: str | None = None,
) -> None:
    """
    Write `settings`; json files keep one section per subcommand.
    """
    if path.suffix.lower() == ".csv":
        _save_csv(path, settings)
        return

    data: dict[str, Any] = {}
    if path.exists():
        try:
            data = load_settings(path)
        except SystemExit:
            data = {}

    if command:
        if data and all(not isinstance(v, dict) for v in data.values()):
            data = {"default": data}
        data[command] = settings
    else:
        data = settings

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=True)
        handle.write("\n")


def select_settings(
    data: dict[str, Any],
    command: str | None,
) -> dict[str, Any]:
    """
    Pick the section for `command` (or the shared one) and map the
    camelCase envelope keys onto option names.
    """
    if not isinstance(data, dict):
        return {}

    section: dict[str, Any] = {}
    if command and isinstance(data.get(command), dict):
        section = data[command]
    elif isinstance(data.get("default"), dict):
        section = data["default"]
    elif all(not isinstance(v, dict) for v in data.values()):
        section = data

    return {SETTING_ALIASES.get(key, key): value for key, value in section.items()}


def _option_actions(parser: argparse.ArgumentParser) -> list[argparse.Action]:
    return [action for action in parser._actions if action.option_strings]


def apply_settings_to_parser(
    parser: argparse.ArgumentParser,
    settings: dict[str, Any],
) -> None:
    for action in _option_actions(parser):
        if action.dest in settings:
            action.default = settings[action.dest]
            action.required = False


def _coerce_value(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_coerce_value(v) for v in value]
    if hasattr(value, "item"):
        return value.item()
    return value


def serialize_args(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    *,
    exclude: set[str] | None = None,
) -> dict[str, Any]:
    exclude = SETTINGS_EXCLUDE if exclude is None else exclude
    out: dict[str, Any] = {}
    for action in _option_actions(parser):
        dest = action.dest
        if dest in exclude or dest in ("help", "version"):
            continue
        out[dest] = _coerce_value(getattr(args, dest, None))
    return out


def find_subparser(
    parser: argparse.ArgumentParser,
    command: str | None,
) -> argparse.ArgumentParser | None:
    if not command:
        return None
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return action.choices.get(command)
    return None
