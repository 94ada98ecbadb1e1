"""Windows Terminal settings merge.

The settings document is treated as an opaque JSON tree: only ``schemes``
and ``profiles.list`` are touched, everything else is written back as read.
Existing scheme entries are matched by name and never refreshed, so editing
a scheme in the installer config does not update a document that already
carries it.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import ConfigDepthError, ConfigError, ConfigParseError
from .lib.probe import InstallationState

logger = logging.getLogger(__name__)

MAX_DOCUMENT_DEPTH = 64
ACTIVE_SCHEME_KEY = "colorScheme"
PROFILE_MATCH_FIELDS = ("source", "commandline", "name")
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

ProfileSelector = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class ColorScheme:
    name: str
    colors: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ColorScheme":
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("color scheme needs a non-empty name")
        colors = {str(k): str(v) for k, v in data.items() if k != "name"}
        return cls(name=name, colors=colors)

    def as_entry(self) -> Dict[str, Any]:
        return {"name": self.name, **self.colors}


class MergeOutcome(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    HOST_MISSING = "host_missing"


def marker_selector(*markers: str) -> ProfileSelector:
    """Select profiles whose source, commandline or name contains a marker."""

    wanted = [m for m in markers if m]

    def select(profile: Mapping[str, Any]) -> bool:
        for key in PROFILE_MATCH_FIELDS:
            value = profile.get(key)
            if isinstance(value, str) and any(m in value for m in wanted):
                return True
        return False

    return select


def _profile_entries(document: Dict[str, Any]) -> List[Any]:
    profiles = document.get("profiles")
    # Older settings files keep the profiles list at the top level.
    if isinstance(profiles, list):
        return profiles
    if isinstance(profiles, dict):
        entries = profiles.get("list")
        if isinstance(entries, list):
            return entries
    return []


def merge_color_scheme(
    document: Mapping[str, Any],
    scheme: ColorScheme,
    profile_selector: ProfileSelector,
) -> Dict[str, Any]:
    """Return a copy of document with scheme registered and applied to selected profiles."""

    doc: Dict[str, Any] = copy.deepcopy(dict(document))

    schemes = doc.get("schemes")
    if schemes is None:
        schemes = doc["schemes"] = []
    elif not isinstance(schemes, list):
        raise ConfigParseError(f"'schemes' must be a list, got {type(schemes).__name__}")

    if not any(isinstance(e, dict) and e.get("name") == scheme.name for e in schemes):
        schemes.append(scheme.as_entry())
        logger.info("Added color scheme %s", scheme.name)

    for entry in _profile_entries(doc):
        if isinstance(entry, dict) and profile_selector(entry):
            entry[ACTIVE_SCHEME_KEY] = scheme.name

    return doc


def document_depth(value: Any) -> int:
    """Nesting depth of a JSON value; scalars are 0."""

    deepest = 0
    stack = [(value, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = list(node.values())
        elif isinstance(node, list):
            children = node
        else:
            deepest = max(deepest, depth)
            continue
        deepest = max(deepest, depth + 1)
        if depth + 1 > MAX_DOCUMENT_DEPTH:
            break
        stack.extend((c, depth + 1) for c in children)
    return deepest


def load_document(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ConfigParseError(f"{path} is not UTF-8: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON in {path}: {e}") from e
    except RecursionError as e:
        raise ConfigDepthError(f"{path} nests deeper than the JSON parser can follow") from e
    if not isinstance(data, dict):
        raise ConfigParseError(f"{path} must contain a JSON object, got {type(data).__name__}")
    if document_depth(data) > MAX_DOCUMENT_DEPTH:
        raise ConfigDepthError(f"{path} nests deeper than {MAX_DOCUMENT_DEPTH} levels")
    return data


def dump_document(document: Mapping[str, Any]) -> str:
    depth = document_depth(document)
    if depth > MAX_DOCUMENT_DEPTH:
        raise ConfigDepthError(f"Settings document nests deeper than {MAX_DOCUMENT_DEPTH} levels")
    return json.dumps(document, indent=4, ensure_ascii=False) + "\n"


def backup_file(path: Path, *, now: Optional[datetime] = None) -> Path:
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    target = path.with_name(f"{path.name}.backup.{stamp}")
    n = 1
    while target.exists():
        target = path.with_name(f"{path.name}.backup.{stamp}-{n}")
        n += 1
    shutil.copy2(path, target)
    logger.info("Backed up %s -> %s", path, target)
    return target


def write_atomic(path: Path, text: str) -> None:
    temp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()


def apply_color_scheme(
    path: Path,
    scheme: ColorScheme,
    profile_selector: ProfileSelector,
    *,
    on_missing: Optional[Callable[[], None]] = None,
    dry_run: bool = False,
) -> MergeOutcome:
    """Merge scheme into the settings file at path.

    The current file is copied to ``<path>.backup.<timestamp>`` before it is
    parsed. Parse or depth errors leave the file as it was and keep that
    backup; an UNCHANGED merge removes it again.
    """

    if not path.exists():
        logger.warning("Terminal settings not found at %s", path)
        if on_missing is not None:
            on_missing()
        return MergeOutcome.HOST_MISSING

    backup = None if dry_run else backup_file(path)

    document = load_document(path)
    merged = merge_color_scheme(document, scheme, profile_selector)
    if merged == document:
        logger.info("Color scheme %s already applied to %s", scheme.name, path)
        if backup is not None:
            backup.unlink()
        return MergeOutcome.UNCHANGED

    text = dump_document(merged)
    if dry_run:
        logger.info("Would write %s (%d bytes)", path, len(text.encode("utf-8")))
        return MergeOutcome.APPLIED

    try:
        write_atomic(path, text)
    except OSError as e:
        raise ConfigError(f"Could not write {path} ({e}); original kept, backup at {backup}") from e

    logger.info("Applied color scheme %s to %s", scheme.name, path)
    return MergeOutcome.APPLIED


def scheme_applied(path: Path, scheme: ColorScheme, profile_selector: ProfileSelector) -> InstallationState:
    """Probe: PRESENT when merging would not change the settings file."""

    if not path.exists():
        return InstallationState.ABSENT
    try:
        document = load_document(path)
        merged = merge_color_scheme(document, scheme, profile_selector)
    except (ConfigError, OSError) as e:
        logger.warning("Cannot inspect %s: %s", path, e)
        return InstallationState.UNKNOWN
    return InstallationState.PRESENT if merged == document else InstallationState.ABSENT
