"""Ledger of artifacts installed per pack.

The ledger is a JSON object mapping pack identifier to the artifacts that
installing the pack produced:

    {
      "ios": {
        "mcpServers": [{"name": "xcodebuild", "scope": "local"}],
        "files": [".claude/skills/ios/SKILL.md"],
        "templateSections": ["ios"],
        "hookCommands": ["ios-simulator"],
        "settingsKeys": ["env.IOS_SDK"],
        "brewPackages": ["xcbeautify"],
        "plugins": ["swift-lsp"]
      }
    }

The ledger is best-effort bookkeeping used to reverse an install. It is not
the source of truth for what is on disk; doctor checks look at disk directly.
ProjectState does no locking: callers serialize load/mutate/save with
mcs.core.file_lock.
"""

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mcs.core.atomic_write import write_text_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class McpServerRef:
    """A registered MCP server, enough to unregister it later."""

    name: str
    scope: str


@dataclass
class PackArtifactRecord:
    """Artifacts produced by installing one pack.

    Mutable accumulator: the installer adds to it component by component.
    Adders ignore duplicates.
    """

    mcp_servers: list[McpServerRef] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    template_sections: list[str] = field(default_factory=list)
    hook_commands: list[str] = field(default_factory=list)
    settings_keys: list[str] = field(default_factory=list)
    brew_packages: list[str] = field(default_factory=list)
    plugins: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.mcp_servers
            or self.files
            or self.template_sections
            or self.hook_commands
            or self.settings_keys
            or self.brew_packages
            or self.plugins
        )

    def add_mcp_server(self, ref: McpServerRef) -> None:
        if ref not in self.mcp_servers:
            self.mcp_servers.append(ref)

    def add_files(self, paths: list[str]) -> None:
        _extend_unique(self.files, paths)

    def add_template_section(self, identifier: str) -> None:
        _extend_unique(self.template_sections, [identifier])

    def add_hook_command(self, identifier: str) -> None:
        _extend_unique(self.hook_commands, [identifier])

    def add_settings_keys(self, keys: list[str]) -> None:
        _extend_unique(self.settings_keys, keys)

    def add_brew_package(self, package: str) -> None:
        _extend_unique(self.brew_packages, [package])

    def add_plugin(self, full_name: str) -> None:
        _extend_unique(self.plugins, [full_name])

    def to_dict(self) -> dict[str, Any]:
        return {
            "mcpServers": [{"name": ref.name, "scope": ref.scope} for ref in self.mcp_servers],
            "files": list(self.files),
            "templateSections": list(self.template_sections),
            "hookCommands": list(self.hook_commands),
            "settingsKeys": list(self.settings_keys),
            "brewPackages": list(self.brew_packages),
            "plugins": list(self.plugins),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "PackArtifactRecord":
        """Decode a record; categories missing from older ledgers default to empty."""
        return PackArtifactRecord(
            mcp_servers=[
                McpServerRef(name=entry["name"], scope=entry.get("scope", "local"))
                for entry in data.get("mcpServers", [])
            ],
            files=list(data.get("files", [])),
            template_sections=list(data.get("templateSections", [])),
            hook_commands=list(data.get("hookCommands", [])),
            settings_keys=list(data.get("settingsKeys", [])),
            brew_packages=list(data.get("brewPackages", [])),
            plugins=list(data.get("plugins", [])),
        )


def _extend_unique(target: list[str], values: list[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


class ProjectState:
    """Pack identifier to PackArtifactRecord mapping backed by one JSON file.

    Use ProjectState.load() to read the file; nothing is written until save().
    Only one instance per state file should be live in a process, otherwise
    the last save() wins.
    """

    def __init__(
        self, state_file: Path, packs: dict[str, PackArtifactRecord] | None = None
    ) -> None:
        self.state_file = state_file
        self._packs: dict[str, PackArtifactRecord] = dict(packs or {})
        self.load_error: str | None = None

    @staticmethod
    def load(state_file: Path) -> "ProjectState":
        """Load the ledger, recovering to an empty one if the file is missing or malformed.

        A malformed file sets `load_error` so callers can tell "never written"
        from "unreadable".
        """
        state = ProjectState(state_file)
        if not state_file.exists():
            return state

        try:
            content = state_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            state.load_error = str(e)
            logger.warning("Could not read %s: %s", state_file, e)
            return state

        if content.strip() and not content.lstrip().startswith("{"):
            state._packs = _parse_legacy_manifest(content)
            return state

        try:
            data = json.loads(content) if content.strip() else {}
        except json.JSONDecodeError as e:
            state.load_error = str(e)
            logger.warning("Ignoring malformed ledger %s: %s", state_file, e)
            return state

        if not isinstance(data, dict):
            state.load_error = "ledger root is not a JSON object"
            logger.warning("Ignoring malformed ledger %s: root is not an object", state_file)
            return state

        for pack_id, record in data.items():
            if not isinstance(record, dict):
                logger.warning("Skipping malformed ledger entry for pack '%s'", pack_id)
                continue
            try:
                state._packs[pack_id] = PackArtifactRecord.from_dict(record)
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed ledger entry for pack '%s': %s", pack_id, e)
        return state

    @property
    def exists(self) -> bool:
        return self.state_file.exists()

    @property
    def configured_packs(self) -> set[str]:
        return set(self._packs)

    def record_pack(self, pack_id: str) -> None:
        """Mark a pack installed; keeps an existing record untouched."""
        self._packs.setdefault(pack_id, PackArtifactRecord())

    def remove_pack(self, pack_id: str) -> None:
        self._packs.pop(pack_id, None)

    def artifacts_for(self, pack_id: str) -> PackArtifactRecord | None:
        return self._packs.get(pack_id)

    def set_artifacts(self, pack_id: str, record: PackArtifactRecord) -> None:
        """Replace the pack's record wholesale (also marks it installed)."""
        self._packs[pack_id] = record

    def to_dict(self) -> dict[str, Any]:
        return {pack_id: record.to_dict() for pack_id, record in sorted(self._packs.items())}

    def save(self) -> None:
        """Write the ledger with a single rename so a crash never truncates it."""
        content = json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"
        write_text_atomic(self.state_file, content)


def _parse_legacy_manifest(content: str) -> dict[str, PackArtifactRecord]:
    """Read packs from the old KEY=VALUE manifest (CONFIGURED_PACKS=a,b)."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        values[key] = value

    packs = [p.strip() for p in values.get("CONFIGURED_PACKS", "").split(",") if p.strip()]
    return {pack_id: PackArtifactRecord() for pack_id in sorted(packs)}


def migrate_legacy_manifest(legacy_path: Path, new_path: Path) -> bool:
    """Move the legacy manifest to its new location, byte for byte.

    Returns:
        True if a migration happened. False if the legacy file is absent or
        the new path already exists, so running it twice migrates once.
    """
    if not legacy_path.exists() or new_path.exists():
        return False

    new_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(legacy_path), str(new_path))
    logger.debug("Migrated %s to %s", legacy_path, new_path)
    return True
