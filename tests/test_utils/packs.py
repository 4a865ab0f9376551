"""Write pack directories (techpack.yaml plus files) for tests."""

from pathlib import Path
from typing import Any

import yaml

from mcs.components.manifest import MANIFEST_FILE_NAME


def write_pack(
    pack_directory: Path, manifest: dict[str, Any], files: dict[str, str] | None = None
) -> Path:
    """Create `pack_directory` with a manifest and the given relative files.

    Returns:
        The pack directory
    """
    pack_directory.mkdir(parents=True, exist_ok=True)
    for relative, content in (files or {}).items():
        path = pack_directory / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    (pack_directory / MANIFEST_FILE_NAME).write_text(
        yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8"
    )
    return pack_directory


def skill_pack_manifest(identifier: str = "demo", version: str = "1.0.0") -> dict[str, Any]:
    """Manifest with one skill file copied from `skills/demo.md`."""
    return {
        "schemaVersion": 1,
        "identifier": identifier,
        "displayName": "Demo",
        "description": "Demo pack",
        "version": version,
        "components": [
            {
                "id": f"{identifier}.skill",
                "displayName": "Demo skill",
                "type": "skill",
                "installAction": {
                    "type": "copyFile",
                    "source": "skills/demo.md",
                    "destination": "demo.md",
                    "fileType": "skill",
                },
            }
        ],
    }
