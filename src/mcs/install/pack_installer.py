"""Install every component of a pack and record what it produced."""

import logging
from dataclasses import dataclass
from pathlib import Path

from mcs.components.manifest import PackManifest
from mcs.core import template
from mcs.core.atomic_write import write_text_atomic
from mcs.core.backup import Backup
from mcs.core.environment import (
    Environment,
    hook_file_for,
    instructions_file_for,
)
from mcs.core.project_state import PackArtifactRecord, ProjectState
from mcs.gateway.shell.abc import Shell
from mcs.install.executor import ComponentExecutor, ComponentResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackInstallResult:
    pack_id: str
    results: tuple[ComponentResult, ...]
    record: PackArtifactRecord

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)

    @property
    def failed(self) -> list[ComponentResult]:
        return [result for result in self.results if not result.success]


def resolve_builtin_values(shell: Shell, project_path: Path | None) -> dict[str, str]:
    """Values every pack can use: REPO_NAME and PROJECT_DIR_NAME in project scope.

    REPO_NAME is the name of the enclosing git checkout, falling back to the
    project directory name outside a repository.
    """
    if project_path is None:
        return {}
    repo_name = project_path.name
    result = shell.run(["git", "rev-parse", "--show-toplevel"], cwd=project_path)
    if result.succeeded and result.stdout:
        repo_name = Path(result.stdout.strip()).name
    return {"REPO_NAME": repo_name, "PROJECT_DIR_NAME": project_path.name}


class PackInstaller:
    """Installs packs into a project, or into the home config when `project_path` is None."""

    def __init__(
        self,
        environment: Environment,
        shell: Shell,
        state: ProjectState,
        project_path: Path | None,
        backup: Backup,
    ) -> None:
        self.environment = environment
        self.shell = shell
        self.state = state
        self.project_path = project_path
        self.backup = backup
        self.executor = ComponentExecutor(environment, shell, backup)

    def install(self, manifest: PackManifest, resolved_values: dict[str, str]) -> PackInstallResult:
        """Execute the pack's components in declared order, then save the ledger.

        Components that fail are reported in the result; the remaining
        components still run. Artifacts from an earlier install of the pack
        stay recorded.
        """
        pack_id = manifest.identifier
        previous = self.state.artifacts_for(pack_id)
        record = (
            PackArtifactRecord.from_dict(previous.to_dict())
            if previous is not None
            else PackArtifactRecord()
        )

        results: list[ComponentResult] = []
        for component in manifest.components:
            if self.executor.is_already_installed(component, self.project_path):
                logger.debug("Component %s already installed", component.id)
                results.append(
                    ComponentResult(
                        component_id=component.id, success=True, message="already installed"
                    )
                )
                continue
            results.append(
                self.executor.execute(component, record, self.project_path, resolved_values)
            )

        results.extend(self._compose_templates(manifest, record, resolved_values))
        results.extend(self._inject_hook_contributions(manifest, record))

        self.state.set_artifacts(pack_id, record)
        self.state.save()
        return PackInstallResult(pack_id=pack_id, results=tuple(results), record=record)

    def _compose_templates(
        self,
        manifest: PackManifest,
        record: PackArtifactRecord,
        resolved_values: dict[str, str],
    ) -> list[ComponentResult]:
        if not manifest.templates:
            return []

        path = instructions_file_for(self.environment, self.project_path)
        content = path.read_text(encoding="utf-8") if path.exists() else ""
        results: list[ComponentResult] = []
        updated = content
        for contribution in manifest.templates:
            result_id = f"{manifest.identifier}.template.{contribution.section_identifier}"
            if contribution.section_identifier in template.unpaired_sections(updated):
                results.append(
                    ComponentResult(
                        component_id=result_id,
                        success=False,
                        message=f"unpaired section markers in {path.name}; fix them by hand",
                    )
                )
                continue
            body = template.substitute(contribution.content.rstrip("\n"), resolved_values)
            leftover = template.find_unreplaced_placeholders(body)
            if leftover:
                logger.warning(
                    "Section '%s' has unreplaced placeholders: %s",
                    contribution.section_identifier,
                    ", ".join(leftover),
                )
            updated = template.replace_section(
                updated, contribution.section_identifier, body, manifest.version
            )
            record.add_template_section(contribution.section_identifier)
            results.append(
                ComponentResult(component_id=result_id, success=True, message="composed")
            )

        if updated != content:
            self.backup.capture(path)
            write_text_atomic(path, updated)
        return results

    def _inject_hook_contributions(
        self, manifest: PackManifest, record: PackArtifactRecord
    ) -> list[ComponentResult]:
        results: list[ComponentResult] = []
        for contribution in manifest.hook_contributions:
            result_id = f"{manifest.identifier}.hook.{contribution.hook_name}"
            hook_file = hook_file_for(self.environment, self.project_path, contribution.hook_name)
            try:
                injected = self.executor.inject_hook_fragment(
                    contribution.fragment, manifest.identifier, manifest.version, hook_file
                )
            except OSError as e:
                results.append(
                    ComponentResult(component_id=result_id, success=False, message=str(e))
                )
                continue
            if not injected:
                results.append(
                    ComponentResult(
                        component_id=result_id,
                        success=False,
                        message=f"{hook_file.name} missing or has no extension marker",
                    )
                )
                continue
            record.add_hook_command(manifest.identifier)
            results.append(
                ComponentResult(component_id=result_id, success=True, message="injected")
            )
        return results
