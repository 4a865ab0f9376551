"""Run doctor checks for many components and summarize the results."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from mcs.components.models import ComponentDefinition
from mcs.core.environment import Environment
from mcs.doctor.checks import CheckResult, CheckStatus, DoctorCheck, failed
from mcs.doctor.derived import all_doctor_checks
from mcs.gateway.shell.abc import Shell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckOutcome:
    section: str
    name: str
    result: CheckResult


@dataclass(frozen=True)
class DoctorReport:
    outcomes: tuple[CheckOutcome, ...]

    def by_section(self) -> dict[str, list[CheckOutcome]]:
        """Outcomes grouped by section, in order of first appearance."""
        sections: dict[str, list[CheckOutcome]] = {}
        for outcome in self.outcomes:
            sections.setdefault(outcome.section, []).append(outcome)
        return sections

    def count(self, status: CheckStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.result.status is status)

    @property
    def has_failures(self) -> bool:
        return self.count(CheckStatus.FAIL) > 0


def run_check(check: DoctorCheck) -> CheckOutcome:
    """Run one check; an I/O error while probing counts as a failure."""
    try:
        result = check.check()
    except OSError as e:
        logger.debug("Check %s raised %s", check.name, e)
        result = failed(f"could not check: {e}")
    return CheckOutcome(section=check.section, name=check.name, result=result)


def run_doctor(
    components: Sequence[ComponentDefinition],
    environment: Environment,
    shell: Shell,
    project_path: Path | None = None,
    extra_checks: Sequence[DoctorCheck] = (),
) -> DoctorReport:
    """Run every component's checks, then `extra_checks`, in order."""
    outcomes: list[CheckOutcome] = []
    for component in components:
        for check in all_doctor_checks(component, environment, shell, project_path):
            outcomes.append(run_check(check))
    for check in extra_checks:
        outcomes.append(run_check(check))
    return DoctorReport(outcomes=tuple(outcomes))
