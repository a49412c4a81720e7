"""Module for upgrading actions referenced by GitHub Actions workflows.

Actions are only moved to a newer major version, e.g. `actions/checkout@v3`
to `actions/checkout@v4`, since actions publish floating major version tags.
"""

from collections.abc import Iterable
from functools import partial
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .exceptions import InputException, VersionFormatException
from .orchestrator import DEFAULT_CONCURRENCY, BatchResult, run_batch
from .registry import ReleaseResolver
from .tags import parse_version

__all__ = [
    "find_workflows",
    "find_actions",
    "suggest_major_upgrade",
    "process_workflow",
    "apply_replacements",
]

_LOGGER = logging.getLogger(__name__)

WORKFLOWS_DIR = Path(".github") / "workflows"
WORKFLOW_PATTERNS = ("*.yaml", "*.yml")
USES_KEY = "uses"
USES_ANCHOR = "uses:"
DEFAULT_BRANCH_REF = "master"


def find_workflows(target: Path) -> list[Path]:
    """Return the workflow files for a file or a repository directory."""
    if not target.exists():
        raise InputException(f"Path does not exist: {target}")
    if not target.is_dir():
        return [target]

    workflows_dir = target / WORKFLOWS_DIR
    if not workflows_dir.is_dir():
        raise InputException(f"Workflow directory does not exist: {workflows_dir}")

    files: list[Path] = []
    for pattern in WORKFLOW_PATTERNS:
        files.extend(sorted(workflows_dir.glob(pattern)))
    return files


def _parse_workflow(content: str) -> dict[str, Any]:
    try:
        workflow = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse workflow: {err}") from err
    if not isinstance(workflow, dict):
        raise InputException("Workflow is not a mapping")
    return workflow


def find_actions(content: str) -> list[str]:
    """Return the `uses:` references of every step in a workflow."""
    workflow = _parse_workflow(content)
    if not isinstance(jobs := workflow.get("jobs"), dict):
        raise InputException("jobs not found in workflow")

    actions: list[str] = []
    for job_name, job in jobs.items():
        if not isinstance(job, dict):
            raise InputException(f"job {job_name} is not a map")

        # A job calling a reusable workflow has no steps
        if isinstance(uses := job.get(USES_KEY), str) and "steps" not in job:
            actions.append(uses)
            continue

        if not isinstance(steps := job.get("steps"), list):
            raise InputException(f"steps not found or not a list in job {job_name}")

        for step in steps:
            if not isinstance(step, dict):
                raise InputException(f"step is not a map in job {job_name}")
            name = step.get("name") or step.get(USES_KEY)
            if isinstance(uses := step.get(USES_KEY), str) and uses:
                _LOGGER.debug("%s: %s", name, uses)
                actions.append(uses)
            elif name:
                _LOGGER.debug("%s", name)

    return list(dict.fromkeys(actions))


async def suggest_major_upgrade(releases: ReleaseResolver, uses: str) -> str | None:
    """Return the newer major version tag for an action, e.g. `v4`.

    References that are not pinned to a `v` prefixed version, such as a
    branch, a commit or a local action, are never upgraded.
    """
    action_path, sep, current = uses.partition("@")
    if not sep or current == DEFAULT_BRANCH_REF:
        return None
    owner, sep, repo = action_path.partition("/")
    if not sep or not current.startswith("v"):
        return None
    # Actions in a sub directory e.g. github/codeql-action/init are released
    # from the repository itself
    repo = repo.split("/")[0]

    latest = await releases.latest_release(owner, repo)

    if (current_version := parse_version(current)) is None:
        raise VersionFormatException(uses, current)
    if (latest_version := parse_version(latest)) is None:
        raise VersionFormatException(f"{owner}/{repo}", latest)

    if latest_version.major > current_version.major:
        _LOGGER.info("[%s] %s => v%d", action_path, current, latest_version.major)
        return f"v{latest_version.major}"
    return None


async def process_workflow(
    content: str,
    releases: ReleaseResolver,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> BatchResult:
    """Resolve the major version upgrades for every action in a workflow.

    The updates map each `owner/repo@version` reference to the new version.
    """
    actions = find_actions(content)
    return await run_batch(
        actions, partial(suggest_major_upgrade, releases), concurrency
    )


def _replace_in_uses_lines(content: str, old: str, new: str) -> str:
    pattern = re.compile(rf"(?<![\w./-]){re.escape(old)}(?![\w.-])")
    lines = content.splitlines(keepends=True)
    for i, line in enumerate(lines):
        if USES_ANCHOR in line:
            lines[i] = pattern.sub(lambda _: new, line)
    return "".join(lines)


def apply_replacements(content: str, replacements: dict[str, str]) -> str:
    """Rewrite `uses:` lines with the new version of each action."""
    for old, new_version in replacements.items():
        action_path, _, _ = old.partition("@")
        content = _replace_in_uses_lines(content, old, f"{action_path}@{new_version}")
    return content


def changed_actions(replacements: dict[str, str]) -> Iterable[tuple[str, str]]:
    """Return the old and new reference for each replacement, sorted."""
    for old, new_version in sorted(replacements.items()):
        action_path, _, _ = old.partition("@")
        yield old, f"{action_path}@{new_version}"
