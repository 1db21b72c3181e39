"""Hook-selection configuration.

One mapping per line: a comma-separated list of hook categories, whitespace,
then the label of the output directory the instrumented program goes to::

    # branch coverage only
    if,br_if,br_table,select  cov-branch

Comment lines (`#`) and blank lines are skipped.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from branchcov.constants import BRANCH_HOOKS, HOOK_ALL
from branchcov.errors import HookConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookSelection:
    categories: frozenset[str]
    output_dir: str
    line: int

    def enables(self, category: str) -> bool:
        return HOOK_ALL in self.categories or category in self.categories


def parse_hook_config(lines: Iterable[str]) -> list[HookSelection]:
    selections: list[HookSelection] = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        parts = line.rsplit(None, 1)
        if len(parts) != 2:
            raise HookConfigError(lineno, f"expected '<categories> <output-dir>', got {line!r}")
        categories_field, output_dir = parts

        categories = [c.strip() for c in categories_field.split(",")]
        if any(not c for c in categories):
            raise HookConfigError(lineno, f"empty hook category in {categories_field!r}")

        selections.append(HookSelection(frozenset(categories), output_dir, lineno))

    logger.debug(f"Parsed {len(selections)} hook selections")
    return selections


def load_hook_config(path: str | Path) -> list[HookSelection]:
    with open(path) as f:
        return parse_hook_config(f)


def missing_branch_hooks(selection: HookSelection) -> list[str]:
    """Branch categories the recorder needs that this selection leaves out."""
    return [category for category in BRANCH_HOOKS if not selection.enables(category)]


def branch_hooks_enabled(selection: HookSelection) -> bool:
    return not missing_branch_hooks(selection)
