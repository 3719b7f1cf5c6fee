"""Version advisor.

Maps a plan's classification to the bump a maintainer would choose: anything
that can orphan existing data is a major change, pure additions are minor, the
rest is a patch.
"""

from typing import Literal

from vaultkeeper.migration.models import MigrationPlan
from vaultkeeper.schema.version import Version, parse_version

BumpKind = Literal["major", "minor", "patch"]


def bump_version(current: str, kind: BumpKind) -> str:
    parsed = parse_version(current)
    if kind == "major":
        return str(Version(parsed.major + 1, 0, 0))
    if kind == "minor":
        return str(Version(parsed.major, parsed.minor + 1, 0))
    return str(Version(parsed.major, parsed.minor, parsed.patch + 1))


def classify_bump(has_non_deterministic: bool, has_deterministic: bool) -> BumpKind:
    if has_non_deterministic:
        return "major"
    if has_deterministic:
        return "minor"
    return "patch"


def suggest_version_bump(plan: MigrationPlan, current: str) -> str:
    """Suggested next version for ``plan`` starting from ``current``."""
    kind = classify_bump(bool(plan.non_deterministic), bool(plan.deterministic))
    return bump_version(current, kind)
