"""Schema document versions.

A schema's ``version`` is plain ``MAJOR.MINOR.PATCH``: no leading zeros, no
prerelease or build suffix.
"""

import re
from typing import NamedTuple

from vaultkeeper.schema.errors import VersionFormatError

VERSION_PATTERN = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


class Version(NamedTuple):
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(version: str) -> Version:
    """Parse ``MAJOR.MINOR.PATCH``.

    Raises:
        VersionFormatError: For anything else, including prerelease suffixes.
    """
    match = VERSION_PATTERN.match(version.strip()) if isinstance(version, str) else None
    if match is None:
        raise VersionFormatError(
            f'Invalid schema version "{version}": expected MAJOR.MINOR.PATCH (e.g. "1.2.0")'
        )
    major, minor, patch = (int(part) for part in match.groups())
    return Version(major, minor, patch)


def is_valid_version(version: str) -> bool:
    try:
        parse_version(version)
    except VersionFormatError:
        return False
    return True


def compare_versions(a: str, b: str) -> int:
    """-1, 0 or 1 as ``a`` sorts before, equal to, or after ``b``."""
    left, right = parse_version(a), parse_version(b)
    return (left > right) - (left < right)
