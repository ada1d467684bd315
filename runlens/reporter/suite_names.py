"""Pluggable suite-name normalization policies."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from runlens.exceptions import ConfigError

if TYPE_CHECKING:
    from runlens.types import SuiteNameTransform

_NUMERIC_SUFFIX = re.compile(r"(?:[\s_-]*suite)?[\s_-]*\d+$", re.IGNORECASE)
_LEADING_TEST_TOKEN = re.compile(r"^\s*(test\s*\d+)", re.IGNORECASE)


def keep_name(name: str) -> str:
    return name


def strip_numeric_suffix(name: str) -> str:
    """Drop a trailing ``suiteN``/``N`` token: ``"Login suite2"`` -> ``"Login"``.

    A name that would become empty is returned unchanged.
    """
    stripped = _NUMERIC_SUFFIX.sub("", name).strip()
    return stripped or name


def leading_test_token(name: str) -> str:
    """Extract a leading ``Test N`` token: ``"Test 12 - checkout"`` -> ``"Test 12"``."""
    match = _LEADING_TEST_TOKEN.match(name)
    return match.group(1) if match else name


POLICIES: dict[str, SuiteNameTransform] = {
    "none": keep_name,
    "strip_numeric_suffix": strip_numeric_suffix,
    "leading_test_token": leading_test_token,
}


def resolve_policy(policy: str | SuiteNameTransform | None) -> SuiteNameTransform:
    """Return the transform for a policy name, or the callable itself."""
    if policy is None:
        return keep_name
    if callable(policy):
        return policy
    try:
        return POLICIES[policy]
    except KeyError:
        msg = f"Unknown suite name policy: {policy!r} (expected one of {sorted(POLICIES)})"
        raise ConfigError(msg) from None
