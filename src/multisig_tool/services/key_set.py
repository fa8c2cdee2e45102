from __future__ import annotations

"""Validate raw (account hash, weight) pairs into an ordered key set.

The builder only enforces "first entry primary, rest secondary, order
preserved". Duplicate keys, the key-count ceiling and threshold consistency are
advisory checks exposed separately via ``advisory_issues``.
"""

from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from ..domain.errors import (
    InvalidAccountHashFormatError,
    InvalidIdentityError,
    InvalidWeightError,
    KeySetValidationError,
    NoKeysError,
)
from ..domain.identity import AccountHash
from ..domain.models import (
    MAX_ASSOCIATED_KEYS,
    MAX_WEIGHT,
    AssociatedKey,
    ContractSession,
    Thresholds,
)

RawKey = Tuple[str, int]


def _check_weight(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_WEIGHT:
        raise InvalidWeightError(name, value)
    return value


def _parse_account_hash(text: str) -> AccountHash:
    try:
        return AccountHash.from_formatted_str(text)
    except InvalidAccountHashFormatError as exc:
        raise InvalidIdentityError(text, exc.cause) from exc


def build_associated_keys(
    pairs: Sequence[RawKey], primary_should_be_deleted: bool
) -> Tuple[AssociatedKey, ...]:
    if not pairs:
        raise NoKeysError()

    keys: List[AssociatedKey] = []
    for index, (formatted_account_hash, weight) in enumerate(pairs):
        account_hash = _parse_account_hash(formatted_account_hash)
        weight = _check_weight(f"weight of key {index}", weight)
        if index == 0:
            keys.append(AssociatedKey.primary(account_hash, weight, primary_should_be_deleted))
        else:
            keys.append(AssociatedKey.secondary(account_hash, weight))
    return tuple(keys)


def build_thresholds(key_management_weight: int, deployment_weight: int) -> Thresholds:
    return Thresholds(
        key_management_weight=_check_weight("key management weight", key_management_weight),
        deployment_weight=_check_weight("deployment weight", deployment_weight),
    )


def build_session(
    session: ContractSession,
    pairs: Sequence[RawKey],
    primary_should_be_deleted: bool,
    key_management_weight: int,
    deployment_weight: int,
) -> ContractSession:
    """Return ``session`` with its keys and thresholds replaced wholesale."""
    keys = build_associated_keys(pairs, primary_should_be_deleted)
    thresholds = build_thresholds(key_management_weight, deployment_weight)
    return replace(session, keys=keys, thresholds=thresholds)


def remaining_weight(keys: Iterable[AssociatedKey]) -> int:
    """Total weight of the keys left once the primary is removed (if flagged)."""
    return sum(key.weight for key in keys if not key.remove_after_creation)


def advisory_issues(keys: Sequence[AssociatedKey], thresholds: Thresholds) -> List[str]:
    issues: List[str] = []
    if len(keys) > MAX_ASSOCIATED_KEYS:
        issues.append(f"at most {MAX_ASSOCIATED_KEYS} associated keys are allowed, got {len(keys)}")

    seen = set()
    for key in keys:
        if key.account_hash in seen:
            issues.append(f"{key.account_hash} is already added to associated keys")
        seen.add(key.account_hash)

    km = thresholds.key_management_weight
    dp = thresholds.deployment_weight
    if km < 1:
        issues.append("key management weight must be at least 1")
    if dp < 1:
        issues.append("deployment weight must be at least 1")
    if dp > km:
        issues.append(f"deployment weight {dp} exceeds key management weight {km}")

    total = remaining_weight(keys)
    if km > total:
        issues.append(f"key management weight {km} exceeds total remaining key weight {total}")
    if dp > total:
        issues.append(f"deployment weight {dp} exceeds total remaining key weight {total}")
    return issues


def ensure_consistent(keys: Sequence[AssociatedKey], thresholds: Thresholds) -> None:
    issues = advisory_issues(keys, thresholds)
    if issues:
        raise KeySetValidationError(issues)
