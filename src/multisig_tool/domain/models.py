from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from .identity import AccountHash

MAX_WEIGHT = 255
# casper_types::account::MAX_ASSOCIATED_KEYS
MAX_ASSOCIATED_KEYS = 10


class KeyKind(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class AssociatedKey:
    account_hash: AccountHash
    weight: int
    kind: KeyKind = KeyKind.SECONDARY
    remove_after_creation: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.weight <= MAX_WEIGHT:
            raise ValueError(f"weight must be between 0 and {MAX_WEIGHT}, got {self.weight}")
        if self.remove_after_creation and self.kind is not KeyKind.PRIMARY:
            raise ValueError("only the primary key can be removed after creation")

    @classmethod
    def primary(cls, account_hash: AccountHash, weight: int, remove_after_creation: bool) -> "AssociatedKey":
        return cls(account_hash, weight, KeyKind.PRIMARY, remove_after_creation)

    @classmethod
    def secondary(cls, account_hash: AccountHash, weight: int) -> "AssociatedKey":
        return cls(account_hash, weight, KeyKind.SECONDARY)

    @property
    def is_primary(self) -> bool:
        return self.kind is KeyKind.PRIMARY


@dataclass(frozen=True)
class Thresholds:
    key_management_weight: int = 0
    deployment_weight: int = 0

    @property
    def configured(self) -> bool:
        return self.key_management_weight > 0 and self.deployment_weight > 0


@dataclass(frozen=True)
class ContractSession:
    """Snapshot of everything needed to render and build one contract.

    Never mutated in place; updates produce a new instance.
    """

    project_root: Path = field(default_factory=Path)
    contract_name: str = ""
    keys: Tuple[AssociatedKey, ...] = ()
    thresholds: Thresholds = field(default_factory=Thresholds)

    @property
    def primary_key(self) -> Optional[AssociatedKey]:
        return self.keys[0] if self.keys else None

    @property
    def secondary_keys(self) -> Tuple[AssociatedKey, ...]:
        return self.keys[1:]

    @property
    def project_dir(self) -> Path:
        return self.project_root / self.contract_name
