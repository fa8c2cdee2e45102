from __future__ import annotations

"""Error kinds raised by the contract builder.

Validation errors also subclass ``ValueError`` so callers (and the HTTP
layer) can treat them as bad input without importing every kind.
"""

from pathlib import Path
from typing import List, Optional, Sequence


class MultisigToolError(Exception):
    """Base class for every error raised by this package."""


class NoKeysError(MultisigToolError, ValueError):
    def __init__(self) -> None:
        super().__init__("at least one key must be provided")


class InvalidAccountHashFormatError(MultisigToolError, ValueError):
    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"failed to parse as a formatted account hash: {cause}")


class InvalidIdentityError(MultisigToolError, ValueError):
    """A configured key could not be parsed as an account hash."""

    def __init__(self, input: str, cause: str) -> None:
        self.input = input
        self.cause = cause
        super().__init__(f"failed to parse {input!r} as a formatted account hash: {cause}")


class ParsePublicKeyFileError(MultisigToolError, ValueError):
    def __init__(self, file: str, cause: Optional[str] = None) -> None:
        self.file = file
        self.cause = cause
        message = f"failed to parse {file} as a public key"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ParseHexPublicKeyError(MultisigToolError, ValueError):
    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"failed to parse as a hex-encoded public key: {cause}")


class InvalidWeightError(MultisigToolError, ValueError):
    def __init__(self, name: str, value: int) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name} must be between 0 and 255, got {value}")


class KeySetValidationError(MultisigToolError, ValueError):
    """Raised by strict validation when advisory checks fail."""

    def __init__(self, issues: Sequence[str]) -> None:
        self.issues: List[str] = list(issues)
        super().__init__("invalid key configuration: " + "; ".join(self.issues))


class InvalidContractNameError(MultisigToolError, ValueError):
    def __init__(self, name: str, cause: str) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"invalid contract name {name!r}: {cause}")


class MaterializeError(MultisigToolError):
    """Writing a generated project file failed."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"failed to write {self.path}: {cause}")


class BuildSpawnError(MultisigToolError):
    def __init__(self, command: Sequence[str], cause: BaseException) -> None:
        self.command = list(command)
        self.cause = cause
        super().__init__(f"failed to launch {' '.join(self.command)}: {cause}")
