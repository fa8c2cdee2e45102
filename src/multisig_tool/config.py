from __future__ import annotations

"""Runtime configuration for the builder.

Env vars:
- MULTISIG_BUILD_COMMAND (default "cargo"; "build --release" is appended)
- MULTISIG_PROJECT_ROOT (default: unset, falls back to the home directory)
- MULTISIG_CONTRACT_NAME (default "multisig_setup_contract")
"""

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_BUILD_COMMAND: Tuple[str, ...] = ("cargo",)
DEFAULT_CONTRACT_NAME = "multisig_setup_contract"


@dataclass(frozen=True)
class BuilderConfig:
    build_command: Tuple[str, ...] = DEFAULT_BUILD_COMMAND
    project_root: Optional[Path] = None
    contract_name: str = DEFAULT_CONTRACT_NAME

    @staticmethod
    def from_env() -> "BuilderConfig":
        raw_command = os.getenv("MULTISIG_BUILD_COMMAND", "").strip()
        command = tuple(shlex.split(raw_command)) if raw_command else DEFAULT_BUILD_COMMAND
        raw_root = os.getenv("MULTISIG_PROJECT_ROOT", "").strip()
        name = os.getenv("MULTISIG_CONTRACT_NAME", "").strip() or DEFAULT_CONTRACT_NAME
        return BuilderConfig(
            build_command=command,
            project_root=Path(raw_root).expanduser() if raw_root else None,
            contract_name=name,
        )
