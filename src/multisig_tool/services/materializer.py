from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from ..domain.errors import InvalidContractNameError, MaterializeError
from ..domain.models import ContractSession
from .renderer import (
    render_cargo_config,
    render_cargo_toml,
    render_contract_source,
    render_rust_toolchain,
)

logger = logging.getLogger("multisig.materializer")

WASM_TARGET = "wasm32-unknown-unknown"


@dataclass(frozen=True)
class ProjectLayout:
    """Paths of a generated contract project."""

    project_dir: Path
    contract_name: str

    @classmethod
    def for_session(cls, session: ContractSession) -> "ProjectLayout":
        return cls(project_dir=session.project_dir, contract_name=session.contract_name)

    @property
    def cargo_config(self) -> Path:
        return self.project_dir / ".cargo" / "config.toml"

    @property
    def source_file(self) -> Path:
        return self.project_dir / "src" / "main.rs"

    @property
    def cargo_toml(self) -> Path:
        return self.project_dir / "Cargo.toml"

    @property
    def rust_toolchain(self) -> Path:
        return self.project_dir / "rust-toolchain"

    @property
    def artifact(self) -> Path:
        return self.project_dir / "target" / WASM_TARGET / "release" / f"{self.contract_name}.wasm"


def validate_contract_name(name: str) -> str:
    if not name or not name.strip():
        raise InvalidContractNameError(name, "name must not be empty")
    if "/" in name or "\\" in name:
        raise InvalidContractNameError(name, "name must not contain path separators")
    if name in (".", ".."):
        raise InvalidContractNameError(name, "name must not be a relative directory")
    return name


def _write(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise MaterializeError(path, exc) from exc


def project_files(session: ContractSession, layout: ProjectLayout) -> Dict[Path, str]:
    """Map every project file to its contents, in write order."""
    return {
        layout.cargo_config: render_cargo_config(),
        layout.source_file: render_contract_source(session),
        layout.cargo_toml: render_cargo_toml(session.contract_name),
        layout.rust_toolchain: render_rust_toolchain(),
    }


def materialize_project(session: ContractSession) -> ProjectLayout:
    """Write the contract project for ``session`` to disk.

    Files are overwritten whole. A failure leaves previously written files in
    place and raises ``MaterializeError``.
    """
    validate_contract_name(session.contract_name)
    layout = ProjectLayout.for_session(session)
    try:
        layout.project_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise MaterializeError(layout.project_dir, exc) from exc

    for path, content in project_files(session, layout).items():
        _write(path, content)
    logger.info("materialized contract project name=%s dir=%s", layout.contract_name, layout.project_dir)
    return layout
