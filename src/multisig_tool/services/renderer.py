"""Contract source renderer using Jinja2.

Renders the session contract's ``main.rs`` plus the static project files from
templates shipped in ``multisig_tool/templates/contract``. Rendering is pure:
the same session always yields byte-identical text.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..domain.identity import AccountHash
from ..domain.models import ContractSession

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "contract"

MAIN_RS_TEMPLATE = "main.rs.j2"
CARGO_TOML_TEMPLATE = "Cargo.toml.j2"
CARGO_CONFIG_TEMPLATE = "config.toml.j2"
RUST_TOOLCHAIN_TEMPLATE = "rust-toolchain.j2"


def rust_byte_array(account_hash: AccountHash) -> str:
    """Format the raw hash bytes as a Rust array literal, e.g. ``[1, 2, 3]``."""
    return "[" + ", ".join(str(byte) for byte in account_hash.value) + "]"


@lru_cache(maxsize=None)
def _build_env(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(enabled_extensions=(".html", ".xml"), default_for_string=False),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["byte_array"] = rust_byte_array
    return env


def render_contract_source(session: ContractSession) -> str:
    """Render ``src/main.rs`` for the session.

    Returns an empty string while the session has no keys or either threshold
    is still zero.
    """
    if not session.keys or not session.thresholds.configured:
        return ""

    template = _build_env().get_template(MAIN_RS_TEMPLATE)
    return template.render(
        primary=session.primary_key,
        secondary_keys=session.secondary_keys,
        thresholds=session.thresholds,
    )


def render_cargo_toml(contract_name: str) -> str:
    return _build_env().get_template(CARGO_TOML_TEMPLATE).render(contract_name=contract_name)


def render_cargo_config() -> str:
    return _build_env().get_template(CARGO_CONFIG_TEMPLATE).render()


def render_rust_toolchain() -> str:
    return _build_env().get_template(RUST_TOOLCHAIN_TEMPLATE).render()
