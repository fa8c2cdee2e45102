import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
src_str = str(ROOT / "src")
if src_str not in sys.path:
    sys.path.insert(0, src_str)

FAKE_CARGO = Path(__file__).resolve().parent / "fixtures" / "fake_cargo.py"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for name in ("MULTISIG_BUILD_COMMAND", "MULTISIG_PROJECT_ROOT", "MULTISIG_CONTRACT_NAME"):
        monkeypatch.delenv(name, raising=False)
    for name in ("FAKE_CARGO_LINES", "FAKE_CARGO_DELAY", "FAKE_CARGO_EXIT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_cargo():
    """Build command prefix that runs the fake cargo script."""
    return (sys.executable, str(FAKE_CARGO))


@pytest.fixture
def pipeline(tmp_path, fake_cargo):
    from multisig_tool.config import BuilderConfig
    from multisig_tool.services.pipeline import ContractPipeline

    pipe = ContractPipeline(BuilderConfig(build_command=fake_cargo))
    pipe.set_project_root(tmp_path)
    pipe.set_contract_name("demo")
    return pipe
