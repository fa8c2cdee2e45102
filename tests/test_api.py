import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from fastapi.testclient import TestClient

from multisig_tool.api.main import app
from multisig_tool.domain.identity import AccountHash
from multisig_tool.services.pipeline import get_pipeline

from .utils import PRIMARY_HASH, SECONDARY_HASH


@pytest.fixture
def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _configure(client, **overrides):
    body = {
        "keys": [
            {"account_hash": PRIMARY_HASH, "weight": 2},
            {"account_hash": SECONDARY_HASH, "weight": 1},
        ],
        "remove_primary_after_creation": True,
        "key_management_weight": 1,
        "deployment_weight": 1,
    }
    body.update(overrides)
    return client.put("/contract/configuration", json=body)


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "Multisig Account Tool API"

    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["timestamp"].endswith("Z")


def test_configuration_round_trip(client):
    r = _configure(client)
    assert r.status_code == 200, r.text
    data = r.json()
    assert [k["kind"] for k in data["keys"]] == ["primary", "secondary"]
    assert data["keys"][0]["remove_after_creation"] is True
    assert data["keys"][1]["account_hash"] == SECONDARY_HASH

    r = client.get("/api/contract/configuration")
    assert r.status_code == 200
    assert r.json() == data


def test_configuration_errors_keep_previous_state(client):
    assert _configure(client).status_code == 200
    before = client.get("/contract/preview").text

    r = _configure(client, keys=[])
    assert r.status_code == 400
    assert r.json()["detail"] == "at least one key must be provided"

    r = _configure(client, keys=[{"account_hash": "account-hash-zz", "weight": 1}])
    assert r.status_code == 400
    assert "account-hash-zz" in r.json()["detail"]

    r = _configure(client, keys=[{"account_hash": PRIMARY_HASH, "weight": 1}], key_management_weight=5, strict=True)
    assert r.status_code == 400
    assert "exceeds total remaining key weight" in r.json()["detail"]

    # pydantic rejects weights outside a byte
    r = _configure(client, deployment_weight=300)
    assert r.status_code == 422

    assert client.get("/contract/preview").text == before


def test_preview_is_plain_text(client):
    r = client.get("/contract/preview")
    assert r.status_code == 200
    assert r.text == ""

    _configure(client)
    r = client.get("/contract/preview")
    assert r.headers["content-type"].startswith("text/plain")
    assert "const ACCOUNT_1_WEIGHT: u8 = 1;" in r.text
    assert r.text.rstrip().endswith("account::remove_associated_key(MAIN_ACCOUNT_HASH).unwrap_or_revert();\n}")


def test_project_defaults_and_updates(client, tmp_path):
    r = client.get("/contract/project")
    assert r.json() == {"project_root": str(tmp_path), "contract_name": "demo"}

    r = client.put("/contract/project", json={"project_root": str(tmp_path / "other"), "contract_name": "other"})
    assert r.status_code == 200
    assert r.json() == {"project_root": str(tmp_path / "other"), "contract_name": "other"}

    r = client.put("/contract/project", json={"contract_name": "../bad"})
    assert r.status_code == 400
    assert client.get("/contract/project").json()["contract_name"] == "other"


def test_generate_streams_build_log(client, tmp_path):
    _configure(client)
    r = client.post("/contract/generate")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")

    lines = r.text.splitlines()
    assert lines[0].startswith("Running ")
    assert "out 0" in lines
    assert "Compiled smart contract:" in lines
    assert lines[-1].endswith("demo.wasm")
    assert (tmp_path / "demo" / "src" / "main.rs").read_text(encoding="utf-8") == client.get("/contract/preview").text


def test_generate_reports_materialize_failure(client, tmp_path):
    _configure(client)
    (tmp_path / "demo").write_text("not a directory", encoding="utf-8")
    r = client.post("/contract/generate")
    assert r.status_code == 500
    assert "failed to write" in r.json()["detail"]


def test_generate_reports_missing_build_tool(tmp_path):
    from multisig_tool.config import BuilderConfig
    from multisig_tool.services.pipeline import ContractPipeline

    pipe = ContractPipeline(BuilderConfig(build_command=("definitely-not-a-real-build-tool-xyz",)))
    pipe.set_project_root(tmp_path)
    pipe.set_contract_name("demo")
    pipe.set_configuration([(PRIMARY_HASH, 1)], False, 1, 1)
    app.dependency_overrides[get_pipeline] = lambda: pipe
    try:
        r = TestClient(app).post("/contract/generate")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 503


def test_identity_endpoints(client):
    public_key = ed25519.Ed25519PrivateKey.generate().public_key()
    raw = public_key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
    expected = AccountHash.from_public_key("ed25519", raw).to_formatted_string()

    r = client.post("/identities/hex", json={"public_key": "01" + raw.hex()})
    assert r.status_code == 200
    assert r.json()["account_hash"] == expected

    r = client.post("/identities/hex", json={"public_key": "03" + raw.hex()})
    assert r.status_code == 400

    pem = public_key.public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
    r = client.post("/identities/file", files={"file": ("public_key.pem", pem, "application/x-pem-file")})
    assert r.status_code == 200
    assert r.json() == {"account_hash": expected, "source": "public key file public_key.pem"}

    r = client.post("/identities/file", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400

    r = client.post("/identities/validate", json={"account_hash": PRIMARY_HASH})
    assert r.status_code == 200
    r = client.post("/identities/validate", json={"account_hash": "account-hash-12"})
    assert r.status_code == 400
    assert "expected 64 hex digits" in r.json()["detail"]


def test_generate_uses_the_reported_project_defaults(tmp_path, fake_cargo):
    from multisig_tool.config import BuilderConfig
    from multisig_tool.services.pipeline import ContractPipeline

    pipe = ContractPipeline(BuilderConfig(build_command=fake_cargo, project_root=tmp_path))
    app.dependency_overrides[get_pipeline] = lambda: pipe
    try:
        client = TestClient(app)
        project = client.get("/contract/project").json()
        assert project == {"project_root": str(tmp_path), "contract_name": "multisig_setup_contract"}

        assert _configure(client).status_code == 200
        r = client.post("/contract/generate")
        assert r.status_code == 200, r.text
        assert r.text.splitlines()[-1].endswith("multisig_setup_contract.wasm")
        assert (tmp_path / "multisig_setup_contract" / "src" / "main.rs").exists()
        assert client.get("/contract/project").json() == project
    finally:
        app.dependency_overrides.clear()
