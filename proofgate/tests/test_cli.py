from __future__ import annotations

import json

from typer.testing import CliRunner

from proofgate.cli.proof_tool import _log_level, app
from proofgate.config import M31
from proofgate.types.job import IOBinding
from proofgate.verify import hashing
from proofgate.verify import pow as vpow
from proofgate.verify.structural import expected_io_element

from .conftest import make_body

runner = CliRunner()


def _write(tmp_path, name, obj):
    p = tmp_path / name
    p.write_text(json.dumps(obj), encoding="utf-8")
    return p


def test_hash_command(tmp_path):
    seq = [3, 1, 4, 1, 5]
    path = _write(tmp_path, "proof.json", seq)
    res = runner.invoke(app, ["hash", str(path)])
    assert res.exit_code == 0, res.output
    assert res.output.strip() == hashing.proof_hash_hex(seq)

    res = runner.invoke(app, ["hash", str(path), "--json"])
    out = json.loads(res.output)
    assert out["elements"] == 5
    assert out["pow_seed"] == "0x" + hashing.pow_seed(seq).hex()


def test_hash_missing_file(tmp_path):
    res = runner.invoke(app, ["hash", str(tmp_path / "nope.json")])
    assert res.exit_code == 2


def test_io_commit_command():
    res = runner.invoke(
        app,
        ["io-commit", "-i", "1", "-i", "2", "-o", "3", "--trace-length", "64", "--trace-width", "4", "--json"],
    )
    assert res.exit_code == 0, res.output
    out = json.loads(res.output)
    binding = IOBinding((1, 2), (3,), 64, 4)
    assert out["io_commitment"] == "0x" + hashing.io_commitment((1, 2), (3,), 64, 4).hex()
    assert out["field_element"] == expected_io_element(binding, M31)


def test_grind_command():
    seed = hashing.pow_seed([9, 9, 9, 0])
    res = runner.invoke(app, ["grind", "--seed", "0x" + seed.hex(), "--bits", "8"])
    assert res.exit_code == 0, res.output
    nonce = int(res.output.strip())
    assert vpow.verify_pow(seed, nonce, 8)

    res = runner.invoke(app, ["grind", "--seed", "0x1234"])
    assert res.exit_code == 2


def test_seal_then_check(tmp_path):
    body = _write(tmp_path, "body.json", make_body(39))
    io = _write(tmp_path, "io.json", {"io_binding": {"inputs": [1], "outputs": [2], "trace_length": 8, "trace_width": 2}})
    res = runner.invoke(app, ["seal", str(body), "--bits", "8", "--io", str(io)])
    assert res.exit_code == 0, res.output
    sealed = json.loads(res.output)
    assert len(sealed["proof_data"]) == 40
    proof = _write(tmp_path, "proof.json", sealed)

    res = runner.invoke(app, ["check", str(proof), "--bits", "8", "--io", str(io), "--json"])
    assert res.exit_code == 0, res.output
    out = json.loads(res.output)
    assert out["ok"] is True
    assert out["proof_hash"] == sealed["proof_hash"]

    # without a binding the IO slot is not inspected
    res = runner.invoke(app, ["check", str(proof), "--bits", "8"])
    assert res.exit_code == 0, res.output


def test_check_rejects_with_reason(tmp_path):
    body = _write(tmp_path, "body.json", make_body(39))
    sealed = json.loads(runner.invoke(app, ["seal", str(body), "--bits", "8"]).output)
    proof = _write(tmp_path, "proof.json", sealed)
    res = runner.invoke(app, ["check", str(proof), "--bits", "8", "--hash", "0x" + "00" * 32, "--json"])
    assert res.exit_code == 1
    assert json.loads(res.output)["reason"] == "hash_mismatch"

    short = _write(tmp_path, "short.json", make_body(10))
    res = runner.invoke(app, ["check", str(short), "--bits", "8"])
    assert res.exit_code == 1


def test_config_command(tmp_path, monkeypatch):
    monkeypatch.delenv("PROOFGATE_CONFIG_FILE", raising=False)
    monkeypatch.setenv("PROOFGATE_POW_BITS", "20")
    res = runner.invoke(app, ["config"])
    assert res.exit_code == 0, res.output
    assert json.loads(res.output)["verifier"]["pow_bits"] == 20

    path = _write(tmp_path, "gw.json", {"queue": {"default_list_limit": 7}})
    res = runner.invoke(app, ["config", "--file", str(path)])
    assert json.loads(res.output)["queue"]["default_list_limit"] == 7

    res = runner.invoke(app, ["config", "--file", str(tmp_path / "missing.json")])
    assert res.exit_code == 2


def test_log_level_comes_from_config(tmp_path, monkeypatch):
    monkeypatch.delenv("PROOFGATE_CONFIG_FILE", raising=False)
    monkeypatch.delenv("PROOFGATE_LOG_LEVEL", raising=False)
    assert _log_level(False) == "INFO"
    assert _log_level(True) == "DEBUG"

    monkeypatch.setenv("PROOFGATE_LOG_LEVEL", "error")
    assert _log_level(False) == "ERROR"
    monkeypatch.delenv("PROOFGATE_LOG_LEVEL")

    path = _write(tmp_path, "gw.json", {"log_level": "critical"})
    monkeypatch.setenv("PROOFGATE_CONFIG_FILE", str(path))
    assert _log_level(False) == "CRITICAL"

    monkeypatch.setenv("PROOFGATE_CONFIG_FILE", str(tmp_path / "missing.json"))
    assert _log_level(False) == "WARNING"
