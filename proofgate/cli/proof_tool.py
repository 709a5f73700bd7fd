from __future__ import annotations

"""
proofgate.cli.proof_tool
========================

Offline tooling for provers and operators:

- hash       print the proof hash (and PoW seed) of a proof payload
- io-commit  compute the IO commitment a job's proofs must embed
- grind      find a PoW nonce for a seed at a given difficulty
- seal       turn a proof body into a submittable proof (IO slot + nonce)
- check      run the structural validator on a proof payload
- config     print the effective gateway configuration

Payload files may be JSON or CBOR: a bare array of field elements or an object
with `proof_data` (and optionally `proof_hash` / `io_binding`).

Examples
--------
proofgate hash proof.json
proofgate io-commit -i 1 -i 2 -o 3 --trace-length 1024 --trace-width 8
proofgate seal body.json --bits 16 --io job_io.json > proof.json
proofgate check proof.json --hash 0xabc... --json
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from proofgate import config as cfgmod
from proofgate import codec
from proofgate.types.job import IOBinding
from proofgate.verify import hashing
from proofgate.verify import pow as vpow
from proofgate.verify.structural import (StructuralValidator,
                                         expected_io_element, seal_proof)
from proofgate.version import __version__

app = typer.Typer(
    name="proofgate",
    add_completion=False,
    no_args_is_help=True,
    help="Hash, seal and check proofs for the proof verification gateway.",
)

console = Console()


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    logging.basicConfig(level=_log_level(verbose), format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# -------------------- utils --------------------


def _log_level(verbose: bool) -> str:
    if verbose:
        return "DEBUG"
    try:
        return cfgmod.load().log_level.upper()
    except (FileNotFoundError, ValueError):
        # commands that need the config report the error themselves
        return "WARNING"


def _die(msg: str, code: int = 2) -> None:
    typer.secho(msg, fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


def _read(path: Path) -> Any:
    try:
        return codec.read_file(path)
    except FileNotFoundError:
        _die(f"file not found: {path}")
    except ValueError as e:
        _die(str(e))


def _params(config_file: Optional[Path], bits: Optional[int] = None) -> cfgmod.VerifierParams:
    try:
        cfg = cfgmod.from_file(config_file) if config_file else cfgmod.load()
        params = cfg.verifier
        if bits is not None:
            params.pow_bits = bits
            params.validate()
    except (FileNotFoundError, ValueError) as e:
        _die(f"config: {e}")
    return params


def _io_from(obj: Any, io_file: Optional[Path]) -> Optional[IOBinding]:
    if io_file is not None:
        raw = _read(io_file)
        if isinstance(raw, dict) and "io_binding" in raw:
            raw = raw["io_binding"]
        return IOBinding.from_dict(raw)
    if isinstance(obj, dict) and obj.get("io_binding"):
        return IOBinding.from_dict(obj["io_binding"])
    return None


def _emit_json(obj: Dict[str, Any]) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


# -------------------- commands --------------------


@app.command("hash")
def cmd_hash(
    path: Path = typer.Argument(..., help="Proof payload (JSON or CBOR)."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print the proof hash of a payload."""
    obj = _read(path)
    try:
        seq = codec.proof_data_from_obj(obj)
        out = {
            "elements": len(seq),
            "proof_hash": hashing.proof_hash_hex(seq),
            "pow_seed": "0x" + hashing.pow_seed(seq).hex() if seq else None,
        }
    except ValueError as e:
        _die(str(e))
    if json_out:
        _emit_json(out)
        return
    typer.echo(out["proof_hash"])


@app.command("io-commit")
def cmd_io_commit(
    inputs: List[int] = typer.Option([], "--input", "-i", help="Input value (repeatable)."),
    outputs: List[int] = typer.Option([], "--output", "-o", help="Output value (repeatable)."),
    trace_length: int = typer.Option(..., "--trace-length", min=1),
    trace_width: int = typer.Option(..., "--trace-width", min=1),
    modulus: int = typer.Option(cfgmod.M31, "--modulus", help="Field modulus for the embedded element."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Compute the IO commitment and the field element proofs must carry."""
    binding = IOBinding(tuple(inputs), tuple(outputs), trace_length, trace_width)
    digest = hashing.io_commitment(binding.inputs, binding.outputs, trace_length, trace_width)
    out = {
        "io_binding": binding.to_dict(),
        "io_commitment": "0x" + digest.hex(),
        "field_element": expected_io_element(binding, modulus),
    }
    if json_out:
        _emit_json(out)
        return
    typer.echo(f"{out['io_commitment']} -> {out['field_element']}")


@app.command("grind")
def cmd_grind(
    seed: str = typer.Option(..., "--seed", help="32-byte seed as hex."),
    bits: int = typer.Option(vpow.DEFAULT_POW_BITS, "--bits", min=1, max=64),
    start: int = typer.Option(1, "--start", min=1),
    max_nonce: Optional[int] = typer.Option(None, "--max-nonce"),
) -> None:
    """Search for a nonce whose PoW digest meets the difficulty."""
    try:
        seed_b = hashing.hex_to_digest(seed)
        nonce = vpow.grind(seed_b, bits, start=start, max_nonce=max_nonce)
    except ValueError as e:
        _die(str(e))
    typer.echo(str(nonce))


@app.command("seal")
def cmd_seal(
    path: Path = typer.Argument(..., help="Proof body without nonce (JSON or CBOR)."),
    bits: Optional[int] = typer.Option(None, "--bits", help="Override PoW difficulty."),
    io_file: Optional[Path] = typer.Option(None, "--io", help="IO binding to embed (JSON or CBOR)."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Gateway config file."),
) -> None:
    """Embed the IO commitment, grind the nonce and print {proof_data, proof_hash}."""
    obj = _read(path)
    params = _params(config_file, bits)
    try:
        body = codec.proof_data_from_obj(obj)
        proof_data, ph = seal_proof(body, params, io_binding=_io_from(obj, io_file))
    except ValueError as e:
        _die(str(e))
    _emit_json({"proof_data": list(proof_data), "proof_hash": ph})


@app.command("check")
def cmd_check(
    path: Path = typer.Argument(..., help="Proof payload (JSON or CBOR)."),
    expected_hash: Optional[str] = typer.Option(None, "--hash", help="Claimed proof hash (defaults to the payload's)."),
    io_file: Optional[Path] = typer.Option(None, "--io", help="IO binding the proof must match."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Gateway config file."),
    bits: Optional[int] = typer.Option(None, "--bits", help="Override PoW difficulty."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run the structural validator. Exit code 1 when the proof is rejected."""
    obj = _read(path)
    params = _params(config_file, bits)
    try:
        seq = codec.proof_data_from_obj(obj)
    except ValueError as e:
        _die(str(e))
    if expected_hash is None and isinstance(obj, dict):
        expected_hash = obj.get("proof_hash") or None
    outcome = StructuralValidator(params).validate(seq, expected_hash, io_binding=_io_from(obj, io_file))
    result = {
        "ok": outcome.ok,
        "reason": outcome.reason.value if outcome.reason else None,
        "proof_hash": outcome.proof_hash,
        "elements": len(seq),
    }
    if json_out:
        _emit_json(result)
    else:
        table = Table(title=f"proofgate check: {path.name}", show_lines=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("result", "[green]ACCEPT[/green]" if outcome.ok else "[red]REJECT[/red]")
        table.add_row("reason", result["reason"] or "-")
        table.add_row("elements", str(len(seq)))
        table.add_row("proof_hash", outcome.proof_hash or "-")
        table.add_row("pow_bits", str(params.pow_bits))
        console.print(table)
    if not outcome.ok:
        raise typer.Exit(1)


@app.command("config")
def cmd_config(
    config_file: Optional[Path] = typer.Option(None, "--file", help="Load from this file instead of $PROOFGATE_CONFIG_FILE."),
) -> None:
    """Print the effective configuration (file + environment)."""
    try:
        cfg = cfgmod.from_env(base=cfgmod.from_file(config_file)) if config_file else cfgmod.load()
    except (FileNotFoundError, ValueError) as e:
        _die(str(e))
    typer.echo(cfgmod.pretty(cfg))


@app.command("version")
def cmd_version() -> None:
    typer.echo(__version__)


def main(argv: Optional[List[str]] = None) -> None:
    app(args=argv if argv is not None else sys.argv[1:])


if __name__ == "__main__":
    main()
