from __future__ import annotations

"""
safelite.cli.main
-----------------

Off-chain signer tooling for SafeLite owners: compute the digest for a call,
sign it, check who signed what, build governance payloads and put a batch of
signatures in the order batch execution requires.

All commands print JSON on stdout. Failures print the error dict on stderr
and exit with status 1.

Examples
--------
# Digest of a 1.0 transfer at nonce 0
safelite digest --wallet 0xWALLET --chain-id 1001 --nonce 0 --to 0xOWNER2 \
  --value 1000000000000000000

# Sign it (key may also come from SAFELITE_PRIVATE_KEY)
safelite sign --digest 0xDIGEST --key 0xKEY

# Order signatures by recovered signer
safelite sort-signatures --digest 0xDIGEST 0xSIG1 0xSIG2

# Governance payload: add an owner and raise the threshold to 3
safelite encode add-owner --owner 0xOWNER4 --threshold 3
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import typer

from safelite.config import load_config
from safelite.crypto.ecdsa import private_key_to_address, recover, sign_message
from safelite.errors import WalletError
from safelite.utils.codec import bytes32, to_bytes, to_checksum_address, to_hex
from safelite.utils.hash import keccak256
from safelite.version import __version__
from safelite.wallet.digest import ReplayDomain, encode_transaction
from safelite.wallet.governance import (encode_add_owner, encode_remove_owner,
                                        encode_update_threshold)

log = logging.getLogger(__name__)

app = typer.Typer(
    name="safelite",
    add_completion=False,
    no_args_is_help=True,
    help="Digest, sign and encode SafeLite multisig transactions.",
)
encode_app = typer.Typer(
    name="encode",
    add_completion=False,
    no_args_is_help=True,
    help="Build governance (self-call) payloads.",
)
app.add_typer(encode_app, name="encode")


# -------------------- utils --------------------


def _emit(obj: Dict[str, Any]) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except WalletError as e:
        log.debug("command failed: %s", e)
        typer.echo(json.dumps(e.to_dict(), sort_keys=True), err=True)
        raise typer.Exit(1) from e


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw, 0)
    except ValueError as e:
        raise typer.BadParameter(f"{name} must be an integer (decimal or 0x-hex)") from e


# -------------------- commands --------------------


@app.callback()
def _main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (defaults to SAFELITE_LOG_LEVEL)."
    ),
) -> None:
    cfg = load_config()
    level = getattr(logging, (log_level or cfg.log_level).upper(), cfg.log_level_value)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.command("version")
def cmd_version() -> None:
    """Print the package version."""
    _emit({"version": __version__})


@app.command("digest")
def cmd_digest(
    wallet: str = typer.Option(..., "--wallet", help="Wallet address (0x…20 bytes)."),
    nonce: str = typer.Option(..., "--nonce", help="Wallet nonce the call is signed for."),
    to: str = typer.Option(..., "--to", help="Destination address."),
    value: str = typer.Option("0", "--value", help="Value in base units."),
    data: str = typer.Option("0x", "--data", help="Call payload as hex."),
    chain_id: Optional[str] = typer.Option(None, "--chain-id", help="Chain id (defaults to SAFELITE_CHAIN_ID)."),
) -> None:
    """Compute the transaction digest owners sign."""
    cid = _parse_int(chain_id, "chain-id") if chain_id is not None else load_config().default_chain_id
    with _reporting_errors():
        domain = ReplayDomain(cid, to_bytes(wallet, field="wallet"))
        pre = encode_transaction(domain, _parse_int(nonce, "nonce"), to, _parse_int(value, "value"), data)
        _emit({
            "chain_id": cid,
            "wallet": to_checksum_address(domain.wallet),
            "preimage": to_hex(pre),
            "digest": to_hex(keccak256(pre)),
        })


@app.command("sign")
def cmd_sign(
    digest: str = typer.Option(..., "--digest", help="32-byte transaction digest."),
    key: str = typer.Option(..., "--key", envvar="SAFELITE_PRIVATE_KEY", help="Owner private key (hex)."),
) -> None:
    """Sign a digest (personal-message form) with an owner key."""
    with _reporting_errors():
        sig = sign_message(bytes32(digest, field="digest"), key)
        _emit({
            "signature": to_hex(sig),
            "signer": to_checksum_address(private_key_to_address(key)),
        })


@app.command("recover")
def cmd_recover(
    digest: str = typer.Option(..., "--digest", help="32-byte transaction digest."),
    signature: str = typer.Option(..., "--signature", help="65-byte signature (hex)."),
) -> None:
    """Recover the signer address of a signature."""
    with _reporting_errors():
        _emit({"signer": to_checksum_address(recover(digest, signature))})


@app.command("address")
def cmd_address(
    key: str = typer.Option(..., "--key", envvar="SAFELITE_PRIVATE_KEY", help="Private key (hex)."),
) -> None:
    """Print the address for a private key."""
    with _reporting_errors():
        _emit({"address": to_checksum_address(private_key_to_address(key))})


@app.command("sort-signatures")
def cmd_sort_signatures(
    signatures: List[str] = typer.Argument(..., help="Signatures (hex) in any order."),
    digest: str = typer.Option(..., "--digest", help="32-byte transaction digest."),
) -> None:
    """Order signatures by ascending recovered signer, as batch execution requires."""
    with _reporting_errors():
        pairs = sorted(((recover(digest, s), to_bytes(s, field="signature")) for s in signatures))
        _emit({
            "signers": [to_checksum_address(a) for a, _ in pairs],
            "signatures": [to_hex(s) for _, s in pairs],
        })


# -------------------- encode --------------------


def _payload_out(payload: bytes) -> None:
    _emit({"selector": to_hex(payload[:4]), "payload": to_hex(payload)})


@encode_app.command("add-owner")
def cmd_encode_add_owner(
    owner: str = typer.Option(..., "--owner", help="New owner address."),
    threshold: int = typer.Option(..., "--threshold", help="Threshold after the change."),
) -> None:
    with _reporting_errors():
        _payload_out(encode_add_owner(owner, threshold))


@encode_app.command("remove-owner")
def cmd_encode_remove_owner(
    owner: str = typer.Option(..., "--owner", help="Owner to remove."),
    threshold: int = typer.Option(..., "--threshold", help="Threshold after the change."),
) -> None:
    with _reporting_errors():
        _payload_out(encode_remove_owner(owner, threshold))


@encode_app.command("update-threshold")
def cmd_encode_update_threshold(
    threshold: int = typer.Option(..., "--threshold", help="New threshold."),
) -> None:
    with _reporting_errors():
        _payload_out(encode_update_threshold(threshold))


def get_app() -> typer.Typer:
    return app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
