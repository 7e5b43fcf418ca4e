"""
SafeLite — an M-of-N multisig custodial wallet over secp256k1 owner signatures.

Layout:
  safelite.wallet   digest, owners, nonce, pending records, engine, SafeLite
  safelite.crypto   signing and signer recovery
  safelite.abi      governance payload encoding
  safelite.runtime  deterministic host (journal, storage, ledger, events)
  safelite.cli      owner tooling

    from safelite import Host, SafeLite
"""

from .errors import WalletError
from .runtime.host import Host
from .version import __version__
from .wallet.contract import SafeLite

__all__ = ["Host", "SafeLite", "WalletError", "__version__"]
