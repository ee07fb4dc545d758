"""
Backend Wallet Desk: HTTP backend for managing a small set of XRPL wallets.

Serves wallet metadata, issuer/trust line configuration, issued-token and NFT
operations to a web front-end. JSON documents are persisted on local disk or
in a blob store; all ledger work is delegated to xrpl-py.
"""

__version__ = "0.1.0"
