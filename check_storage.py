"""
Inspect the configured document store and event log.

    python check_storage.py            # list documents and log sizes
    python check_storage.py wallets    # public view of wallets.json
"""

import argparse
import json

from backend_walletdesk.config.settings import get_settings
from backend_walletdesk.database import NFT_LOG_KINDS, init_db, read_nft_log
from backend_walletdesk.storage import get_document_store, load_wallet_document


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect wallet desk storage")
    parser.add_argument("what", nargs="?", choices=("summary", "wallets"), default="summary")
    args = parser.parse_args()

    settings = get_settings()
    store = get_document_store(settings)

    if args.what == "wallets":
        document = load_wallet_document(store)
        if document is None:
            print("wallets.json not found (POST /api/wallets/init first)")
            return
        print(json.dumps(document.public_view(), indent=2))
        return

    print(f"Backend: {settings.storage_backend}")
    print("Documents:")
    for name in store.list():
        print(f"  {name}")

    init_db(settings.resolved_event_log_url)
    print("\nNFT log:")
    for kind in NFT_LOG_KINDS:
        print(f"  {kind}: {len(read_nft_log(kind))}")


if __name__ == "__main__":
    main()
