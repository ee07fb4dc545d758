"""
Tests for the document stores (local filesystem and Vercel Blob over httpx)
and the wallet document helpers.

The blob backend runs against an in-memory fake of the Blob REST API served
through httpx.MockTransport.
"""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from backend_walletdesk.core.exceptions import StorageError
from backend_walletdesk.storage import BlobStore, LocalFileStore

API_URL = "https://blob.test"
PUBLIC_URL = "https://store.public.blob.test"
TOKEN = "vercel_blob_rw_test"


class FakeBlobApi:
    """Minimal Blob API: PUT object, list with prefix/cursor, public GET, POST delete."""

    def __init__(self, page_size: int = 1000) -> None:
        self.objects: dict[str, bytes] = {}
        self.page_size = page_size
        self.calls: list[tuple[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = request.url
        self.calls.append((request.method, url.path))
        if url.host == "store.public.blob.test":
            name = url.path.lstrip("/")
            if name not in self.objects:
                return httpx.Response(404)
            return httpx.Response(200, content=self.objects[name])

        if request.headers.get("authorization") != f"Bearer {TOKEN}":
            return httpx.Response(403, json={"error": {"code": "forbidden"}})

        if request.method == "PUT":
            name = url.path.lstrip("/")
            assert request.headers["x-add-random-suffix"] == "0"
            self.objects[name] = request.content
            return httpx.Response(200, json={"pathname": name, "url": f"{PUBLIC_URL}/{name}"})

        if request.method == "POST" and url.path == "/delete":
            for blob_url in json.loads(request.content)["urls"]:
                self.objects.pop(blob_url.rsplit("/", 1)[-1], None)
            return httpx.Response(200, json={})

        if request.method == "GET":
            prefix = url.params.get("prefix", "")
            names = sorted(n for n in self.objects if n.startswith(prefix))
            start = int(url.params.get("cursor") or 0)
            page = names[start : start + self.page_size]
            has_more = start + self.page_size < len(names)
            return httpx.Response(
                200,
                json={
                    "blobs": [{"pathname": n, "url": f"{PUBLIC_URL}/{n}", "size": len(self.objects[n])} for n in page],
                    "cursor": str(start + self.page_size) if has_more else None,
                    "hasMore": has_more,
                },
            )
        return httpx.Response(405)


def make_blob_store(api: FakeBlobApi) -> BlobStore:
    return BlobStore(TOKEN, API_URL, client=httpx.Client(transport=httpx.MockTransport(api)))


@pytest.fixture(params=["local", "blob"])
def any_store(request, tmp_path):
    """Each storage backend, so the same contract is checked on both."""
    if request.param == "local":
        return LocalFileStore(tmp_path / "data")
    return make_blob_store(FakeBlobApi())


def test_round_trip_is_deep_equal(any_store):
    document = {
        "version": 1,
        "nested": {"list": [1, 2.5, "x", None, True], "empty": {}},
        "unicode": "naïve ✓",
    }
    any_store.save("doc.json", document)
    assert any_store.load("doc.json") == document


def test_missing_document_loads_none(any_store):
    assert any_store.load("absent.json") is None


def test_list_and_delete(any_store):
    any_store.save("b.json", {"n": 2})
    any_store.save("a.json", {"n": 1})
    assert any_store.list() == ["a.json", "b.json"]

    any_store.delete("a.json")
    assert any_store.list() == ["b.json"]
    assert any_store.load("a.json") is None
    # deleting twice is harmless
    any_store.delete("a.json")


def test_save_overwrites(any_store):
    any_store.save("doc.json", {"v": 1})
    any_store.save("doc.json", {"v": 2})
    assert any_store.load("doc.json") == {"v": 2}
    assert any_store.list() == ["doc.json"]


def test_update_passes_none_for_missing(any_store):
    seen = []

    def mutate(current):
        seen.append(current)
        return {"count": (current or {}).get("count", 0) + 1}

    assert any_store.update("counter.json", mutate) == {"count": 1}
    assert any_store.update("counter.json", mutate) == {"count": 2}
    assert seen == [None, {"count": 1}]


@pytest.mark.parametrize("name", ["", "../x.json", "dir/x.json", ".."])
def test_invalid_names_rejected(any_store, name):
    with pytest.raises(StorageError):
        any_store.save(name, {})


def test_local_update_serializes_concurrent_writers(tmp_path):
    store = LocalFileStore(tmp_path)
    store.save("counter.json", {"count": 0})

    def bump():
        for _ in range(20):
            store.update("counter.json", lambda cur: {"count": cur["count"] + 1})

    threads = [threading.Thread(target=bump) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.load("counter.json") == {"count": 100}


def test_local_corrupt_json_raises(tmp_path):
    store = LocalFileStore(tmp_path)
    (tmp_path / "wallets.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.load("wallets.json")


def test_local_write_leaves_no_temp_files(tmp_path):
    store = LocalFileStore(tmp_path)
    store.save("doc.json", {"a": 1})
    assert sorted(p.name for p in tmp_path.iterdir()) == ["doc.json"]


def test_blob_requires_token():
    with pytest.raises(StorageError):
        BlobStore("", API_URL)


def test_blob_list_follows_cursor_and_skips_non_json():
    api = FakeBlobApi(page_size=2)
    store = make_blob_store(api)
    for name in ("a.json", "b.json", "c.json", "image.png"):
        api.objects[name] = b"{}"
    assert store.list() == ["a.json", "b.json", "c.json"]
    list_calls = [c for c in api.calls if c == ("GET", "/")]
    assert len(list_calls) == 2


def test_blob_load_matches_exact_pathname():
    api = FakeBlobApi()
    store = make_blob_store(api)
    api.objects["wallets.json.bak"] = b'{"old": true}'
    assert store.load("wallets.json") is None
    store.save("wallets.json", {"new": True})
    assert store.load("wallets.json") == {"new": True}


def test_blob_http_errors_become_storage_errors():
    store = BlobStore("wrong-token", API_URL, client=httpx.Client(transport=httpx.MockTransport(FakeBlobApi())))
    with pytest.raises(StorageError):
        store.save("doc.json", {"a": 1})


def test_get_document_store_picks_backend(tmp_path):
    from backend_walletdesk.config.settings import Settings
    from backend_walletdesk.storage import get_document_store

    local = get_document_store(Settings(storage_backend="local", data_dir=tmp_path))
    assert isinstance(local, LocalFileStore)
    blob = get_document_store(Settings(storage_backend="blob", blob_token=TOKEN))
    assert isinstance(blob, BlobStore)


def test_wallet_document_helpers(settings, store, wallet_document):
    from backend_walletdesk.storage import (
        IssuerFlagsConfig,
        IssuerFlagValues,
        load_wallet_document,
        update_wallet_configuration,
    )

    loaded = load_wallet_document(store)
    assert loaded == wallet_document
    raw = store.load("wallets.json")
    assert raw["sourceTag"] == settings.source_tag
    assert set(raw["wallets"][0]) == {"role", "address", "publicKey", "privateKey", "seed"}
    assert "configuration" not in raw

    updated = update_wallet_configuration(
        store,
        issuer_flags=IssuerFlagsConfig(configured=True, flags=IssuerFlagValues(default_ripple=True)),
    )
    assert updated.configuration.issuer_flags.flags.default_ripple is True
    assert store.load("wallets.json")["configuration"]["issuerFlags"]["flags"] == {
        "defaultRipple": True,
        "requireAuth": False,
        "noFreeze": False,
    }


def test_wallet_document_bad_shape_is_storage_error(store):
    from backend_walletdesk.storage import load_wallet_document

    store.save("wallets.json", {"wallets": "nope"})
    with pytest.raises(StorageError):
        load_wallet_document(store)
