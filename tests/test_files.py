"""Tests for the /files upload and download routes."""

import pytest
from pymongo.errors import PyMongoError

import routers.files


def _upload(client, headers, name="notes.txt", content=b"hello world", content_type="text/plain"):
    return client.post("/files", files={"file": (name, content, content_type)}, headers=headers)


def test_upload_and_download(client, settings, alice):
    resp = _upload(client, alice)
    assert resp.status_code == 201
    meta = resp.json()
    assert meta["filename"] == "notes.txt"
    assert meta["size"] == 11
    assert meta["content_type"] == "text/plain"
    assert meta["url"] == f"/files/{meta['id']}/download"
    assert "storage_name" not in meta

    stored = list(settings.upload_dir.iterdir())
    assert len(stored) == 1
    assert stored[0].suffix == ".txt"

    download = client.get(meta["url"])
    assert download.status_code == 200
    assert download.content == b"hello world"
    assert download.headers["content-type"].startswith("text/plain")
    assert "notes.txt" in download.headers["content-disposition"]


def test_upload_requires_auth(client):
    resp = client.post("/files", files={"file": ("a.txt", b"abc", "text/plain")})
    assert resp.status_code == 401


def test_upload_requires_file_field(client, alice):
    assert client.post("/files", headers=alice).status_code == 422


def test_empty_upload_rejected(client, alice):
    assert _upload(client, alice, content=b"").status_code == 400


def test_oversized_upload_rejected(client, settings, monkeypatch, alice):
    monkeypatch.setattr(settings, "max_upload_bytes", 10)
    assert _upload(client, alice, content=b"x" * 10).status_code == 201
    resp = _upload(client, alice, content=b"x" * 11)
    assert resp.status_code == 413
    assert len(list(settings.upload_dir.iterdir())) == 1


def test_filename_path_is_stripped(client, alice):
    meta = _upload(client, alice, name="../../etc/passwd").json()
    assert meta["filename"] == "passwd"


def test_list_only_own_files(client, alice, bob):
    _upload(client, alice, name="a1.txt")
    _upload(client, alice, name="a2.txt")
    _upload(client, bob, name="b1.txt")

    names = [f["filename"] for f in client.get("/files", headers=alice).json()]
    assert names == ["a2.txt", "a1.txt"]


def test_get_metadata(client, alice):
    meta = _upload(client, alice).json()
    resp = client.get(f"/files/{meta['id']}")
    assert resp.status_code == 200
    assert resp.json()["id"] == meta["id"]


def test_missing_file(client):
    assert client.get("/files/5f1d7f0e2a3b4c5d6e7f8a9b").status_code == 404
    assert client.get("/files/nope/download").status_code == 404


def test_download_with_missing_content(client, settings, alice):
    meta = _upload(client, alice).json()
    for path in settings.upload_dir.iterdir():
        path.unlink()
    assert client.get(meta["url"]).status_code == 404


def test_delete_file(client, settings, alice, bob):
    meta = _upload(client, alice).json()

    assert client.delete(f"/files/{meta['id']}", headers=bob).status_code == 403
    assert client.get(meta["url"]).status_code == 200

    assert client.delete(f"/files/{meta['id']}", headers=alice).status_code == 204
    assert client.get(f"/files/{meta['id']}").status_code == 404
    assert list(settings.upload_dir.iterdir()) == []


def test_failed_metadata_insert_removes_stored_content(client, settings, monkeypatch, alice):
    def failing_insert(collection_name, data):
        raise PyMongoError("insert failed")

    monkeypatch.setattr(routers.files, "create_document", failing_insert)
    with pytest.raises(PyMongoError):
        _upload(client, alice)
    assert list(settings.upload_dir.iterdir()) == []
