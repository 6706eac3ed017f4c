"""Tests for the HTTP front end."""

from __future__ import annotations

import pytest
from pathlib import Path
from aiohttp import test_utils
from git.index import IndexFile

from gitwiki.config import WikiConfig
from gitwiki.store.revisions import RevisionStore
from gitwiki.web import create_app


@pytest.fixture
def store(tmp_path: Path) -> RevisionStore:
    return RevisionStore(tmp_path / "wiki")


@pytest.fixture
def app(store: RevisionStore, tmp_path: Path):
    return create_app(store, WikiConfig(repo_dir=tmp_path / "wiki"))


class TestRoutes:
    @pytest.mark.asyncio
    async def test_root_redirects_home(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/", allow_redirects=False)
            assert resp.status == 302
            assert resp.headers["Location"] == "/Home"

    @pytest.mark.asyncio
    async def test_untracked_page_redirects_to_edit(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/Home", allow_redirects=False)
            assert resp.status == 302
            assert resp.headers["Location"] == "/e/Home"

    @pytest.mark.asyncio
    async def test_show_page(self, app, store: RevisionStore):
        store.write("Home", "Welcome to [[About]] and [[Missing Page|later]]")
        store.write("About", "about")
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/Home")
            assert resp.status == 200
            text = await resp.text()
            assert '<h1 class="page_title">Home</h1>' in text
            assert '<a href="/About">About</a>' in text
            assert 'later<a href="/e/Missing_Page">?</a>' in text

    @pytest.mark.asyncio
    async def test_edit_form_prefilled_and_escaped(self, app, store: RevisionStore):
        store.write("Home", "<script>x</script>")
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/e/Home")
            text = await resp.text()
            assert resp.status == 200
            assert "&lt;script&gt;x&lt;/script&gt;" in text
            assert 'action="/e/Home"' in text

    @pytest.mark.asyncio
    async def test_save_creates_revision(self, app, store: RevisionStore):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/e/My_Page", data={"body": "line one\r\nline two"}, allow_redirects=False
            )
            assert resp.status == 302
            assert resp.headers["Location"] == "/My_Page"
        assert store.read("My_Page") == "line one\nline two"
        assert store.history("My_Page")[0].message == "Created My_Page"

    @pytest.mark.asyncio
    async def test_destroy(self, app, store: RevisionStore):
        store.write("Old", "bye")
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            form = await client.get("/d/Old")
            assert "Are you sure" in await form.text()
            resp = await client.post("/d/Old", allow_redirects=False)
            assert resp.status == 302
            assert resp.headers["Location"] == "/Home"
        assert "Old" not in store.current_entries()

    @pytest.mark.asyncio
    async def test_destroy_missing_page(self, app, store: RevisionStore):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/d/Ghost", allow_redirects=False)
            assert resp.status == 404
        assert store.revision_count() == 0

    @pytest.mark.asyncio
    async def test_list_empty(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/_list")
            assert resp.status == 200
            assert "No pages found." in await resp.text()

    @pytest.mark.asyncio
    async def test_list_pages(self, app, store: RevisionStore):
        store.write("Home", "h")
        store.write("About", "a")
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            text = await (await client.get("/_list")).text()
            assert '<a href="/About">About</a>' in text
            assert '<a href="/d/Home">destroy</a>' in text

    @pytest.mark.asyncio
    async def test_history(self, app, store: RevisionStore):
        store.write("Home", "v1")
        store.write("Home", "v2")
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/h/Home")
            text = await resp.text()
            assert resp.status == 200
            assert "Edited Home" in text
            assert "Created Home" in text

    @pytest.mark.asyncio
    async def test_history_unknown_page(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/h/Nothing")
            assert resp.status == 404

    @pytest.mark.asyncio
    async def test_stylesheet(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/_stylesheet.css")
            assert resp.status == 200
            assert resp.content_type == "text/css"


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_invalid_name(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/.git")
            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_persistence_error(self, app, store: RevisionStore, monkeypatch):
        def _boom(self, *args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(IndexFile, "commit", _boom)
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/e/Home", data={"body": "x"}, allow_redirects=False)
            assert resp.status == 500
            assert "disk full" not in await resp.text()
        assert store.revision_count() == 0

    @pytest.mark.asyncio
    async def test_undecodable_page(self, app, store: RevisionStore):
        (store.root / "Latin").write_bytes("café".encode("latin-1"))
        store.repo.index.add(["Latin"])
        store.repo.index.commit("Added by another client", author=store.author, committer=store.author)
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/Latin")
            assert resp.status == 500
            assert "The wiki storage failed." in await resp.text()
