"""HTTP front end for the wiki.

Routes:
    GET  /                  → redirect to the home page
    GET  /_stylesheet.css   → stylesheet
    GET  /_list             → all pages
    GET  /{page}            → show page (or redirect to its edit form)
    GET  /e/{page}          → edit form
    POST /e/{page}          → save a new revision
    GET  /d/{page}          → delete confirmation
    POST /d/{page}          → delete page
    GET  /h/{page}          → revision history
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

from aiohttp import web
from jinja2 import Environment, FileSystemLoader

from gitwiki.document import Document
from gitwiki.store.errors import (
    ConflictError,
    InvalidNameError,
    NotFoundError,
    PersistenceError,
)
from gitwiki.store.revisions import RevisionStore

if TYPE_CHECKING:
    from gitwiki.config import WikiConfig

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
STATIC_DIR = Path(__file__).parent / "static"

STORE_KEY = web.AppKey("store", RevisionStore)
TEMPLATES_KEY = web.AppKey("templates", Environment)
HOMEPAGE_KEY = web.AppKey("homepage", str)


def create_app(store: RevisionStore, config: WikiConfig) -> web.Application:
    """Build the aiohttp application around an already-open store."""
    app = web.Application(middlewares=[error_middleware])
    app[STORE_KEY] = store
    app[HOMEPAGE_KEY] = config.homepage
    app[TEMPLATES_KEY] = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)), autoescape=True
    )

    # Fixed routes first: /{page} would otherwise swallow them.
    app.router.add_get("/", _handle_root)
    app.router.add_get("/_stylesheet.css", _handle_stylesheet)
    app.router.add_get("/_list", _handle_list)
    app.router.add_get("/e/{page}", _handle_edit_form)
    app.router.add_post("/e/{page}", _handle_save)
    app.router.add_get("/d/{page}", _handle_destroy_form)
    app.router.add_post("/d/{page}", _handle_destroy)
    app.router.add_get("/h/{page}", _handle_history)
    app.router.add_get("/{page}", _handle_show)
    return app


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map store errors to HTTP responses."""
    try:
        return await handler(request)
    except InvalidNameError as e:
        raise web.HTTPBadRequest(text=str(e))
    except NotFoundError as e:
        raise web.HTTPNotFound(text=str(e))
    except ConflictError as e:
        raise web.HTTPConflict(text=str(e))
    except PersistenceError:
        logger.exception("Storage failure on %s %s", request.method, request.path)
        raise web.HTTPInternalServerError(text="The wiki storage failed.")


def _render(request: web.Request, template: str, **context) -> web.Response:
    env = request.app[TEMPLATES_KEY]
    html = env.get_template(template).render(**context)
    return web.Response(text=html, content_type="text/html")


def _document(request: web.Request) -> Document:
    return Document(request.match_info["page"], request.app[STORE_KEY])


# ── Handlers ─────────────────────────────────────────────────


async def _handle_root(request: web.Request) -> web.Response:
    raise web.HTTPFound("/" + quote(request.app[HOMEPAGE_KEY]))


async def _handle_stylesheet(request: web.Request) -> web.Response:
    css = await asyncio.to_thread((STATIC_DIR / "stylesheet.css").read_text, encoding="utf-8")
    return web.Response(text=css, content_type="text/css")


async def _handle_list(request: web.Request) -> web.Response:
    pages = await asyncio.to_thread(Document.all, request.app[STORE_KEY])
    return _render(request, "list.html", pages=pages)


async def _handle_show(request: web.Request) -> web.Response:
    page = _document(request)
    if not await asyncio.to_thread(page.tracked):
        raise web.HTTPFound("/e/" + quote(page.name))
    body = await asyncio.to_thread(page.rendered_body)
    return _render(request, "show.html", page=page, body=body)


async def _handle_edit_form(request: web.Request) -> web.Response:
    page = _document(request)
    raw = await asyncio.to_thread(lambda: page.raw_content)
    return _render(request, "edit.html", page=page, raw=raw)


async def _handle_save(request: web.Request) -> web.Response:
    page = _document(request)
    form = await request.post()
    content = str(form.get("body", "")).replace("\r\n", "\n")
    await asyncio.to_thread(page.set_content, content)
    raise web.HTTPFound("/" + quote(page.name))


async def _handle_destroy_form(request: web.Request) -> web.Response:
    page = _document(request)
    return _render(request, "destroy.html", page=page)


async def _handle_destroy(request: web.Request) -> web.Response:
    page = _document(request)
    await asyncio.to_thread(page.delete)
    raise web.HTTPFound("/" + quote(request.app[HOMEPAGE_KEY]))


async def _handle_history(request: web.Request) -> web.Response:
    page = _document(request)
    revisions = await asyncio.to_thread(page.history)
    if not revisions:
        raise web.HTTPNotFound(text=f"No history for {page.name}")
    return _render(request, "history.html", page=page, revisions=revisions)
