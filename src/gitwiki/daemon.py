"""Server process — serves one wiki repository over HTTP.

Usage: python -m gitwiki serve

Manages:
- Revision store lifecycle (opened once, shared by every request)
- PID file (one writer process per repository)
- Graceful shutdown (SIGTERM/SIGINT)
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys

from aiohttp import web

from gitwiki.config import WikiConfig, load_config
from gitwiki.store.revisions import RevisionStore
from gitwiki.web import create_app

logger = logging.getLogger(__name__)


class WikiDaemon:
    """Long-running HTTP server process."""

    def __init__(self, config: WikiConfig | None = None) -> None:
        self.config = config or load_config()
        self._shutdown_event = asyncio.Event()

    # ── PID file management ──────────────────────────────────

    def _write_pid(self) -> None:
        self.config.pid_file.parent.mkdir(parents=True, exist_ok=True)
        self.config.pid_file.write_text(str(os.getpid()))
        logger.info("PID file written: %s (pid=%d)", self.config.pid_file, os.getpid())

    def _remove_pid(self) -> None:
        if self.config.pid_file.exists():
            self.config.pid_file.unlink()

    def _check_existing(self) -> None:
        if not self.config.pid_file.exists():
            return
        try:
            pid = int(self.config.pid_file.read_text().strip())
            os.kill(pid, 0)  # Check if process exists
            print(f"gitwiki already running (pid={pid}). Exiting.", file=sys.stderr)
            sys.exit(1)
        except (ProcessLookupError, ValueError):
            # Stale PID file
            self._remove_pid()

    # ── Signal handling ──────────────────────────────────────

    def _setup_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        self._shutdown_event.set()

    # ── Build components ─────────────────────────────────────

    def build_store(self) -> RevisionStore:
        return RevisionStore(
            self.config.repo_dir,
            author_name=self.config.author.name,
            author_email=self.config.author.email,
        )

    # ── Main run loop ────────────────────────────────────────

    async def run(self) -> None:
        self._check_existing()
        self._write_pid()
        self._setup_signals()

        store = self.build_store()
        app = create_app(store, self.config)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.config.server.host, self.config.server.port)

        try:
            await site.start()
            logger.info(
                "gitwiki serving %s on http://%s:%d",
                self.config.repo_dir,
                self.config.server.host,
                self.config.server.port,
            )
            await self._shutdown_event.wait()
        except asyncio.CancelledError:
            pass
        finally:
            await runner.cleanup()
            self._remove_pid()
            logger.info("gitwiki stopped.")
