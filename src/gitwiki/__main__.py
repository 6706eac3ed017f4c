"""Entry point: python -m gitwiki [serve|init|list]

- No args / "serve": HTTP server on the configured repository
- "init":            Create the repository and exit
- "list":            Print the names of all current pages
"""

from __future__ import annotations

import asyncio
import logging
import sys

from gitwiki.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_serve() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from gitwiki.daemon import WikiDaemon

    daemon = WikiDaemon(config)
    try:
        asyncio.run(daemon.run())
    except KeyboardInterrupt:
        pass


def _run_init() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from gitwiki.daemon import WikiDaemon

    store = WikiDaemon(config).build_store()
    print(f"Repository ready at {store.root}")


def _run_list() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from gitwiki.daemon import WikiDaemon

    store = WikiDaemon(config).build_store()
    for name in sorted(store.current_entries()):
        print(name)


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "serve"

    if cmd == "serve":
        _run_serve()
    elif cmd == "init":
        _run_init()
    elif cmd == "list":
        _run_list()
    else:
        print("Usage: python -m gitwiki [serve|init|list]")
        print("  serve  — HTTP server (default)")
        print("  init   — Create the wiki repository")
        print("  list   — Print all page names")
        sys.exit(1)


if __name__ == "__main__":
    main()
