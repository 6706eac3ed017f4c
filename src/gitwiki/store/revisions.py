"""Git-backed revision store.

Pages are plain files at the top level of a git working tree. Every mutation
is staged and committed in one step, so the tree of HEAD is always the
current snapshot and history is never rewritten.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from git import Actor, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import BadName, BadObject, GitError

from gitwiki.store.errors import (
    ConflictError,
    InvalidNameError,
    NotFoundError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

CREATED_MESSAGE = "Created {name}"
EDITED_MESSAGE = "Edited {name}"
DESTROYED_MESSAGE = "Destroyed {name}"

_INIT_LOCK = threading.Lock()
_FORBIDDEN_RE = re.compile(r"[\s/\\\x00]")


def literal_pathspec(name: str) -> str:
    """Git pathspec matching ``name`` exactly, even if it holds glob characters."""
    return f":(literal){name}"


def validate_name(name: str) -> str:
    """Return ``name`` unchanged, or raise InvalidNameError.

    Names are used verbatim as file names, so whitespace, path separators and
    a leading dot or dash are rejected rather than normalized.
    """
    if not name or _FORBIDDEN_RE.search(name) or name[0] in ".-":
        raise InvalidNameError(f"Invalid page name: {name!r}")
    return name


@dataclass(frozen=True)
class Revision:
    """One commit in the wiki history."""

    id: str
    message: str
    author: str
    timestamp: datetime

    @property
    def short_id(self) -> str:
        return self.id[:7]


class RevisionStore:
    """Read/write access to the versioned page repository."""

    def __init__(
        self,
        root: Path,
        author_name: str = "gitwiki",
        author_email: str = "gitwiki@localhost",
    ) -> None:
        self.root = Path(root)
        self.author = Actor(author_name, author_email)
        self._lock = threading.RLock()
        self._repo: Repo | None = None
        self.ensure_initialized()

    # ── Initialization ────────────────────────────────────────

    def ensure_initialized(self) -> None:
        """Open the repository at ``root``, creating it if absent. Idempotent."""
        with _INIT_LOCK:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                try:
                    repo = Repo(self.root)
                except (InvalidGitRepositoryError, NoSuchPathError):
                    logger.info("Initializing repository in %s", self.root)
                    repo = Repo.init(self.root)
            except (GitError, OSError) as e:
                raise PersistenceError(f"Cannot open repository at {self.root}: {e}") from e
        with self._lock:
            self._repo = repo

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            raise PersistenceError("Repository is not initialized")
        return self._repo

    # ── Snapshot reads ────────────────────────────────────────

    def head(self) -> str | None:
        """Sha of the current revision, or None when history is empty."""
        with self._lock:
            if not self.repo.head.is_valid():
                return None
            return self.repo.head.commit.hexsha

    def current_entries(self) -> set[str]:
        """Page names in the latest snapshot. Empty history gives an empty set."""
        with self._lock:
            if not self.repo.head.is_valid():
                return set()
            return {blob.name for blob in self.repo.head.commit.tree.blobs}

    def read(self, name: str) -> str | None:
        """Current content of ``name``, or None if it is not in the snapshot."""
        validate_name(name)
        with self._lock:
            if not self.repo.head.is_valid():
                return None
            return self._read_blob(self.repo.head.commit, name)

    def read_at(self, name: str, revision: str) -> str | None:
        """Content of ``name`` as of ``revision``."""
        validate_name(name)
        with self._lock:
            try:
                commit = self.repo.commit(revision)
            except (BadName, BadObject, ValueError) as e:
                raise NotFoundError(f"Unknown revision {revision}") from e
            return self._read_blob(commit, name)

    def _read_blob(self, commit, name: str) -> str | None:
        try:
            blob = commit.tree[name]
        except KeyError:
            return None
        if blob.type != "blob":
            return None
        try:
            return blob.data_stream.read().decode("utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceError(f"Page {name} is not valid UTF-8: {e}") from e

    # ── History ───────────────────────────────────────────────

    def history(self, name: str | None = None, limit: int | None = None) -> list[Revision]:
        """Revisions newest first, optionally only those touching ``name``."""
        if name is not None:
            validate_name(name)
        with self._lock:
            if not self.repo.head.is_valid():
                return []
            paths = literal_pathspec(name) if name is not None else ""
            commits = self.repo.iter_commits("HEAD", paths=paths, max_count=limit)
            return [self._to_revision(c) for c in commits]

    def revision_count(self) -> int:
        with self._lock:
            if not self.repo.head.is_valid():
                return 0
            return sum(1 for _ in self.repo.iter_commits("HEAD"))

    @staticmethod
    def _to_revision(commit) -> Revision:
        return Revision(
            id=commit.hexsha,
            message=commit.message.strip(),
            author=commit.author.name or "",
            timestamp=commit.committed_datetime,
        )

    # ── Mutations ─────────────────────────────────────────────

    def write(
        self,
        name: str,
        content: str,
        message: str | None = None,
        *,
        expected_revision: str | None = None,
    ) -> Revision:
        """Record ``content`` as the new revision of ``name``.

        Without a message the commit is labelled "Created" or "Edited"
        depending on whether the name was in the prior snapshot.
        """
        validate_name(name)
        with self._lock:
            self._check_expected(expected_revision)
            existed = name in self.current_entries()
            if message is None:
                template = EDITED_MESSAGE if existed else CREATED_MESSAGE
                message = template.format(name=name)

            try:
                (self.root / name).write_bytes(content.encode("utf-8"))
                self.repo.index.add([name])
                commit = self.repo.index.commit(
                    message, author=self.author, committer=self.author
                )
            except (GitError, OSError, ValueError) as e:
                self._restore(name, existed)
                raise PersistenceError(f"Failed to write {name}: {e}") from e

            logger.info("Committed %s (%s)", message, commit.hexsha[:7])
            return self._to_revision(commit)

    def remove(
        self,
        name: str,
        message: str | None = None,
        *,
        expected_revision: str | None = None,
    ) -> Revision:
        """Record a revision in which ``name`` no longer exists."""
        validate_name(name)
        with self._lock:
            self._check_expected(expected_revision)
            if name not in self.current_entries():
                raise NotFoundError(f"Page {name} does not exist")
            if message is None:
                message = DESTROYED_MESSAGE.format(name=name)

            try:
                self.repo.index.remove([literal_pathspec(name)], working_tree=True)
                commit = self.repo.index.commit(
                    message, author=self.author, committer=self.author
                )
            except (GitError, OSError, ValueError) as e:
                self._restore(name, existed=True)
                raise PersistenceError(f"Failed to remove {name}: {e}") from e

            logger.info("Committed %s (%s)", message, commit.hexsha[:7])
            return self._to_revision(commit)

    def _check_expected(self, expected_revision: str | None) -> None:
        if expected_revision is None:
            return
        actual = self.head()
        if actual != expected_revision:
            raise ConflictError(expected_revision, actual)

    def _restore(self, name: str, existed: bool) -> None:
        """Put the index entry and working file for ``name`` back to HEAD."""
        try:
            if existed:
                self.repo.git.checkout("HEAD", "--", literal_pathspec(name))
            else:
                self.repo.git.rm("--cached", "--ignore-unmatch", "--quiet", "--", literal_pathspec(name))
                (self.root / name).unlink(missing_ok=True)
        except (GitError, OSError) as e:
            logger.error("Failed to restore %s after error: %s", name, e)
