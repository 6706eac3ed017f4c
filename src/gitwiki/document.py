"""Page handle over the revision store."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from gitwiki.links import render_document
from gitwiki.markup import render_markup
from gitwiki.store.revisions import (
    CREATED_MESSAGE,
    DESTROYED_MESSAGE,
    EDITED_MESSAGE,
    validate_name,
)

if TYPE_CHECKING:
    from gitwiki.store.revisions import Revision, RevisionStore


class Document:
    """A named page. Cheap to build; all state lives in the store."""

    def __init__(self, name: str, store: RevisionStore) -> None:
        self.name = validate_name(name)
        self.store = store
        self._raw_content: str | None = None

    def __repr__(self) -> str:
        return f"Document({self.name!r})"

    @classmethod
    def all(cls, store: RevisionStore) -> list[Document]:
        """Every page in the current snapshot, sorted by name."""
        return [cls(name, store) for name in sorted(store.current_entries())]

    @property
    def title(self) -> str:
        """The name with underscores shown as spaces."""
        return self.name.replace("_", " ")

    def tracked(self) -> bool:
        return self.name in self.store.current_entries()

    @property
    def raw_content(self) -> str:
        """Current content, read once per instance. Empty for unknown pages."""
        if self._raw_content is None:
            self._raw_content = self.store.read(self.name) or ""
        return self._raw_content

    def rendered_body(self, formatter: Callable[[str], str] = render_markup) -> str:
        """HTML body with references resolved against the pages that exist now."""
        return render_document(self.raw_content, self.store.current_entries(), formatter)

    def set_content(self, content: str, *, expected_revision: str | None = None) -> Revision:
        template = EDITED_MESSAGE if self.tracked() else CREATED_MESSAGE
        self._raw_content = None
        return self.store.write(
            self.name,
            content,
            template.format(name=self.name),
            expected_revision=expected_revision,
        )

    def delete(self, *, expected_revision: str | None = None) -> Revision:
        self._raw_content = None
        return self.store.remove(
            self.name,
            DESTROYED_MESSAGE.format(name=self.name),
            expected_revision=expected_revision,
        )

    def history(self, limit: int | None = None) -> list[Revision]:
        return self.store.history(self.name, limit=limit)
