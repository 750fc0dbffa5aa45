"""Local documentation registry: snapshot import, flattening, and remote matching.

The registry owns, per version, an ordered list of categories and an ordered
list of docs. Docs point at their category through a foreign-key style
``category`` field (a category key for nested docs, a slug for loose ones)
that is resolved through the category index only when ``all_docs()`` runs.
"""

from __future__ import annotations

import json
import os
import sys
from contextlib import suppress
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from docsync.errors import DanglingReferenceError, ParseError, SnapshotWriteError
from docsync.models.entities import Doc, DocCategory, VersionContext
from docsync.models.snapshot import Snapshot, SnapshotCategory, SnapshotDoc, SnapshotVersion

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from docsync.models.results import UploadOutcome

log = structlog.get_logger()


def _normalise_title(title: str) -> str:
    return " ".join(title.split()).casefold()


class Registry:
    """In-memory model of the local documentation tree for one sync run."""

    def __init__(self) -> None:
        self._categories: dict[str, list[DocCategory]] = {}
        self._docs: dict[str, list[Doc]] = {}
        # category key -> (version, position)
        self._category_index: dict[str, tuple[str, int]] = {}
        # doc key -> (version, position)
        self._doc_index: dict[str, tuple[str, int]] = {}

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any] | str | bytes) -> Registry:
        registry = cls()
        registry.import_snapshot(data)
        return registry

    @classmethod
    def load(cls, path: Path) -> Registry:
        """Read a JSON snapshot file and import it."""
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ParseError(
                f"Cannot read registry snapshot {str(path)!r}: {exc}",
                suggestion="Set sync.snapshot_path to an existing JSON snapshot.",
            ) from exc
        registry = cls.from_snapshot(raw)
        log.info("registry_loaded", path=str(path))
        return registry

    def import_snapshot(self, data: Mapping[str, Any] | str | bytes) -> None:
        """Replace the registry contents with a parsed snapshot.

        Raises ParseError on malformed input; the registry is left untouched.
        """
        try:
            if isinstance(data, (str, bytes)):
                snapshot = Snapshot.model_validate_json(data)
            else:
                snapshot = Snapshot.model_validate(data)
        except ValidationError as exc:
            raise ParseError(
                f"Invalid registry snapshot ({exc.error_count()} error(s)): {exc}",
                suggestion="Every category needs a title; every doc needs a title and a body.",
            ) from exc

        categories: dict[str, list[DocCategory]] = {}
        docs: dict[str, list[Doc]] = {}
        for version, section in snapshot.versions.items():
            categories[version], docs[version] = _build_version(version, section)

        self._categories = categories
        self._docs = docs
        self._reindex()

        log.info(
            "registry_imported",
            versions=len(categories),
            categories=sum(len(c) for c in categories.values()),
            docs=sum(len(d) for d in docs.values()),
        )

    def export_snapshot(self) -> dict[str, Any]:
        """Serialize back to the snapshot layout accepted by ``import_snapshot``."""
        versions: dict[str, SnapshotVersion] = {}
        for version, categories in self._categories.items():
            nested: dict[str, list[SnapshotDoc]] = {c.key: [] for c in categories}
            loose: list[SnapshotDoc] = []
            for doc in self._docs.get(version, []):
                if doc.category in nested:
                    nested[doc.category].append(_snapshot_doc(doc, category=None))
                else:
                    loose.append(_snapshot_doc(doc, category=doc.category))
            versions[version] = SnapshotVersion(
                categories=[
                    SnapshotCategory(title=c.title, slug=c.slug, docs=nested[c.key])
                    for c in categories
                ],
                docs=loose,
            )
        return Snapshot(versions=versions).model_dump(exclude_none=True)

    def dumps(self) -> str:
        return json.dumps(self.export_snapshot(), indent=2)

    def save(self, path: Path) -> None:
        """Write the snapshot to ``path`` with atomic replace semantics.

        The new content goes to a ``.tmp`` sibling first, so a failed write
        leaves the previous snapshot untouched.
        """
        data = (self.dumps() + "\n").encode("utf-8")
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _write_bytes_fsync(tmp_path, data)
            os.replace(tmp_path, path)
            _fsync_directory(path.parent)
        except OSError as exc:
            raise SnapshotWriteError(
                f"Cannot write registry snapshot {str(path)!r}: {exc}",
                suggestion=(
                    "Uploads already happened; free space or fix permissions, "
                    "then rerun to record the new slugs."
                ),
                recoverable=True,
            ) from exc
        finally:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
        log.info("registry_written", path=str(path))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def versions(self) -> list[str]:
        return list(self._categories)

    def version_contexts(self, project: str) -> list[VersionContext]:
        return [VersionContext(project=project, version=v) for v in self._categories]

    def all_doc_categories(self) -> list[DocCategory]:
        """Every category across all versions, in document order."""
        return [c.model_copy() for categories in self._categories.values() for c in categories]

    def all_docs(self) -> list[Doc]:
        """Every doc across all versions, annotated with its category's slug.

        Raises DanglingReferenceError if a doc's category does not resolve to
        exactly one category in the same version.
        """
        flattened: list[Doc] = []
        for docs in self._docs.values():
            for doc in docs:
                category = self._resolve_category(doc)
                flattened.append(doc.model_copy(update={"category_slug": category.slug}))
        return flattened

    def _resolve_category(self, doc: Doc) -> DocCategory:
        position = self._category_index.get(doc.category)
        if position is not None and position[0] == doc.version:
            return self._categories[doc.version][position[1]]

        matches = [c for c in self._categories.get(doc.version, []) if c.slug == doc.category]
        if len(matches) == 1:
            return matches[0]

        reason = "matches several categories" if matches else "matches no category"
        raise DanglingReferenceError(
            f"Doc {doc.title!r} in {doc.version} references category "
            f"{doc.category!r}, which {reason}",
            suggestion="Fix the doc's category reference in the snapshot.",
        )

    # ------------------------------------------------------------------
    # Explicit mutation points
    # ------------------------------------------------------------------

    def apply_categories(
        self, updated: UploadOutcome[DocCategory] | Iterable[DocCategory]
    ) -> int:
        """Write uploaded category values back. Returns the number applied."""
        items = getattr(updated, "uploaded", updated)
        applied = 0
        for category in items:
            position = self._category_index.get(category.key)
            if position is None:
                log.warning("registry_apply_unknown_key", entity="category", key=category.key)
                continue
            version, index = position
            previous = self._categories[version][index]
            self._categories[version][index] = category
            if previous.slug and previous.slug != category.slug:
                self._repoint_loose_docs(version, previous.slug, category.slug)
            applied += 1
        return applied

    def apply_docs(self, updated: UploadOutcome[Doc] | Iterable[Doc]) -> int:
        """Write uploaded doc values back. Returns the number applied."""
        items = getattr(updated, "uploaded", updated)
        applied = 0
        for doc in items:
            position = self._doc_index.get(doc.key)
            if position is None:
                log.warning("registry_apply_unknown_key", entity="doc", key=doc.key)
                continue
            version, index = position
            # The parent reference is owned by the registry, not the upload result.
            stored = self._docs[version][index]
            self._docs[version][index] = doc.model_copy(
                update={"category": stored.category, "category_slug": None}
            )
            applied += 1
        return applied

    def _repoint_loose_docs(self, version: str, old_slug: str, new_slug: str | None) -> None:
        if new_slug is None:
            return
        for index, doc in enumerate(self._docs.get(version, [])):
            if doc.category == old_slug:
                self._docs[version][index] = doc.model_copy(update={"category": new_slug})

    def _reindex(self) -> None:
        self._category_index = {
            c.key: (version, i)
            for version, categories in self._categories.items()
            for i, c in enumerate(categories)
        }
        self._doc_index = {
            d.key: (version, i)
            for version, docs in self._docs.items()
            for i, d in enumerate(docs)
        }

    # ------------------------------------------------------------------
    # Remote matching
    # ------------------------------------------------------------------

    def match_remote(self, documentation: Mapping[str, Mapping[str, Any]]) -> int:
        """Adopt remote slugs for local entities that have none.

        ``documentation`` is one project's slice of ``Requestor.documentation()``
        (version -> {"documentation": [...]}). Each remote category is
        ``{title, slug, docs|pages: [{title, slug}, ...]}``. Categories match by
        title within a version, docs by title within their matched category.
        Returns the number of entities that gained a slug.
        """
        matched = 0
        for version, entry in documentation.items():
            listing = entry.get("documentation")
            if version not in self._categories or not isinstance(listing, list):
                continue
            matched += self._match_version(version, listing)
        log.info("registry_matched_remote", matched=matched)
        return matched

    def _match_version(self, version: str, listing: list[Any]) -> int:
        remote_categories = [c for c in listing if isinstance(c, dict) and c.get("slug")]
        by_slug = {c["slug"]: c for c in remote_categories}
        categories = self._categories[version]
        matched = 0

        taken = {c.slug for c in categories if c.slug}
        for index, category in enumerate(categories):
            if category.slug:
                continue
            wanted = _normalise_title(category.title)
            candidates = [
                c
                for c in remote_categories
                if c["slug"] not in taken and _normalise_title(str(c.get("title", ""))) == wanted
            ]
            if len(candidates) != 1:
                continue
            slug = candidates[0]["slug"]
            categories[index] = category.model_copy(update={"slug": slug})
            taken.add(slug)
            matched += 1

        docs = self._docs.get(version, [])
        taken_docs = {d.slug for d in docs if d.slug}
        for index, doc in enumerate(docs):
            if doc.slug:
                continue
            try:
                parent = self._resolve_category(doc)
            except DanglingReferenceError:
                # Reported when the docs are flattened for upload.
                continue
            remote_parent = by_slug.get(parent.slug or "")
            if remote_parent is None:
                continue
            remote_docs = remote_parent.get("docs") or remote_parent.get("pages") or []
            wanted = _normalise_title(doc.title)
            candidates = [
                d
                for d in remote_docs
                if isinstance(d, dict)
                and d.get("slug")
                and d["slug"] not in taken_docs
                and _normalise_title(str(d.get("title", ""))) == wanted
            ]
            if len(candidates) != 1:
                continue
            slug = candidates[0]["slug"]
            docs[index] = doc.model_copy(update={"slug": slug})
            taken_docs.add(slug)
            matched += 1
        return matched


def _build_version(version: str, section: SnapshotVersion) -> tuple[list[DocCategory], list[Doc]]:
    categories: list[DocCategory] = []
    docs: list[Doc] = []
    for i, sc in enumerate(section.categories):
        key = f"{version}/{i}"
        categories.append(DocCategory(key=key, version=version, title=sc.title, slug=sc.slug))
        for j, sd in enumerate(sc.docs):
            docs.append(_doc(f"{key}/{j}", version, key, sd))
    for j, sd in enumerate(section.docs):
        # Validated non-empty by SnapshotVersion.
        docs.append(_doc(f"{version}/docs/{j}", version, sd.category or "", sd))
    return categories, docs


def _doc(key: str, version: str, category: str, sd: SnapshotDoc) -> Doc:
    return Doc(
        key=key,
        version=version,
        category=category,
        title=sd.title,
        excerpt=sd.excerpt,
        type=sd.type,
        body=sd.body,
        slug=sd.slug,
    )


def _snapshot_doc(doc: Doc, *, category: str | None) -> SnapshotDoc:
    return SnapshotDoc(
        title=doc.title,
        excerpt=doc.excerpt,
        type=doc.type,
        body=doc.body,
        slug=doc.slug,
        category=category,
    )


def _write_bytes_fsync(path: Path, data: bytes) -> None:
    with path.open("wb") as file_obj:
        file_obj.write(data)
        file_obj.flush()
        os.fsync(file_obj.fileno())


def _fsync_directory(path: Path) -> None:
    if sys.platform == "win32":
        return  # no fsync on directory handles
    directory_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(directory_fd)
    finally:
        os.close(directory_fd)
