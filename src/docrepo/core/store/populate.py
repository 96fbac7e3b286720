"""Reference population.

Replaces reference ids stored in a document field with the referenced
documents, using one batched ``$in`` lookup per populated path.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from docrepo.core.store.protocols import Document, DocumentStore
from docrepo.core.utils import parse_select

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Populate:
    """Population option for one top-level field.

    Attributes:
        path: Field holding a reference id or a list of ids.
        store: Collection the references point into.
        select: Optional projection for the referenced documents.
        foreign_field: Field matched in the referenced collection.
    """

    path: str
    store: DocumentStore
    select: str | Sequence[str] | None = None
    foreign_field: str = "_id"


def _as_options(populate: Populate | Sequence[Populate] | None) -> list[Populate]:
    if not populate:
        return []
    if isinstance(populate, Populate):
        return [populate]
    return list(populate)


def _collect_refs(docs: list[Document], path: str) -> list[Any]:
    refs: list[Any] = []
    seen: set[Any] = set()
    for doc in docs:
        value = doc.get(path)
        values = value if isinstance(value, list) else [value]
        for ref in values:
            if ref is None or ref in seen:
                continue
            seen.add(ref)
            refs.append(ref)
    return refs


async def populate_documents(
    docs: list[Document],
    populate: Populate | Sequence[Populate] | None,
    *,
    session: Any = None,
) -> list[Document]:
    """Populate reference fields of ``docs`` in place.

    Missing referenced documents become None (single refs) or are dropped
    (list refs).

    Returns:
        The same list, for chaining.
    """
    for option in _as_options(populate):
        refs = _collect_refs(docs, option.path)
        if not refs:
            continue

        projection = parse_select(option.select)
        # the join key must come back even when the caller excluded it
        if projection and option.foreign_field not in projection and 1 in projection.values():
            projection[option.foreign_field] = 1

        cursor = option.store.find(
            {option.foreign_field: {"$in": refs}}, projection, session=session
        )
        found = {ref_doc.get(option.foreign_field): ref_doc for ref_doc in await cursor.to_list()}
        logger.debug(
            "Populated '%s': %d of %d references resolved", option.path, len(found), len(refs)
        )

        for doc in docs:
            if option.path not in doc:
                continue
            value = doc[option.path]
            if isinstance(value, list):
                doc[option.path] = [found[ref] for ref in value if ref in found]
            else:
                doc[option.path] = found.get(value)
    return docs


__all__ = ["Populate", "populate_documents"]
