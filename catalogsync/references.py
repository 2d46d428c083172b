"""Translate selected identifiers into embedded reference values.

Reads are normalized by id, but the create endpoints for events and tracking
plans expect embedded `{name, type, description}` objects. Selections come from
a form and are resolved against a snapshot already held by a synchronizer.

A selection that no longer exists in the snapshot (it was refreshed and the id
vanished) becomes an empty-string triple at the same position instead of
failing the whole translation.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Union

from .schema import Event, Property, ReferenceTriple

logger = logging.getLogger(__name__)

Referenceable = Union[Property, Event]


def denormalize(selected_ids: Sequence[str], source_collection: Iterable[Referenceable]) -> List[ReferenceTriple]:
    """Return one triple per selected id, in selection order."""

    if not selected_ids:
        return []

    by_id: Dict[str, Referenceable] = {}
    for item in source_collection:
        # Ids are unique per collection; keep the first on duplicates.
        by_id.setdefault(item.id, item)

    out: List[ReferenceTriple] = []
    for ref_id in selected_ids:
        item = by_id.get(ref_id)
        if item is None:
            logger.warning("Selected reference not in snapshot; embedding empty placeholder", extra={"resource_id": ref_id})
            out.append(ReferenceTriple.empty())
        else:
            out.append(item.to_reference())
    return out


def reference_payload(triples: Iterable[ReferenceTriple]) -> List[Dict[str, str]]:
    return [t.to_dict() for t in triples]
