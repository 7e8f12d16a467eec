"""Update-mode reconciliation of a fresh extraction with a saved unit."""

import logging
from typing import Optional

from .term_model import EntryStore

log = logging.getLogger(__name__)


def merge(fresh: EntryStore, previous: Optional[EntryStore]) -> EntryStore:
    """Carry translations from ``previous`` into ``fresh``.

    Entries are matched by key only. A matched entry in ``fresh`` takes the
    translation and fuzzy flag of its counterpart; unmatched ones stay
    untranslated. ``fresh`` is modified in place.

    Returns:
        A new store with the ``previous`` entries whose text is no longer
        extracted, in ``previous`` order. These are never put back into
        ``fresh``.
    """
    stale = EntryStore(f"{fresh.name}.stale" if fresh.name else "", fresh.category)
    if not previous:
        return stale

    consumed = set()
    for entry in fresh:
        old = previous.get(entry.key)
        if old is None:
            continue
        entry.translation = old.translation
        entry.fuzzy = old.fuzzy
        consumed.add(entry.key)

    for old in previous:
        if old.key not in consumed:
            stale.add_entry(old.copy())

    log.debug("%s: %d carried over, %d new, %d stale",
              fresh.name, len(consumed), len(fresh) - len(consumed), len(stale))
    return stale
