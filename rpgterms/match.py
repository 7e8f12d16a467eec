"""Bootstrap translations by matching two independently extracted units.

``dst`` holds the terms of the canonical game, ``src`` the terms of a copy
whose text was translated in place. Where the text of a ``src`` entry
equals the text of a ``dst`` entry, the ``src`` text becomes the ``dst``
translation.
"""

import logging
from typing import Optional

from .config import DEFAULT_NORMALIZATION, NORMALIZATION_MODES
from .term_model import EntryStore

log = logging.getLogger(__name__)


def normalize_key(text: str, mode: str = DEFAULT_NORMALIZATION) -> str:
    """Lookup key of ``text`` under a normalization mode.

    Modes: "exact", "trim", "casefold", "trim+casefold".
    """
    if mode not in NORMALIZATION_MODES:
        raise ValueError(f"Unknown normalization {mode!r}")
    if "trim" in mode:
        text = text.strip()
    if "casefold" in mode:
        text = text.casefold()
    return text


def _exact_key(text: str, mode: str) -> str:
    # Same as normalize_key without the case folding
    return text.strip() if "trim" in mode else text


def match(dst: EntryStore, src: Optional[EntryStore],
          normalization: str = DEFAULT_NORMALIZATION) -> tuple:
    """Fill ``dst`` translations from ``src``.

    A ``dst`` entry whose text equals a ``src`` text exactly gets a normal
    translation. If it only equals it after normalization the translation
    is marked fuzzy. Entries without a match are left untranslated. Among
    several ``src`` entries with the same key the first one wins.

    The copied text is the translation of the ``src`` entry if it has one,
    otherwise its original.

    Returns:
        ``(stale, matched_count)``: the ``src`` entries that were never
        picked for any ``dst`` entry, and the number of ``dst`` entries that
        now have a translation.
    """
    stale = EntryStore(f"{dst.name}.unmatched" if dst.name else "", dst.category)

    exact = {}
    folded = {}
    for candidate in (src or []):
        exact.setdefault(_exact_key(candidate.original, normalization), candidate)
        folded.setdefault(normalize_key(candidate.original, normalization), candidate)

    used = set()
    matched = 0
    for entry in dst:
        fuzzy = False
        winner = exact.get(_exact_key(entry.original, normalization))
        if winner is None:
            winner = folded.get(normalize_key(entry.original, normalization))
            fuzzy = winner is not None

        text = (winner.translation or winner.original) if winner is not None else ""
        entry.translation = text
        entry.fuzzy = fuzzy and bool(text)
        if text:
            matched += 1
            used.add(id(winner))

    for candidate in (src or []):
        if id(candidate) not in used:
            stale.add_entry(candidate.copy())

    log.debug("%s: %d matched (%d fuzzy), %d unmatched",
              dst.name, matched, dst.fuzzy_count, len(stale))
    return stale, matched
