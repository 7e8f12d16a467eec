"""Gettext PO reader and writer for EntryStores.

The writer emits one record per entry in store order::

    #. actors/1/name
    #, fuzzy
    msgctxt "actors.name"
    msgid "Alex"
    msgstr "Alexandre"

The reader is line based and forgiving: a record it cannot make sense of
(unterminated string, stray text, missing msgid/msgstr) is dropped with a
warning and parsing continues with the next record. Records are rendered
by polib; its parser is not used since it rejects the whole file on the
first syntax error.
"""

import logging
import os
import re
import stat
import tempfile

import polib

from .term_model import Entry, EntryStore

log = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r'^(msgctxt|msgid_plural|msgid|msgstr(?:\[(\d+)\])?)\s*(.*)$')
_QUOTED_RE = re.compile(r'^"((?:[^"\\]|\\.)*)"$')

# Comment prefixes whose text becomes a location
_LOCATION_PREFIXES = ("#.", "#:")
# Comment prefixes that are recognised but carry nothing we keep
_IGNORED_PREFIXES = ("#~", "#|")


# ── Writing ───────────────────────────────────────────────────────────

# os.umask can only be read by setting it; done once at import
_UMASK = os.umask(0)
os.umask(_UMASK)


def _quote(text: str) -> str:
    return f'"{polib.escape(text)}"'


def to_po_entry(entry: Entry) -> polib.POEntry:
    """Build the polib record of an entry. Locations become extracted comments."""
    return polib.POEntry(
        msgid=entry.original,
        msgstr=entry.translation,
        msgctxt=entry.context or None,
        comment="\n".join(" ".join(loc.splitlines()) for loc in entry.locations),
        flags=["fuzzy"] if entry.fuzzy else [],
    )


def _render(po_entry: polib.POEntry) -> str:
    # wrapwidth=0: text is only split after line breaks, never rewrapped
    return po_entry.__unicode__(wrapwidth=0).rstrip("\n")


def format_entry(entry: Entry) -> str:
    """Return the PO text of a single record, without trailing newline."""
    return _render(to_po_entry(entry))


def _format_header(header: str) -> str:
    text = _render(polib.POEntry(msgid="", msgstr=header))
    if "\n" not in text.split("msgstr ", 1)[1]:
        # Single-line header still goes in the multi-line form
        text = "\n".join(['msgid ""', 'msgstr ""', _quote(header)])
    return text


def dumps(store: EntryStore) -> str:
    """Serialize a store. An empty store without header gives ""."""
    records = []
    if store.header:
        records.append(_format_header(store.header))
    records.extend(format_entry(e) for e in store)
    if not records:
        return ""
    return "\n\n".join(records) + "\n"


def write_store(store: EntryStore, path: str):
    """Write a store to ``path`` atomically.

    The text goes to a temporary file next to the target first, so an
    interrupted write never leaves a truncated unit behind. An existing
    unit keeps its permission bits; a new one gets the usual 0666 & ~umask.
    """
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    try:
        mode = stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        mode = 0o666 & ~_UMASK

    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".po", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(dumps(store))
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


# ── Reading ───────────────────────────────────────────────────────────

class MalformedRecord(ValueError):
    """Raised inside the parser for a record that must be dropped."""


class _Record:
    """Fields of one record while it is being read."""

    def __init__(self, lineno: int):
        self.lineno = lineno
        self.locations = []
        self.fuzzy = False
        self.fields = {}
        self.current = None  # keyword that continuation lines extend

    @property
    def empty(self) -> bool:
        return not self.fields

    def add_field(self, keyword: str, value: str):
        if keyword in self.fields:
            raise MalformedRecord(f"duplicate {keyword}")
        self.fields[keyword] = [value]
        self.current = keyword

    def continue_field(self, value: str):
        if self.current is None:
            raise MalformedRecord("string without keyword")
        self.fields[self.current].append(value)

    def text(self, keyword: str) -> str:
        return "".join(self.fields.get(keyword, []))


def _unquote(raw: str) -> str:
    m = _QUOTED_RE.match(raw.strip())
    if not m:
        raise MalformedRecord(f"unterminated or invalid string {raw.strip()[:40]!r}")
    return polib.unescape(m.group(1))


class _Parser:
    def __init__(self, store: EntryStore, source: str):
        self.store = store
        self.source = source
        self.record = None
        self.skipping = False
        # While skipping: the dropped record is past its msgid, so the next
        # msgctxt/msgid belongs to a new record
        self.past_msgid = False
        self.dropped = 0

    def feed(self, lineno: int, line: str):
        stripped = line.strip()
        if not stripped:
            self.finish()
            self.skipping = False
            return
        if self.skipping:
            if not self._starts_record(stripped):
                if stripped.startswith("msgstr"):
                    self.past_msgid = True
                return
            self.skipping = False
        try:
            self._parse_line(lineno, stripped)
        except MalformedRecord as e:
            self.drop(lineno, str(e), stripped)

    def _starts_record(self, stripped: str) -> bool:
        if stripped.startswith("#"):
            return not stripped.startswith(_IGNORED_PREFIXES)
        if not self.past_msgid:
            return False
        m = _KEYWORD_RE.match(stripped)
        return m is not None and m.group(1) in ("msgctxt", "msgid")

    def _parse_line(self, lineno: int, stripped: str):
        if stripped.startswith("#"):
            if stripped.startswith(_IGNORED_PREFIXES):
                return
            # A comment after a complete record starts the next one
            if self.record is not None and "msgstr" in self.record.fields:
                self.finish()
            record = self._current(lineno)
            if stripped.startswith("#,"):
                flags = [f.strip() for f in stripped[2:].split(",")]
                record.fuzzy = record.fuzzy or "fuzzy" in flags
            elif stripped.startswith(_LOCATION_PREFIXES):
                self._add_location(record, stripped[2:])
            else:
                self._add_location(record, stripped[1:])
            return

        if stripped.startswith('"'):
            if self.record is None:
                raise MalformedRecord("string without keyword")
            self.record.continue_field(_unquote(stripped))
            return

        m = _KEYWORD_RE.match(stripped)
        if not m:
            raise MalformedRecord(f"unexpected line {stripped[:40]!r}")
        keyword, plural_idx, rest = m.group(1), m.group(2), m.group(3)
        if keyword in ("msgctxt", "msgid") and self.record is not None \
                and "msgstr" in self.record.fields:
            self.finish()
        record = self._current(lineno)
        value = _unquote(rest)
        if keyword == "msgid_plural" or (plural_idx is not None and plural_idx != "0"):
            # Plural forms are never written; keep only the singular
            record.fields.setdefault("_ignored", [])
            record.current = "_ignored"
            return
        if plural_idx is not None:
            keyword = "msgstr"
        record.add_field(keyword, value)

    @staticmethod
    def _add_location(record: _Record, text: str):
        text = text.strip()
        if text and text not in record.locations:
            record.locations.append(text)

    def _current(self, lineno: int) -> _Record:
        if self.record is None:
            self.record = _Record(lineno)
        return self.record

    def drop(self, lineno: int, reason: str, line: str = ""):
        record = self.record
        start = record.lineno if record else lineno
        log.warning("%s:%d: dropping malformed record (%s)", self.source, start, reason)
        self.dropped += 1
        fields = record.fields if record else {}
        self.past_msgid = "msgid" in fields or "msgstr" in fields \
            or line.startswith(("msgid", "msgstr"))
        self.record = None
        self.skipping = True

    def finish(self):
        record, self.record = self.record, None
        if record is None or record.empty:
            return
        fields = record.fields
        if "msgid" not in fields or "msgstr" not in fields:
            missing = "msgid" if "msgid" not in fields else "msgstr"
            log.warning("%s:%d: dropping malformed record (missing %s)",
                        self.source, record.lineno, missing)
            self.dropped += 1
            return

        original = record.text("msgid")
        context = record.text("msgctxt")
        if not original:
            # Header / metadata record
            if not context and not self.store.header:
                self.store.header = record.text("msgstr")
            return
        self.store.add_entry(Entry(
            original=original,
            context=context,
            translation=record.text("msgstr"),
            locations=record.locations,
            fuzzy=record.fuzzy,
        ))


def loads(text: str, name: str = "", category=None, source: str = "") -> EntryStore:
    """Parse PO text into a new EntryStore."""
    store = EntryStore(name, category)
    parser = _Parser(store, source or name or "<string>")
    if text.startswith("\ufeff"):
        text = text[1:]
    for lineno, line in enumerate(text.split("\n"), start=1):
        parser.feed(lineno, line.rstrip("\r"))
    parser.finish()
    if parser.dropped:
        log.warning("%s: %d malformed record(s) dropped", parser.source, parser.dropped)
    return store


def read_store(path: str, name: str = "", category=None) -> EntryStore:
    """Load a PO file. ``name`` defaults to the file name without ``.po``."""
    if not name:
        name = os.path.basename(path)
        if name.lower().endswith(".po"):
            name = name[:-3]
    with open(path, "rb") as f:
        raw = f.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        log.warning("%s: invalid UTF-8 at byte %d, undecodable bytes replaced with U+FFFD",
                    path, e.start)
        text = raw.decode("utf-8", errors="replace")
    return loads(text, name=name, category=category, source=path)
