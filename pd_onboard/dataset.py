"""Editable enrichment dataset: dirty tracking, validation, completion scoring.

The module-level functions are pure transforms over row lists; rows are
frozen models, so a transform never disturbs the list it was given.
:class:`TabularDataset` holds the ``working``/``baseline`` pair and applies
those transforms; a UI binds to it however it likes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from pd_onboard.codecs import SpreadsheetCodec, XlsxCodec, codec_for_path
from pd_onboard.errors import CodecError, LoadError, SaveError
from pd_onboard.models import EnrichmentRow, OverallProgress
from pd_onboard.schema import (
    COLUMNS,
    ENUM_FIELDS,
    FIELD_KEYS,
    PRIMARY_NAME_FIELD,
    REQUIRED_FIELDS,
    TRACKED_FIELDS,
    is_field,
    map_headers,
)
from pd_onboard.utils import RowIdGenerator, round_half_up, utcnow_iso

logger = logging.getLogger(__name__)

IdFactory = Callable[..., str]

COPY_SUFFIX = " (Copy)"


# ── Scoring ───────────────────────────────────────────────────────

def _filled(value: Optional[str]) -> bool:
    return bool(value and str(value).strip())


def calculate_row_completion(row: Union[EnrichmentRow, Mapping[str, str]], tracked: Sequence[str] = TRACKED_FIELDS) -> int:
    """Percentage of ``tracked`` fields holding a non-blank value."""
    if not tracked:
        return 0
    get = row.get if isinstance(row, Mapping) else lambda k: getattr(row, k, "")
    filled = sum(1 for key in tracked if _filled(get(key)))
    return round_half_up(100 * filled / len(tracked))


def _stamp(row: EnrichmentRow, **changes: str) -> EnrichmentRow:
    """Apply ``changes``, recompute completion and refresh the timestamp."""
    updated = row.model_copy(update={**changes, "last_updated": utcnow_iso()})
    return updated.model_copy(update={"completion": calculate_row_completion(updated)})


def make_row(row_id: str, values: Optional[Mapping[str, str]] = None) -> EnrichmentRow:
    fields = {k: str(v) for k, v in (values or {}).items() if is_field(k)}
    return _stamp(EnrichmentRow(id=row_id), **fields)


def row_key(row: EnrichmentRow) -> tuple:
    """Value identity of a row: id plus every schema field."""
    return (row.id,) + tuple(getattr(row, k) for k in FIELD_KEYS)


def rows_differ(working: Sequence[EnrichmentRow], baseline: Sequence[EnrichmentRow]) -> bool:
    if len(working) != len(baseline):
        return True
    return any(row_key(a) != row_key(b) for a, b in zip(working, baseline))


# ── Row transforms ────────────────────────────────────────────────

def update_cell(rows: Sequence[EnrichmentRow], row_id: str, field: str, value: str) -> List[EnrichmentRow]:
    if not is_field(field):
        raise ValueError(f"Unknown field: {field!r}")
    return [_stamp(r, **{field: value}) if r.id == row_id else r for r in rows]


def add_row(rows: Sequence[EnrichmentRow], new_id: str) -> List[EnrichmentRow]:
    return list(rows) + [make_row(new_id)]


def delete_row(rows: Sequence[EnrichmentRow], row_id: str) -> List[EnrichmentRow]:
    return [r for r in rows if r.id != row_id]


def duplicate_row(rows: Sequence[EnrichmentRow], row_id: str, new_id: str) -> List[EnrichmentRow]:
    source = next((r for r in rows if r.id == row_id), None)
    if source is None:
        return list(rows)
    name = getattr(source, PRIMARY_NAME_FIELD)
    copy = _stamp(source.model_copy(update={"id": new_id}), **{PRIMARY_NAME_FIELD: f"{name}{COPY_SUFFIX}"})
    return list(rows) + [copy]


# ── Validation & aggregates ───────────────────────────────────────

def validate_excel_data(rows: Sequence[EnrichmentRow]) -> List[str]:
    """Advisory rule check; one message per violation, never raises."""
    if not rows:
        return ["No data rows found"]

    errors: List[str] = []
    seen: Dict[str, int] = {}
    for index, row in enumerate(rows, start=1):
        if not row.id:
            errors.append(f"Row {index}: Missing ID")
        elif row.id in seen:
            errors.append(f"Row {index}: Duplicate ID '{row.id}' (first seen in row {seen[row.id]})")
        else:
            seen[row.id] = index

        for key, label in REQUIRED_FIELDS.items():
            if not _filled(getattr(row, key)):
                errors.append(f"Row {index}: Missing {label}")

        for key, allowed in ENUM_FIELDS.items():
            value = getattr(row, key).strip()
            if value and value.lower() not in allowed:
                choices = "/".join(sorted(a.capitalize() for a in allowed))
                errors.append(f"Row {index}: Invalid value '{value}' for {key} (expected {choices})")
    return errors


def get_overall_progress(rows: Sequence[EnrichmentRow]) -> OverallProgress:
    if not rows:
        return OverallProgress()
    scores = [r.completion for r in rows]
    completed = sum(1 for s in scores if s == 100)
    not_started = sum(1 for s in scores if s == 0)
    return OverallProgress(
        total=len(scores),
        completed=completed,
        not_started=not_started,
        in_progress=len(scores) - completed - not_started,
        average_completion=round_half_up(sum(scores) / len(scores)),
    )


def rows_from_records(records: Sequence[Mapping[str, str]], new_id: IdFactory) -> List[EnrichmentRow]:
    """Map header-keyed records onto the schema.

    Unknown columns are ignored, missing ones default to empty, values are
    stripped and fully blank records are skipped.
    """
    headers: List[str] = []
    for record in records:
        for header in record:
            if header not in headers:
                headers.append(header)
    mapping = map_headers(headers)

    rows: List[EnrichmentRow] = []
    for record in records:
        values = {}
        for header, key in mapping.items():
            text = record.get(header)
            values[key] = str(text).strip() if text is not None else ""
        if not any(values.values()):
            continue
        rows.append(make_row(new_id(), values))
    return rows


class TabularDataset:
    """In-memory enrichment dataset with a working copy and a saved baseline.

    ``baseline`` only moves on a successful :meth:`load` or :meth:`save`;
    every mutation replaces ``working`` with a new list.
    """

    def __init__(
        self,
        codec: Optional[SpreadsheetCodec] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.codec = codec or XlsxCodec()
        self._new_id = id_factory or RowIdGenerator()
        self._working: List[EnrichmentRow] = []
        self._baseline: List[EnrichmentRow] = []

    @property
    def working(self) -> List[EnrichmentRow]:
        return list(self._working)

    @property
    def baseline(self) -> List[EnrichmentRow]:
        return list(self._baseline)

    @property
    def has_unsaved_changes(self) -> bool:
        return rows_differ(self._working, self._baseline)

    @property
    def validation_errors(self) -> List[str]:
        return validate_excel_data(self._working)

    def __len__(self) -> int:
        return len(self._working)

    # ── Load / save ──────────────────────────────────────────────

    def load(self, data: bytes) -> List[EnrichmentRow]:
        """Replace the whole dataset with rows parsed from ``data``.

        On failure the dataset is emptied and :class:`LoadError` is raised.
        """
        try:
            records = self.codec.decode(data)
        except CodecError as e:
            self._working, self._baseline = [], []
            raise LoadError(f"Failed to parse spreadsheet: {e}") from e
        rows = rows_from_records(records, self._new_id)
        self._working = list(rows)
        self._baseline = list(rows)
        logger.debug("Loaded %d rows", len(rows))
        return self.working

    def save(self) -> bytes:
        """Serialize ``working``; on success it becomes the new baseline."""
        snapshot = list(self._working)
        records = [row.model_dump(include=set(FIELD_KEYS)) for row in snapshot]
        try:
            data = self.codec.encode(COLUMNS, records)
        except CodecError as e:
            raise SaveError(f"Failed to serialize dataset: {e}") from e
        self._baseline = snapshot
        logger.debug("Saved %d rows (%d bytes)", len(snapshot), len(data))
        return data

    def load_from(self, path: Union[str, Path]) -> List[EnrichmentRow]:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            self._working, self._baseline = [], []
            raise LoadError(f"Failed to read {path}: {e}") from e
        return self.load(data)

    def save_to(self, path: Union[str, Path]) -> Path:
        """Write ``working`` to ``path``; the baseline advances only if the write lands."""
        p = Path(path)
        previous = self._baseline
        data = self.save()
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(data)
        except OSError as e:
            self._baseline = previous
            raise SaveError(f"Failed to write {p}: {e}") from e
        return p

    def reset(self) -> None:
        """Discard unsaved edits."""
        self._working = list(self._baseline)

    # ── Row operations ───────────────────────────────────────────

    def get_row(self, row_id: str) -> Optional[EnrichmentRow]:
        return next((r for r in self._working if r.id == row_id), None)

    def update_cell(self, row_id: str, field: str, value: str) -> None:
        self._working = update_cell(self._working, row_id, field, value)

    def add_row(self) -> EnrichmentRow:
        self._working = add_row(self._working, self._new_id("new-row"))
        return self._working[-1]

    def delete_row(self, row_id: str) -> None:
        self._working = delete_row(self._working, row_id)

    def duplicate_row(self, row_id: str) -> Optional[EnrichmentRow]:
        before = len(self._working)
        self._working = duplicate_row(self._working, row_id, self._new_id("duplicate"))
        return self._working[-1] if len(self._working) > before else None

    # ── Progress ─────────────────────────────────────────────────

    def get_row_progress(self, row_id: str) -> int:
        row = self.get_row(row_id)
        return calculate_row_completion(row) if row else 0

    def get_overall_progress(self) -> OverallProgress:
        return get_overall_progress(self._working)


def open_dataset(path: Union[str, Path], id_factory: Optional[IdFactory] = None) -> TabularDataset:
    """Load ``path`` with the codec matching its extension."""
    try:
        codec = codec_for_path(path)
    except CodecError as e:
        raise LoadError(str(e)) from e
    dataset = TabularDataset(codec=codec, id_factory=id_factory)
    dataset.load_from(path)
    return dataset
