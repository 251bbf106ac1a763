from __future__ import annotations
import datetime as dt
from typing import Iterable, Optional

import pandas as pd
import structlog
from dateutil.parser import parse as parse_date
from pydantic import BaseModel, ConfigDict, Field

from steps_errors import DuplicateEntry, InvalidValue, NotFound, ValidationError

log = structlog.get_logger()

# Store columns; "date" is ALWAYS kept as ISO text YYYY-MM-DD
COLS_SUBMISSIONS = ["id", "name", "date", "steps", "proof_ref", "paid"]


# ============================================================
# MODELOS
# ============================================================

class Submission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = Field(alias="participantName")
    date: dt.date
    steps: int = Field(alias="stepCount", ge=0)
    proof_ref: Optional[str] = Field(default=None, alias="proofReference")
    paid: bool = False


class Snapshot(BaseModel):
    """Persisted layout: {"submissions": [...], "nextId": n}."""
    model_config = ConfigDict(populate_by_name=True)

    submissions: list[Submission] = Field(default_factory=list)
    next_id: int = Field(default=1, alias="nextId", ge=1)


# ============================================================
# FUNCIONES AUXILIARES
# ============================================================

def ensure_columns(df, columns):
    for c in columns:
        if c not in df.columns:
            df[c] = ""
    return df[columns].copy()


def _clean_ref(value):
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def typed_frame(df):
    """Coerce a raw submissions frame (JSON, sheet, records) to the store dtypes."""
    df = ensure_columns(df, COLS_SUBMISSIONS)
    df["id"] = pd.to_numeric(df["id"], errors="coerce").fillna(0).astype(int)
    df["name"] = df["name"].astype(str)
    df["date"] = df["date"].map(parse_day)
    df["steps"] = pd.to_numeric(df["steps"], errors="coerce").fillna(0).astype(int)
    df["proof_ref"] = df["proof_ref"].map(_clean_ref).astype(object)
    df["paid"] = df["paid"].map(_parse_flag).astype(bool)
    return df.reset_index(drop=True)


def _parse_flag(value):
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "paid")
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    return bool(value)


_DEFAULT_A = dt.datetime(2000, 1, 1)
_DEFAULT_B = dt.datetime(2001, 2, 2)

# Store column is int64
MAX_STEPS = 2**63 - 1


def parse_day(value):
    """Return the ISO text (YYYY-MM-DD) for a date, datetime or date-like string."""
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    if value is None or not str(value).strip():
        raise ValidationError("Please fill in all required fields.")
    text = str(value).strip()
    try:
        return dt.date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    # Free-form fallback ("Jan 5 2024", "2024/01/05", ...). dateutil fills
    # missing parts from its default, so parse against two defaults that
    # differ in year, month and day: a full date gives the same answer twice.
    try:
        first = parse_date(text, default=_DEFAULT_A).date()
        second = parse_date(text, default=_DEFAULT_B).date()
    except (ValueError, OverflowError):
        raise ValidationError(f"Not a valid date: {text!r}.") from None
    if first != second:
        raise ValidationError(f"Not a valid date: {text!r}.")
    return first.isoformat()


def parse_steps(value, error=ValidationError):
    """Whole, non-negative step count; "12,000" is accepted."""
    if value is None or isinstance(value, bool):
        raise error("Please enter a valid number of steps.")
    try:
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(value)
            steps = int(value)
        else:
            steps = int(str(value).strip().replace(",", ""))
    except (TypeError, ValueError):
        raise error("Please enter a valid number of steps.") from None
    if steps < 0 or steps > MAX_STEPS:
        raise error("Please enter a valid number of steps.")
    return steps


def row_to_submission(row) -> Submission:
    return Submission(
        id=int(row["id"]),
        name=str(row["name"]),
        date=row["date"],
        steps=int(row["steps"]),
        proof_ref=_clean_ref(row["proof_ref"]),
        paid=bool(row["paid"]),
    )


def submissions_frame(submissions: Iterable[Submission]):
    rows = [
        {
            "id": s.id,
            "name": s.name,
            "date": s.date.isoformat(),
            "steps": s.steps,
            "proof_ref": s.proof_ref,
            "paid": s.paid,
        }
        for s in submissions
    ]
    return typed_frame(pd.DataFrame(rows, columns=COLS_SUBMISSIONS))


def as_frame(submissions):
    """Accept either a store frame or a sequence of Submission."""
    if isinstance(submissions, pd.DataFrame):
        return submissions
    return submissions_frame(submissions)


# ============================================================
# STORE
# ============================================================

class StepsStore:
    """Owns the submission collection, id assignment and duplicate detection."""

    def __init__(self, df=None, next_id=None):
        if df is None:
            df = pd.DataFrame(columns=COLS_SUBMISSIONS)
        self.df = self._sorted(typed_frame(df))
        seed = int(self.df["id"].max()) + 1 if not self.df.empty else 1
        # A persisted counter may run ahead of max(id) after deletions
        self._next_id = max(seed, int(next_id or 1))

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "StepsStore":
        return cls(submissions_frame(snapshot.submissions), next_id=snapshot.next_id)

    def to_snapshot(self) -> Snapshot:
        return Snapshot(submissions=self.records(), next_id=self._next_id)

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self):
        return len(self.df)

    @staticmethod
    def _sorted(df):
        # Date only; stable so same-day rows keep their insertion order
        return df.sort_values("date", ascending=False, kind="stable").reset_index(drop=True)

    def frame(self):
        return self.df.copy()

    def records(self) -> list[Submission]:
        return [row_to_submission(row) for _, row in self.df.iterrows()]

    def _mask(self, submission_id):
        try:
            sid = int(submission_id)
        except (TypeError, ValueError):
            raise NotFound(f"No submission with id {submission_id!r}.") from None
        mask = self.df["id"] == sid
        if not mask.any():
            raise NotFound(f"No submission with id {submission_id}.")
        return mask

    def get(self, submission_id) -> Submission:
        mask = self._mask(submission_id)
        return row_to_submission(self.df[mask].iloc[0])

    def add_submission(self, name, day, steps, proof_ref=None) -> Submission:
        name = str(name or "").strip()
        if not name or day is None or day == "" or steps is None or steps == "":
            raise ValidationError("Please fill in all required fields.")
        day_iso = parse_day(day)
        steps = parse_steps(steps)

        duplicate = (self.df["name"] == name) & (self.df["date"] == day_iso)
        if duplicate.any():
            log.warning("duplicate_submission", participant=name, date=day_iso)
            raise DuplicateEntry("Entry for this participant and date already exists.")

        new_row = {
            "id": self._next_id,
            "name": name,
            "date": day_iso,
            "steps": steps,
            "proof_ref": _clean_ref(proof_ref),
            "paid": False,
        }
        submission = row_to_submission(new_row)

        # Nothing on self changes until the new frame is built
        rows = self.df.to_dict("records") + [new_row]
        df_new = self._sorted(typed_frame(pd.DataFrame(rows, columns=COLS_SUBMISSIONS)))
        self.df = df_new
        self._next_id += 1
        log.info("submission_added", id=submission.id, participant=name, date=day_iso, steps=steps)
        return submission

    def update_steps(self, submission_id, new_steps) -> Submission:
        mask = self._mask(submission_id)
        steps = parse_steps(new_steps, error=InvalidValue)
        self.df.loc[mask, "steps"] = steps
        log.info("steps_updated", id=int(submission_id), steps=steps)
        return self.get(submission_id)

    def delete_submission(self, submission_id):
        mask = self._mask(submission_id)
        self.df = self.df[~mask].reset_index(drop=True)
        log.info("submission_deleted", id=int(submission_id))

    def set_paid(self, name, paid):
        mask = self.df["name"] == name
        self.df.loc[mask, "paid"] = bool(paid)
        log.info("paid_set", participant=name, paid=bool(paid), submissions=int(mask.sum()))

    def filter_frame(self, search="", date_from=None, date_to=None):
        df = self.df
        mask = pd.Series(True, index=df.index)
        search = (search or "").strip().lower()
        if search:
            mask &= df["name"].str.lower().str.contains(search, regex=False)
        if date_from:
            mask &= df["date"] >= parse_day(date_from)
        if date_to:
            mask &= df["date"] <= parse_day(date_to)
        return df[mask].copy()

    def filter(self, search="", date_from=None, date_to=None) -> list[Submission]:
        df = self.filter_frame(search, date_from, date_to)
        return [row_to_submission(row) for _, row in df.iterrows()]
