from __future__ import annotations
import os
from pathlib import Path

import gspread
import pydantic
import structlog
from google.oauth2.service_account import Credentials
from gspread_dataframe import get_as_dataframe, set_with_dataframe

from steps_config import SCOPES
from steps_db import COLS_SUBMISSIONS, Snapshot, row_to_submission, submissions_frame, typed_frame
from steps_errors import StorageError, ValidationError

log = structlog.get_logger()


# ============================================================
# SNAPSHOT LOCAL (JSON)
# ============================================================

class JsonSnapshotStorage:
    """Whole-document save/load of {"submissions": [...], "nextId": n}."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Snapshot:
        if not self.path.exists():
            log.info("snapshot_missing", path=str(self.path))
            return Snapshot()
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return Snapshot()
        try:
            snapshot = Snapshot.model_validate_json(text)
        except pydantic.ValidationError as exc:
            raise StorageError(f"Could not read {self.path}: {exc.error_count()} invalid field(s).") from exc
        log.info("snapshot_loaded", path=str(self.path), submissions=len(snapshot.submissions))
        return snapshot

    def save(self, snapshot: Snapshot):
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(snapshot.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        log.debug("snapshot_saved", path=str(self.path), submissions=len(snapshot.submissions))


class MemorySnapshotStorage:
    def __init__(self, snapshot: Snapshot | None = None):
        self.snapshot = snapshot or Snapshot()
        self.saves = 0

    def load(self) -> Snapshot:
        return self.snapshot.model_copy(deep=True)

    def save(self, snapshot: Snapshot):
        self.snapshot = snapshot.model_copy(deep=True)
        self.saves += 1


# ============================================================
# GOOGLE SHEETS (LECTURA / ESCRITURA)
# ============================================================

def open_worksheet(service_account_info, sheet_name, worksheet_name):
    creds = Credentials.from_service_account_info(service_account_info, scopes=SCOPES)
    client = gspread.authorize(creds)
    spreadsheet = client.open(sheet_name)
    return spreadsheet.worksheet(worksheet_name)


class SheetsSnapshotStorage:
    """
    Submissions live as rows of one worksheet. The sheet has no place for the
    counter, so nextId is reseeded as max(id) + 1 on every load.
    """

    def __init__(self, worksheet):
        self.worksheet = worksheet

    def load(self) -> Snapshot:
        df = get_as_dataframe(self.worksheet, evaluate_formulas=True, header=0)
        df = df.dropna(how="all")
        if df.empty:
            return Snapshot()
        try:
            df = typed_frame(df.fillna(""))
            submissions = [row_to_submission(row) for _, row in df.iterrows()]
        except (pydantic.ValidationError, ValidationError) as exc:
            raise StorageError(f"Could not read worksheet {self.worksheet.title!r}: {exc}") from exc
        next_id = int(df["id"].max()) + 1
        log.info("snapshot_loaded", worksheet=self.worksheet.title, submissions=len(submissions))
        return Snapshot(submissions=submissions, next_id=next_id)

    def save(self, snapshot: Snapshot):
        df_out = submissions_frame(snapshot.submissions)
        df_out["proof_ref"] = df_out["proof_ref"].fillna("")
        self.worksheet.clear()
        set_with_dataframe(self.worksheet, df_out[COLS_SUBMISSIONS])
        log.debug("snapshot_saved", worksheet=self.worksheet.title, submissions=len(snapshot.submissions))


def make_storage(settings, secrets=None):
    """Pick the backend named by settings.storage ("json", "sheets" or "memory")."""
    if settings.storage == "sheets":
        if secrets is None or "gcp_service_account" not in secrets:
            raise StorageError("The sheets backend needs a gcp_service_account secret.")
        worksheet = open_worksheet(secrets["gcp_service_account"], settings.sheet_name, settings.worksheet)
        return SheetsSnapshotStorage(worksheet)
    if settings.storage == "memory":
        return MemorySnapshotStorage()
    return JsonSnapshotStorage(settings.data_path)
