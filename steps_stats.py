from __future__ import annotations
from pydantic import BaseModel

from steps_db import as_frame

STATUS_OK = "OK"
STATUS_MISSED = "Missed"


class ParticipantSummary(BaseModel):
    name: str
    total_submissions: int = 0
    days_missed: int = 0
    total_owed: int = 0
    paid: bool = False
    completion_rate: float = 0.0


class TrackerTotals(BaseModel):
    total_entries: int = 0
    days_missed: int = 0
    total_owed: int = 0


# ============================================================
# POR REGISTRO
# ============================================================

def status_of(submission, target_steps: int) -> str:
    return STATUS_OK if submission.steps >= target_steps else STATUS_MISSED


def amount_owed(submission, target_steps: int, penalty_amount: int) -> int:
    # One flat charge per missed day, whatever the shortfall
    return 0 if status_of(submission, target_steps) == STATUS_OK else penalty_amount


def with_status(submissions, target_steps: int, penalty_amount: int):
    """Store frame plus "status" and "amount_owed" columns (tracker table and CSV)."""
    df = as_frame(submissions).copy()
    ok = df["steps"] >= target_steps
    df["status"] = ok.map({True: STATUS_OK, False: STATUS_MISSED}).astype(object)
    df["amount_owed"] = (~ok).astype(int) * int(penalty_amount)
    return df


# ============================================================
# RESUMEN POR PARTICIPANTE
# ============================================================

def summarize(roster, submissions, target_steps: int, penalty_amount: int) -> list[ParticipantSummary]:
    """One summary per roster name, in roster order, including names with no entries."""
    df = as_frame(submissions)
    summaries = []
    for name in roster:
        mine = df[df["name"] == name]
        total = len(mine)
        missed = int((mine["steps"] < target_steps).sum())
        if total > 0:
            completion = (total - missed) / total * 100
        else:
            completion = 0.0
        summaries.append(
            ParticipantSummary(
                name=name,
                total_submissions=total,
                days_missed=missed,
                total_owed=missed * penalty_amount,
                paid=bool(total > 0 and mine["paid"].all()),
                completion_rate=completion,
            )
        )
    return summaries


def grand_total(summaries) -> int:
    """Unpaid debt only: a paid participant's missed days count as settled."""
    return sum(s.total_owed for s in summaries if not s.paid)


def tracker_totals(submissions, target_steps: int, penalty_amount: int) -> TrackerTotals:
    df = as_frame(submissions)
    missed = int((df["steps"] < target_steps).sum())
    return TrackerTotals(
        total_entries=len(df),
        days_missed=missed,
        total_owed=missed * penalty_amount,
    )
