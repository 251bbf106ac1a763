from __future__ import annotations
import datetime as dt

import pandas as pd

from steps_stats import grand_total, with_status

TITLE = "10K Steps Challenge - Payment Summary"
COLS_SUMMARY_CSV = ["Name", "Total Submissions", "Days Missed", "Amount Owed", "Payment Status"]
COLS_DETAIL_CSV = ["Date", "Name", "Steps", "Status", "Amount Owed"]


def export_filename(today=None):
    today = today or dt.date.today()
    return f"steps-challenge-summary-{today.isoformat()}.csv"


def export_csv(summaries, submissions, target_steps, penalty_amount, currency="₱"):
    """
    Two sections: per-participant summary (+ grand total), then every
    submission with the same status/amount derivation as the tracker tab.
    """
    df_summary = pd.DataFrame(
        [
            {
                "Name": s.name,
                "Total Submissions": s.total_submissions,
                "Days Missed": s.days_missed,
                "Amount Owed": f"{currency}{s.total_owed}",
                "Payment Status": "Paid" if s.paid else "Pending",
            }
            for s in summaries
        ],
        columns=COLS_SUMMARY_CSV,
    )

    detail = with_status(submissions, target_steps, penalty_amount)
    df_detail = pd.DataFrame(
        {
            "Date": detail["date"].tolist(),
            "Name": detail["name"].tolist(),
            "Steps": detail["steps"].tolist(),
            "Status": detail["status"].tolist(),
            "Amount Owed": [f"{currency}{a}" for a in detail["amount_owed"]],
        },
        columns=COLS_DETAIL_CSV,
    )

    parts = [
        TITLE + "\n\n",
        df_summary.to_csv(index=False, lineterminator="\n"),
        f"\nGrand Total,,,{currency}{grand_total(summaries)},\n\n",
        "Detailed Submissions\n",
        df_detail.to_csv(index=False, lineterminator="\n"),
    ]
    return "".join(parts)
