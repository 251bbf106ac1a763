import streamlit as st
import pandas as pd
from datetime import date, datetime

from steps_config import settings
from steps_errors import TrackerError
from steps_logging import configure_logging
from steps_reminder import REMINDER_BODY, REMINDER_TITLE, should_fire
from steps_storage import make_storage
from steps_tracker import StepsTracker

# ============================================================
# CONFIG STREAMLIT
# ============================================================
st.set_page_config(page_title="10K Steps Challenge", page_icon="👟", layout="wide")

st.title("👟 10K Steps Challenge Tracker")

configure_logging(settings.log_level)

CURRENCY = settings.currency


# ============================================================
# STORE (UNO POR SESIÓN)
# ============================================================

def get_tracker():
    if "tracker" not in st.session_state:
        secrets = st.secrets if settings.storage == "sheets" else None
        st.session_state["tracker"] = StepsTracker(settings, make_storage(settings, secrets))
    return st.session_state["tracker"]


def flash(kind, text):
    # Survives the st.rerun() that follows every command
    st.session_state["flash"] = (kind, text)


def show_flash():
    if "flash" in st.session_state:
        kind, text = st.session_state.pop("flash")
        if kind == "success":
            st.success(text)
        else:
            st.error(text)


def stat_card(icon, label, value):
    st.markdown(
        f"""
        <div style="background-color:#111827;padding:10px 15px;border-radius:10px;
                    text-align:center;border:1px solid #374151;">
            <div style="font-size:24px;">{icon}</div>
            <div style="font-size:13px;color:#9CA3AF;">{label}</div>
            <div style="font-size:22px;font-weight:bold;color:white;">{value}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


try:
    tracker = get_tracker()
except TrackerError as exc:
    st.error(f"Could not load the challenge data: {exc}")
    st.stop()


# ============================================================
# RECORDATORIO DIARIO (CADA MINUTO)
# ============================================================

@st.fragment(run_every=60)
def daily_reminder():
    now = datetime.now()
    last = st.session_state.get("reminder_last")
    if should_fire(now, last, settings.reminder_hour, settings.reminder_minute):
        st.session_state["reminder_last"] = now.date()
        st.toast(f"**{REMINDER_TITLE}** · {REMINDER_BODY}", icon="⏰")


daily_reminder()

show_flash()

# ============================================================
# TABS PRINCIPALES
# ============================================================

tab1, tab2, tab3 = st.tabs(["📝 Submit Steps", "📋 Tracker", "💳 Summary"])


# ============================================================
# TAB 1: REGISTRAR PASOS
# ============================================================

with tab1:
    st.subheader("Log your daily steps")

    col_a, col_b = st.columns(2)
    with col_a:
        participant = st.selectbox(
            "Participant",
            options=tracker.roster,
            index=None,
            placeholder="Select your name",
        )
        step_date = st.date_input("Date", value=date.today())
    with col_b:
        step_count = st.text_input("Step count", placeholder="e.g. 10500")
        proof = st.file_uploader("Proof screenshot (optional)", type=["png", "jpg", "jpeg"])

    if proof is not None:
        st.image(proof, caption="Proof preview", width=240)

    if st.button("Submit steps", type="primary"):
        try:
            tracker.submit(
                participant,
                step_date,
                step_count,
                proof.name if proof is not None else None,
            )
        except TrackerError as exc:
            st.error(str(exc))
        else:
            flash("success", f"Steps submitted successfully for {participant}!")
            st.rerun()


# ============================================================
# TAB 2: TRACKER
# ============================================================

def clear_filters():
    st.session_state["search_filter"] = ""
    st.session_state["date_from"] = None
    st.session_state["date_to"] = None


with tab2:
    st.subheader("Submissions")

    col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
    with col1:
        search = st.text_input("Search participant", key="search_filter")
    with col2:
        date_from = st.date_input("From", value=None, key="date_from")
    with col3:
        date_to = st.date_input("To", value=None, key="date_to")
    with col4:
        st.write("")
        st.button("Clear", on_click=clear_filters)

    df_view = tracker.query_filtered(search, date_from, date_to)

    if df_view.empty:
        st.info("No submissions match the current filters.")
    else:
        df_edit = df_view[["id", "date", "name", "steps", "status", "amount_owed", "paid"]].copy()
        df_edit["delete"] = False

        st.write("Edit step counts or tick rows to delete, then save:")

        edited = st.data_editor(
            df_edit,
            num_rows="fixed",
            use_container_width=True,
            hide_index=True,
            key="editor_submissions",
            column_config={
                "id": st.column_config.NumberColumn(disabled=True),
                "date": st.column_config.TextColumn("Date", disabled=True),
                "name": st.column_config.TextColumn("Name", disabled=True),
                "steps": st.column_config.NumberColumn("Steps", min_value=0, step=1, format="%d"),
                "status": st.column_config.TextColumn("Status", disabled=True),
                "amount_owed": st.column_config.NumberColumn(
                    "Amount owed", disabled=True, format=f"{CURRENCY}%d"
                ),
                "paid": st.column_config.CheckboxColumn("Paid", disabled=True),
                "delete": st.column_config.CheckboxColumn("Delete"),
            },
        )

        if st.button("Save changes"):
            original_steps = dict(zip(df_edit["id"], df_edit["steps"]))
            deletes, edits = [], {}
            for _, row in edited.iterrows():
                sid = int(row["id"])
                if row["delete"]:
                    deletes.append(sid)
                elif pd.isna(row["steps"]) or row["steps"] != original_steps[sid]:
                    edits[sid] = None if pd.isna(row["steps"]) else row["steps"]

            try:
                changed = tracker.apply_changes(edits, deletes)
            except TrackerError as exc:
                # Nothing was applied; the editor keeps the rows for fixing
                st.error(str(exc))
            else:
                # Pending edits are positional; drop them once applied
                st.session_state.pop("editor_submissions", None)
                flash("success", f"{changed} change(s) saved.")
                st.rerun()

    totals = tracker.query_totals(search, date_from, date_to)
    c1, c2, c3 = st.columns(3)
    with c1:
        stat_card("📋", "Entries", totals.total_entries)
    with c2:
        stat_card("❌", "Days missed", totals.days_missed)
    with c3:
        stat_card("💸", "Total owed", f"{CURRENCY}{totals.total_owed:,}")


# ============================================================
# TAB 3: RESUMEN / PAGOS
# ============================================================

with tab3:
    st.subheader("Participant summary")

    summaries = tracker.query_summaries()

    cols = st.columns(3)
    for i, s in enumerate(summaries):
        with cols[i % 3]:
            st.markdown(
                f"""
                <div style="background-color:#111827;padding:15px;border-radius:15px;
                            border:1px solid #374151;margin-bottom:6px;">
                    <h3 style="margin-top:0;color:white;">{s.name}</h3>
                    <p style="color:#D1D5DB;margin:0;"><b>Submissions:</b> {s.total_submissions}</p>
                    <p style="color:#D1D5DB;margin:0;"><b>Days missed:</b> {s.days_missed}</p>
                    <p style="color:#D1D5DB;margin:0;"><b>Amount owed:</b> {CURRENCY}{s.total_owed:,}</p>
                    <p style="color:#D1D5DB;margin:0;"><b>Completion rate:</b> {round(s.completion_rate)}%</p>
                </div>
                """,
                unsafe_allow_html=True,
            )
            st.progress(min(100, int(round(s.completion_rate))))
            label = "✅ Paid" if s.paid else "Mark as Paid"
            if st.button(label, key=f"paid_{s.name}", use_container_width=True):
                paid = tracker.toggle_paid(s.name)
                flash("success", f"{s.name} marked as {'paid' if paid else 'pending'}.")
                st.rerun()

    st.markdown("---")

    col_t, col_e = st.columns([2, 1])
    with col_t:
        stat_card("💰", "Grand total (unpaid)", f"{CURRENCY}{tracker.grand_total():,}")
    with col_e:
        file_name, csv_text = tracker.export()
        st.download_button(
            "⬇️ Export CSV",
            data=csv_text.encode("utf-8"),
            file_name=file_name,
            mime="text/csv",
            use_container_width=True,
        )
