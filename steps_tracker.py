from __future__ import annotations
import structlog

from steps_db import StepsStore, parse_steps
from steps_errors import InvalidValue, ValidationError
from steps_export import export_csv, export_filename
from steps_stats import grand_total, summarize, tracker_totals, with_status

log = structlog.get_logger()


class StepsTracker:
    """
    Commands mutate the store and save a full snapshot; queries only read.
    The page never touches the store directly.
    """

    def __init__(self, settings, storage):
        self.settings = settings
        self.roster = list(settings.roster)
        self.target_steps = settings.target_steps
        self.penalty_amount = settings.penalty_amount
        self.storage = storage
        self.store = StepsStore.from_snapshot(storage.load())
        log.info("tracker_started", roster=len(self.roster), submissions=len(self.store), next_id=self.store.next_id)

    def _persist(self):
        self.storage.save(self.store.to_snapshot())

    # ------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------

    def submit(self, name, day, steps, proof_ref=None):
        if name and name not in self.roster:
            raise ValidationError(f"{name} is not part of the challenge.")
        submission = self.store.add_submission(name, day, steps, proof_ref)
        self._persist()
        return submission

    def edit(self, submission_id, new_steps):
        submission = self.store.update_steps(submission_id, new_steps)
        self._persist()
        return submission

    def delete(self, submission_id):
        self.store.delete_submission(submission_id)
        self._persist()

    def apply_changes(self, edits, deletes):
        """
        Batch from the tracker table: {id: new_steps} plus ids to delete.
        Every row is checked first, so a bad row leaves the store untouched.
        """
        steps_by_id = {}
        for sid in deletes:
            self.store.get(sid)
        for sid, new_steps in edits.items():
            self.store.get(sid)
            steps_by_id[sid] = parse_steps(new_steps, error=InvalidValue)

        for sid, steps in steps_by_id.items():
            if sid not in deletes:
                self.store.update_steps(sid, steps)
        for sid in deletes:
            self.store.delete_submission(sid)
        changed = len(set(deletes) | set(steps_by_id))
        if changed:
            self._persist()
        return changed

    def set_paid(self, name, paid):
        self.store.set_paid(name, paid)
        self._persist()

    def toggle_paid(self, name):
        """Flip the participant's overall paid flag; returns the resulting summary flag."""
        current = self._summary_paid(name)
        self.set_paid(name, not current)
        return self._summary_paid(name)

    def _summary_paid(self, name):
        return next((s.paid for s in self.query_summaries() if s.name == name), False)

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def query_filtered(self, search="", date_from=None, date_to=None):
        df = self.store.filter_frame(search, date_from, date_to)
        return with_status(df, self.target_steps, self.penalty_amount)

    def query_totals(self, search="", date_from=None, date_to=None):
        df = self.store.filter_frame(search, date_from, date_to)
        return tracker_totals(df, self.target_steps, self.penalty_amount)

    def query_summaries(self):
        return summarize(self.roster, self.store.frame(), self.target_steps, self.penalty_amount)

    def grand_total(self):
        return grand_total(self.query_summaries())

    def export(self, today=None):
        """(file name, CSV text) for the download button."""
        content = export_csv(
            self.query_summaries(),
            self.store.frame(),
            self.target_steps,
            self.penalty_amount,
            currency=self.settings.currency,
        )
        return export_filename(today), content
