from datetime import date

import pytest

from steps_errors import DuplicateEntry, InvalidValue, NotFound, ValidationError
from steps_stats import STATUS_MISSED, STATUS_OK


def _by_name(tracker):
    return {s.name: s for s in tracker.query_summaries()}


@pytest.fixture
def scenario(tracker):
    ok = tracker.submit("A", "2024-01-01", 12000)
    missed = tracker.submit("A", "2024-01-02", 5000)
    return tracker, ok, missed


def test_submit_and_summarize(scenario):
    tracker, ok, missed = scenario
    rows = tracker.query_filtered()
    status = dict(zip(rows["id"], rows["status"]))
    owed = dict(zip(rows["id"], rows["amount_owed"]))
    assert status[ok.id] == STATUS_OK and owed[ok.id] == 0
    assert status[missed.id] == STATUS_MISSED and owed[missed.id] == 50

    summaries = _by_name(tracker)
    a, b = summaries["A"], summaries["B"]
    assert (a.total_submissions, a.days_missed, a.total_owed, a.paid) == (2, 1, 50, False)
    assert (b.total_submissions, b.days_missed, b.total_owed, b.paid) == (0, 0, 0, False)
    assert tracker.grand_total() == 50


def test_toggle_paid_settles_the_debt(scenario):
    tracker, _, _ = scenario
    before = tracker.grand_total()

    assert tracker.toggle_paid("A") is True
    assert all(s.paid for s in tracker.store.records() if s.name == "A")
    assert _by_name(tracker)["A"].paid is True
    assert tracker.grand_total() == before - 50

    assert tracker.toggle_paid("A") is False
    assert tracker.grand_total() == before


def test_toggle_paid_without_submissions_changes_nothing_visible(tracker):
    # No submissions means never "paid"
    assert tracker.toggle_paid("B") is False
    assert _by_name(tracker)["B"].paid is False


def test_edit_flips_status(scenario):
    tracker, _, missed = scenario
    edited = tracker.edit(missed.id, 11000)
    assert edited.steps == 11000

    a = _by_name(tracker)["A"]
    assert a.days_missed == 0
    assert a.total_owed == 0
    assert tracker.grand_total() == 0


def test_every_successful_command_saves_a_snapshot(scenario, storage):
    tracker, ok, missed = scenario
    assert storage.saves == 2
    tracker.edit(missed.id, 9000)
    tracker.set_paid("A", True)
    tracker.delete(ok.id)
    assert storage.saves == 5
    assert storage.snapshot.next_id == 3
    assert [s.id for s in storage.snapshot.submissions] == [missed.id]


def test_failed_commands_do_not_save(scenario, storage):
    tracker, _, _ = scenario
    with pytest.raises(DuplicateEntry):
        tracker.submit("A", date(2024, 1, 1), 1)
    with pytest.raises(NotFound):
        tracker.delete(99)
    assert storage.saves == 2


def test_submit_rejects_names_outside_the_roster(tracker):
    with pytest.raises(ValidationError):
        tracker.submit("Mallory", "2024-01-01", 12000)


def test_submit_without_name_is_a_validation_error(tracker):
    with pytest.raises(ValidationError):
        tracker.submit(None, "2024-01-01", 12000)


def test_tracker_loads_existing_snapshot(settings, storage, tracker):
    tracker.submit("B", "2024-02-01", 7000)
    again = type(tracker)(settings, storage)
    assert [s.name for s in again.store.records()] == ["B"]
    assert again.store.next_id == 2


def test_filtered_totals(scenario):
    tracker, _, _ = scenario
    tracker.submit("B", "2024-01-05", 100)
    totals = tracker.query_totals(search="a")
    assert (totals.total_entries, totals.days_missed, totals.total_owed) == (2, 1, 50)
    totals = tracker.query_totals(date_from="2024-01-02")
    assert (totals.total_entries, totals.days_missed, totals.total_owed) == (2, 2, 100)


def test_export_uses_the_same_figures(scenario):
    tracker, _, _ = scenario
    file_name, content = tracker.export(today=date(2024, 1, 3))
    assert file_name == "steps-challenge-summary-2024-01-03.csv"
    assert "A,2,1,₱50,Pending" in content
    assert "Grand Total,,,₱50," in content


def test_apply_changes_checks_every_row_before_touching_the_store(scenario, storage):
    tracker, ok, missed = scenario
    with pytest.raises(InvalidValue):
        tracker.apply_changes({missed.id: "lots"}, [ok.id])
    with pytest.raises(NotFound):
        tracker.apply_changes({missed.id: 11000}, [99])

    assert sorted(s.id for s in tracker.store.records()) == [ok.id, missed.id]
    assert tracker.store.get(missed.id).steps == 5000
    assert storage.saves == 2


def test_apply_changes_applies_batch_with_one_save(scenario, storage):
    tracker, ok, missed = scenario
    assert tracker.apply_changes({missed.id: 11000.0}, [ok.id]) == 2
    assert [(s.id, s.steps) for s in tracker.store.records()] == [(missed.id, 11000)]
    assert storage.saves == 3
    assert tracker.apply_changes({}, []) == 0
    assert storage.saves == 3
