from steps_config import DEFAULT_ROSTER, Settings, _split_roster


def test_roster_parsing():
    assert _split_roster(" Del, Joy ,,Sam ") == ["Del", "Joy", "Sam"]
    assert _split_roster("") == DEFAULT_ROSTER
    assert _split_roster(None) is not DEFAULT_ROSTER


def test_default_roster_keeps_configured_order():
    assert len(DEFAULT_ROSTER) == 16
    assert DEFAULT_ROSTER[0] == "Del" and DEFAULT_ROSTER[-1] == "Sam"


def test_settings_overrides():
    s = Settings(roster=["X"], target_steps=8000, penalty_amount=20)
    assert s.roster == ["X"]
    assert (s.target_steps, s.penalty_amount) == (8000, 20)
