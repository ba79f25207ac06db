import pytest

from regression_suite import SCENARIOS, run_all


@pytest.mark.parametrize("name,scenario", SCENARIOS, ids=[name for name, _ in SCENARIOS])
def test_scenario(name, scenario):
    scenario()


def test_run_all_reports_every_scenario():
    results = run_all()
    assert [name for name, _, _ in results] == [name for name, _ in SCENARIOS]
    assert all(ok for _, ok, _ in results)


def test_run_all_filters_by_name():
    results = run_all(["restart_before_eviction", "fighter_defeats_goblin"])
    assert [name for name, _, _ in results] == ["restart_before_eviction", "fighter_defeats_goblin"]


def test_run_all_rejects_unknown_names():
    with pytest.raises(KeyError):
        run_all(["fighter_defeats_dragon"])
