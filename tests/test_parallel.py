import time

import pytest

from quire.parallel import UnitResult, ordered_map, run_units


def test_ordered_map_preserves_input_order():
    def slow_first(n):
        time.sleep(0.02 if n == 0 else 0)
        return n * 10

    assert ordered_map(slow_first, range(5), workers=4) == [0, 10, 20, 30, 40]


def test_ordered_map_empty():
    assert ordered_map(str, []) == []


def test_ordered_map_propagates_errors():
    def fail_on_two(n):
        if n == 2:
            raise KeyError(n)
        return n

    with pytest.raises(KeyError):
        ordered_map(fail_on_two, [1, 2, 3])


def test_run_units_isolates_failures():
    def process(name):
        if name == "bad":
            raise ValueError("broken")
        return name.upper()

    results = run_units(process, ["a", "bad", "c"], workers=2)
    assert [r.source for r in results] == ["a", "bad", "c"]
    assert [r.ok for r in results] == [True, False, True]
    assert results[0].value == "A"
    assert isinstance(results[1].error, ValueError)


def test_run_units_custom_source():
    results = run_units(lambda stage: stage[1](), [("one", lambda: 1)], source=lambda s: s[0])
    assert results == [UnitResult("one", value=1)]


def test_run_units_reraises_os_errors():
    def write(_):
        raise PermissionError("read-only")

    with pytest.raises(PermissionError):
        run_units(write, [1])
