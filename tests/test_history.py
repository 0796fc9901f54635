from datetime import datetime, timedelta

from calccore.domain import HistoryEntry
from calccore.history import HistoryLog


def ticking_clock(start=datetime(2024, 1, 1, 12, 0, 0)):
    state = {"now": start}

    def clock():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return clock


def test_newest_first():
    log = HistoryLog(clock=ticking_clock())
    log.record("EMI Loan", "100000 @ 10% for 12m", "8791.59")
    log.record("BMI", "70kg, 175cm", "BMI: 22.9")

    entries = log.all()
    assert [e.tool for e in entries] == ["BMI", "EMI Loan"]
    assert entries[0].timestamp > entries[1].timestamp


def test_order_is_insertion_not_timestamp():
    log = HistoryLog()
    late = HistoryEntry("A", "a", "1", datetime(2030, 1, 1))
    early = HistoryEntry("B", "b", "2", datetime(2000, 1, 1))
    log.append(late)
    log.append(early)
    assert log.all() == (early, late)


def test_all_is_a_snapshot():
    log = HistoryLog()
    log.record("A", "a", "1")
    snapshot = log.all()
    log.record("B", "b", "2")
    assert len(snapshot) == 1
    assert len(log) == 2


def test_clear():
    log = HistoryLog()
    log.record("A", "a", "1")
    log.record("B", "b", "2")
    log.clear()
    assert log.all() == ()
    log.clear()
    assert len(log) == 0
