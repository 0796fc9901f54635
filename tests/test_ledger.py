import pytest

from calccore.domain import EXPENSE, INCOME
from calccore.errors import ValidationError
from calccore.ledger import CHART_COLORS, Ledger, chart_breakdown, summarize, validate_transaction


def make_ledger(*rows) -> Ledger:
    ledger = Ledger()
    for desc, amount, kind, category in rows:
        ledger.add(desc, amount, kind, category)
    return ledger


def assert_consistent(ledger: Ledger):
    s = ledger.summarize()
    assert s.balance == s.total_income - s.total_expense
    assert sum(s.category_breakdown.values()) == s.total_expense


def test_salary_and_rent():
    ledger = Ledger()
    ledger.add("Salary", 5000, INCOME, "Salary")
    summary = ledger.add("Rent", 1200, EXPENSE, "Rent")

    assert summary.total_income == 5000
    assert summary.total_expense == 1200
    assert summary.balance == 3800
    assert summary.category_breakdown == {"Rent": 1200}


def test_newest_first_and_monotonic_ids():
    ledger = make_ledger(
        ("a", 1, EXPENSE, "Food"),
        ("b", 2, EXPENSE, "Food"),
        ("c", 3, INCOME, "Other"),
    )
    assert [t.description for t in ledger.transactions] == ["c", "b", "a"]
    ids = [t.id for t in reversed(ledger.transactions)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


@pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf")])
def test_rejects_non_positive_amount_without_change(amount):
    ledger = make_ledger(("Salary", 5000, INCOME, "Salary"))
    before = (len(ledger), ledger.summarize())

    with pytest.raises(ValidationError) as exc:
        ledger.add("Oops", amount, EXPENSE, "Food")

    assert exc.value.code == "not_positive"
    assert (len(ledger), ledger.summarize()) == before


def test_rejects_empty_description():
    ledger = Ledger()
    with pytest.raises(ValidationError) as exc:
        ledger.add("   ", 10, EXPENSE, "Food")
    assert exc.value.code == "empty_description"
    assert len(ledger) == 0


def test_rejects_category_outside_kind_vocabulary():
    result = validate_transaction("Bonus", 100, EXPENSE, "Salary")
    assert result.is_left()
    assert result.get_error()["error"] == "invalid_category"

    ledger = Ledger()
    with pytest.raises(ValidationError):
        ledger.add("Lottery", 100, INCOME, "Gambling")
    with pytest.raises(ValidationError):
        ledger.add("Lottery", 100, "gift", "Other")


def test_other_is_valid_for_both_kinds():
    ledger = make_ledger(("x", 1, INCOME, "Other"), ("y", 1, EXPENSE, "Other"))
    assert ledger.summarize().balance == 0


def test_remove_and_missing_remove():
    ledger = make_ledger(("Salary", 5000, INCOME, "Salary"), ("Rent", 1200, EXPENSE, "Rent"))
    rent = ledger.transactions[0]

    assert ledger.remove(rent.id) is True
    assert ledger.summarize().balance == 5000
    assert ledger.summarize().category_breakdown == {}

    assert ledger.remove(rent.id) is False
    assert len(ledger) == 1


def test_find():
    ledger = make_ledger(("Salary", 5000, INCOME, "Salary"))
    t = ledger.transactions[0]
    assert ledger.find(t.id).get_or_else(None) == t
    assert ledger.find(-1).is_none()


def test_invariants_hold_after_mixed_operations():
    ledger = Ledger()
    amounts = [0.1, 0.2, 0.3, 1200.55, 99.99, 3.33, 0.7]
    categories = ["Food", "Transport", "Food", "Rent", "Health", "Food", "Shopping"]
    for i, (a, c) in enumerate(zip(amounts, categories)):
        ledger.add(f"e{i}", a, EXPENSE, c)
        ledger.add(f"i{i}", a * 3, INCOME, "Freelance")
        assert_consistent(ledger)
    for t in list(ledger.transactions)[::3]:
        ledger.remove(t.id)
        assert_consistent(ledger)


def test_transactions_are_not_mutated_by_summary():
    ledger = make_ledger(("Food", 10, EXPENSE, "Food"))
    trans = ledger.transactions
    summarize(trans)
    assert ledger.transactions is trans


def test_chart_breakdown_orders_by_amount_and_colors_by_rank():
    ledger = make_ledger(
        ("lunch", 100, EXPENSE, "Food"),
        ("rent", 1000, EXPENSE, "Rent"),
        ("bus", 300, EXPENSE, "Transport"),
        ("pay", 9000, INCOME, "Salary"),
    )
    slices = ledger.chart_breakdown()

    assert [s.label for s in slices] == ["Rent", "Transport", "Food"]
    assert [s.color for s in slices] == list(CHART_COLORS[:3])
    assert sum(s.share for s in slices) == pytest.approx(1.0)
    assert slices[0].share == pytest.approx(1000 / 1400)


def test_chart_colors_follow_rank_after_delete():
    ledger = make_ledger(
        ("lunch", 100, EXPENSE, "Food"),
        ("rent", 1000, EXPENSE, "Rent"),
    )
    rent = ledger.transactions[0]
    ledger.remove(rent.id)
    slices = ledger.chart_breakdown()
    assert slices[0].label == "Food"
    assert slices[0].color == CHART_COLORS[0]


def test_chart_palette_in_rank_order():
    cats = ["Food", "Transport", "Rent", "Utilities", "Entertainment", "Shopping", "Health", "Other"]
    ledger = Ledger()
    for i, c in enumerate(cats):
        ledger.add(c, 100 - i, EXPENSE, c)
    slices = ledger.chart_breakdown()
    assert len(slices) == 8
    assert [s.color for s in slices] == list(CHART_COLORS)


def test_empty_chart():
    assert chart_breakdown(Ledger().summarize()) == ()


def test_chart_palette_wraps_around():
    from calccore.domain import LedgerSummary

    breakdown = {f"c{i}": float(100 - i) for i in range(10)}
    summary = LedgerSummary(0.0, sum(breakdown.values()), -sum(breakdown.values()), breakdown)
    slices = chart_breakdown(summary)
    assert slices[8].color == CHART_COLORS[0]
    assert slices[9].color == CHART_COLORS[1]


def test_summary_breakdown_is_read_only():
    summary = make_ledger(("Rent", 1200, EXPENSE, "Rent")).summarize()
    with pytest.raises(TypeError):
        summary.category_breakdown["Rent"] = 0
