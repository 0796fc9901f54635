"""Stateless calculators.

Each function is pure: it takes already-parsed numbers, returns a full
precision result and raises ValidationError for inputs outside its domain or
for a degenerate (non-finite) outcome. Rounding for display happens in
``fmt`` and is only applied by callers that render or record a value.
"""
import ast
import calendar
import math
import operator
from datetime import date
from typing import Mapping

from calccore.domain import AgeResult, BmiResult, DiscountResult, InterestResult, InvestmentResult
from calccore.errors import ValidationError
from calccore.parsing import finite

SIMPLE = "Simple"
COMPOUND = "Compound"


def fmt(value: float, places: int = 2) -> str:
    return f"{value:.{places}f}"


# --- percentage

def find_value(percent: float, base: float) -> float:
    """``percent``% of ``base``."""
    return finite(percent / 100 * base, "Percentage")


def find_percent(part: float, base: float) -> float:
    """What percent ``part`` is of ``base``."""
    if base == 0:
        raise ValidationError("division_by_zero", "Cannot take a percentage of zero", "base")
    return finite(part / base * 100, "Percentage")


# --- loans and interest

def emi(principal: float, annual_rate: float, tenure_months: float) -> float:
    """Equated monthly installment for a loan."""
    if principal < 0:
        raise ValidationError("negative", "Principal must not be negative", "principal", value=principal)
    if annual_rate < 0:
        raise ValidationError("negative", "Rate must not be negative", "rate", value=annual_rate)
    if tenure_months <= 0:
        raise ValidationError("not_positive", "Tenure must be at least one month", "tenure", value=tenure_months)

    r = annual_rate / 12 / 100
    if r == 0:
        return principal / tenure_months
    try:
        growth = math.pow(1 + r, tenure_months)
        payment = principal * r * growth / (growth - 1)
    except (OverflowError, ZeroDivisionError):
        payment = math.nan
    if not math.isfinite(payment):
        raise ValidationError("non_finite", "Invalid input", "tenure")
    return payment


def simple_interest(principal: float, rate: float, years: float) -> float:
    # negative rate or time is a discount, not an error
    return finite(principal * rate * years / 100, "Interest")


def compound_interest(principal: float, rate: float, years: float) -> float:
    try:
        grown = principal * math.pow(1 + rate / 100, years)
    except (OverflowError, ValueError):
        grown = math.nan
    return finite(grown - principal, "Interest")


def interest(kind: str, principal: float, rate: float, years: float) -> InterestResult:
    if kind == SIMPLE:
        value = simple_interest(principal, rate, years)
    elif kind == COMPOUND:
        value = compound_interest(principal, rate, years)
    else:
        raise ValidationError("unknown_interest_kind", f"Unknown interest type {kind!r}", "kind")
    return InterestResult(interest=value, total=principal + value)


# --- investments

def sip(initial: float, monthly: float, annual_rate: float, years: float) -> InvestmentResult:
    """Systematic investment: an initial sum plus a monthly contribution, compounded monthly."""
    if initial < 0 or monthly < 0:
        raise ValidationError("negative", "Investment amounts must not be negative", "initial")
    if years <= 0:
        raise ValidationError("not_positive", "Years must be greater than zero", "years", value=years)

    r = annual_rate / 100 / 12
    n = years * 12
    invested = initial + monthly * n
    if r == 0:
        return InvestmentResult(invested=invested, total=invested)
    try:
        growth = math.pow(1 + r, n)
    except (OverflowError, ValueError):
        growth = math.nan
    total = initial * growth + monthly * ((growth - 1) / r) * (1 + r)
    return InvestmentResult(invested=invested, total=finite(total, "Investment value"))


def lumpsum(initial: float, annual_rate: float, years: float) -> InvestmentResult:
    """Single upfront investment compounded once a year."""
    if initial < 0:
        raise ValidationError("negative", "Investment amounts must not be negative", "initial")
    try:
        total = initial * math.pow(1 + annual_rate / 100, years)
    except (OverflowError, ValueError):
        total = math.nan
    return InvestmentResult(invested=initial, total=finite(total, "Investment value"))


def discount(price: float, percent: float) -> DiscountResult:
    if price <= 0:
        raise ValidationError("not_positive", "Price must be greater than zero", "price", value=price)
    if not 0 < percent <= 100:
        raise ValidationError("out_of_range", "Discount must be between 0 and 100 percent", "discount",
                              value=percent)
    saved = price * percent / 100
    return DiscountResult(saved=saved, final=price - saved)


# --- body and dates

def bmi_category(value: float) -> str:
    if value < 18.5:
        return "Underweight"
    if value < 24.9:
        return "Normal"
    if value < 29.9:
        return "Overweight"
    return "Obese"


def bmi(weight_kg: float, height_cm: float) -> BmiResult:
    if weight_kg <= 0:
        raise ValidationError("not_positive", "Weight must be greater than zero", "weight", value=weight_kg)
    if height_cm <= 0:
        raise ValidationError("not_positive", "Height must be greater than zero", "height", value=height_cm)
    meters = height_cm / 100
    value = round(weight_kg / (meters * meters), 1)
    return BmiResult(value=value, category=bmi_category(value))


def age_between(born: date, today: date) -> AgeResult:
    """Whole years, months and days; a day shortfall borrows the length of the birth month."""
    if born > today:
        raise ValidationError("future_date", "Date of birth is in the future", "born", value=born.isoformat())
    years = today.year - born.year
    months = today.month - born.month
    days = today.day - born.day
    if days < 0:
        months -= 1
        days += calendar.monthrange(born.year, born.month)[1]
    if months < 0:
        years -= 1
        months += 12
    return AgeResult(years=years, months=months, days=days)


# --- currency arithmetic

def convert_currency(amount: float, from_code: str, to_code: str, rates: Mapping[str, float]) -> float:
    for field, code in (("from", from_code), ("to", to_code)):
        if code not in rates:
            raise ValidationError("unknown_currency", f"Unknown currency {code!r}", field, code=code)
    return finite(amount / rates[from_code] * rates[to_code], "Converted amount")


# --- standard calculator

_BINOPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}
_UNARYOPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}


def _eval_node(node: ast.AST) -> float:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) \
            and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINOPS:
        left, right = _eval_node(node.left), _eval_node(node.right)
        if isinstance(node.op, (ast.Div, ast.Mod)) and right == 0:
            raise ValidationError("division_by_zero", "Division by zero", "expression")
        return _BINOPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARYOPS:
        return _UNARYOPS[type(node.op)](_eval_node(node.operand))
    raise ValidationError("unsupported_expression", "Only numbers, + - * / % and parentheses are allowed",
                          "expression")


def evaluate_expression(text: str) -> float:
    """Evaluate a basic infix expression such as ``12×(3+4)÷2`` without eval()."""
    expr = (text or "").replace("×", "*").replace("÷", "/").strip()
    if not expr:
        raise ValidationError("empty_expression", "Expression is empty", "expression")
    try:
        tree = ast.parse(expr, mode="eval")
    except SyntaxError as e:
        raise ValidationError("invalid_expression", f"Cannot parse {text!r}", "expression") from e
    try:
        result = float(_eval_node(tree.body))
    except OverflowError as e:
        raise ValidationError("non_finite", "Result is too large", "expression") from e
    return finite(result, "Result", "expression")
