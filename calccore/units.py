from typing import Dict, Optional, Tuple

from calccore.errors import ValidationError
from calccore.parsing import finite

LENGTH = "Length"
WEIGHT = "Weight"
TEMPERATURE = "Temperature"

# factor to the dimension's base unit (m, kg)
FACTORS: Dict[str, Dict[str, float]] = {
    LENGTH: {"m": 1, "km": 1000, "cm": 0.01, "ft": 0.3048, "inch": 0.0254},
    WEIGHT: {"kg": 1, "g": 0.001, "lb": 0.453592, "oz": 0.0283495},
}
TEMPERATURE_UNITS: Tuple[str, ...] = ("C", "F")

DIMENSIONS: Tuple[str, ...] = (LENGTH, WEIGHT, TEMPERATURE)


def units_of(dimension: str) -> Tuple[str, ...]:
    if dimension == TEMPERATURE:
        return TEMPERATURE_UNITS
    if dimension not in FACTORS:
        raise ValidationError("unknown_dimension", f"Unknown dimension {dimension!r}", "dimension")
    return tuple(FACTORS[dimension])


def dimension_of(unit: str) -> str:
    if unit in TEMPERATURE_UNITS:
        return TEMPERATURE
    for dimension, table in FACTORS.items():
        if unit in table:
            return dimension
    raise ValidationError("unknown_unit", f"Unknown unit {unit!r}", "unit", unit=unit)


def check_units(from_unit: str, to_unit: str, dimension: Optional[str] = None) -> str:
    """Return the shared dimension of both units or raise."""
    src, dst = dimension_of(from_unit), dimension_of(to_unit)
    if src != dst or (dimension is not None and dimension != src):
        raise ValidationError(
            "incompatible_units",
            f"Cannot convert {from_unit} to {to_unit}",
            "unit",
            from_unit=from_unit,
            to_unit=to_unit,
        )
    return src


def convert_temperature(value: float, from_unit: str, to_unit: str) -> float:
    if from_unit == "C" and to_unit == "F":
        return value * 9 / 5 + 32
    if from_unit == "F" and to_unit == "C":
        return (value - 32) * 5 / 9
    return value


def convert_unit(value: float, from_unit: str, to_unit: str, dimension: Optional[str] = None) -> float:
    dim = check_units(from_unit, to_unit, dimension)
    if dim == TEMPERATURE:
        return convert_temperature(value, from_unit, to_unit)
    table = FACTORS[dim]
    return finite(value * table[from_unit] / table[to_unit], "Converted value")
