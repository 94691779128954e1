# GasEngine.py
"""""
Gas and temperature calculators.

- solve_ideal_gas: PV = nRT with exactly one of the four variables left out;
  the missing one is solved in closed form and evaluated by FormulaEngine so
  the working matches every other calculator.
- convert_temperature: °C / K / °F conversions.
"""""

import logging
from decimal import Decimal

from . import error as E
from . import FormulaEngine
from .FormulaEngine import CalculationResult

logger = logging.getLogger(__name__)

# L·atm/(mol·K)
GAS_CONSTANT = 0.08206

GAS_VARIABLES = ["pressure", "volume", "moles", "temperature"]

GAS_LABELS = {
    "pressure": "Pressure",
    "volume": "Volume",
    "moles": "Amount of substance",
    "temperature": "Temperature",
}

GAS_UNITS = {
    "pressure": "atm",
    "volume": "L",
    "moles": "mol",
    "temperature": "K",
}

# missing variable -> (rearranged law, template)
REARRANGEMENTS = {
    "pressure": ("P = nRT/V", "moles * R * temperature / volume"),
    "volume": ("V = nRT/P", "moles * R * temperature / pressure"),
    "moles": ("n = PV/RT", "pressure * volume / (R * temperature)"),
    "temperature": ("T = PV/nR", "pressure * volume / (moles * R)"),
}


def missing_gas_variables(values):
    return [name for name in GAS_VARIABLES if values.get(name) is None]


def solve_ideal_gas(values, R=GAS_CONSTANT, decimal_places=4):
    """Solve PV = nRT for the one variable absent from `values`.

    A variable counts as absent when its key is missing or its value is None.
    """
    for name in values:
        if name not in GAS_VARIABLES:
            raise E.InvalidValueError(name, f"{name} is not an ideal gas variable (expected one of "
                                            f"{', '.join(GAS_VARIABLES)})", equation="PV = nRT")

    missing = missing_gas_variables(values)
    if len(missing) != 1:
        raise E.WrongMissingCountError(missing, equation="PV = nRT")

    missing_variable = missing[0]
    law, template = REARRANGEMENTS[missing_variable]

    provided = {name: value for name, value in values.items() if value is not None}
    provided["R"] = R

    logger.debug("Solving PV = nRT for %s with %r", missing_variable, provided)
    result = FormulaEngine.evaluate_formula(template, provided, decimal_places)

    unit = GAS_UNITS[missing_variable]
    steps = result.derivation.split("\n")
    derivation = "\n".join([f"PV = nRT → {law}", f"{law[0]} = {template}"] + steps[1:]) + f" {unit}"

    return CalculationResult(result.numeric_value, result.formatted_value, derivation,
                             variable=missing_variable, unit=unit)


# -----------------------------
# Temperature conversion
# -----------------------------

TEMPERATURE_UNITS = {"C": "°C", "K": "K", "F": "°F"}

ABSOLUTE_ZERO = {"C": Decimal("-273.15"), "K": Decimal("0"), "F": Decimal("-459.67")}

# (from, to) -> working template with 'value' as the only variable
CONVERSIONS = {
    ("C", "K"): "value + 273.15",
    ("K", "C"): "value - 273.15",
    ("C", "F"): "(value × 9/5) + 32",
    ("F", "C"): "(value - 32) × 5/9",
    ("F", "K"): "((value - 32) × 5/9) + 273.15",
    ("K", "F"): "((value - 273.15) × 9/5) + 32",
}


def temperature_unit(unit):
    key = str(unit).strip().upper().replace("°", "")
    if key not in TEMPERATURE_UNITS:
        raise E.InvalidValueError("unit", f"Unknown temperature unit: {unit!r} (use C, K or F)")
    return key


def convert_temperature(value, from_unit, to_unit, decimal_places=2):
    """Convert `value` between °C, K and °F; temperatures below absolute zero are rejected."""
    source = temperature_unit(from_unit)
    target = temperature_unit(to_unit)

    number = FormulaEngine.to_decimal("temperature", value)
    if number < ABSOLUTE_ZERO[source]:
        raise E.InvalidValueError("temperature", f"{FormulaEngine.plain_number(number)} "
                                                 f"{TEMPERATURE_UNITS[source]} is below absolute zero")

    if source == target:
        formatted_value, _ = FormulaEngine.cleanup(number, decimal_places)
        derivation = f"{formatted_value} {TEMPERATURE_UNITS[source]} = {formatted_value} {TEMPERATURE_UNITS[target]}"
        return CalculationResult(float(number), formatted_value, derivation, variable="temperature",
                                 unit=TEMPERATURE_UNITS[target])

    template = CONVERSIONS[(source, target)]
    result = FormulaEngine.evaluate_formula(template, {"value": number}, decimal_places)

    steps = result.derivation.split("\n")
    law = template.replace("value", f"T({TEMPERATURE_UNITS[source]})")
    derivation = "\n".join([f"T({TEMPERATURE_UNITS[target]}) = {law}"] + steps[1:]) + f" {TEMPERATURE_UNITS[target]}"

    return CalculationResult(result.numeric_value, result.formatted_value, derivation, variable="temperature",
                             unit=TEMPERATURE_UNITS[target])
