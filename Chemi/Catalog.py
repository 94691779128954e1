# Catalog.py
"""""
Calculator catalog and reference data.

- load_atomic_masses: element symbol -> atomic mass, read from data/atomic_masses.json
  (falls back to a built-in table of common elements).
- load_catalog: calculator definitions grouped by category, read from data/calculators.json.
- validate_inputs / calculate: check the raw text a user typed into a calculator
  and dispatch it to FormulaEngine, GasEngine or MolarMass.

The loaded data is returned to the caller and passed explicitly into the
engines; this module keeps no module-level state.
"""""

import json
import logging
import math
from pathlib import Path
from types import MappingProxyType

from . import config_manager
from . import error as E
from . import FormulaEngine
from . import GasEngine
from . import MolarMass

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
ATOMIC_MASSES_FILE = DATA_DIR / "atomic_masses.json"
CALCULATORS_FILE = DATA_DIR / "calculators.json"

FALLBACK_ATOMIC_MASSES = {
    'H': 1.008, 'He': 4.003, 'Li': 6.94, 'Be': 9.012,
    'B': 10.81, 'C': 12.01, 'N': 14.01, 'O': 16.00,
    'F': 19.00, 'Ne': 20.18, 'Na': 22.99, 'Mg': 24.31,
    'Al': 26.98, 'Si': 28.09, 'P': 30.97, 'S': 32.07,
    'Cl': 35.45, 'Ar': 39.95, 'K': 39.10, 'Ca': 40.08,
    'Fe': 55.85, 'Cu': 63.55, 'Zn': 65.38, 'Br': 79.90,
    'Ag': 107.87, 'I': 126.90, 'Ba': 137.33, 'Au': 196.97
}

# Input validation limits
MIN_NUMBER = -999999
MAX_NUMBER = 999999
MIN_TEMPERATURE_C = -273.15
MAX_TEMPERATURE_C = 5000
MIN_PH = 0
MAX_PH = 14

# Inputs for which zero makes no physical sense
NON_ZERO_INPUTS = ["molar_mass", "volume", "temperature"]

CALCULATION_TYPES = ["basic_formula", "solve_for_missing", "molar_mass", "temperature_conversion"]


class CalculatorInput:
    """One input field of a calculator."""
    def __init__(self, id, label, unit="", type="number", optional=False, min=None, max=None):
        self.id = id
        self.label = label
        self.unit = unit
        self.type = type
        self.optional = optional
        self.min = min
        self.max = max

    def limits(self):
        """(min, max) for this input; explicit limits win over the defaults derived from id and unit."""
        low, high = MIN_NUMBER, MAX_NUMBER

        if "temperature" in self.id and self.unit == "°C":
            low, high = MIN_TEMPERATURE_C, MAX_TEMPERATURE_C
        elif "ph" in self.id.split("_"):
            low, high = MIN_PH, MAX_PH
        elif "mass" in self.id or "volume" in self.id or "moles" in self.id:
            low = 0

        if self.min is not None:
            low = self.min
        if self.max is not None:
            high = self.max
        return low, high

    def __repr__(self):
        return f"CalculatorInput({self.id!r}, {self.label!r}, unit={self.unit!r})"


class CalculatorDefinition:
    """A catalog entry: what the calculator shows and how it calculates."""
    def __init__(self, id, title, formula, description, category, inputs, calculation):
        self.id = id
        self.title = title
        self.formula = formula
        self.description = description
        self.category = category
        self.inputs = inputs
        self.calculation = calculation

    @classmethod
    def from_dict(cls, data, category):
        try:
            inputs = [CalculatorInput(**entry) for entry in data.get("inputs", [])]
            calculation = data["calculation"]
            definition = cls(data["id"], data["title"], data.get("formula", ""), data.get("description", ""),
                             category, inputs, calculation)
        except (KeyError, TypeError) as e:
            raise E.CatalogError(f"Invalid calculator definition in '{category}': {e}")

        if calculation.get("type") not in CALCULATION_TYPES:
            raise E.CatalogError(f"Unknown calculation type for {definition.id}: {calculation.get('type')!r}")
        if calculation["type"] == "basic_formula" and not calculation.get("formula"):
            raise E.CatalogError(f"No formula defined for {definition.id}")
        return definition

    @property
    def input_ids(self):
        return [calculator_input.id for calculator_input in self.inputs]

    def __repr__(self):
        return f"CalculatorDefinition({self.id!r}, {self.title!r}, category={self.category!r})"


# -----------------------------
# Loading
# -----------------------------

def read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_atomic_masses(path=None):
    """Read-only element symbol -> atomic mass table."""
    path = Path(path) if path is not None else ATOMIC_MASSES_FILE
    try:
        table = read_json(path)["atomic_masses"]
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
        logger.warning("Could not load atomic masses from %s (%s); using fallback table", path, e)
        return MappingProxyType(dict(FALLBACK_ATOMIC_MASSES))

    if not isinstance(table, dict):
        logger.warning("atomic_masses in %s is not an object; using fallback table", path)
        return MappingProxyType(dict(FALLBACK_ATOMIC_MASSES))

    for symbol, mass in table.items():
        if isinstance(mass, bool) or not isinstance(mass, (int, float)) or not mass > 0:
            raise E.CatalogError(f"Invalid atomic mass for {symbol}: {mass!r}")

    logger.info("Loaded %d atomic masses from %s", len(table), path)
    return MappingProxyType(dict(table))


def load_catalog(path=None):
    """Calculator definitions grouped by category: {category: [CalculatorDefinition, ...]}."""
    path = Path(path) if path is not None else CALCULATORS_FILE
    try:
        raw_catalog = read_json(path)
    except (OSError, json.JSONDecodeError) as e:
        raise E.CatalogError(f"Failed to load calculator data from {path}: {e}")

    catalog = {}
    seen = set()
    for category, entries in raw_catalog.items():
        catalog[category] = []
        for entry in entries:
            definition = CalculatorDefinition.from_dict(entry, category)
            if definition.id in seen:
                raise E.CatalogError(f"Duplicate calculator id: {definition.id}")
            seen.add(definition.id)
            catalog[category].append(definition)

    logger.info("Loaded %d calculators in %d categories", len(seen), len(catalog))
    return catalog


def find_calculator(catalog, calc_id):
    for definitions in catalog.values():
        for definition in definitions:
            if definition.id == calc_id:
                return definition
    raise E.CatalogError(f"Calculator \"{calc_id}\" not found")


# -----------------------------
# Validation and dispatch
# -----------------------------

def validate_numeric_input(value, calculator_input):
    """Parse one numeric field; raises ValueError with a user-facing message."""
    label = calculator_input.label
    if isinstance(value, str):
        value = value.strip()
    if value is None or value == "":
        raise ValueError(f"{label} is required")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a valid number")
    if not math.isfinite(number):
        raise ValueError(f"{label} must be a valid number")

    low, high = calculator_input.limits()
    if number < low:
        raise ValueError(f"{label} must be at least {low}")
    if number > high:
        raise ValueError(f"{label} must be no more than {high}")
    if number == 0 and calculator_input.id in NON_ZERO_INPUTS:
        raise ValueError(f"{label} cannot be zero")
    return number


def validate_inputs(definition, raw_inputs):
    """Check every field of `definition` and return the parsed inputs.

    All problems are collected and raised together as one InvalidValueError.
    Empty optional fields are left out of the result.
    """
    inputs = {}
    validation_errors = []

    for calculator_input in definition.inputs:
        raw_value = raw_inputs.get(calculator_input.id)
        if isinstance(raw_value, str):
            raw_value = raw_value.strip()

        if raw_value is None or raw_value == "":
            if not calculator_input.optional:
                validation_errors.append(f"{calculator_input.label} is required")
            continue

        if calculator_input.type == "text":
            inputs[calculator_input.id] = str(raw_value)
            continue

        try:
            inputs[calculator_input.id] = validate_numeric_input(raw_value, calculator_input)
        except ValueError as e:
            validation_errors.append(str(e))

    if validation_errors:
        raise E.InvalidValueError(definition.id,
                                  message=f"Please fix the following: {', '.join(validation_errors)}",
                                  equation=definition.id)
    return inputs


def calculate(definition, raw_inputs, atomic_masses=None, settings=None):
    """Validate `raw_inputs` for `definition` and run its calculation.

    Returns a CalculationResult; `variable` and `unit` describe what was calculated.
    """
    settings = {**config_manager.DEFAULT_SETTINGS, **(settings or {})}
    decimal_places = settings["decimal_places"]
    calculation = definition.calculation
    calculation_type = calculation.get("type")

    logger.debug("Calculating %s (%s) with %r", definition.id, calculation_type, raw_inputs)
    inputs = validate_inputs(definition, raw_inputs)

    if calculation_type == "basic_formula":
        result = FormulaEngine.evaluate_formula(calculation["formula"], inputs, decimal_places)
        result.variable = calculation.get("result_label", "Result")
        result.unit = calculation.get("result_unit", "")
        return result

    elif calculation_type == "solve_for_missing":
        R = calculation.get("R_constant", settings["gas_constant"])
        gas_values = {name: inputs.get(name) for name in GasEngine.GAS_VARIABLES}
        result = GasEngine.solve_ideal_gas(gas_values, R, decimal_places)
        result.variable = GasEngine.GAS_LABELS[result.variable]
        return result

    elif calculation_type == "molar_mass":
        if atomic_masses is None:
            atomic_masses = load_atomic_masses()
        formula = MolarMass.validate_chemical_formula(inputs["formula"])
        return MolarMass.molar_mass_result(formula, atomic_masses, settings["molar_mass_decimals"])

    elif calculation_type == "temperature_conversion":
        return GasEngine.convert_temperature(inputs["value"], inputs["from_unit"], inputs["to_unit"],
                                             decimal_places)

    else:
        raise E.CatalogError(f"Unknown calculation type: {calculation_type!r}", equation=definition.id)
