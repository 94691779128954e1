"""CHEMI chemistry calculator engines."""
from .MolarMass import compute_molar_mass
from .FormulaEngine import evaluate_formula, CalculationResult
from .GasEngine import solve_ideal_gas, convert_temperature
