# ScientificEngine.py
"""Whitelisted math functions available inside calculator templates.

Arguments arrive as Decimal, are evaluated with the float `math` module and the
result is handed back to FormulaEngine, which validates and re-wraps it.
"""
import math


# name -> number of arguments
FUNCTIONS = {
    "log10": 1,
    "pow": 2,
    "sqrt": 1,
    "exp": 1,
    "sin": 1,
    "cos": 1,
    "tan": 1,
    "abs": 1,
}


def is_function(name):
    return name in FUNCTIONS


def arity(name):
    return FUNCTIONS[name]


def call(name, args):
    """Apply whitelisted function `name` to a list of numeric arguments.

    Raises ValueError (math domain) or OverflowError; the caller maps both to
    InvalidResultError.
    """
    numbers = [float(a) for a in args]

    if name == "log10":
        return math.log10(numbers[0])
    elif name == "pow":
        return math.pow(numbers[0], numbers[1])
    elif name == "sqrt":
        return math.sqrt(numbers[0])
    elif name == "exp":
        return math.exp(numbers[0])
    elif name == "sin":
        return math.sin(numbers[0])
    elif name == "cos":
        return math.cos(numbers[0])
    elif name == "tan":
        return math.tan(numbers[0])
    elif name == "abs":
        return abs(numbers[0])
    else:
        raise KeyError(name)
