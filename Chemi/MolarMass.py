# MolarMass.py
"""""
Molar mass calculator for chemical formulas such as 'H2O', 'Ca(OH)2',
'(NH4)2(SO4)3' or the hydrate 'CuSO4.5H2O'.

Pipeline
--------
1) Parser: recursive descent over the formula string, producing ElementGroup,
   ParenGroup and HydrateSegment tokens. Unknown characters fail fast.
2) Mass: sums atomic mass × count over the token tree, using the atomic mass
   table passed in by the caller (see Catalog.load_atomic_masses).

Whitespace is not part of the grammar; callers strip it first
(validate_chemical_formula does this for user input).
"""""

import logging
import re
from decimal import Decimal, localcontext

from . import error as E
from .FormulaEngine import CalculationResult, cleanup, plain_number

logger = logging.getLogger(__name__)

HYDRATE_SEPARATOR = "."
DIGITS = "0123456789"

VALID_FORMULA = re.compile(r"[A-Za-z0-9().]+")


# -----------------------------
# Token types
# -----------------------------

class ElementGroup:
    """One element symbol with its count, e.g. 'O2'."""
    def __init__(self, symbol, count=1):
        self.symbol = symbol
        self.count = count

    def __eq__(self, other):
        return isinstance(other, ElementGroup) and (self.symbol, self.count) == (other.symbol, other.count)

    def __repr__(self):
        return f"ElementGroup({self.symbol!r}, {self.count})"


class ParenGroup:
    """A bracketed group with its multiplier, e.g. '(OH)2'."""
    def __init__(self, tokens, multiplier=1):
        self.tokens = tokens
        self.multiplier = multiplier

    def __eq__(self, other):
        return isinstance(other, ParenGroup) and (self.tokens, self.multiplier) == (other.tokens, other.multiplier)

    def __repr__(self):
        return f"ParenGroup({self.tokens}, {self.multiplier})"


class HydrateSegment:
    """Water (or other) of crystallisation after the separator, e.g. '.5H2O'."""
    def __init__(self, coefficient, tokens):
        self.coefficient = coefficient
        self.tokens = tokens

    def __eq__(self, other):
        return isinstance(other, HydrateSegment) and (self.coefficient, self.tokens) == (other.coefficient, other.tokens)

    def __repr__(self):
        return f"HydrateSegment({self.coefficient}, {self.tokens})"


# -----------------------------
# Parser
# -----------------------------

def is_upper(char):
    return "A" <= char <= "Z"


def is_lower(char):
    return "a" <= char <= "z"


def read_count(formula, position, end):
    """Read the digits starting at `position`.

    Returns:
        (count, position_after_digits); count defaults to 1 when there are no digits.
    """
    start = position
    while position < end and formula[position] in DIGITS:
        position += 1
    if position == start:
        return 1, position

    count = int(formula[start:position])
    if count == 0:
        raise E.MalformedFormulaError(formula[start], start, message=f"Count of zero at position {start}",
                                      equation=formula)
    return count, position


def find_closing_bracket(formula, opening, end):
    """Return the index of the ')' matching the '(' at `opening`, counting nesting depth."""
    depth = 0
    b = opening
    while b < end:
        if formula[b] == "(":
            depth += 1
        elif formula[b] == ")":
            depth -= 1
            if depth == 0:
                return b
        b += 1
    raise E.UnbalancedParenthesesError(f"Missing ')' for '(' at position {opening}", position=opening,
                                       equation=formula)


def parse_group(formula, start, end, top_level):
    """Parse formula[start:end] into a token list.

    A hydrate separator is only accepted when `top_level` is set; it takes the
    rest of the span as a single sub-formula and ends the scan.
    """
    tokens = []
    position = start

    while position < end:
        current_char = formula[position]

        # --- Bracketed group with optional multiplier ---
        if current_char == "(":
            closing = find_closing_bracket(formula, position, end)
            inner = parse_group(formula, position + 1, closing, top_level=False)
            if not inner:
                raise E.MalformedFormulaError("(", position, message=f"Empty parentheses at position {position}",
                                              equation=formula)
            multiplier, position = read_count(formula, closing + 1, end)
            tokens.append(ParenGroup(inner, multiplier))

        elif current_char == ")":
            raise E.UnbalancedParenthesesError(f"Unmatched ')' at position {position}", position=position,
                                               equation=formula)

        # --- Element symbol: uppercase letter plus lowercase letters, then count ---
        elif is_upper(current_char):
            symbol_end = position + 1
            while symbol_end < end and is_lower(formula[symbol_end]):
                symbol_end += 1
            symbol = formula[position:symbol_end]
            count, position = read_count(formula, symbol_end, end)
            tokens.append(ElementGroup(symbol, count))

        # --- Hydrate: '.', coefficient, then the remainder as one sub-formula ---
        elif current_char == HYDRATE_SEPARATOR:
            if not top_level or not tokens:
                raise E.MalformedFormulaError(current_char, position,
                                              message=f"Hydrate separator not allowed at position {position}",
                                              equation=formula)
            coefficient, remainder_start = read_count(formula, position + 1, end)
            remainder = parse_group(formula, remainder_start, end, top_level=False)
            if not remainder:
                raise E.MalformedFormulaError(current_char, position,
                                              message="Missing formula after hydrate separator",
                                              equation=formula)
            tokens.append(HydrateSegment(coefficient, remainder))
            break

        else:
            raise E.MalformedFormulaError(current_char, position, equation=formula)

    return tokens


def too_deep(formula):
    return E.MalformedFormulaError("(", 0, message="Formula is nested too deeply", equation=formula)


def parse_formula(formula):
    """Parse a chemical formula into ElementGroup / ParenGroup / HydrateSegment tokens."""
    if not isinstance(formula, str) or formula == "":
        raise E.MalformedFormulaError("", 0, message="Chemical formula is required", equation=formula)
    try:
        return parse_group(formula, 0, len(formula), top_level=True)
    except RecursionError:
        raise too_deep(formula)


def validate_chemical_formula(text):
    """Strip user input and check it only uses formula characters. Returns the cleaned formula."""
    if text is None or text.strip() == "":
        raise E.MalformedFormulaError("", 0, message="Chemical formula is required", equation=text)

    formula = text.strip()
    if not VALID_FORMULA.fullmatch(formula):
        position, character = next((i, c) for i, c in enumerate(formula) if not VALID_FORMULA.fullmatch(c))
        raise E.MalformedFormulaError(character, position, message="Invalid chemical formula format",
                                      equation=text)
    return formula


# -----------------------------
# Mass
# -----------------------------

def atomic_mass(symbol, atomic_masses, formula=None):
    """Decimal atomic mass for `symbol`, or UnknownElementError."""
    mass = atomic_masses.get(symbol)
    if mass is None:
        raise E.UnknownElementError(symbol, equation=formula)
    return Decimal(str(mass))


def tokens_mass(tokens, atomic_masses, formula=None):
    """Sum of atomic mass × count over a token list."""
    total = Decimal(0)
    for token in tokens:
        if isinstance(token, ElementGroup):
            total += atomic_mass(token.symbol, atomic_masses, formula) * token.count
        elif isinstance(token, ParenGroup):
            total += tokens_mass(token.tokens, atomic_masses, formula) * token.multiplier
        elif isinstance(token, HydrateSegment):
            total += tokens_mass(token.tokens, atomic_masses, formula) * token.coefficient
    return total


def add_counts(tokens, factor, counts):
    for token in tokens:
        if isinstance(token, ElementGroup):
            counts[token.symbol] = counts.get(token.symbol, 0) + token.count * factor
        elif isinstance(token, ParenGroup):
            add_counts(token.tokens, factor * token.multiplier, counts)
        elif isinstance(token, HydrateSegment):
            add_counts(token.tokens, factor * token.coefficient, counts)
    return counts


def element_counts(formula):
    """Total atoms per element, in order of first appearance. 'CuSO4.5H2O' -> {'Cu': 1, 'S': 1, 'O': 9, 'H': 10}"""
    tokens = parse_formula(formula)
    try:
        return add_counts(tokens, 1, {})
    except RecursionError:
        raise too_deep(formula)


def decimal_molar_mass(formula, atomic_masses):
    tokens = parse_formula(formula)
    with localcontext() as ctx:
        ctx.prec = 50
        try:
            return tokens_mass(tokens, atomic_masses, formula)
        except RecursionError:
            raise too_deep(formula)


def compute_molar_mass(formula, atomic_masses):
    """Molar mass in g/mol of `formula` using `atomic_masses` (symbol -> mass)."""
    total = decimal_molar_mass(formula, atomic_masses)
    logger.debug("Molar mass of %s: %s", formula, total)
    return float(total)


def molar_mass_result(formula, atomic_masses, decimal_places=3):
    """Molar mass with the per-element working, as shown by the molar mass calculator."""
    total = decimal_molar_mass(formula, atomic_masses)

    lines = []
    for symbol, count in element_counts(formula).items():
        mass = atomic_mass(symbol, atomic_masses, formula)
        lines.append(f"{symbol}: {count} × {plain_number(mass)} = {plain_number(mass * count)}")

    formatted_value, rounding = cleanup(total, decimal_places)
    sign = "≈" if rounding else "="
    lines.append(f"M({formula}) {sign} {formatted_value} g/mol")

    return CalculationResult(float(total), formatted_value, "\n".join(lines), variable="molar_mass", unit="g/mol")
