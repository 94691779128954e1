# FormulaEngine.py
"""""
Formula engine for the CHEMI calculators ("basic_formula" calculators).

Pipeline
--------
1) Substitution: every variable name in a template such as 'moles * molar_mass'
   is replaced by its value (whole identifiers only, 'v' never matches inside 'volume').
2) Tokenizer: converts the substituted string into a flat list of tokens.
3) Parser (AST): recursive-descent, precedence aware, no eval().
4) Evaluator: Decimal arithmetic plus the whitelisted ScientificEngine functions.
5) Formatter: rounds the result for display and builds the working (derivation).
"""""

import logging
import math
import re
from decimal import Decimal, DecimalException, localcontext

from . import ScientificEngine
from . import error as E

logger = logging.getLogger(__name__)

Operations = ["+", "-", "*", "/", "^"]
DIGITS = "0123456789"

# Display aliases accepted in templates
OPERATOR_ALIASES = {"×": "*", "÷": "/", "−": "-"}

PRECISION = 50

IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
# An identifier counts only when it is a complete token (not glued to a number or another name)
WHOLE_IDENTIFIER = re.compile(r"(?<![A-Za-z0-9_.])[A-Za-z_][A-Za-z0-9_]*(?![A-Za-z0-9_])")


class CalculationResult:
    """Value, display text and working of one calculation."""

    def __init__(self, numeric_value, formatted_value, derivation, variable=None, unit=""):
        self.numeric_value = numeric_value
        self.formatted_value = formatted_value
        self.derivation = derivation
        self.variable = variable
        self.unit = unit

    def __eq__(self, other):
        if not isinstance(other, CalculationResult):
            return NotImplemented
        return (self.numeric_value, self.formatted_value, self.derivation, self.variable, self.unit) == \
               (other.numeric_value, other.formatted_value, other.derivation, other.variable, other.unit)

    def __repr__(self):
        return (f"CalculationResult({self.numeric_value!r}, {self.formatted_value!r}, "
                f"variable={self.variable!r}, unit={self.unit!r})")


# -----------------------------
# Value handling
# -----------------------------

def to_decimal(name, value):
    """Return `value` as a finite Decimal or raise InvalidValueError."""
    if isinstance(value, (bool, str, bytes)) or value is None:
        raise E.InvalidValueError(name, f"Invalid value for {name}: {value!r}")

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    else:
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            raise E.InvalidValueError(name, f"Invalid value for {name}: {value!r}")
        # repr keeps the shortest round-trip form (18.015 stays 18.015)
        number = Decimal(repr(as_float))

    if not number.is_finite():
        raise E.InvalidValueError(name, f"Invalid value for {name}: {value!r}")
    return number


def plain_number(number):
    """Render a Decimal without exponent, e.g. Decimal('6.022E+23') -> '602200000000000000000000'."""
    return format(number, "f")


def literal(number):
    """Literal used when substituting into a template; negatives are bracketed."""
    text = plain_number(number)
    if number < 0:
        return f"({text})"
    return text


def substitute(template, values):
    """Replace whole-identifier occurrences of each name in `values` with its literal."""
    literals = {}
    for name, value in values.items():
        if not isinstance(name, str) or not IDENTIFIER.fullmatch(name):
            raise E.InvalidValueError(name, f"Invalid variable name: {name!r}", equation=template)
        literals[name] = literal(to_decimal(name, value))

    def replace(match):
        return literals.get(match.group(0), match.group(0))

    return WHOLE_IDENTIFIER.sub(replace, template)


def find_unresolved(expression):
    """Names left in `expression` that are not whitelisted functions (first-seen order)."""
    unresolved = []
    for name in IDENTIFIER.findall(expression):
        if not ScientificEngine.is_function(name) and name not in unresolved:
            unresolved.append(name)
    return unresolved


# -----------------------------
# AST node types
# -----------------------------

class Number:
    """AST node for numeric literal backed by Decimal."""
    def __init__(self, value):
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        self.value = value

    def evaluate(self):
        return self.value

    def __repr__(self):
        return f"Number({plain_number(self.value)})"


class BinOp:
    """AST node for a binary operation: left <operator> right."""
    def __init__(self, left, operator, right):
        self.left = left
        self.operator = operator
        self.right = right

    def evaluate(self):
        left_value = self.left.evaluate()
        right_value = self.right.evaluate()

        if self.operator == '+':
            return left_value + right_value
        elif self.operator == '-':
            return left_value - right_value
        elif self.operator == '*':
            return left_value * right_value
        elif self.operator == '/':
            if right_value == 0:
                raise E.InvalidResultError("Division by zero")
            return left_value / right_value
        elif self.operator == '^':
            if left_value == 0 and right_value == 0:
                return Decimal(1)
            if left_value == 0 and right_value < 0:
                raise E.InvalidResultError("Division by zero")
            return left_value ** right_value
        else:
            raise E.ParseError(f"Unknown operator: {self.operator}")

    def __repr__(self):
        return f"BinOp({self.operator!r}, left={self.left}, right={self.right})"


class Function:
    """AST node for a whitelisted function call, e.g. log10(x) or pow(x, 2)."""
    def __init__(self, name, arguments):
        self.name = name
        self.arguments = arguments

    def evaluate(self):
        argument_values = [argument.evaluate() for argument in self.arguments]
        try:
            result = ScientificEngine.call(self.name, argument_values)
        except (ValueError, OverflowError) as e:
            raise E.InvalidResultError(f"Math error in {self.name}(): {e}")
        if not math.isfinite(result):
            raise E.InvalidResultError(f"{self.name}() produced a non-finite result")
        return Decimal(repr(result))

    def __repr__(self):
        return f"Function({self.name!r}, {self.arguments})"


# -----------------------------
# Tokenizer
# -----------------------------

def translator(expression):
    """Convert a substituted expression into a token list (Decimals, operators, parens, ',' and function names)."""
    tokens = []
    b = 0

    while b < len(expression):
        current_char = OPERATOR_ALIASES.get(expression[b], expression[b])

        # --- Numbers: digits and decimal separator ---
        if current_char in DIGITS or current_char == ".":
            str_number = current_char
            has_dot = current_char == "."

            while b + 1 < len(expression) and (expression[b + 1] in DIGITS or expression[b + 1] == "."):
                if expression[b + 1] == ".":
                    if has_dot:
                        raise E.ParseError("More than one '.' in one number.", equation=expression)
                    has_dot = True
                b += 1
                str_number += expression[b]

            if str_number == ".":
                raise E.ParseError("A lone '.' is not a number.", equation=expression)
            tokens.append(Decimal(str_number))

        elif current_char in Operations or current_char in "(),":
            tokens.append(current_char)

        elif current_char.isspace():
            pass

        # --- Function names ---
        elif IDENTIFIER.match(expression, b):
            match = IDENTIFIER.match(expression, b)
            name = match.group(0)
            if not ScientificEngine.is_function(name):
                raise E.UnresolvedVariableError([name], equation=expression)
            tokens.append(name)
            b = match.end() - 1

        else:
            raise E.ParseError(f"Unexpected character: {current_char!r}", equation=expression)

        b += 1

    return tokens


# -----------------------------
# Parser (recursive descent)
# -----------------------------

def ast(expression):
    """Parse a substituted expression into an AST.
    Precedence via nested functions: factor → power → unary → term → sum.
    """
    tokens = translator(expression)
    if not tokens:
        raise E.ParseError("Empty expression.", equation=expression)

    def parse_factor(tokens):
        """Numbers, sub-expressions in '()' and function calls."""
        if not tokens:
            raise E.ParseError("Missing number.", equation=expression)
        token = tokens.pop(0)

        if token == "(":
            inner_tree = parse_sum(tokens)
            if not tokens or tokens.pop(0) != ")":
                raise E.ParseError("Missing closing parenthesis ')'", equation=expression)
            return inner_tree

        elif isinstance(token, str) and ScientificEngine.is_function(token):
            if not tokens or tokens.pop(0) != "(":
                raise E.ParseError(f"Missing opening parenthesis after function {token}", equation=expression)
            arguments = [parse_sum(tokens)]
            while tokens and tokens[0] == ",":
                tokens.pop(0)
                arguments.append(parse_sum(tokens))
            if not tokens or tokens.pop(0) != ")":
                raise E.ParseError(f"Missing closing parenthesis after function '{token}'", equation=expression)
            if len(arguments) != ScientificEngine.arity(token):
                raise E.ParseError(f"{token}() takes {ScientificEngine.arity(token)} argument(s), "
                                   f"got {len(arguments)}", equation=expression)
            return Function(token, arguments)

        elif isinstance(token, Decimal):
            return Number(token)

        else:
            raise E.ParseError(f"Unexpected token: {token}", equation=expression)

    def parse_power(tokens):
        """Exponentiation '^', right associative, binds tighter than unary minus."""
        base = parse_factor(tokens)
        if tokens and tokens[0] == "^":
            operator = tokens.pop(0)
            exponent = parse_unary(tokens)
            return BinOp(base, operator, exponent)
        return base

    def parse_unary(tokens):
        """Leading '+'/'-' (unary minus becomes 0 - operand)."""
        if tokens and tokens[0] in ("+", "-"):
            operator = tokens.pop(0)
            operand = parse_unary(tokens)
            if operator == "-":
                if isinstance(operand, Number):
                    return Number(-operand.evaluate())
                return BinOp(Number("0"), "-", operand)
            return operand
        return parse_power(tokens)

    def parse_term(tokens):
        """Multiplication and division."""
        current_tree = parse_unary(tokens)
        while tokens and tokens[0] in ("*", "/"):
            operator = tokens.pop(0)
            right_part = parse_unary(tokens)
            current_tree = BinOp(current_tree, operator, right_part)
        return current_tree

    def parse_sum(tokens):
        """Addition and subtraction."""
        current_tree = parse_term(tokens)
        while tokens and tokens[0] in ("+", "-"):
            operator = tokens.pop(0)
            right_side = parse_term(tokens)
            current_tree = BinOp(current_tree, operator, right_side)
        return current_tree

    final_tree = parse_sum(tokens)
    if tokens:
        raise E.ParseError(f"Unexpected token: {tokens[0]}", equation=expression)

    logger.debug("AST for %r: %s", expression, final_tree)
    return final_tree


# -----------------------------
# Result formatting
# -----------------------------

def cleanup(result, decimal_places):
    """Round a Decimal result for display.

    Returns:
        (rendered_value, rounding_flag)
    where rounding_flag indicates whether rounding changed the value.
    """
    # Temporary precision boost prevents InvalidOperation in quantize() for long numbers
    with localcontext() as ctx:
        ctx.prec = 128

        if result == result.to_integral_value():
            return plain_number(result.normalize()), False

        places = max(decimal_places, 0)
        rounded_result = result.quantize(Decimal(1).scaleb(-places))

        if rounded_result == 0:
            # Too small for the requested places: keep that many significant digits instead of showing 0
            significant = max(places, 1)
            rounded_result = result.quantize(Decimal(1).scaleb(result.adjusted() - significant + 1))

        return plain_number(rounded_result.normalize()), rounded_result != result


def compute(expression):
    """Evaluate an already-substituted expression and return a finite Decimal."""
    with localcontext() as ctx:
        ctx.prec = PRECISION
        try:
            result = ast(expression).evaluate()
        except DecimalException as e:
            raise E.InvalidResultError(f"Arithmetic error: {type(e).__name__}", equation=expression)
        except RecursionError:
            raise E.ParseError("Expression is nested too deeply.", equation=expression)

    if not result.is_finite() or not math.isfinite(float(result)):
        raise E.InvalidResultError(equation=expression)
    return result


# -----------------------------
# Public entry point
# -----------------------------

def evaluate_formula(template, values, decimal_places=4):
    """Evaluate `template` with `values` substituted.

    Main API: substitute → check for unresolved names → parse → evaluate → format.
    Returns a CalculationResult whose derivation lists the template, the
    substituted expression and the result.
    """
    if not isinstance(template, str) or not template.strip():
        raise E.ParseError("Formula is missing or invalid.", equation=template)

    logger.debug("Evaluating formula %r with values %r", template, values)

    try:
        expression = substitute(template, values)

        unresolved = find_unresolved(expression)
        if unresolved:
            raise E.UnresolvedVariableError(unresolved)

        result = compute(expression)
    except E.ChemError as e:
        e.equation = template
        raise

    formatted_value, rounding = cleanup(result, decimal_places)
    sign = "≈" if rounding else "="
    derivation = "\n".join([template, f"= {expression}", f"{sign} {formatted_value}"])

    logger.debug("Result of %r: %s", template, formatted_value)
    return CalculationResult(float(result), formatted_value, derivation)
