# error.py
"""Error types raised by the CHEMI calculation engines.

Every error carries a 4-digit code (looked up in ERROR_MESSAGES by the UI),
a detail message and the formula/template that caused it.
"""


class ChemError(Exception):
    def __init__(self, message, code="9999", equation=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.equation = equation


# --- Chemical formula errors (31xx) ---

class FormulaError(ChemError):
    pass

class UnknownElementError(FormulaError):
    def __init__(self, symbol, equation=None):
        super().__init__(f"Unknown element: {symbol}", code="3100", equation=equation)
        self.symbol = symbol

class UnbalancedParenthesesError(FormulaError):
    def __init__(self, message="Unbalanced parentheses.", position=None, equation=None):
        super().__init__(message, code="3101", equation=equation)
        self.position = position

class MalformedFormulaError(FormulaError):
    def __init__(self, character, position, message=None, equation=None):
        if message is None:
            message = f"Unexpected character {character!r} at position {position}"
        super().__init__(message, code="3102", equation=equation)
        self.character = character
        self.position = position


# --- Expression errors (32xx) ---

class CalculationError(ChemError):
    pass

class InvalidValueError(CalculationError):
    def __init__(self, name, message=None, equation=None):
        if message is None:
            message = f"Invalid value for {name}"
        super().__init__(message, code="3200", equation=equation)
        self.name = name

class UnresolvedVariableError(CalculationError):
    def __init__(self, names, equation=None):
        super().__init__(f"Unresolved variables in formula: {', '.join(names)}", code="3201", equation=equation)
        self.names = list(names)

class InvalidResultError(CalculationError):
    def __init__(self, message="Calculation produced an invalid result", equation=None):
        super().__init__(message, code="3202", equation=equation)

class ParseError(CalculationError):
    def __init__(self, message, equation=None):
        super().__init__(message, code="3203", equation=equation)


# --- Solver errors (33xx) ---

class SolverError(ChemError):
    pass

class WrongMissingCountError(SolverError):
    def __init__(self, missing, equation=None):
        super().__init__(f"Provide exactly 3 values to solve for the 4th (missing: {', '.join(missing) or 'none'})",
                         code="3300", equation=equation)
        self.missing = list(missing)


# --- Catalog errors (50xx) ---

class CatalogError(ChemError):
    def __init__(self, message, equation=None):
        super().__init__(message, code="5001", equation=equation)



Error_Dictionary = {

    "1" : "Missing Files",
    "3" : "Calculator Error",
    "4" : "UI Error",
    "5" : "Configuration Error",
    "9" : "Runtime Error"

}

#Error Messages are structured in:
# 1. Digit: Main Error
# 2. Digit: Component (1 = formula parser, 2 = expression engine, 3 = solver)
# 3. and 4. Digit: Error Number



ERROR_MESSAGES = {
    "3100" : "Unknown element in formula.",
    "3101" : "Unbalanced parentheses in formula.",
    "3102" : "Malformed chemical formula.",

    "3200" : "Invalid input value.",
    "3201" : "Unresolved variable in formula.",
    "3202" : "Calculation produced an invalid result.",
    "3203" : "Malformed expression.",

    "3300" : "Provide exactly 3 values to solve for the 4th.",

    "4002" : "Calculation already running!",

    "5001" : "Calculator definition error.",

    "9999" : "Unexpected Error: " #+error
}
