import math
from decimal import Decimal

import pytest

from Chemi import error as E
from Chemi.FormulaEngine import evaluate_formula, substitute, translator


def test_basic_formula_with_working():
    result = evaluate_formula("moles * molar_mass", {"moles": 2, "molar_mass": 18.015})
    assert result.numeric_value == 36.03
    assert result.formatted_value == "36.03"
    assert result.derivation.split("\n") == ["moles * molar_mass", "= 2 * 18.015", "= 36.03"]


def test_whole_identifier_substitution():
    result = evaluate_formula("v/volume", {"v": 1, "volume": 2})
    assert "= 1/2" in result.derivation
    assert result.numeric_value == 0.5


def test_partial_name_is_not_substituted():
    with pytest.raises(E.UnresolvedVariableError) as excinfo:
        evaluate_formula("v/volume", {"v": 1})
    assert excinfo.value.names == ["volume"]
    assert excinfo.value.equation == "v/volume"


def test_name_glued_to_number_is_unresolved():
    with pytest.raises(E.UnresolvedVariableError):
        evaluate_formula("2moles", {"moles": 3})


def test_extra_values_are_ignored():
    assert evaluate_formula("a + 1", {"a": 1, "b": 5}).numeric_value == 2


@pytest.mark.parametrize("value", [float("nan"), float("inf"), -math.inf, None, "3", True])
def test_invalid_values(value):
    with pytest.raises(E.InvalidValueError) as excinfo:
        evaluate_formula("x * 2", {"x": value})
    assert excinfo.value.name == "x"


@pytest.mark.parametrize("template, values", [
    ("mass / volume", {"mass": 5, "volume": 0}),
    ("log10(c)", {"c": 0}),
    ("sqrt(x)", {"x": -4}),
    ("x ^ 0.5", {"x": -4}),
    ("0 ^ -1", {}),
    ("exp(x)", {"x": 1000}),
])
def test_invalid_results(template, values):
    with pytest.raises(E.InvalidResultError):
        evaluate_formula(template, values)


@pytest.mark.parametrize("template", ["moles *", "(moles + 1", "moles moles", "moles + 1)", "1..2 + moles",
                                      "pow(moles)", "sqrt moles", "moles $ 2", ""])
def test_parse_errors(template):
    with pytest.raises(E.ParseError):
        evaluate_formula(template, {"moles": 2})


def test_code_injection_is_not_evaluated():
    with pytest.raises(E.UnresolvedVariableError):
        evaluate_formula("__import__('os').getcwd()", {})


@pytest.mark.parametrize("template, expected", [
    ("2 + 3 * 4^2", 50),
    ("-2^2", -4),
    ("2^3^2", 512),
    ("(2 + 3) * 4", 20),
    ("10 - 4 - 3", 3),
    ("2 × 3 ÷ 4", 1.5),
    ("pow(2, 10)", 1024),
    ("abs(-7) + sqrt(16)", 11),
])
def test_operator_precedence(template, expected):
    assert evaluate_formula(template, {}).numeric_value == pytest.approx(expected)


def test_negative_values_are_bracketed():
    result = evaluate_formula("a - b + x^2", {"a": 5, "b": -2, "x": -3})
    assert "= 5 - (-2) + (-3)^2" in result.derivation
    assert result.numeric_value == 16


def test_ph_from_concentration():
    result = evaluate_formula("-log10(h_concentration)", {"h_concentration": 0.001})
    assert result.numeric_value == pytest.approx(3.0)


def test_rounded_results_are_marked():
    result = evaluate_formula("a / b", {"a": 1, "b": 3})
    assert result.formatted_value == "0.3333"
    assert result.derivation.endswith("≈ 0.3333")

    result = evaluate_formula("a / b", {"a": 1, "b": 3}, decimal_places=2)
    assert result.formatted_value == "0.33"


def test_small_results_keep_significant_digits():
    result = evaluate_formula("pow(10, -ph)", {"ph": 7})
    assert result.formatted_value == "0.0000001"
    assert result.numeric_value == pytest.approx(1e-7)


def test_large_values_are_substituted_without_exponent():
    result = evaluate_formula("n * avogadro", {"n": 2, "avogadro": 6.022e23})
    assert "602200000000000000000000" in result.derivation
    assert result.numeric_value == pytest.approx(1.2044e24)


def test_decimal_inputs():
    result = evaluate_formula("c1 * v1 / c2", {"c1": Decimal("0.5"), "v1": 100, "c2": Decimal("0.1")})
    assert result.numeric_value == 500


def test_repeated_calls_are_identical():
    values = {"mass": 12.5, "molar_mass": 58.44}
    assert evaluate_formula("mass / molar_mass", values) == evaluate_formula("mass / molar_mass", values)


def test_substitute_only_whole_tokens():
    assert substitute("v * volume + v_2", {"v": 1, "volume": 2, "v_2": 3}) == "1 * 2 + 3"


def test_translator_tokens():
    assert translator("log10(2) * 3.5") == ["log10", "(", Decimal("2"), ")", "*", Decimal("3.5")]


def test_zero_to_the_power_of_zero():
    assert evaluate_formula("0 ^ 0", {}).numeric_value == 1
    assert evaluate_formula("x ^ y", {"x": 0, "y": 0}).numeric_value == evaluate_formula("pow(0, 0)", {}).numeric_value


def test_deeply_nested_expression_is_a_parse_error():
    template = "(" * 1000 + "x" + ")" * 1000
    with pytest.raises(E.ParseError) as excinfo:
        evaluate_formula(template, {"x": 1})
    assert excinfo.value.equation == template
