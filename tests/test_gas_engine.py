import pytest

from Chemi import error as E
from Chemi.GasEngine import GAS_CONSTANT, convert_temperature, solve_ideal_gas


def test_pressure_at_stp():
    result = solve_ideal_gas({"moles": 1, "temperature": 273.15, "volume": 22.4})
    assert result.variable == "pressure"
    assert result.unit == "atm"
    assert result.numeric_value == pytest.approx(1.0, rel=1e-3)
    assert result.formatted_value == "1.0007"
    lines = result.derivation.split("\n")
    assert lines[0] == "PV = nRT → P = nRT/V"
    assert lines[1] == "P = moles * R * temperature / volume"
    assert lines[2] == "= 1 * 0.08206 * 273.15 / 22.4"
    assert lines[-1].endswith(" atm")


def test_solve_for_moles():
    result = solve_ideal_gas({"pressure": 1, "volume": 22.4, "temperature": 273.15})
    assert result.variable == "moles"
    assert result.unit == "mol"
    assert result.numeric_value == pytest.approx(22.4 / (GAS_CONSTANT * 273.15))


def test_none_counts_as_missing():
    result = solve_ideal_gas({"pressure": 2, "volume": None, "moles": 1, "temperature": 300})
    assert result.variable == "volume"
    assert result.numeric_value == pytest.approx(1 * GAS_CONSTANT * 300 / 2)


def test_solve_for_temperature():
    result = solve_ideal_gas({"pressure": 1, "volume": 22.4, "moles": 1})
    assert result.unit == "K"
    assert result.numeric_value == pytest.approx(22.4 / GAS_CONSTANT)


def test_custom_gas_constant():
    result = solve_ideal_gas({"moles": 1, "temperature": 300, "volume": 1}, R=8.314)
    assert result.numeric_value == pytest.approx(8.314 * 300)


@pytest.mark.parametrize("values, missing", [
    ({"pressure": 1, "volume": 1, "moles": 1, "temperature": 300}, []),
    ({"pressure": 1, "volume": 1}, ["moles", "temperature"]),
    ({}, ["pressure", "volume", "moles", "temperature"]),
])
def test_exactly_one_variable_must_be_missing(values, missing):
    with pytest.raises(E.WrongMissingCountError) as excinfo:
        solve_ideal_gas(values)
    assert excinfo.value.missing == missing
    assert excinfo.value.code == "3300"


def test_unknown_variable_name():
    with pytest.raises(E.InvalidValueError) as excinfo:
        solve_ideal_gas({"pressure": 1, "volume": 1, "mols": 1})
    assert excinfo.value.name == "mols"


def test_zero_volume_is_an_invalid_result():
    with pytest.raises(E.InvalidResultError):
        solve_ideal_gas({"moles": 1, "temperature": 300, "volume": 0})


@pytest.mark.parametrize("value, source, target, expected", [
    (25, "C", "K", "298.15"),
    (100, "C", "F", "212"),
    (212, "F", "C", "100"),
    (0, "K", "C", "-273.15"),
    (32, "F", "K", "273.15"),
    (373.15, "K", "F", "212"),
])
def test_temperature_conversions(value, source, target, expected):
    result = convert_temperature(value, source, target)
    assert result.formatted_value == expected
    assert result.numeric_value == pytest.approx(float(expected))


def test_temperature_working():
    result = convert_temperature(25, "C", "K")
    assert result.unit == "K"
    assert result.derivation.split("\n") == ["T(K) = T(°C) + 273.15", "= 25 + 273.15", "= 298.15 K"]


def test_degree_sign_and_lowercase_units():
    assert convert_temperature(0, "°C", "k").formatted_value == "273.15"


def test_same_unit_returns_value():
    result = convert_temperature(42.5, "C", "C")
    assert result.formatted_value == "42.5"
    assert result.unit == "°C"


@pytest.mark.parametrize("value, unit", [(-300, "C"), (-1, "K"), (-500, "F")])
def test_below_absolute_zero(value, unit):
    with pytest.raises(E.InvalidValueError):
        convert_temperature(value, unit, "K")


def test_unknown_unit():
    with pytest.raises(E.InvalidValueError):
        convert_temperature(10, "C", "R")
