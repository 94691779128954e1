import pytest

QtCore = pytest.importorskip("PySide6.QtCore")
pytest.importorskip("PySide6.QtWidgets")
pytest.importorskip("pyperclip")

from Chemi import Catalog  # noqa: E402
from Chemi import error as E  # noqa: E402
from Chemi.FormulaEngine import CalculationResult  # noqa: E402
from Chemi.UI import Worker, format_result, parse_setting  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


@pytest.fixture(scope="module")
def catalog():
    return Catalog.load_catalog()


def run_worker(definition, raw_inputs):
    emitted = []
    worker = Worker(definition, raw_inputs, Catalog.FALLBACK_ATOMIC_MASSES, {})
    worker.job_finished.connect(lambda result, calc_id: emitted.append((result, calc_id)))
    worker.run_Calc()
    return emitted


def test_worker_emits_result(app, catalog):
    definition = Catalog.find_calculator(catalog, "moles-mass")
    [(result, calc_id)] = run_worker(definition, {"moles": "2", "molar_mass": "18.015"})
    assert calc_id == "moles-mass"
    assert isinstance(result, CalculationResult)
    assert result.formatted_value == "36.03"


def test_worker_emits_known_error(app, catalog):
    definition = Catalog.find_calculator(catalog, "molar-mass")
    [(result, _)] = run_worker(definition, {"formula": "Ca(OH"})
    assert isinstance(result, E.UnbalancedParenthesesError)
    assert result.code == "3101"


def test_worker_wraps_unexpected_errors(app, catalog, monkeypatch):
    def crash(*args):
        raise RuntimeError("boom")

    monkeypatch.setattr(Catalog, "calculate", crash)
    definition = Catalog.find_calculator(catalog, "moles-mass")
    [(result, _)] = run_worker(definition, {})
    assert isinstance(result, E.ChemError)
    assert result.code == "9999"
    assert "boom" in result.message


@pytest.mark.parametrize("result, expected", [
    (CalculationResult(36.03, "36.03", "", variable="Mass", unit="g"), "Mass: 36.03 g"),
    (CalculationResult(18.016, "18.016", "", variable="molar_mass", unit="g/mol"), "Molar mass: 18.016 g/mol"),
    (CalculationResult(3.0, "3", "", variable="pH"), "pH: 3"),
    (CalculationResult(1.0, "1", ""), "Result: 1"),
])
def test_format_result(result, expected):
    assert format_result(result) == expected


def test_parse_setting():
    assert parse_setting("decimal_places", "6", 4) == 6
    assert parse_setting("gas_constant", "8.314", 0.08206) == 8.314
    with pytest.raises(ValueError):
        parse_setting("decimal_places", "16", 4)
    with pytest.raises(ValueError):
        parse_setting("gas_constant", "0", 0.08206)
    with pytest.raises(ValueError):
        parse_setting("decimal_places", "two", 4)
