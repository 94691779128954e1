# UI.py
""""PySide6 user interface for the CHEMI chemistry calculator.

Structure
---------
- Calculator UI: one window with a calculator picker, an input form built from
  the selected CalculatorDefinition and a result/working display
- Settings UI: modal dialog for user preferences

Responsibilities (Calculator)
-----------------------------
- Build the input form for the selected calculator
- Dispatch the typed values to Catalog.calculate in a worker thread
- Render the result (and the working, if enabled) and show engine errors as dialogs
- Clipboard integration for the last result

Threading Note
--------------
Evaluation runs off the UI thread in Worker(QObject); the result (or error)
is emitted via a Qt signal and handled back in the UI.
"""""

import logging
import sys
import threading

import pyperclip
from PySide6 import QtWidgets
from PySide6.QtCore import Qt, QObject, Signal

from . import Catalog
from . import config_manager
from . import error as E

logger = logging.getLogger(__name__)

CATEGORY_TITLES = {
    "stoichiometry": "Stoichiometry",
    "solutions": "Solutions",
    "acids_bases": "Acids & Bases",
    "redox": "Redox",
    "thermochemistry": "Thermochemistry",
    "analytical": "Analytical",
    "organic": "Organic Chemistry",
    "gases": "Gases",
}


class Worker(QObject):
    """""

    Runs one calculation in a separate thread and emits job_finished with either
    the CalculationResult or the ChemError back to the Calculator UI.

    """""

    job_finished = Signal(object, str)

    def __init__(self, definition, raw_inputs, atomic_masses, settings):
        super().__init__()
        self.definition = definition
        self.raw_inputs = raw_inputs
        self.atomic_masses = atomic_masses
        self.settings = settings

    def run_Calc(self):

        try:
            result = Catalog.calculate(self.definition, self.raw_inputs, self.atomic_masses, self.settings)
            self.job_finished.emit(result, self.definition.id)

        except E.ChemError as e:
            # Known, handled error (e.g. "Unknown element: Xx")
            self.job_finished.emit(e, self.definition.id)

        except Exception as e:
            # Unexpected crash: report it to the UI instead of dying silently in the thread
            logger.exception("Unexpected error in calculator %s", self.definition.id)
            critical_error = E.ChemError(
                message=f"Unexpected crash: {e}",
                code="9999",
                equation=self.definition.id
            )
            self.job_finished.emit(critical_error, self.definition.id)


class SettingsDialog(QtWidgets.QDialog):
    """""

    Settings window. Boolean settings become checkboxes, numeric settings input
    fields; descriptions come from ui_strings.json via config_manager.

    """""

    settings_saved = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.widgets = {}

        self.setWindowTitle("Calculator Settings")
        self.setMinimumSize(320, 220)
        main_layout = QtWidgets.QVBoxLayout(self)

        self.setting_value_list = config_manager.load_setting_value("all")
        self.setting_description_list = config_manager.load_setting_description("all")

        for key_value, value in self.setting_value_list.items():
            description = self.setting_description_list.get(key_value, key_value)

            if isinstance(value, bool):
                checkbox = QtWidgets.QCheckBox(description)
                checkbox.setChecked(value)
                main_layout.addWidget(checkbox)
                self.widgets[key_value] = checkbox

            else:
                row_h_layout = QtWidgets.QHBoxLayout()
                main_layout.addLayout(row_h_layout)
                label = QtWidgets.QLabel(description + ":")
                input_field = QtWidgets.QLineEdit()
                input_field.setPlaceholderText(str(value))  # current value as placeholder
                row_h_layout.addWidget(label)
                row_h_layout.addWidget(input_field)
                row_h_layout.setStretch(1, 1)
                self.widgets[key_value] = input_field

        button_box = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        main_layout.addWidget(button_box)
        main_layout.addStretch(1)

        button_box.accepted.connect(lambda: self.save_settings(self.setting_value_list))
        button_box.rejected.connect(self.reject)

        self.update_darkmode()

    def save_settings(self, setting_value_list):
        for key_value, widget in self.widgets.items():

            if isinstance(widget, QtWidgets.QCheckBox):
                setting_value_list[key_value] = widget.isChecked()

            elif isinstance(widget, QtWidgets.QLineEdit):
                new_value_str = widget.text().strip()
                if new_value_str == "":
                    continue  # left blank: keep the old value

                try:
                    new_value = parse_setting(key_value, new_value_str, setting_value_list[key_value])
                except ValueError as e:
                    QtWidgets.QMessageBox.critical(self, "Invalid Input:",
                                                   f"Error in input for '{key_value}':\n\n{e}\n\nPlease correct your input.")
                    return  # Stop saving!

                setting_value_list[key_value] = new_value

        saved_settings = config_manager.save_setting(setting_value_list)

        if saved_settings != {}:
            self.settings_saved.emit()
            self.accept()
        else:
            QtWidgets.QMessageBox.critical(self, "Error", "Settings could not be saved (error in config_manager).")

    def update_darkmode(self):
        if self.setting_value_list["darkmode"] == True:
            self.setStyleSheet("""
                        QDialog {background-color: #121212;}
                        QLabel {color: white;}
                        QCheckBox {color: white;}
                        QLineEdit {background-color: #444444;color: white;border: 1px solid #666666;}
                        QDialogButtonBox QPushButton {background-color: #666666;color: white;}""")
        else:
            self.setStyleSheet("")


def parse_setting(key_value, text, old_value):
    """Convert a settings field to the type of its current value, with per-setting limits."""
    if isinstance(old_value, int):
        new_value = int(text)
        if key_value in ("decimal_places", "molar_mass_decimals") and not 0 <= new_value <= 15:
            raise ValueError(f"'{new_value}' must be between 0 and 15.")
        return new_value

    new_value = float(text)
    if key_value == "gas_constant" and not new_value > 0:
        raise ValueError(f"'{new_value}' must be positive.")
    return new_value


class CalculatorWindow(QtWidgets.QWidget):

    def __init__(self, catalog, atomic_masses):
        super().__init__()

        self.catalog = catalog
        self.atomic_masses = atomic_masses
        self.setting_value_list = config_manager.load_setting_value("all")

        self.definition = None
        self.input_fields = {}
        self.thread_active = False
        self.last_result = ""

        self.setWindowTitle("CHEMI - Chemistry Calculator")
        self.resize(520, 560)
        main_v_layout = QtWidgets.QVBoxLayout(self)

        # --- 1. Calculator picker + settings button ---
        top_row = QtWidgets.QHBoxLayout()
        self.picker = QtWidgets.QComboBox()
        for category, definitions in catalog.items():
            for definition in definitions:
                self.picker.addItem(f"{CATEGORY_TITLES.get(category, category)}: {definition.title}", definition.id)
        self.picker.currentIndexChanged.connect(self.select_calculator)
        settings_button = QtWidgets.QPushButton("⚙️")
        settings_button.clicked.connect(self.open_settings)
        top_row.addWidget(self.picker, 1)
        top_row.addWidget(settings_button)
        main_v_layout.addLayout(top_row)

        # --- 2. Calculator description ---
        self.formula_label = QtWidgets.QLabel()
        self.formula_label.setStyleSheet("font-weight: bold;")
        self.description_label = QtWidgets.QLabel()
        self.description_label.setWordWrap(True)
        main_v_layout.addWidget(self.formula_label)
        main_v_layout.addWidget(self.description_label)

        # --- 3. Input form (rebuilt per calculator) ---
        self.form_container = QtWidgets.QWidget()
        self.form_layout = QtWidgets.QFormLayout(self.form_container)
        main_v_layout.addWidget(self.form_container)

        # --- 4. Controls ---
        control_row = QtWidgets.QHBoxLayout()
        self.show_working = QtWidgets.QCheckBox("Show working")
        self.show_working.setChecked(self.setting_value_list["show_working"])
        self.calculate_button = QtWidgets.QPushButton("Calculate")
        self.calculate_button.clicked.connect(self.start_calculation)
        copy_button = QtWidgets.QPushButton("📋")
        copy_button.clicked.connect(self.copy_result)
        control_row.addWidget(self.show_working)
        control_row.addStretch(1)
        control_row.addWidget(copy_button)
        control_row.addWidget(self.calculate_button)
        main_v_layout.addLayout(control_row)

        # --- 5. Result display ---
        self.display = QtWidgets.QTextEdit()
        self.display.setReadOnly(True)
        main_v_layout.addWidget(self.display, 1)

        self.update_darkmode()
        self.select_calculator(0)

    def select_calculator(self, index):
        calc_id = self.picker.itemData(index)
        if calc_id is None:
            return
        self.definition = Catalog.find_calculator(self.catalog, calc_id)

        self.formula_label.setText(f"Formula: {self.definition.formula}")
        self.description_label.setText(self.definition.description)

        while self.form_layout.rowCount():
            self.form_layout.removeRow(0)
        self.input_fields = {}

        for calculator_input in self.definition.inputs:
            field = QtWidgets.QLineEdit()
            if calculator_input.optional:
                field.setPlaceholderText("leave empty to solve")
            field.returnPressed.connect(self.start_calculation)
            label = calculator_input.label
            if calculator_input.unit:
                label = f"{label} ({calculator_input.unit})"
            self.form_layout.addRow(label, field)
            self.input_fields[calculator_input.id] = field

        self.display.clear()

    def start_calculation(self):
        if self.thread_active:
            logger.warning("A calculation is already running")  # 4002
            return

        raw_inputs = {input_id: field.text() for input_id, field in self.input_fields.items()}
        self.thread_active = True
        self.calculate_button.setEnabled(False)
        self.display.setPlainText("...")

        worker_instance = Worker(self.definition, raw_inputs, self.atomic_masses, self.setting_value_list)
        worker_instance.job_finished.connect(self.Calc_result, Qt.ConnectionType.QueuedConnection)
        self.worker_instance = worker_instance  # keep alive until the signal arrives
        my_thread = threading.Thread(target=worker_instance.run_Calc, daemon=True)
        my_thread.start()

    def Calc_result(self, result, calc_id):
        self.thread_active = False
        self.calculate_button.setEnabled(True)

        if isinstance(result, E.ChemError):
            error_box = QtWidgets.QMessageBox(self)
            error_box.setIcon(QtWidgets.QMessageBox.Critical)
            error_box.setWindowTitle(E.Error_Dictionary.get(result.code[:1], "Error"))
            error_box.setText(f"Error {result.code}: {E.ERROR_MESSAGES.get(result.code, 'Unknown error')}")
            error_box.setInformativeText(f"Details: {result.message}\nFormula: {result.equation}")
            error_box.setStandardButtons(QtWidgets.QMessageBox.Ok)
            error_box.exec()
            self.display.clear()
            return

        self.last_result = format_result(result)
        if self.show_working.isChecked():
            self.display.setPlainText(f"Working:\n{result.derivation}\n\n{self.last_result}")
        else:
            self.display.setPlainText(self.last_result)

    def copy_result(self):
        if self.last_result:
            pyperclip.copy(self.last_result)

    def update_darkmode(self):
        if self.setting_value_list["darkmode"] == True:
            self.setStyleSheet("background-color: #121212; color: white;")
            self.display.setStyleSheet("background-color: #1e1e1e; color: white; font-family: monospace;")
        else:
            self.setStyleSheet("")
            self.display.setStyleSheet("font-family: monospace;")

    def open_settings(self):
        settings_dialog = SettingsDialog(self)
        settings_dialog.exec()  # modal

        # Reload settings after the dialog closes
        self.setting_value_list = config_manager.load_setting_value("all")
        self.update_darkmode()


def format_result(result):
    """'Mass: 36.03 g' style line for the display and clipboard."""
    label = result.variable or "Result"
    if label.isidentifier() and label.islower():
        label = label.replace("_", " ").capitalize()  # 'molar_mass' -> 'Molar mass'
    unit = f" {result.unit}" if result.unit else ""
    return f"{label}: {result.formatted_value}{unit}"


def main(catalog=None, atomic_masses=None):
    app = QtWidgets.QApplication(sys.argv)
    if catalog is None:
        catalog = Catalog.load_catalog()
    if atomic_masses is None:
        atomic_masses = Catalog.load_atomic_masses()
    window = CalculatorWindow(catalog, atomic_masses)
    window.show()
    sys.exit(app.exec())
