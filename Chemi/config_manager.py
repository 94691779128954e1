# config_manager.py
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

config_json = Path(__file__).resolve().parent.parent / "config.json"
ui_strings = Path(__file__).resolve().parent.parent / "ui_strings.json"

# Used when config.json is missing, unreadable or lacks a key
DEFAULT_SETTINGS = {
    "decimal_places": 4,
    "molar_mass_decimals": 3,
    "show_working": True,
    "darkmode": False,
    "gas_constant": 0.08206,
    "debug": False,
}


def load_setting_value(key_value):
    try:
        with open(config_json, 'r', encoding='utf-8') as f:
            settings_dict = json.load(f)

    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s (%s); using default settings", config_json, e)
        settings_dict = {}

    settings_dict = {**DEFAULT_SETTINGS, **settings_dict}

    if key_value == "all":
        return settings_dict

    else:
        return settings_dict.get(key_value, 0)


def load_setting_description(key_value):
    try:
        with open(ui_strings, 'r', encoding='utf-8') as f:
            settings_dict = json.load(f)

    except (FileNotFoundError, json.JSONDecodeError):
        return {}


    if key_value == "all":
        return settings_dict

    else:
        return settings_dict.get(key_value, 0)


def save_setting(settings_dict):
    try:
        with open(config_json, 'w', encoding='utf-8') as f:
            json.dump(settings_dict, f, indent=4)
            return settings_dict

    except OSError as e:
        logger.error("Could not save settings to %s: %s", config_json, e)
        return {}
