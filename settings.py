import copy
import json
import os
import re

from config import DEFAULT_SETTINGS, LEGACY_SETTING_KEYS

DAY_START_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def default_settings():
    return copy.deepcopy(DEFAULT_SETTINGS)


# --- Validation ---

def parse_day_start(day_start):
    """Parses 'HH:MM' or 'HH:MM:SS' into (hour, minute, second), or None."""
    if not isinstance(day_start, str):
        return None
    m = DAY_START_PATTERN.match(day_start.strip())
    if not m:
        return None
    hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return hour, minute, second


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_settings(settings):
    """Returns a list of human readable problems. An empty list means the record is usable."""
    errors = []

    if not settings.get('day_start'):
        errors.append("Day start time is not set.")
    elif parse_day_start(settings['day_start']) is None:
        errors.append(f"Invalid day start time: {settings['day_start']}")

    num_games = settings.get('num_games')
    if not isinstance(num_games, int) or isinstance(num_games, bool) or num_games < 1:
        errors.append("Number of games must be at least 1.")

    play_times = settings.get('play_times')
    if not play_times or not isinstance(play_times, list):
        errors.append("At least one quarter is required.")
    elif not all(_is_number(p) and p > 0 for p in play_times):
        errors.append("Quarter lengths must be positive numbers of minutes.")

    break_times = settings.get('break_times')
    if not isinstance(break_times, list):
        errors.append("Break times must be a list.")
    elif not all(_is_number(b) and b > 0 for b in break_times):
        errors.append("Break lengths must be positive numbers of minutes.")

    down_time = settings.get('down_time')
    if not _is_number(down_time) or down_time < 0:
        errors.append("Downtime must be zero or more minutes.")

    warn_bell_time = settings.get('warn_bell_time')
    if not _is_number(warn_bell_time) or warn_bell_time < 0:
        errors.append("Warning bell time must be zero or more minutes.")

    return errors


def can_start(settings):
    """The minimum a timeline needs before the day can be started."""
    return bool(settings.get('day_start')) and (settings.get('num_games') or 0) >= 1


# --- Form Parsing ---

def _parse_int(value, fallback):
    try:
        return int(float(str(value).strip())) or fallback
    except (TypeError, ValueError, OverflowError):
        return fallback


def _parse_float(value, fallback):
    try:
        return float(str(value).strip()) or fallback
    except (TypeError, ValueError):
        return fallback


def settings_from_form(form, base=None):
    """
    Builds a settings record from the settings dialog fields.

    The dialog only knows one quarter length, repeated quarters_per_game times,
    and a comma separated list of break lengths. Empty or unparsable fields
    fall back to the same defaults the dialog always used.
    """
    settings = copy.deepcopy(base) if base else default_settings()

    num_games = _parse_int(form.get('num_games'), 1)
    quarters_per_game = _parse_int(form.get('quarters_per_game'), 1)
    quarter_length = _parse_int(form.get('quarter_length'), 1)
    down_time = _parse_int(form.get('down_time'), 1)
    warn_bell_time = _parse_float(form.get('warn_bell_time'), 0.5)

    day_start = str(form.get('day_start') or '').strip()
    if day_start.count(':') == 1:
        day_start += ":00"  # Add seconds

    raw_breaks = form.get('break_times') or ''
    if isinstance(raw_breaks, list):
        raw_breaks = ','.join(str(b) for b in raw_breaks)
    break_times = [_parse_int(b, 0) for b in str(raw_breaks).split(',')]

    settings.update({
        'day_start': day_start,
        'num_games': num_games,
        'play_times': [quarter_length] * quarters_per_game,
        'break_times': [b for b in break_times if b > 0],
        'down_time': down_time,
        'warn_bell_time': warn_bell_time,
    })

    for flag in ('test_mode', 'lock_gametime_adjustments'):
        if flag in form:
            settings[flag] = parse_flag(form[flag])

    return settings


def parse_flag(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def settings_to_form(settings):
    """The inverse view used to fill the settings dialog."""
    play_times = settings.get('play_times') or [1]
    return {
        'num_games': settings.get('num_games'),
        'quarters_per_game': len(play_times),
        'day_start': (settings.get('day_start') or '')[:5],  # Remove seconds
        'quarter_length': play_times[0],
        'break_times': ','.join(str(b) for b in settings.get('break_times') or []),
        'down_time': settings.get('down_time'),
        'warn_bell_time': settings.get('warn_bell_time'),
        'test_mode': settings.get('test_mode', False),
        'lock_gametime_adjustments': settings.get('lock_gametime_adjustments', True),
    }


# --- Persistence ---

def normalize_keys(record):
    """Maps legacy camelCase keys onto the current names."""
    normalized = {}
    for key, value in record.items():
        normalized[LEGACY_SETTING_KEYS.get(key, key)] = value
    return normalized


def load_settings(path):
    """Loads the saved settings, falling back to the defaults for anything missing."""
    settings = default_settings()
    if not os.path.exists(path):
        return settings

    try:
        with open(path, 'r', encoding='utf-8') as f:
            saved = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Settings load error: {e}")
        return settings

    if not isinstance(saved, dict):
        print(f"Settings load error: expected an object in {path}")
        return settings

    settings.update({k: v for k, v in normalize_keys(saved).items() if k in settings})

    errors = validate_settings(settings)
    if errors:
        print(f"Saved settings rejected ({'; '.join(errors)}). Using defaults.")
        return default_settings()
    return settings


def save_settings(settings, path):
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(settings, f, ensure_ascii=False, indent=2)
    print(f"Settings saved to {path}")
