# config.py

# --- SCHEDULE DEFAULTS ---
# Factory settings for a match day. This is the flat record that gets saved
# to SETTINGS_FILE and handed to the timeline builder on reset.
DEFAULT_SETTINGS = {
    'day_start': "09:00:00",
    'num_games': 5,
    'play_times': [1, 1, 10, 10],  # Minutes per quarter, one entry per quarter
    'break_times': [1, 2, 2],  # Minutes for the break after quarter i
    'down_time': 2,  # Minutes between games
    'warn_bell_time': 0.5,  # Minutes before the end of a segment
    'test_mode': False,
    'lock_gametime_adjustments': True,
}

# Keys written by the old browser version of the clock
LEGACY_SETTING_KEYS = {
    'dayStart': 'day_start',
    'numGames': 'num_games',
    'playTimes': 'play_times',
    'breakTimes': 'break_times',
    'downTime': 'down_time',
    'warnBellTime': 'warn_bell_time',
    'testMode': 'test_mode',
}

# --- CLOCK CONSTANTS ---
SECONDS_IN_MINUTE = 60
TICK_MS = 1000
TEST_MODE_TICK_MS = 200
PIP_WINDOW_SECONDS = 5  # Pre-warning pips above the warn threshold
HOOTER_WINDOW_SECONDS = 5  # Final pips before the hooter
SIGNAL_QUEUE_SIZE = 100

# --- PROCESS CONFIGURATION ---
# Overridable from the environment (.env), see server.py
SETTINGS_FILE = "settings.json"
TIMEZONE_NAME = "UTC"
HOST = "0.0.0.0"
PORT = 5000
