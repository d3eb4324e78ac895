import os
import threading

import pytz
from dotenv import load_dotenv
from flask import Flask, request, jsonify

import config
import core  # Import the core logic file
import settings as settings_store
import signals

# Load environment variables from .env file
load_dotenv()

# --- CONFIGURATION ---
SETTINGS_FILE = os.getenv('SETTINGS_FILE', config.SETTINGS_FILE)
TIMEZONE_NAME = os.getenv('TIMEZONE', config.TIMEZONE_NAME)

try:
    TIMEZONE = pytz.timezone(TIMEZONE_NAME)
except pytz.exceptions.UnknownTimeZoneError:
    print(f"Unknown TIMEZONE '{TIMEZONE_NAME}'. Using UTC.")
    TIMEZONE = pytz.utc

# Saved settings only reach the clock on the next reset
saved_settings = settings_store.load_settings(SETTINGS_FILE)
if os.getenv('TEST_MODE'):
    saved_settings['test_mode'] = settings_store.parse_flag(os.getenv('TEST_MODE'))

clock = core.SegmentClock(saved_settings, tz=TIMEZONE)
clock_lock = threading.Lock()

app = Flask(__name__)


def _state_response():
    clock.pump()
    state = clock.snapshot()
    state['signals'] = [signals.signal_to_dict(s) for s in clock.drain_signals()]
    return state


def _action(action, error, *args):
    """Runs a clock action under the lock and returns the new state with it."""
    with clock_lock:
        clock.pump()
        ok = action(*args)
        state = _state_response()
    if ok:
        return jsonify({'success': True, 'state': state})
    return jsonify({'success': False, 'error': error, 'state': state}), 400


# --- API ENDPOINTS ---

@app.route('/api/state', methods=['GET'])
def get_state():
    """Endpoint for the clients to poll the current clock state."""
    with clock_lock:
        state = _state_response()
    return jsonify(state)


@app.route('/api/timeline', methods=['GET'])
def get_timeline():
    """Endpoint listing every segment of the day, for the 'start from' selector."""
    with clock_lock:
        segments = [segment.to_dict() for segment in clock.timeline]
    return jsonify({'timeline': segments})


@app.route('/api/start', methods=['POST'])
def start_route():
    return _action(clock.start, 'Set schedule parameters first.')


@app.route('/api/pause', methods=['POST'])
def pause_route():
    return _action(clock.pause, 'Timeline is not running.')


@app.route('/api/resume', methods=['POST'])
def resume_route():
    return _action(clock.resume, 'Timeline is not paused.')


@app.route('/api/toggle', methods=['POST'])
def toggle_route():
    """Endpoint behind the single start/pause/resume button."""
    return _action(clock.toggle, 'Timeline is already complete.')


@app.route('/api/reset', methods=['POST'])
def reset_route():
    """Endpoint to stop the day and rebuild the timeline from the saved settings."""
    return _action(lambda: clock.reset(saved_settings), 'Reset failed.')


@app.route('/api/jump', methods=['POST'])
def jump_route():
    """Endpoint to pick the segment to start or continue from."""
    data = request.get_json(silent=True) or {}
    full_name = data.get('full_name')
    if not full_name:
        return jsonify({'success': False, 'error': 'full_name is required.'}), 400
    return _action(clock.jump_to, f"Cannot jump to '{full_name}' now.", full_name)


@app.route('/api/adjust_time', methods=['POST'])
def adjust_time():
    """Endpoint to add or remove time from the running segment."""
    try:
        data = request.get_json(silent=True) or {}
        adjustment_seconds = int(data.get('adjustment_seconds', 0))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'Invalid request format.'}), 400
    return _action(clock.add_seconds, 'Time cannot be adjusted right now.', adjustment_seconds)


@app.route('/api/undo', methods=['POST'])
def undo_route():
    """Endpoint to revert the last manual time adjustment."""
    return _action(clock.undo_last_adjustment, 'Nothing to undo.')


@app.route('/api/bell', methods=['POST'])
def bell_route():
    return _action(clock.ring_bell, 'Bell failed.')


@app.route('/api/settings', methods=['GET'])
def get_settings():
    return jsonify({
        'settings': saved_settings,
        'form': settings_store.settings_to_form(saved_settings),
    })


@app.route('/api/settings', methods=['POST'])
def save_settings_route():
    """Endpoint to save the settings dialog. Changes apply on the next reset."""
    global saved_settings

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Invalid request format.'}), 400

    with clock_lock:
        clock.pump()
        if clock.run_state == core.RUNNING:
            return jsonify({'success': False, 'error': 'Pause the timeline before changing settings.'}), 400

        new_settings = settings_store.settings_from_form(data, base=saved_settings)
        errors = settings_store.validate_settings(new_settings)
        if errors:
            return jsonify({'success': False, 'errors': errors}), 400

        try:
            settings_store.save_settings(new_settings, SETTINGS_FILE)
        except OSError as e:
            print(f"Settings save error: {e}")
            return jsonify({'success': False, 'error': 'Could not save settings.'}), 500

        saved_settings = new_settings

    return jsonify({
        'success': True,
        'message': 'Settings saved. Reset timeline to apply changes.',
        'settings': saved_settings,
    })


@app.route('/api/settings/defaults', methods=['POST'])
def default_settings_route():
    """Endpoint returning the factory settings to refill the dialog. Nothing is saved."""
    defaults = settings_store.default_settings()
    return jsonify({'settings': defaults, 'form': settings_store.settings_to_form(defaults)})


if __name__ == '__main__':
    host = os.getenv('HOST', config.HOST)
    port = int(os.getenv('PORT', config.PORT))
    print(f"Match clock serving on {host}:{port} (timezone {TIMEZONE_NAME}).")
    app.run(host=host, port=port, threaded=True)
