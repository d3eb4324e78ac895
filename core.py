import time
from collections import deque
from datetime import datetime, time as dtime

import pytz

from config import SETTINGS_FILE, SIGNAL_QUEUE_SIZE, TEST_MODE_TICK_MS, TICK_MS
import settings as settings_store
import signals
import timeline as timeline_builder

# Define UTC timezone for consistency
TIMEZONE = pytz.utc

# --- Run States ---
IDLE = 'Idle'
RUNNING = 'Running'
PAUSED = 'Paused'
COMPLETE = 'Complete'

NOT_STARTED = {
    'kind': 'NotStarted',
    'section_name': 'Not Started',
    'full_name': None,
    'game_number': None,
    'next_game': None,
    'duration_seconds': 0,
    'time_left': 0,
}


# --- Helpers ---

def format_time(seconds):
    """Formats seconds as MM:SS, with a leading minus once past zero."""
    sign = '-' if seconds < 0 else ''
    mins, secs = divmod(abs(int(seconds)), 60)
    return f"{sign}{mins:02d}:{secs:02d}"


def get_day_start_details(day_start, tz=TIMEZONE, now=None):
    """Time of day in the configured zone and how far away the day start is."""
    now = now.astimezone(tz) if now else datetime.now(tz)
    details = {
        'server_time_of_day': now.strftime("%H:%M:%S"),
        'day_start': day_start,
        'seconds_until_day_start': None,
    }
    parsed = settings_store.parse_day_start(day_start)
    if parsed:
        hour, minute, second = parsed
        start = tz.localize(datetime.combine(now.date(), dtime(hour, minute, second)))
        details['seconds_until_day_start'] = int((start - now).total_seconds())
    return details


class AdjustmentStack:
    """LIFO log of manual second deltas applied to the current segment."""

    def __init__(self):
        self._deltas = []

    def push(self, delta):
        self._deltas.append(delta)

    def pop(self):
        if not self._deltas:
            return None
        return self._deltas.pop()

    def clear(self):
        self._deltas = []

    def as_list(self):
        return list(self._deltas)

    def __len__(self):
        return len(self._deltas)


class SegmentClock:
    """
    Drives the countdown through the day's timeline.

    Ticks are owed on a fixed interval measured from an anchor taken on start or
    resume, so the n-th tick is due at anchor + n * interval no matter how late
    pump() is called. Every action delivers the ticks already owed before it
    changes anything, and nothing else mutates the clock.
    """

    def __init__(self, settings=None, now_fn=time.monotonic, tz=TIMEZONE):
        self.settings = settings_store.default_settings() if settings is None else dict(settings)
        self.tz = tz
        self._now = now_fn
        self._listeners = []
        self.signaler = signals.ThresholdSignaler()
        self.adjustments = AdjustmentStack()
        self.pending_signals = deque(maxlen=SIGNAL_QUEUE_SIZE)
        self.last_signal = None
        self._load_timeline()
        self._idle()

    # --- State Helpers ---

    def _load_timeline(self):
        self.timeline = timeline_builder.build_timeline(self.settings)

    def _idle(self):
        self.run_state = IDLE
        self.index = 0
        self.current_segment = None
        self.game_progress = {'current': 0, 'total': self.settings['num_games']}
        self._anchor = None
        self._ticks_delivered = 0

    def _load_segment(self, index):
        self.index = index
        self.current_segment = self.timeline[index]
        self.signaler.reset()
        self.adjustments.clear()  # Deltas only ever apply to the segment they were made on
        segment = self.current_segment
        if segment.game_number is not None:
            self.game_progress['current'] = segment.game_number
        else:
            self.game_progress['current'] = segment.next_game - 1

    def _start_ticking(self):
        self._anchor = self._now()
        self._ticks_delivered = 0

    def _stop_ticking(self):
        self._anchor = None
        self._ticks_delivered = 0

    def _emit(self, signal):
        self.last_signal = signal
        self.pending_signals.append(signal)
        for listener in list(self._listeners):
            listener(signal)

    @property
    def tick_ms(self):
        return TEST_MODE_TICK_MS if self.settings.get('test_mode') else TICK_MS

    @property
    def warning_zone(self):
        return self.signaler.zone

    def subscribe(self, listener):
        """Registers a callable that receives every Signal as it is emitted."""
        self._listeners.append(listener)

    def unsubscribe(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Tick Delivery ---

    def tick(self):
        """Counts the current segment down by one second and moves on when it runs out."""
        if self.run_state != RUNNING:
            return False

        segment = self.current_segment
        segment.time_left -= 1

        signal = self.signaler.evaluate(segment)
        if signal:
            self._emit(signal)

        if segment.time_left <= 0:
            next_index = self.index + 1
            if next_index < len(self.timeline):
                self._load_segment(next_index)
            else:
                self.index = next_index
                self.run_state = COMPLETE
                self._stop_ticking()
                print("Timeline complete.")
                self._emit(signals.Signal(signals.DAY_COMPLETE, "All games finished"))
        return True

    def pump(self):
        """Delivers every tick whose deadline has passed. Returns how many ran."""
        if self.run_state != RUNNING or self._anchor is None:
            return 0

        elapsed_ms = int(round((self._now() - self._anchor) * 1000))
        due = elapsed_ms // self.tick_ms - self._ticks_delivered
        delivered = 0
        while due > 0 and self.run_state == RUNNING:
            self._ticks_delivered += 1
            self.tick()
            delivered += 1
            due -= 1
        return delivered

    def seconds_until_next_tick(self):
        if self.run_state != RUNNING or self._anchor is None:
            return None
        deadline = self._anchor + (self._ticks_delivered + 1) * self.tick_ms / 1000.0
        return max(0.0, deadline - self._now())

    # --- Actions ---

    def start(self):
        if self.run_state != IDLE:
            return False

        if not settings_store.can_start(self.settings) or not self.timeline:
            self._emit(signals.Signal(signals.REJECTED, "Set schedule parameters first"))
            return False

        self.run_state = RUNNING
        self.game_progress = {'current': 1, 'total': self.settings['num_games']}
        self._load_segment(self.index)
        self._start_ticking()
        print(f"Timeline started at '{self.current_segment.full_name}'.")
        return True

    def pause(self):
        self.pump()
        if self.run_state != RUNNING:
            return False
        self.run_state = PAUSED
        self._stop_ticking()
        return True

    def resume(self):
        if self.run_state != PAUSED:
            return False
        self.run_state = RUNNING
        self._start_ticking()
        return True

    def toggle(self):
        """The start/pause button: start when idle, otherwise flip between paused and running."""
        if self.run_state == IDLE:
            return self.start()
        if self.run_state == PAUSED:
            return self.resume()
        return self.pause()

    def reset(self, settings=None):
        """Stops the day and rebuilds the timeline, applying new settings if given."""
        self._stop_ticking()
        if settings is not None:
            self.settings = dict(settings)
        self._load_timeline()
        self.adjustments.clear()
        self.signaler.reset()
        self._idle()
        self._emit(signals.Signal(signals.TIMELINE_RESET, "Timeline reset"))
        return True

    def jump_to(self, full_name):
        """Selects where to start or continue from. Not allowed while the clock is running."""
        self.pump()
        if self.run_state not in (IDLE, PAUSED):
            return False
        index = timeline_builder.find_segment_index(self.timeline, full_name)
        if index is None:
            return False
        self._load_segment(index)
        return True

    def can_adjust(self):
        if self.run_state != RUNNING:
            return False
        if self.settings.get('lock_gametime_adjustments') and \
                self.current_segment.kind == timeline_builder.GAMETIME:
            return False
        return True

    def add_seconds(self, delta):
        """Adds (or with a negative delta removes) time from the running segment."""
        self.pump()
        if self.run_state != RUNNING:
            return False
        if not self.can_adjust():
            self._emit(signals.Signal(signals.REJECTED, "Time can't be adjusted during gametime"))
            return False

        segment = self.current_segment
        target = min(max(segment.time_left + delta, 0), segment.duration_seconds)
        applied = target - segment.time_left
        self.adjustments.push(applied)
        segment.time_left = target
        self.signaler.observe(segment)
        self._emit(signals.Signal(signals.ADJUSTED, f"Added {applied}s to timeline",
                                  segment.time_left, segment.full_name))
        return True

    def undo_last_adjustment(self):
        self.pump()
        delta = self.adjustments.pop()
        if delta is None:
            return False

        segment = self.current_segment
        segment.time_left -= delta
        self.signaler.observe(segment)
        self._emit(signals.Signal(signals.ADJUSTMENT_REVERTED, "Timeline adjustment reverted",
                                  segment.time_left, segment.full_name))
        return True

    def ring_bell(self):
        self._emit(signals.Signal(signals.MANUAL_BELL, "Bell"))
        return True

    # --- Read Side ---

    def drain_signals(self):
        drained = list(self.pending_signals)
        self.pending_signals.clear()
        return drained

    def segment_details(self):
        if self.current_segment is None:
            return dict(NOT_STARTED)
        segment = self.current_segment
        return {
            'kind': segment.kind,
            'section_name': segment.section_name,
            'full_name': segment.full_name,
            'game_number': segment.game_number,
            'next_game': segment.next_game,
            'duration_seconds': segment.duration_seconds,
            'time_left': segment.time_left,
        }

    def snapshot(self):
        segment = self.segment_details()
        state = {
            'run_state': self.run_state,
            'is_running': self.run_state == RUNNING,
            'is_paused': self.run_state == PAUSED,
            'index': self.index,
            'segment': segment,
            'time_display': format_time(segment['time_left']),
            'warning_zone': self.warning_zone,
            'game_progress': dict(self.game_progress),
            'timeline': timeline_builder.timeline_names(self.timeline),
            'last_signal': signals.signal_to_dict(self.last_signal),
            'can_adjust': self.can_adjust(),
            'can_jump': self.run_state in (IDLE, PAUSED),
            'can_edit_settings': self.run_state != RUNNING,
            'undo_available': len(self.adjustments) > 0,
            'test_mode': bool(self.settings.get('test_mode')),
            'tick_ms': self.tick_ms,
        }
        state.update(get_day_start_details(self.settings.get('day_start'), self.tz))
        return state


# --- Console Driver ---

def print_signal(signal):
    line = f"[{signal.kind}]"
    if signal.full_name:
        line += f" {signal.full_name}"
    if signal.message:
        line += f" - {signal.message}"
    if signal.time_left is not None:
        line += f" ({format_time(signal.time_left)})"
    print(line)


def run_console(clock):
    """Runs the day in the terminal until the last segment ends."""
    clock.subscribe(print_signal)
    if not clock.start():
        return False

    last_shown = None
    while clock.run_state == RUNNING:
        time.sleep(clock.seconds_until_next_tick() or 0)
        clock.pump()
        segment = clock.segment_details()
        shown = (segment['full_name'], segment['time_left'])
        if shown != last_shown and segment['time_left'] % 10 == 0:
            print(f"{segment['full_name']}: {format_time(segment['time_left'])}")
        last_shown = shown
    return True


if __name__ == "__main__":
    saved = settings_store.load_settings(SETTINGS_FILE)
    print(f"Running {saved['num_games']} game(s) using settings from '{SETTINGS_FILE}'.")
    try:
        run_console(SegmentClock(saved))
    except KeyboardInterrupt:
        print("\nStopped.")
