from collections import namedtuple

from config import PIP_WINDOW_SECONDS, HOOTER_WINDOW_SECONDS

# --- Signal Types ---
# Emitted by the clock. The presentation layer owns the sound and banners.
PRE_WARNING_PIP = 'PreWarningPip'
WARNING_ENTERED = 'WarningEntered'
HOOTER_PIP = 'HooterPip'
ENDED = 'Ended'
REJECTED = 'Rejected'
ADJUSTED = 'Adjusted'
ADJUSTMENT_REVERTED = 'AdjustmentReverted'
TIMELINE_RESET = 'TimelineReset'
DAY_COMPLETE = 'DayComplete'
MANUAL_BELL = 'ManualBell'

Signal = namedtuple('Signal', ['kind', 'message', 'time_left', 'full_name'],
                    defaults=(None, None, None))

# --- Zones ---
ZONE_CLEAR = 'clear'
ZONE_PRE_WARNING = 'pre_warning'
ZONE_WARNING = 'warning'
ZONE_HOOTER = 'hooter'
ZONE_ENDED = 'ended'


def classify_zone(time_left, threshold):
    """Maps remaining seconds to a zone, checked from the end of the segment up."""
    if time_left <= 0:
        return ZONE_ENDED
    if time_left <= HOOTER_WINDOW_SECONDS:
        return ZONE_HOOTER
    if time_left <= threshold:
        return ZONE_WARNING
    if time_left <= threshold + PIP_WINDOW_SECONDS:
        return ZONE_PRE_WARNING
    return ZONE_CLEAR


class ThresholdSignaler:
    """
    Turns the remaining time of a segment into pip/warning/hooter signals.

    Pip zones fire on every evaluation. The warning and ended zones fire once
    on entry and re-arm when the time is pushed back above them.
    """

    def __init__(self):
        self.warned = False
        self.ended = False
        self.zone = ZONE_CLEAR

    def reset(self):
        self.warned = False
        self.ended = False
        self.zone = ZONE_CLEAR

    def observe(self, segment):
        """Re-arms the once-only zones after a manual change, without signalling."""
        self.zone = classify_zone(segment.time_left, segment.warn_threshold_seconds)
        if segment.time_left > segment.warn_threshold_seconds:
            self.warned = False
        if segment.time_left > 0:
            self.ended = False

    def evaluate(self, segment):
        time_left = segment.time_left
        threshold = segment.warn_threshold_seconds
        self.zone = classify_zone(time_left, threshold)

        if time_left > threshold:
            self.warned = False
        if time_left > 0:
            self.ended = False

        if self.zone == ZONE_PRE_WARNING:
            return Signal(PRE_WARNING_PIP, time_left=time_left, full_name=segment.full_name)

        if self.zone == ZONE_WARNING:
            if self.warned:
                return None
            self.warned = True
            return Signal(WARNING_ENTERED, segment.warn_message, time_left, segment.full_name)

        if self.zone == ZONE_HOOTER:
            return Signal(HOOTER_PIP, time_left=time_left, full_name=segment.full_name)

        if self.zone == ZONE_ENDED:
            if self.ended:
                return None
            self.ended = True
            return Signal(ENDED, segment.end_message, time_left, segment.full_name)

        return None


def signal_to_dict(signal):
    if signal is None:
        return None
    return dict(signal._asdict())
