from config import SECONDS_IN_MINUTE

# --- Segment Kinds ---
GAMETIME = 'Gametime'
BREAKTIME = 'Breaktime'
DOWNTIME = 'Downtime'


class Segment:
    """One timed unit of the day: a quarter, a break or the downtime between games.

    Everything except ``time_left`` is fixed when the segment is built.
    ``time_left`` is the live countdown and is mutated in place by the clock.
    """

    def __init__(self, kind, section_name, full_name, duration_seconds,
                 warn_threshold_seconds, warn_message, end_message,
                 game_number=None, next_game=None):
        self.kind = kind
        self.section_name = section_name
        self.full_name = full_name
        self.duration_seconds = duration_seconds
        self.warn_threshold_seconds = warn_threshold_seconds
        self.warn_message = warn_message
        self.end_message = end_message
        self.game_number = game_number
        self.next_game = next_game
        self.time_left = duration_seconds

    def to_dict(self):
        return {
            'kind': self.kind,
            'section_name': self.section_name,
            'full_name': self.full_name,
            'game_number': self.game_number,
            'next_game': self.next_game,
            'duration_seconds': self.duration_seconds,
            'time_left': self.time_left,
            'warn_threshold_seconds': self.warn_threshold_seconds,
            'warn_message': self.warn_message,
            'end_message': self.end_message,
        }

    def __repr__(self):
        return f"Segment({self.full_name!r}, {self.time_left}/{self.duration_seconds}s)"


def to_seconds(minutes):
    """Converts a duration in minutes to whole seconds."""
    return int(round(minutes * SECONDS_IN_MINUTE))


# --- Builder ---

def build_timeline(settings):
    """
    Expands a settings record into the ordered list of segments for the day.

    Quarters come from play_times, the break after quarter i from break_times[i]
    (quarters without an entry get no break), and one downtime segment sits
    between consecutive games. The settings must already be validated.
    """
    play_times = settings['play_times']
    break_times = settings['break_times']
    num_games = settings['num_games']
    warn_threshold = settings['warn_bell_time'] * SECONDS_IN_MINUTE
    last_quarter = len(play_times) - 1

    timeline = []
    for game in range(1, num_games + 1):
        for q, play_time in enumerate(play_times):
            ending = 'Game' if q == last_quarter else 'Quarter'
            timeline.append(Segment(
                GAMETIME,
                section_name=f"Q {q + 1}",
                full_name=f"Game {game} Q {q + 1}",
                duration_seconds=to_seconds(play_time),
                warn_threshold_seconds=warn_threshold,
                warn_message=f"{ending} ending soon!!!",
                end_message=f"{ending} over",
                game_number=game,
            ))

            if q < len(break_times):
                timeline.append(Segment(
                    BREAKTIME,
                    section_name=f"Break {q + 1}",
                    full_name=f"Game {game} Break {q + 1}",
                    duration_seconds=to_seconds(break_times[q]),
                    warn_threshold_seconds=warn_threshold,
                    warn_message="Next quarter starting soon!!!",
                    end_message="Break over",
                    game_number=game,
                ))

        # No downtime after the final game
        if game < num_games:
            timeline.append(Segment(
                DOWNTIME,
                section_name=f"Downtime {game}",
                full_name=f"Downtime {game}",
                duration_seconds=to_seconds(settings['down_time']),
                warn_threshold_seconds=warn_threshold,
                warn_message="Next game starting soon!!!",
                end_message="Downtime over",
                next_game=game + 1,
            ))

    return timeline


def timeline_names(timeline):
    return [segment.full_name for segment in timeline]


def find_segment_index(timeline, full_name):
    """Returns the index of the segment called full_name, or None."""
    for index, segment in enumerate(timeline):
        if segment.full_name == full_name:
            return index
    return None
