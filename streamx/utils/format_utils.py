import math


def format_time(seconds: float) -> str:
    """Clock-style time: HH:MM:SS once past an hour, else MM:SS. NaN/negative -> 00:00."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "00:00"
    s = int(seconds)
    hours = s // 3600
    minutes = (s % 3600) // 60
    seconds = s % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"

def format_rate(rate: float) -> str:
    if rate == 1:
        return "Normal (1x)"
    return f"{rate:g}x"

def progress_percent(position: float, duration: float) -> float:
    """Scrub bar fill width in percent, 0 while the duration is unknown."""
    if not duration or math.isnan(duration) or duration <= 0 or math.isnan(position):
        return 0.0
    return max(0.0, min(100.0, position / duration * 100))
