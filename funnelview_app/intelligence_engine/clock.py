import pandas as pd

DEFAULT_TIMEZONE = "America/New_York"


class SystemClock:
    """
    Wall-clock time in the dashboard timezone. Period keys are local dates,
    so weekday names and period progress are read in the same zone.
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        self.timezone = timezone

    def now(self) -> pd.Timestamp:
        return pd.Timestamp.now(tz=self.timezone)


class FixedClock:
    """A clock frozen at one instant, for tests and replaying reports."""

    def __init__(self, instant):
        self._instant = pd.Timestamp(instant)

    def now(self) -> pd.Timestamp:
        return self._instant
