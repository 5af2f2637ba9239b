from .series import AverageSeries, Kind, RecordedPoint, Series
from .settings import FrequencyRange, FrequencySettings

__all__ = [
    "AverageSeries",
    "Kind",
    "RecordedPoint",
    "Series",
    "FrequencyRange",
    "FrequencySettings",
]
