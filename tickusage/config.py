from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from tickusage.histogram import Histogram

USERS_ENV = "TICKUSAGE_USERS"


@dataclass(frozen=True)
class HistogramConfig:
    min: int
    max: int
    bucket_count: int

    def build(self) -> Histogram:
        return Histogram(self.min, self.max, self.bucket_count)


@dataclass(frozen=True)
class UsageConfig:
    imports: HistogramConfig = field(default_factory=lambda: HistogramConfig(0, 100, 5))
    routes: HistogramConfig = field(default_factory=lambda: HistogramConfig(0, 2500, 10))
    ticks: HistogramConfig = field(default_factory=lambda: HistogramConfig(0, 5000, 10))

    # width in characters of the bar drawn for the largest bucket
    bar_width: int = 20
    # 0 = size labels from the histogram's range
    label_width: int = 0


def users_path_from_env(default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(USERS_ENV) or default
