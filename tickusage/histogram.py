from __future__ import annotations

import io
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol


class InvalidArgumentError(ValueError):
    pass


class TextSink(Protocol):
    def write(self, s: str) -> Any: ...


@dataclass
class Bucket:
    """Inclusive integer range [min, max] and the number of values seen in it."""
    min: int
    max: int
    count: int = 0

    @property
    def label(self) -> str:
        if self.min == self.max:
            return str(self.min)
        return f"{self.min}-{self.max}"


def _round_half_up(x: float) -> int:
    # x >= 0; ties go up like Go's math.Round. Not int(x + 0.5), which
    # turns 0.49999999999999994 into 1.
    f = math.floor(x)
    return int(f) + (1 if x - f >= 0.5 else 0)


class Histogram:
    """
    Linear histogram counting integers between min and max (inclusive)
    in bucket_count equal-width buckets. Values outside the range are
    counted as underflow/overflow.

    Not thread-safe: callers sharing one histogram must serialize add().
    """

    def __init__(self, min: int, max: int, bucket_count: int) -> None:
        for name, v in (("min", min), ("max", max), ("bucket_count", bucket_count)):
            if isinstance(v, bool) or not isinstance(v, int):
                raise InvalidArgumentError(f"{name} must be an integer, got {v!r}")
        if bucket_count < 1:
            raise InvalidArgumentError(f"bucket_count must be >= 1, got {bucket_count}")
        if max < min:
            raise InvalidArgumentError(f"max ({max}) must be >= min ({min})")
        size = max - min + 1
        if bucket_count > size:
            raise InvalidArgumentError(
                f"bucket_count ({bucket_count}) exceeds the {size} values in [{min}, {max}]"
            )

        self.step: float = size / bucket_count
        # Edge i sits at min + floor(i * step), computed exactly.
        self.buckets: List[Bucket] = [
            Bucket(
                min=min + (i * size) // bucket_count,
                max=min + ((i + 1) * size) // bucket_count - 1,
            )
            for i in range(bucket_count)
        ]
        self.underflow = 0
        self.overflow = 0

    @property
    def min(self) -> int:
        return self.buckets[0].min

    @property
    def max(self) -> int:
        return self.buckets[-1].max

    @property
    def total(self) -> int:
        return self.underflow + self.overflow + sum(b.count for b in self.buckets)

    def add(self, value: int) -> None:
        if value < self.buckets[0].min:
            self.underflow += 1
            return
        if value > self.buckets[-1].max:
            self.overflow += 1
            return

        # The ideal index can't be used directly because bucket edges were
        # truncated. E.g. 10 buckets over [4, 50] gives step 4.7 and
        # buckets[2].min = int(4 + 9.4) = 13, but (13 - 4) / 4.7 = 1.91.
        # The guess is off by at most one bucket in either direction.
        i = int((value - self.buckets[0].min) / self.step)
        i = min(i, len(self.buckets) - 1)
        if value < self.buckets[i].min:
            i -= 1
        elif value > self.buckets[i].max:
            i += 1
        self.buckets[i].count += 1

    def _rows(self) -> List[tuple[str, int]]:
        rows = [(f"<{self.min}", self.underflow)]
        rows.extend((b.label, b.count) for b in self.buckets)
        rows.append((f">{self.max}", self.overflow))
        return rows

    def render(self, sink: TextSink, label_width: int = 0, bar_width: int = 20) -> None:
        """
        Write one line per row to sink: underflow, each bucket, overflow.

        label_width=0 sizes the label column to fit "lo-hi" for the widest
        bucket bounds. bar_width is the bar length used for the largest
        bucket count; underflow/overflow are scaled against the same count
        and may be longer. If every bucket is empty, underflow/overflow are
        scaled against the larger of the two. Exceptions raised by
        sink.write propagate and stop the output.

        Negative widths raise InvalidArgumentError before anything is written.
        """
        if label_width < 0:
            raise InvalidArgumentError(f"label_width must be >= 0, got {label_width}")
        if bar_width < 0:
            raise InvalidArgumentError(f"bar_width must be >= 0, got {bar_width}")

        max_count = max(b.count for b in self.buckets)
        if max_count == 0:
            max_count = max(self.underflow, self.overflow)

        if label_width == 0:
            nw = len(str(self.max + 1))
            label_width = 2 * nw + 1

        for label, count in self._rows():
            bar = ""
            if max_count > 0:
                bar = "#" * _round_half_up(count / max_count * bar_width)
            if bar:
                bar += f" {count}"
            sink.write(f"{label:>{label_width}} |{bar}\n")

    def to_text(self, label_width: int = 0, bar_width: int = 20) -> str:
        buf = io.StringIO()
        self.render(buf, label_width=label_width, bar_width=bar_width)
        return buf.getvalue()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "step": self.step,
            "underflow": self.underflow,
            "overflow": self.overflow,
            "buckets": [
                {"min": b.min, "max": b.max, "count": b.count}
                for b in self.buckets
            ],
        }

    def __repr__(self) -> str:
        return (
            f"Histogram(min={self.min}, max={self.max}, "
            f"bucket_count={len(self.buckets)}, total={self.total})"
        )
