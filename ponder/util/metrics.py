import numpy as np


class RollingWindow:
    """Fixed-size window over the most recent samples of a measurement.

    Used for per-tick figures such as tick duration; once ``size`` samples
    have been recorded each new one evicts the oldest.
    """

    def __init__(self, size: int = 256) -> None:
        if size <= 0:
            raise ValueError(f"window size must be positive, got {size}")
        self.size = size
        self._buffer = np.zeros(size, dtype=np.float64)
        self._total = 0

    def record(self, value: float) -> None:
        self._buffer[self._total % self.size] = value
        self._total += 1

    @property
    def count(self) -> int:
        """Samples currently held (at most ``size``)."""
        return min(self._total, self.size)

    def values(self) -> np.ndarray:
        """Held samples, oldest first."""
        if self._total <= self.size:
            return self._buffer[: self._total].copy()
        head = self._total % self.size
        return np.roll(self._buffer, -head)

    @property
    def mean(self) -> float:
        if self.count == 0:
            return 0.0
        return float(self.values().mean())

    @property
    def peak(self) -> float:
        if self.count == 0:
            return 0.0
        return float(self.values().max())

    def percentiles(self, qs: tuple[float, ...] = (50, 95, 99)) -> tuple[float, ...]:
        if self.count == 0:
            return tuple(0.0 for _ in qs)
        return tuple(float(v) for v in np.percentile(self.values(), qs))

    def summary(self) -> str:
        if self.count == 0:
            return "no samples"
        p50, p95, p99 = self.percentiles()
        return f"n={self.count} p50={p50:.2f} p95={p95:.2f} p99={p99:.2f} max={self.peak:.2f}"
