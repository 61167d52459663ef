"""Wall-clock statistics for offline renders."""

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class RenderTiming:
    """Timing of one render.

    Attributes:
        elapsed_seconds: Wall-clock duration.
        num_pixels: width * height.
        samples: Rays per pixel.
    """

    elapsed_seconds: float
    num_pixels: int
    samples: int

    @classmethod
    def measure(cls, start: float, end: float, width: int, height: int, samples: int) -> "RenderTiming":
        """Build a RenderTiming from two time.perf_counter() readings."""
        return cls(elapsed_seconds=end - start, num_pixels=width * height, samples=samples)

    @property
    def micros_per_pixel(self) -> float:
        if self.num_pixels == 0:
            return 0.0
        return self.elapsed_seconds * 1e6 / self.num_pixels

    @property
    def nanos_per_sample(self) -> float:
        total_samples = self.num_pixels * self.samples
        if total_samples == 0:
            return 0.0
        return self.elapsed_seconds * 1e9 / total_samples

    def summary_lines(self) -> list[str]:
        """The three report lines printed by the offline renderer."""
        return [
            f"{self.elapsed_seconds:>6.2f} seconds",
            f"{self.micros_per_pixel:>6.2f} micros/pixel",
            f"{self.nanos_per_sample:>6.0f} nanos/sample",
        ]


class Stopwatch:
    """Context manager recording elapsed wall-clock time.

    Example:
        >>> with Stopwatch() as watch:
        ...     pass
        >>> watch.elapsed >= 0.0
        True
    """

    def __init__(self) -> None:
        self.start = 0.0
        self.end = 0.0

    def __enter__(self) -> "Stopwatch":
        self.start = time.perf_counter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.end = time.perf_counter()

    @property
    def elapsed(self) -> float:
        return self.end - self.start
