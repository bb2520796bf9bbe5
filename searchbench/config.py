from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

MODES: tuple[str, ...] = ("standard", "typing")


@dataclass(frozen=True)
class BenchmarkConfig:
    """Settings for a single benchmark run against one search backend."""

    address: str
    index: str
    backend: str
    mode: str = "standard"
    concurrency: int = 10
    output_dir: Path = Path("results")

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}, got {self.mode!r}")
        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if not isinstance(self.output_dir, Path):
            object.__setattr__(self, "output_dir", Path(self.output_dir))

    def describe(self) -> str:
        return (
            f"backend={self.backend} address={self.address} index={self.index} "
            f"mode={self.mode} concurrency={self.concurrency} output={self.output_dir}"
        )


__all__ = ["BenchmarkConfig", "MODES"]
