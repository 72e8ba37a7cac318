"""Aggregation of frame/chunk counters into one percentage and an ETA.

Rendering and encoding share a fixed split of the bar (60/35 by default) and
merging takes the remainder. The split is a heuristic, so the model keeps a
high-water mark: the reported percent never goes backwards when a new chunk
starts rendering after the previous one was encoded.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from .contracts import ExportPhase, ExportProgress


class ProgressWeights(BaseModel):
    render: float = Field(60.0, ge=0, description="Percent of the bar covered by rendering")
    encode: float = Field(35.0, ge=0, description="Percent of the bar covered by encoding")
    merge: float = Field(5.0, ge=0, description="Percent of the bar covered by merging")

    @model_validator(mode="after")
    def _check_total(self) -> "ProgressWeights":
        total = self.render + self.encode + self.merge
        if abs(total - 100.0) > 1e-6:
            raise ValueError(f"progress weights must sum to 100, got {total}")
        return self


def phase_percent(
    phase: ExportPhase,
    current_frame: int,
    total_frames: int,
    weights: ProgressWeights | None = None,
) -> float:
    """Percent for a phase given cumulative frames, without the high-water mark."""
    w = weights or ProgressWeights()
    fraction = min(max(current_frame / total_frames, 0.0), 1.0) if total_frames > 0 else 0.0
    if phase == ExportPhase.RENDERING:
        return fraction * w.render
    if phase == ExportPhase.ENCODING:
        return w.render + fraction * w.encode
    if phase == ExportPhase.MERGING:
        return w.render + w.encode
    if phase == ExportPhase.DONE:
        return 100.0
    return 0.0


def eta_ms(elapsed_seconds: float, fraction_complete: float) -> int | None:
    """Remaining time from a linear extrapolation of elapsed time."""
    if fraction_complete <= 0:
        return None
    remaining = elapsed_seconds / fraction_complete - elapsed_seconds
    return max(0, round(remaining * 1000))


class ProgressModel:
    """Builds monotonic ``ExportProgress`` snapshots for one session."""

    def __init__(self, total_frames: int = 0, total_chunks: int = 0, weights: ProgressWeights | None = None):
        self.weights = weights or ProgressWeights()
        self.total_frames = total_frames
        self.total_chunks = total_chunks
        self._high_water = 0.0

    @property
    def percent(self) -> float:
        return self._high_water

    def reset(self, total_frames: int, total_chunks: int) -> None:
        self.total_frames = total_frames
        self.total_chunks = total_chunks
        self._high_water = 0.0

    def snapshot(
        self,
        phase: ExportPhase,
        current_frame: int,
        current_chunk: int,
        elapsed_seconds: float | None = None,
    ) -> ExportProgress:
        raw = phase_percent(phase, current_frame, self.total_frames, self.weights)
        self._high_water = min(100.0, max(self._high_water, raw))
        percent = round(self._high_water, 1)

        eta = None
        if elapsed_seconds is not None and current_frame > 0 and not phase.is_terminal:
            # frames done, not the weighted bar: encoding chunk 0 already shows 60%+
            eta = eta_ms(elapsed_seconds, min(1.0, current_frame / max(self.total_frames, 1)))

        return ExportProgress(
            phase=phase,
            current_frame=current_frame,
            total_frames=self.total_frames,
            current_chunk=current_chunk,
            total_chunks=self.total_chunks,
            percent=percent,
            estimated_time_remaining_ms=eta,
        )

    def terminal(self, phase: ExportPhase, current_frame: int, current_chunk: int, error: str | None = None) -> ExportProgress:
        """Snapshot for ``error``/``cancelled``; percent stays where it stopped."""
        return ExportProgress(
            phase=phase,
            current_frame=current_frame,
            total_frames=self.total_frames,
            current_chunk=current_chunk,
            total_chunks=self.total_chunks,
            percent=round(self._high_water, 1),
            error=error,
        )
