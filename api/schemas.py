"""
api/schemas.py — Pydantic request & response models
=====================================================
Centralises all data-transfer objects so that FastAPI can auto-generate
OpenAPI docs and perform input validation for free.
"""

from pydantic import BaseModel, Field
from typing import Optional, Union


# ── Request Models ───────────────────────────────────────────────────────────


class PPGSample(BaseModel):
    """One brightness value and its session-relative timestamp."""
    value: float = Field(..., allow_inf_nan=False)
    timestamp_ms: int = Field(..., ge=0, description="Milliseconds since measurement start.")


class PPGBatch(BaseModel):
    samples: list[PPGSample] = Field(..., min_length=1)


class AudioBatch(BaseModel):
    """Audio amplitudes polled at the fixed 25 ms cadence, oldest first."""
    values: list[float] = Field(..., min_length=1)


# ── Response Models ──────────────────────────────────────────────────────────


class PushResponse(BaseModel):
    accepted: int
    status: str
    heart_rate_bpm: Optional[int] = None


class StatusResponse(BaseModel):
    status: str                          # "idle" | "measuring" | "complete"
    message: str
    elapsed_seconds: float = 0.0
    ppg_samples: int = 0
    audio_samples: int = 0
    heart_rate_bpm: Optional[int] = None
    signal_quality: Optional[float] = None
    rr_count: int = 0


class ScatterPointData(BaseModel):
    hf: float
    lf: float
    quadrant: str
    colour: str
    final: bool = False


class ScatterResponse(BaseModel):
    points: list[ScatterPointData]


class AssessmentResponse(BaseModel):
    """End-of-measurement record (camelCase keys for the rendering layer)."""
    disclaimer: str
    heartRateBpm: int
    rmssdMs: int
    lfIA: float
    hfIA: float
    lfHfRatio: float
    respirationRate: Union[int, str]
    stressLevel: str
    stressState: str
    sdnnMs: float
    pnn50: Optional[float] = None
    signalQuality: Optional[float] = None
    rrCount: int
    usedSyntheticRr: bool
    fallbacks: list[str]
