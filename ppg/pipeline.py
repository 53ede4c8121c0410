"""
ppg/pipeline.py — Live PPG pipeline
===================================
Owns the PPG buffers of one measurement and runs the per-sample chain:

    sample ─► heartbeat detector                       (every sample)
           ─► signal-quality score                     (every 10, ≥ 30 samples)
           ─► template RR extraction ─► LF / HF iA      (every 10, ≥ 200 samples)
                                     ─► scatter point

Heavy analysis runs every `ANALYSIS_EVERY_N_SAMPLES` samples rather than on
every frame; the interval trades latency for throughput and has no effect
on correctness.
"""

import numpy as np

from ppg.peaks import HeartbeatDetector, HeartbeatEvent, extract_hrv_from_ppg
from features.amplitude import IAEvaluation, estimate_rr_instantaneous_amplitude
from features.quality import QualityAssessment, assess_ppg_quality
from model.stress import classify_quadrant
from model.assessment import ScatterPoint
from config import (
    ANALYSIS_EVERY_N_SAMPLES,
    IA_MIN_PPG_SAMPLES,
    PPG_SAMPLE_RATE_HZ,
    QUALITY_MIN_PPG_SAMPLES,
)
from utils.logger import get_logger

logger = get_logger("ppg.pipeline")


class PPGPipeline:
    """
    Stateful per-session PPG processor.

    Parameters
    ----------
    sample_rate_hz : float   Assumed acquisition rate of the brightness stream.
    """

    def __init__(self, sample_rate_hz: float = PPG_SAMPLE_RATE_HZ):
        self._fs = sample_rate_hz
        self.detector = HeartbeatDetector()
        self.reset()
        logger.info("PPGPipeline created — fs=%.1f Hz", sample_rate_hz)

    # ── Public API ───────────────────────────────────────────────────────────

    def add_sample(self, value: float, timestamp_ms: int) -> HeartbeatEvent | None:
        """Append one sample and run whatever analysis is due."""
        self.values.append(float(value))
        self.timestamps.append(int(timestamp_ms))

        event = self.detector.process(self.values, timestamp_ms)

        n = len(self.values)
        if n % ANALYSIS_EVERY_N_SAMPLES == 0:
            if n >= QUALITY_MIN_PPG_SAMPLES:
                self.quality = assess_ppg_quality(self.values)
            if n >= IA_MIN_PPG_SAMPLES:
                self._evaluate_ia()
        return event

    def _evaluate_ia(self) -> None:
        rr = extract_hrv_from_ppg(self.values, self._fs)
        lf, hf = estimate_rr_instantaneous_amplitude(rr)
        if lf.used_default or hf.used_default:
            logger.debug("iA skipped at %d samples (%d RR intervals).", len(self.values), len(rr))
            return

        quality = self.quality.quality if self.quality else 0.0
        self.ia_evaluations.append(IAEvaluation(lf.value, hf.value, quality))
        if np.isfinite(lf.value) and np.isfinite(hf.value) and lf.value > 0 and hf.value > 0:
            self.scatter.append(ScatterPoint(hf.value, lf.value, classify_quadrant(lf.value, hf.value)))

    @property
    def sample_count(self) -> int:
        return len(self.values)

    @property
    def last_timestamp_ms(self) -> int | None:
        return self.timestamps[-1] if self.timestamps else None

    @property
    def signal_quality(self) -> float | None:
        return self.quality.quality if self.quality else None

    def reset(self) -> None:
        """Clear all buffers (call at the start of each measurement)."""
        self.values: list[float] = []
        self.timestamps: list[int] = []
        self.quality: QualityAssessment | None = None
        self.ia_evaluations: list[IAEvaluation] = []
        self.scatter: list[ScatterPoint] = []
        self.detector.reset()
        logger.debug("PPGPipeline buffer cleared.")
