"""
model/assessment.py — Session-end aggregation
=============================================
Runs once when a measurement stops and turns the accumulated series into
the immutable `StressAssessment` shown to the user.

    1. RR series    fewer than 3 real intervals → 5 synthetic ones
                    (70 BPM ± 25 ms), flagged as SYNTHETIC_DATA
    2. Heart rate   median of rates inside [40, 240] BPM
    3. RMSSD, SDNN  on the series with abrupt (> 20 %) successive changes
                    removed; RMSSD outlier-suppressed, default 30 ms
    4. LF / HF iA   live evaluations from the last 20, keeping those taken
                    at quality ≥ 0.4 (all of them when fewer than 3 pass),
                    10 % trimmed mean; RR-based iA when there are none
    5. Ratio, respiration, stress level and stress state

The result always exists: every step has a documented default, and the
defaults that were used are listed in `fallbacks`.
"""

from dataclasses import dataclass, field

import numpy as np

from features.amplitude import (
    IAEvaluation,
    calculate_robust_mean,
    estimate_rr_instantaneous_amplitude,
)
from features.hr import aggregate_heart_rate_estimate
from features.hrv import calculate_sdnn, compute_hrv, estimate_rmssd
from features.respiration import estimate_respiration
from features.stats import validate_value
from ppg.peaks import remove_rr_outliers
from model.stress import (
    StressQuadrant,
    classify_quadrant,
    determine_stress_state,
    estimate_stress_level,
    lf_hf_ratio,
)
from utils.fallback import FallbackReason
from utils.logger import get_logger
from config import (
    AUDIO_SAMPLING_INTERVAL_MS,
    DEFAULT_HF_IA,
    DEFAULT_LF_IA,
    FALLBACK_HEART_RATE,
    FALLBACK_JITTER_MS,
    FALLBACK_MIN_RR,
    FALLBACK_RR_COUNT,
    HF_DISPLAY_RANGE,
    IA_FINAL_TRIM_PERCENT,
    IA_MIN_TRUSTED_POINTS,
    IA_RECENT_EVALUATIONS,
    LF_DISPLAY_RANGE,
    QUALITY_GATE,
)

logger = get_logger("model.assessment")


@dataclass(frozen=True)
class ScatterPoint:
    hf: float
    lf: float
    quadrant: StressQuadrant
    final: bool = False

    def to_dict(self) -> dict:
        return {
            "hf": round(self.hf, 2),
            "lf": round(self.lf, 2),
            "quadrant": self.quadrant.label,
            "colour": self.quadrant.colour,
            "final": self.final,
        }


@dataclass(frozen=True)
class StressAssessment:
    heart_rate_bpm: int
    rmssd_ms: int
    lf_ia: float
    hf_ia: float
    lf_hf_ratio: float
    respiration_rate: int | str
    stress_level: str
    stress_state: str
    sdnn_ms: float
    pnn50: float | None
    signal_quality: float | None
    rr_count: int
    used_synthetic_rr: bool
    fallbacks: tuple[str, ...] = field(default_factory=tuple)

    @property
    def quadrant(self) -> StressQuadrant:
        return classify_quadrant(self.lf_ia, self.hf_ia)

    def to_dict(self) -> dict:
        return {
            "heartRateBpm": self.heart_rate_bpm,
            "rmssdMs": self.rmssd_ms,
            "lfIA": round(self.lf_ia, 2),
            "hfIA": round(self.hf_ia, 2),
            "lfHfRatio": round(self.lf_hf_ratio, 2),
            "respirationRate": self.respiration_rate,
            "stressLevel": self.stress_level,
            "stressState": self.stress_state,
            "sdnnMs": round(self.sdnn_ms, 2),
            "pnn50": self.pnn50,
            "signalQuality": None if self.signal_quality is None else round(self.signal_quality, 2),
            "rrCount": self.rr_count,
            "usedSyntheticRr": self.used_synthetic_rr,
            "fallbacks": list(self.fallbacks),
        }


def synthesize_rr_intervals(
    rng: np.random.Generator | None = None,
    count: int = FALLBACK_RR_COUNT,
    heart_rate: int = FALLBACK_HEART_RATE,
    jitter_ms: float = FALLBACK_JITTER_MS,
) -> list[float]:
    """`count` plausible RR intervals around `heart_rate` with uniform jitter."""
    rng = rng if rng is not None else np.random.default_rng()
    base = 60000.0 / heart_rate
    return [float(base + j) for j in rng.uniform(-jitter_ms, jitter_ms, size=count)]


def _select_ia(evaluations: list[IAEvaluation]) -> tuple[float, float]:
    recent = evaluations[-IA_RECENT_EVALUATIONS:]
    trusted = [e for e in recent if e.quality >= QUALITY_GATE]
    if len(trusted) < IA_MIN_TRUSTED_POINTS:
        logger.debug("Only %d trusted iA evaluations — averaging all %d.", len(trusted), len(evaluations))
        trusted = evaluations
    lf = calculate_robust_mean([e.lf_ia for e in trusted], IA_FINAL_TRIM_PERCENT)
    hf = calculate_robust_mean([e.hf_ia for e in trusted], IA_FINAL_TRIM_PERCENT)
    return lf, hf


def build_assessment(
    rr_intervals,
    heart_rates,
    ia_evaluations: list[IAEvaluation] | None = None,
    audio=None,
    signal_quality: float | None = None,
    rng: np.random.Generator | None = None,
    sampling_interval_ms: float = AUDIO_SAMPLING_INTERVAL_MS,
) -> StressAssessment:
    """
    Aggregate one session's series into a `StressAssessment`.

    Parameters
    ----------
    rr_intervals   : list[float]          Accepted RR intervals (ms).
    heart_rates    : list[int]            Beat-to-beat heart rates (BPM).
    ia_evaluations : list[IAEvaluation]   Live iA evaluations, oldest first.
    audio          : list[float]          Audio amplitude samples.
    signal_quality : float | None         Latest PPG quality score.
    rng            : numpy Generator      Source for the synthetic RR jitter.
    """
    rr = [float(v) for v in (rr_intervals or [])]
    rates = [int(v) for v in (heart_rates or [])]
    evaluations = list(ia_evaluations or [])
    fallbacks: list[FallbackReason] = []

    used_synthetic = len(rr) < FALLBACK_MIN_RR
    if used_synthetic:
        logger.warning("Only %d RR intervals — generating %d synthetic intervals.", len(rr), FALLBACK_RR_COUNT)
        synthetic = synthesize_rr_intervals(rng)
        rr.extend(synthetic)
        rates.extend(int(round(60000.0 / v)) for v in synthetic)
        fallbacks.append(FallbackReason.SYNTHETIC_DATA)

    heart_rate = aggregate_heart_rate_estimate(rates)
    steady = remove_rr_outliers(rr)
    if len(steady) < len(rr):
        logger.info("Dropped %d abrupt RR changes before HRV.", len(rr) - len(steady))
    rmssd = estimate_rmssd(steady)
    hrv = compute_hrv(steady)

    if evaluations:
        lf_raw, hf_raw = _select_ia(evaluations)
    else:
        lf_est, hf_est = estimate_rr_instantaneous_amplitude(steady)
        lf_raw, hf_raw = lf_est.value, hf_est.value
        fallbacks.extend(e.reason for e in (lf_est, hf_est) if e.used_default)

    lf = validate_value(lf_raw, LF_DISPLAY_RANGE[0], LF_DISPLAY_RANGE[1], DEFAULT_LF_IA)
    hf = validate_value(hf_raw, HF_DISPLAY_RANGE[0], HF_DISPLAY_RANGE[1], DEFAULT_HF_IA)
    ratio = lf_hf_ratio(lf, hf)

    respiration = estimate_respiration(audio, sampling_interval_ms)

    fallbacks.extend(e.reason for e in (heart_rate, rmssd, respiration) if e.used_default)

    stress_level = estimate_stress_level(rmssd.value, ratio, lf, hf, signal_quality)
    stress_state = determine_stress_state(lf, hf, heart_rate.value, rmssd.value)

    reasons = tuple(dict.fromkeys(r.value for r in fallbacks))
    assessment = StressAssessment(
        heart_rate_bpm=heart_rate.value,
        rmssd_ms=rmssd.value,
        lf_ia=lf,
        hf_ia=hf,
        lf_hf_ratio=ratio,
        respiration_rate=respiration.value,
        stress_level=stress_level,
        stress_state=stress_state,
        sdnn_ms=hrv["sdnn_ms"] if hrv["valid"] else calculate_sdnn(steady),
        pnn50=hrv["pnn50"],
        signal_quality=signal_quality,
        rr_count=len(rr),
        used_synthetic_rr=used_synthetic,
        fallbacks=reasons,
    )
    logger.info(
        "Assessment — HR=%d BPM, RMSSD=%d ms, LF=%.1f, HF=%.1f, ratio=%.2f, resp=%s, level=%s, state=%s",
        assessment.heart_rate_bpm, assessment.rmssd_ms, lf, hf, ratio,
        assessment.respiration_rate, stress_level, stress_state,
    )
    return assessment
