"""
config.py — Centralised configuration & hyper-parameters
=========================================================
Every tunable constant in the project lives here so that the rest of the
codebase can import from a single source of truth.

Values are fixed at build time.  The stress thresholds below are the single
canonical table used by `model/stress.py`; earlier experiments used ratio
cut-offs (2.5 / 0.5) instead of the 2-D quadrant boundary, those are NOT
mixed in.
"""

# ─── Session Timing ──────────────────────────────────────────────────────────
MINIMUM_MEASUREMENT_SECONDS: int = 30    # stop() is rejected before this
AUTO_STOP_GRACE_SECONDS: int = 5         # Auto-finalise at minimum + grace
AUDIO_SAMPLING_INTERVAL_MS: int = 25     # Audio amplitude cadence (40 Hz)
PPG_SAMPLE_RATE_HZ: float = 30.0         # Assumed camera frame rate

# ─── Analysis Cadence ────────────────────────────────────────────────────────
# Heavy FFT-based work is re-run every N accepted samples, not per sample.
ANALYSIS_EVERY_N_SAMPLES: int = 10
IA_MIN_PPG_SAMPLES: int = 200            # Buffer length before live iA starts
QUALITY_MIN_PPG_SAMPLES: int = 30
QUALITY_WINDOW: int = 30

# ─── Frequency Bands (Hz) ────────────────────────────────────────────────────
LF_BAND: tuple[float, float] = (0.04, 0.15)
HF_BAND: tuple[float, float] = (0.15, 0.40)
RR_RESAMPLE_RATE_HZ: float = 4.0         # Uniform grid for RR spectral work
RR_RESAMPLE_LENGTH: int = 128

# ─── Instantaneous Amplitude ─────────────────────────────────────────────────
IA_OUTLIER_PERCENT: float = 20.0         # Total trim (half from each tail)
IA_FINAL_TRIM_PERCENT: float = 10.0      # Trim used when averaging iA series
IA_MIN_RR_INTERVALS: int = 10
IA_MIN_SIGNAL_SAMPLES: int = 50
# Display ranges and the empirical "typical maximum" of each raw band envelope
LF_DISPLAY_RANGE: tuple[float, float] = (5.0, 60.0)
HF_DISPLAY_RANGE: tuple[float, float] = (5.0, 50.0)
LF_TYPICAL_MAX: float = 50.0
HF_TYPICAL_MAX: float = 40.0
DEFAULT_LF_IA: float = 20.0
DEFAULT_HF_IA: float = 15.0
DEFAULT_LF_HF_RATIO: float = 1.5
# Only the most recent N iA evaluations are considered at session end, and of
# those only the ones taken while the signal quality was at least this good.
IA_RECENT_EVALUATIONS: int = 20
QUALITY_GATE: float = 0.4
IA_MIN_TRUSTED_POINTS: int = 3

# ─── Heartbeat Detection ─────────────────────────────────────────────────────
HEARTBEAT_MIN_SAMPLES: int = 15
HEARTBEAT_WINDOW_RANGE: tuple[int, int] = (5, 30)
HEARTBEAT_THRESHOLD_FLOOR: float = 2.0
HEARTBEAT_THRESHOLD_FACTOR: float = 1.5
HEARTBEAT_THRESHOLD_FACTOR_LOW_SNR: float = 2.0
HEARTBEAT_LOW_SNR: float = 5.0
REFRACTORY_MS: int = 250                 # 240 BPM hard ceiling

# ─── RR-Interval Validation ──────────────────────────────────────────────────
RR_CEILING_MS: float = 2000.0
RR_FLOOR_MS: float = 300.0
RR_MEDIAN_MIN_COUNT: int = 5
RR_MEDIAN_TOLERANCE: tuple[float, float] = (0.3, 1.7)
OFFLINE_RR_RANGE_MS: tuple[float, float] = (300.0, 1300.0)
LIVE_HR_RANGE_BPM: tuple[int, int] = (40, 180)
FINAL_HR_RANGE_BPM: tuple[int, int] = (40, 240)
DEFAULT_HEART_RATE: int = 70

# ─── HRV ─────────────────────────────────────────────────────────────────────
DEFAULT_RMSSD_MS: int = 30
RMSSD_VALID_RANGE: tuple[float, float] = (1.0, 200.0)
RMSSD_MAX_RELATIVE_CHANGE: float = 0.8
RMSSD_TRIM_FRACTION: float = 0.1
HRV_MIN_PEAKS: int = 5

# Synthetic RR series used when a session ends with almost no beats
FALLBACK_MIN_RR: int = 3
FALLBACK_RR_COUNT: int = 5
FALLBACK_HEART_RATE: int = 70
FALLBACK_JITTER_MS: float = 25.0

# ─── Respiration ─────────────────────────────────────────────────────────────
RESPIRATION_MIN_SAMPLES: int = 100
RESPIRATION_PEAK_THRESHOLD: float = 10.0
RESPIRATION_MIN_PEAK_DISTANCE: int = 20
RESPIRATION_RANGE: tuple[int, int] = (8, 25)
RESPIRATION_NO_DATA = "--"
RESPIRATION_DEFAULT_RANGE = "12-16"

# ─── Stress Classification ───────────────────────────────────────────────────
# Quadrant boundary in the (HF-iA, LF-iA) plane.
QUADRANT_LF_BOUNDARY: float = 25.0
QUADRANT_HF_BOUNDARY: float = 25.0
# Input validation ranges: (min, max, default)
STRESS_LF_LIMITS: tuple[float, float, float] = (5.0, 60.0, 20.0)
STRESS_HF_LIMITS: tuple[float, float, float] = (5.0, 50.0, 15.0)
STRESS_HR_LIMITS: tuple[float, float, float] = (40.0, 200.0, 70.0)
STRESS_RMSSD_LIMITS: tuple[float, float, float] = (1.0, 100.0, 30.0)
STRESS_RATIO_LIMITS: tuple[float, float, float] = (0.1, 10.0, 1.5)
# Refinements inside each quadrant
DEEP_RELAX_MAX_HR: float = 65.0
DEEP_RELAX_MIN_RMSSD: float = 50.0
PHYSICAL_STRONG_MIN_HR: float = 90.0
MENTAL_STRONG_MIN_HR: float = 85.0
MENTAL_STRONG_MAX_RMSSD: float = 20.0
# RMSSD score: strictly below each edge adds one point (0–4)
STRESS_RMSSD_SCORE_EDGES: tuple[float, ...] = (50.0, 40.0, 30.0, 20.0)
# LF/HF ratio score
STRESS_RATIO_VERY_HIGH: float = 3.0
STRESS_RATIO_HIGH: float = 2.0
STRESS_RATIO_LOW: float = 0.5
# Total-score upper bounds for each severity bucket (last bucket is open)
STRESS_LEVEL_BUCKETS: tuple[int, ...] = (0, 2, 4, 6, 8)

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "PPG Stress-State Estimation API"
API_VERSION = "0.1.0"
# Browser origins allowed to call the API (local capture page by default)
CORS_ALLOW_ORIGINS: tuple[str, ...] = ("http://localhost", "http://127.0.0.1")
