"""
api/session.py — Measurement Session Manager
============================================
Owns the buffers of one PPG / audio measurement and its start → stop
lifecycle.  The FastAPI routes (or the demo CLI) push samples into it and
read the live status, the scatter stream and the final assessment.

Thread safety
-------------
Samples may arrive from request handlers and from the audio sampler
thread at the same time.  All mutable state is protected by `_lock`.
The sampler is only *signalled* while the lock is held and joined after it
is released, since its callback takes the same lock.

Lifecycle
---------
    1. `start()`            — clear buffers, start the optional audio sampler.
    2. `push_ppg(...)` / `push_audio(...)` while measuring.
    3. `stop()`             — rejected (None) before the 30 s minimum;
                              afterwards runs the final aggregation once.
       A sample arriving at or after minimum + 5 s stops automatically.
    4. `reset()`            — back to idle.
"""

import time
import threading
from typing import Callable

import numpy as np

from ppg.pipeline import PPGPipeline
from model.assessment import ScatterPoint, StressAssessment, build_assessment
from config import (
    AUDIO_SAMPLING_INTERVAL_MS,
    AUTO_STOP_GRACE_SECONDS,
    MINIMUM_MEASUREMENT_SECONDS,
    PPG_SAMPLE_RATE_HZ,
)
from utils.logger import get_logger

logger = get_logger("api.session")

DISCLAIMER = (
    "⚠️ This is a WELLNESS ESTIMATION tool — NOT a medical device. "
    "Heart rate, HRV, LF/HF balance, respiration and stress values are "
    "ESTIMATES derived from a camera brightness signal and ambient audio. "
    "Do NOT make medical decisions based on these readings."
)


class AudioSampler:
    """
    Polls `read_amplitude()` every `interval_ms` on a background thread and
    hands each value to `on_sample`.

    Ticks are scheduled against a monotonic deadline (`next_tick += interval`)
    rather than sleeping a fixed interval after each read, so time spent in
    `read_amplitude` or waiting on the session lock is made up by firing the
    late ticks immediately.  The sample count therefore tracks elapsed time,
    which respiration relies on (one sample = one 25 ms slot).

    The `threading.Event` is the cancellation handle: it is checked on every
    tick, and `stop()` may be called any number of times.
    """

    def __init__(
        self,
        read_amplitude: Callable[[], float],
        on_sample: Callable[[float], None],
        interval_ms: float = AUDIO_SAMPLING_INTERVAL_MS,
    ):
        self._read = read_amplitude
        self._on_sample = on_sample
        self._interval_s = interval_ms / 1000.0
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="audio-sampler", daemon=True)
        self._thread.start()
        logger.info("Audio sampler started (every %.0f ms).", self._interval_s * 1000)

    def _run(self) -> None:
        next_tick = time.monotonic() + self._interval_s
        while not self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
            try:
                value = float(self._read())
            except (OSError, RuntimeError, ValueError) as e:
                logger.error("Audio source failed — sampler stopped: %s", e)
                self._stop_event.set()
                return
            self._on_sample(value)
            next_tick += self._interval_s

    def stop(self, join: bool = True) -> None:
        self._stop_event.set()
        if join:
            self.join()

    def join(self, timeout: float = 1.0) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


class MeasurementSession:
    """
    One measurement at a time; instantiate once and reuse.

    Parameters
    ----------
    clock          : callable   Monotonic seconds (injectable for tests).
    rng            : numpy Generator used only by the synthetic-RR fallback.
    sample_rate_hz : float      Assumed PPG acquisition rate.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        rng: np.random.Generator | None = None,
        sample_rate_hz: float = PPG_SAMPLE_RATE_HZ,
        minimum_seconds: float = MINIMUM_MEASUREMENT_SECONDS,
        auto_stop_grace_seconds: float = AUTO_STOP_GRACE_SECONDS,
    ):
        self._lock = threading.Lock()
        self._clock = clock
        self._rng = rng
        self._minimum_ms = minimum_seconds * 1000.0
        self._auto_stop_ms = (minimum_seconds + auto_stop_grace_seconds) * 1000.0

        self._pipeline = PPGPipeline(sample_rate_hz)
        self._audio: list[float] = []
        self._status = "idle"            # idle | measuring | complete
        self._started_at: float | None = None
        self._result: StressAssessment | None = None
        self._final_point: ScatterPoint | None = None
        self._sampler: AudioSampler | None = None

        logger.info("MeasurementSession initialised.")

    # ── Read-only views ────────────────────────────────────────────────────

    @property
    def status(self) -> str:
        with self._lock:
            return self._status

    @property
    def result(self) -> StressAssessment | None:
        with self._lock:
            return self._result

    @property
    def rr_intervals(self) -> list[int]:
        with self._lock:
            return list(self._pipeline.detector.rr_intervals)

    def _elapsed_ms_locked(self) -> float:
        if self._started_at is None:
            return 0.0
        wall = (self._clock() - self._started_at) * 1000.0
        last = self._pipeline.last_timestamp_ms
        return max(wall, float(last) if last is not None else 0.0)

    @property
    def elapsed_ms(self) -> float:
        with self._lock:
            return self._elapsed_ms_locked()

    def snapshot(self) -> dict:
        """Live status for polling clients."""
        with self._lock:
            return {
                "status": self._status,
                "elapsed_seconds": round(self._elapsed_ms_locked() / 1000.0, 1),
                "ppg_samples": self._pipeline.sample_count,
                "audio_samples": len(self._audio),
                "heart_rate_bpm": self._pipeline.detector.current_heart_rate,
                "signal_quality": self._pipeline.signal_quality,
                "rr_count": len(self._pipeline.detector.rr_intervals),
            }

    def scatter_points(self) -> list[ScatterPoint]:
        with self._lock:
            points = list(self._pipeline.scatter)
            if self._final_point is not None:
                points.append(self._final_point)
            return points

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def start(self, read_amplitude: Callable[[], float] | None = None) -> bool:
        """
        Begin a new measurement, discarding any previous buffers.

        Returns False if a measurement is already running.
        """
        with self._lock:
            if self._status == "measuring":
                logger.warning("Measurement already in progress.")
                return False
            self._reset_locked()
            self._status = "measuring"
            self._started_at = self._clock()
            if read_amplitude is not None:
                self._sampler = AudioSampler(read_amplitude, self.push_audio)
                self._sampler.start()
        logger.info("Measurement started.")
        return True

    def push_ppg(self, value: float, timestamp_ms: int) -> bool:
        """Feed one PPG sample.  Returns False when no measurement is running."""
        sampler = None
        with self._lock:
            if self._status != "measuring":
                return False
            self._pipeline.add_sample(value, timestamp_ms)
            if self._elapsed_ms_locked() >= self._auto_stop_ms:
                logger.info("Maximum duration reached — finishing automatically.")
                sampler = self._finalize_locked()
        if sampler is not None:
            sampler.join()
        return True

    def push_audio(self, value: float) -> bool:
        with self._lock:
            if self._status != "measuring":
                return False
            self._audio.append(float(value))
            return True

    def stop(self) -> StressAssessment | None:
        """
        End the measurement.

        Returns the assessment, or None when nothing is running or the
        minimum duration has not been reached (the measurement continues).
        Calling it again after completion returns the same assessment.
        """
        with self._lock:
            if self._status == "complete":
                return self._result
            if self._status != "measuring":
                logger.warning("stop() called with no measurement running.")
                return None
            elapsed = self._elapsed_ms_locked()
            if elapsed < self._minimum_ms:
                logger.warning(
                    "Measurement too short (%.1f s < %.0f s) — keep measuring.",
                    elapsed / 1000.0, self._minimum_ms / 1000.0,
                )
                return None
            sampler = self._finalize_locked()
            result = self._result
        if sampler is not None:
            sampler.join()
        return result

    def reset(self) -> None:
        """Return to idle, stopping the audio sampler if it runs."""
        with self._lock:
            sampler = self._sampler
            self._reset_locked()
        if sampler is not None:
            sampler.join()
        logger.info("Session reset.")

    # ── Private ────────────────────────────────────────────────────────────

    def _reset_locked(self) -> None:
        if self._sampler is not None:
            self._sampler.stop(join=False)
        self._sampler = None
        self._pipeline.reset()
        self._audio = []
        self._status = "idle"
        self._started_at = None
        self._result = None
        self._final_point = None

    def _finalize_locked(self) -> AudioSampler | None:
        sampler = self._sampler
        if sampler is not None:
            sampler.stop(join=False)
        self._sampler = None

        detector = self._pipeline.detector
        self._result = build_assessment(
            detector.rr_intervals,
            detector.heart_rates,
            self._pipeline.ia_evaluations,
            self._audio,
            self._pipeline.signal_quality,
            self._rng,
        )
        self._final_point = ScatterPoint(
            self._result.hf_ia, self._result.lf_ia, self._result.quadrant, final=True
        )
        self._status = "complete"
        logger.info("Measurement complete after %.1f s.", self._elapsed_ms_locked() / 1000.0)
        return sampler
