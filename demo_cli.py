#!/usr/bin/env python3
"""
demo_cli.py — Standalone command-line demo
============================================
Runs the full measurement pipeline WITHOUT the FastAPI server or any
capture hardware.  A synthetic PPG brightness stream (30 fps) and an audio
amplitude stream (25 ms cadence) are generated with a chosen heart rate,
breathing rate and noise level, pushed through a `MeasurementSession`, and
the final assessment is printed.

Usage:
    python demo_cli.py --duration 35 --heart-rate 72 --breathing-rate 15 --noise 0.5

⚠️  This is a WELLNESS ESTIMATION tool — NOT a medical device.
"""

import argparse
import json
import sys

import numpy as np

from api.session import MeasurementSession
from config import (
    AUDIO_SAMPLING_INTERVAL_MS,
    MINIMUM_MEASUREMENT_SECONDS,
    PPG_SAMPLE_RATE_HZ,
)
from utils.logger import get_logger, set_level

logger = get_logger("demo_cli")


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{value}\033[0m {unit}")


def synthetic_ppg(duration_s: float, heart_rate: float, breathing_rate: float,
                  noise: float, rng: np.random.Generator, fs: float = PPG_SAMPLE_RATE_HZ):
    """
    Brightness samples of a pulse whose rate is modulated by breathing
    (HF, ±5 %) and a slow 0.1 Hz rhythm (LF, ±3 %).
    """
    t = np.arange(int(duration_s * fs)) / fs
    rate_hz = heart_rate / 60.0 * (
        1.0
        + 0.05 * np.sin(2 * np.pi * breathing_rate / 60.0 * t)
        + 0.03 * np.sin(2 * np.pi * 0.1 * t)
    )
    phase = 2 * np.pi * np.cumsum(rate_hz) / fs
    values = 128.0 + 10.0 * (np.sin(phase) + 0.3 * np.sin(2 * phase)) + noise * rng.standard_normal(t.size)
    timestamps = np.round(t * 1000.0).astype(int)
    return values, timestamps


def synthetic_audio(duration_s: float, breathing_rate: float, noise: float,
                    rng: np.random.Generator, interval_ms: float = AUDIO_SAMPLING_INTERVAL_MS):
    """Audio amplitude with one narrow bump per breath."""
    t = np.arange(int(duration_s * 1000.0 / interval_ms)) * interval_ms / 1000.0
    breath = np.sin(np.pi * breathing_rate / 60.0 * t) ** 8
    values = 3.0 + 20.0 * breath + 0.2 * noise * rng.standard_normal(t.size)
    timestamps = np.round(t * 1000.0).astype(int)
    return values, timestamps


def main():
    parser = argparse.ArgumentParser(description="PPG stress-state estimation — synthetic demo")
    parser.add_argument("--duration", type=float, default=MINIMUM_MEASUREMENT_SECONDS + 2,
                        help="Measurement length (seconds)")
    parser.add_argument("--heart-rate", type=float, default=72.0, help="Mean heart rate (BPM)")
    parser.add_argument("--breathing-rate", type=float, default=15.0, help="Breaths per minute")
    parser.add_argument("--noise", type=float, default=0.5, help="Gaussian noise std (brightness units)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--json", action="store_true", help="Print the assessment as JSON")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    if args.verbose:
        set_level("DEBUG")

    print("\n" + "=" * 60)
    print("  PPG STRESS-STATE ESTIMATION — SYNTHETIC DEMO")
    print("=" * 60)
    print("  ⚠️  This is a WELLNESS ESTIMATION tool — NOT medical grade.")
    print("=" * 60 + "\n")

    rng = np.random.default_rng(args.seed)
    ppg, ppg_ts = synthetic_ppg(args.duration, args.heart_rate, args.breathing_rate, args.noise, rng)
    audio, audio_ts = synthetic_audio(args.duration, args.breathing_rate, args.noise, rng)

    session = MeasurementSession(clock=lambda: 0.0, rng=rng)
    session.start()

    # Merge both streams in time order, as a capture layer would deliver them
    a = 0
    for value, ts in zip(ppg, ppg_ts):
        while a < audio.size and audio_ts[a] <= ts:
            session.push_audio(float(audio[a]))
            a += 1
        if not session.push_ppg(float(value), int(ts)):
            break

    result = session.stop()
    if result is None:
        print(f"  ERROR: at least {MINIMUM_MEASUREMENT_SECONDS} s of data is required.")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    print("=" * 60)
    print("  RESULTS")
    print("=" * 60)
    print("\n  ── Cardiac ──")
    pretty_print("Heart Rate", result.heart_rate_bpm, "BPM")
    pretty_print("RMSSD", result.rmssd_ms, "ms")
    pretty_print("SDNN", f"{result.sdnn_ms:.1f}", "ms")
    pretty_print("pNN50", "n/a" if result.pnn50 is None else f"{result.pnn50:.1f}", "%")
    pretty_print("RR intervals", result.rr_count)

    print("\n  ── Autonomic Balance ──")
    pretty_print("LF iA", f"{result.lf_ia:.1f}")
    pretty_print("HF iA", f"{result.hf_ia:.1f}")
    pretty_print("LF/HF ratio", f"{result.lf_hf_ratio:.2f}")
    pretty_print("Scatter points", len(session.scatter_points()))

    print("\n  ── Respiration ──")
    pretty_print("Respiration rate", result.respiration_rate, "/min")

    print("\n  ── Stress (ESTIMATED) ──")
    pretty_print("Stress level", result.stress_level)
    pretty_print("Stress state", result.stress_state)
    quality = "n/a" if result.signal_quality is None else f"{result.signal_quality:.2f}"
    pretty_print("Signal quality", quality)
    if result.fallbacks:
        pretty_print("Defaults used", ", ".join(result.fallbacks))
    print()


if __name__ == "__main__":
    main()
