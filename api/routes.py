"""
api/routes.py — FastAPI route definitions
==========================================
All HTTP endpoints are defined here and wired into the app via
`app.include_router(router)` in `api/app.py`.

Endpoint summary
----------------
    GET  /health              — Liveness probe
    POST /session/start       — Begin a measurement (clears previous buffers)
    POST /session/ppg         — Push a batch of PPG samples
    POST /session/audio       — Push a batch of audio amplitudes
    GET  /session/status      — Poll state, elapsed time and live heart rate
    GET  /session/scatter     — LF/HF scatter points so far
    POST /session/stop        — Finish (≥ 30 s) and return the assessment
    GET  /session/result      — Retrieve the assessment once complete
    POST /session/reset       — Reset session to idle
    GET  /docs                — Auto-generated Swagger UI (FastAPI built-in)

Every handler that touches the session is a plain `def`: FastAPI runs those
in its threadpool, so peak detection and iA analysis on a large batch never
block the event loop (or `/health`) while the session lock is held.
"""

from fastapi import APIRouter, HTTPException
from api.schemas import (
    AssessmentResponse,
    AudioBatch,
    PPGBatch,
    PushResponse,
    ScatterResponse,
    StatusResponse,
)
from api.session import DISCLAIMER, MeasurementSession
from config import MINIMUM_MEASUREMENT_SECONDS
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# ── Global session instance ──────────────────────────────────────────────────
# One session for the whole application lifetime; the capture layer runs on
# the same machine and drives a single measurement at a time.
_session = MeasurementSession()


def _assessment_response() -> AssessmentResponse:
    result = _session.result
    if result is None:
        raise HTTPException(status_code=500, detail="Result unavailable.")
    return AssessmentResponse(disclaimer=DISCLAIMER, **result.to_dict())


def _require_measuring() -> None:
    if _session.status != "measuring":
        raise HTTPException(status_code=409, detail="No measurement in progress. POST /session/start first.")


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    """Simple liveness check."""
    return {"status": "ok", "service": "PPG Stress-State Estimator"}


# ── Measurement Control ──────────────────────────────────────────────────────

@router.post("/session/start")
def start_session():
    """
    Begin a measurement.  Returns 409 if one is already running.
    """
    if not _session.start():
        raise HTTPException(status_code=409, detail="A measurement is already in progress.")
    return {
        "status": "measuring",
        "message": (
            f"Measurement started. Push samples for at least {MINIMUM_MEASUREMENT_SECONDS} s, "
            "then POST /session/stop."
        ),
    }


@router.post("/session/ppg")
def push_ppg(batch: PPGBatch) -> PushResponse:
    """
    Push PPG samples in timestamp order.

    Body (JSON):
        samples : [{value: float, timestamp_ms: int}, ...]
    """
    _require_measuring()
    accepted = 0
    for sample in batch.samples:
        if not _session.push_ppg(sample.value, sample.timestamp_ms):
            break   # the measurement finished automatically mid-batch
        accepted += 1

    snapshot = _session.snapshot()
    return PushResponse(
        accepted=accepted,
        status=snapshot["status"],
        heart_rate_bpm=snapshot["heart_rate_bpm"],
    )


@router.post("/session/audio")
def push_audio(batch: AudioBatch) -> PushResponse:
    """Push audio amplitude samples (fixed 25 ms cadence)."""
    _require_measuring()
    accepted = sum(1 for v in batch.values if _session.push_audio(v))
    return PushResponse(accepted=accepted, status=_session.status)


@router.get("/session/status")
def session_status() -> StatusResponse:
    """
    Poll the current measurement state.

    Returns
    -------
    StatusResponse
        status          : "idle" | "measuring" | "complete"
        elapsed_seconds : time covered by the pushed samples
        heart_rate_bpm  : live median heart rate (None until 3 beats)
    """
    snapshot = _session.snapshot()
    status = snapshot["status"]
    elapsed = snapshot["elapsed_seconds"]

    messages = {
        "idle":      "No measurement in progress. POST /session/start to begin.",
        "measuring": f"Measuring — {elapsed:.0f} s of {MINIMUM_MEASUREMENT_SECONDS} s minimum.",
        "complete":  "Measurement complete! Retrieve results via GET /session/result.",
    }
    return StatusResponse(message=messages.get(status, "Unknown state."), **snapshot)


@router.get("/session/scatter")
def session_scatter() -> ScatterResponse:
    """LF/HF iA points collected so far (plus the final point once complete)."""
    return ScatterResponse(points=[p.to_dict() for p in _session.scatter_points()])


@router.post("/session/stop")
def stop_session() -> AssessmentResponse:
    """
    Finish the measurement and return the assessment.

    Returns 409 if nothing is running, or 422 if the minimum duration has
    not been reached yet (the measurement keeps running).
    """
    status = _session.status
    if status == "idle":
        raise HTTPException(status_code=409, detail="No measurement in progress.")

    if _session.stop() is None:
        raise HTTPException(
            status_code=422,
            detail=f"Measurement too short — at least {MINIMUM_MEASUREMENT_SECONDS} s is required.",
        )
    return _assessment_response()


@router.get("/session/result")
def session_result() -> AssessmentResponse:
    """
    Retrieve the assessment after the measurement finished.

    Returns 404 until the measurement is complete.
    """
    if _session.status != "complete":
        raise HTTPException(status_code=404, detail="No completed measurement yet.")
    return _assessment_response()


@router.post("/session/reset")
def session_reset():
    """Reset the session to idle so a new measurement can be started."""
    _session.reset()
    return {"status": "ok", "message": "Session reset. Ready for a new measurement."}
