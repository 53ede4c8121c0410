#!/usr/bin/env python3
"""
PPG Stress-State Estimation — Main Entry Point
===============================================
Launches the FastAPI backend with Uvicorn.
Run with:  python main.py [--host HOST] [--port PORT] [--log-level LEVEL]

A capture layer on the same machine pushes PPG brightness and audio
amplitude samples into `/session/*` and reads back the assessment.

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool, NOT a medical device.
    Heart rate, HRV, LF/HF balance, respiration and stress readings are
    ESTIMATES.  Do NOT use them for clinical diagnosis or treatment.
"""

import argparse

import uvicorn
from api.app import create_app
from utils.logger import set_level


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="PPG stress-state estimation API server")
    p.add_argument("--host", default="127.0.0.1", help="Bind address (default 127.0.0.1).")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    return p.parse_args()


def main() -> None:
    args = parse_args()
    set_level(args.log_level.upper())
    app = create_app()
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        reload=False,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
