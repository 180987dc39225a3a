#!/usr/bin/env python3
"""
demo_cli.py — Standalone command-line demo
============================================
Analyses a recorded face video WITHOUT the FastAPI server and prints the
report.  Useful for quick testing, demos and debugging.

Usage:
    python demo_cli.py recording.mp4
    python demo_cli.py recording.mp4 --filter butterworth --skip-face-check
    python demo_cli.py recording.mp4 --json > report.json

⚠️  This is a WELLNESS ESTIMATION tool — NOT a medical device.
"""

import argparse
import json
import sys

from api.analysis import DISCLAIMER, analyse_video
from rppg.filters import available_filters
from utils.errors import FaceValidationError, VitalsError
from utils.logger import get_logger

logger = get_logger("demo_cli")


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    shown = "—" if value is None else value
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{shown}\033[0m {unit}")


def print_report(report: dict) -> None:
    meta = report["metadata"]
    vitals = report["vitals"]
    analysis = report["analysis"]
    reliability = report["reliability"]

    print("=" * 60)
    print(f"  REPORT {meta['report_id']}  ({meta['generated_at']})")
    print("=" * 60)
    pretty_print("Recording duration", meta["recording_duration"], "s")

    print("\n  ── Vitals ──")
    for label, key in (
        ("Heart Rate", "heart_rate"),
        ("HRV (RMSSD)", "heart_rate_variability"),
        ("Respiratory Rate", "respiratory_rate"),
        ("SpO2 (experimental)", "spo2"),
        ("Stress", "stress_level"),
    ):
        section = vitals[key]
        pretty_print(label, section["value"], f"{section.get('unit', '')}  [{section['status']}, "
                                               f"{section['confidence']}]")

    bp = vitals["blood_pressure"]
    pretty_print(
        "Blood Pressure (estimated)",
        f"{bp['value']['systolic']}/{bp['value']['diastolic']}",
        f"mmHg  [{bp['status']}, {bp['confidence']}]",
    )
    pretty_print("Mood", vitals["mood"]["value"], f"[{vitals['mood']['confidence']}]")

    print("\n  ── Summary ──")
    pretty_print("Overall status", analysis["summary"]["overall_status"])
    for concern in analysis["summary"]["concerns"]:
        print(f"    ⚠️  {concern}")
    for positive in analysis["summary"]["positives"]:
        print(f"    ✓  {positive}")

    print("\n  ── Reliability ──")
    overall = reliability["overall_confidence"]
    pretty_print("Overall confidence", overall["level"], f"({overall['score']})")
    pretty_print("Signal quality", reliability["measurement_quality"]["signal_quality"])
    for limitation in reliability["limitations"]:
        print(f"    • {limitation}")

    print("\n" + "=" * 60)
    print(f"  ⚠️  {DISCLAIMER}")
    print("=" * 60 + "\n")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="rPPG vital-signs report from a video file")
    parser.add_argument("video", help="Path to a face video (mp4, mov, webm, avi)")
    parser.add_argument("--filter", dest="bandpass", default=None, choices=available_filters(),
                        help="Band-pass strategy (default from config)")
    parser.add_argument("--skip-face-check", action="store_true", help="Do not run the face-presence gate")
    parser.add_argument("--json", action="store_true", help="Print the raw report as JSON")
    args = parser.parse_args(argv)

    try:
        report = analyse_video(args.video, check_face=not args.skip_face_check, bandpass_method=args.bandpass)
    except FaceValidationError as exc:
        print(f"  ERROR: {exc.message}")
        for issue in exc.issues:
            print(f"    - {issue['issue']}: {issue.get('details', '')}")
            for fix in issue.get("fixes", []):
                print(f"        → {fix}")
        return 2
    except VitalsError as exc:
        print(f"  ERROR: {exc.message}")
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
