"""
api/analysis.py — One-shot video analysis
===========================================
Runs a recorded video through every stage and returns the final report:

    decode (video.decoder) → face gate (face.detector)
        → vitals engine (rppg.pipeline) → report (report.assembler)

Shared by the HTTP route and the command-line demo.  Nothing is kept
between calls; the decoded frames are dropped as soon as the engine has
consumed them.
"""

from datetime import datetime

from face.detector import FaceGate
from features.types import RecordingContext, VitalReport
from report.assembler import assemble_report
from rppg.pipeline import VitalsEngine
from utils.logger import get_logger
from video.decoder import decoded_frames

logger = get_logger("api.analysis")

DISCLAIMER = (
    "This is a WELLNESS ESTIMATION tool, NOT a medical device. "
    "Heart rate, HRV, respiratory rate, blood pressure, SpO2, stress and mood "
    "are estimates derived from remote photoplethysmography and simple "
    "heuristics. Do NOT make medical decisions based on these readings."
)


def analyse_video(
    path: str,
    check_face: bool = True,
    bandpass_method: str | None = None,
    timestamp: datetime | None = None,
) -> VitalReport:
    """
    Analyse the video at `path` and return its report.

    Raises
    ------
    DecodeError          the file cannot be decoded.
    InsufficientData     too few frames for analysis.
    FaceValidationError  the face gate rejected the recording.
    """
    engine = VitalsEngine(bandpass_method=bandpass_method)
    with decoded_frames(path) as video:
        if check_face:
            with FaceGate() as gate:
                gate.validate(video.frames).raise_for_issues()

        bundle = engine.estimate(video.frames, video.sampling_rate)
        quality = video.quality

    context = RecordingContext(
        duration_seconds=round(bundle.duration_seconds, 2),
        timestamp=timestamp or datetime.now(),
        video_quality=quality,
    )
    report = assemble_report(bundle, context)
    logger.info("Analysis of %s complete (report %s).", path, report.metadata["report_id"])
    return report
