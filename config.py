"""
config.py — Centralised configuration & hyper-parameters
=========================================================
Every tunable constant in the project lives here so that the rest of the
codebase can import from a single source of truth.
"""

import os

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.environ.get("VITALS_LOG_LEVEL", "INFO").upper()

# ─── Frames / Sampling ───────────────────────────────────────────────────────
# Frames reach the engine already down-sampled by the video collaborator,
# so the sampling rate is the *extraction* FPS, not the original video FPS.
DEFAULT_SAMPLING_RATE: float = 5.0
MIN_FRAMES: int = 2               # Below this no analysis can proceed
REDUCER_MAX_WORKERS: int | None = None   # None → ThreadPoolExecutor default

# ─── Signal Conditioning ─────────────────────────────────────────────────────
# Cardiac band (Hz).
# 0.5 Hz  →  30 BPM
# 4.0 Hz  → 240 BPM
CARDIAC_LOW_HZ: float = 0.5
CARDIAC_HIGH_HZ: float = 4.0
FILTER_ORDER: int = 4

# "moving_average" reproduces the provisional smoothing baseline;
# "butterworth" runs a real zero-phase IIR bandpass (scipy).
BANDPASS_METHOD: str = os.environ.get("VITALS_BANDPASS_METHOD", "moving_average")
MOVING_AVERAGE_WINDOW: int = 5

# Divisors whose magnitude falls below this are treated as zero
NEAR_ZERO: float = 1e-9

# ─── SNR-based Confidence ────────────────────────────────────────────────────
SNR_HIGH: float = 2.0             # snr >  2 → high
SNR_MODERATE: float = 1.0         # snr >  1 → moderate, otherwise low
SIGNAL_GOOD_SNR: float = 1.5      # raw green SNR above this → "good" signal

# ─── SpO2 ────────────────────────────────────────────────────────────────────
# Synthetic "infrared" channel = IR_RED_WEIGHT·red + IR_BLUE_WEIGHT·blue.
# This is NOT an infrared reading; SpO2 is reported as experimental.
IR_RED_WEIGHT: float = 0.6
IR_BLUE_WEIGHT: float = 0.4

RATIO_AMPLITUDE_WEIGHT: float = 0.6
RATIO_AREA_WEIGHT: float = 0.4

# Linear calibration  SpO2 = A − B·R, clamped to [MIN, MAX]
SPO2_CAL_A: float = 110.0
SPO2_CAL_B: float = 25.0
SPO2_MIN: float = 70.0
SPO2_MAX: float = 100.0

# R values outside this band are physiologically implausible
R_VALID_LOW: float = 0.5
R_VALID_HIGH: float = 2.0

SPO2_QUALITY_HIGH: float = 0.8
SPO2_QUALITY_MODERATE: float = 0.6

# ─── Heuristic Estimators ────────────────────────────────────────────────────
BP_SYSTOLIC_BASE: int = 110
BP_SYSTOLIC_GAIN: float = 30.0
BP_DIASTOLIC_BASE: int = 70
BP_DIASTOLIC_GAIN: float = 20.0

STRESS_HRV_WEIGHT: float = 0.7
STRESS_RESP_WEIGHT: float = 0.4

# (upper bound exclusive, score) — first match wins, else the fallback
STRESS_HRV_BANDS: tuple[tuple[float, int], ...] = ((20, 100), (30, 80), (50, 60), (100, 40))
STRESS_HRV_FALLBACK: int = 20
# (lower bound exclusive, score)
STRESS_RESP_BANDS: tuple[tuple[float, int], ...] = ((20, 100), (18, 80), (15, 60), (12, 40))
STRESS_RESP_FALLBACK: int = 20

# Mood thresholds are in raw pixel units of motion energy
MOOD_VARIABILITY_THRESHOLD: float = 0.2
MOOD_ACTIVITY_THRESHOLD: float = 0.15
MOOD_CALM_THRESHOLD: float = 0.05

# ─── Overall Confidence ──────────────────────────────────────────────────────
CONFIDENCE_WEIGHTS: dict[str, float] = {"high": 1.0, "moderate": 0.6, "low": 0.3}
CONFIDENCE_UNKNOWN_WEIGHT: float = 0.5
OVERALL_HIGH: float = 0.8
OVERALL_MODERATE: float = 0.5

# ─── Report ──────────────────────────────────────────────────────────────────
REPORT_MIN_DURATION_SECONDS: float = 4.0   # Shorter recordings are flagged "short"
REPORT_STABLE_VARIABILITY: float = 0.3     # Green-channel CV below this → "stable"

# ─── Video Collaborator ──────────────────────────────────────────────────────
VIDEO_MAX_FRAMES: int = 40
VIDEO_BASE_FPS: float = 5.0
VIDEO_MAX_FPS: float = 10.0
VIDEO_QUALITY_SCALE: int = 2      # Frames are downscaled by this factor
VIDEO_MAX_FILE_SIZE: int = 50 * 1024 * 1024   # 50 MB
VIDEO_SUPPORTED_FORMATS: tuple[str, ...] = (
    "video/mp4",
    "video/quicktime",
    "video/webm",
    "video/x-msvideo",
)

# ─── Face Gate ───────────────────────────────────────────────────────────────
FACE_MIN_VISIBILITY_RATIO: float = 0.6
FACE_MIN_CONFIDENCE: float = 0.7
FACE_DETECTION_CONFIDENCE: float = 0.5   # MediaPipe detector threshold

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "rPPG Vital-Signs Report API"
API_VERSION = "0.2.0"
API_HOST = "0.0.0.0"
API_PORT = 8000
