"""Corpus-wide batch jobs: calibration and tuning."""

from semtag.batch.calibration import CalibrationResult, calibrate_corpus
from semtag.batch.tuning import TuningDerived, TuningReport, load_tuning, save_tuning, tune

__all__ = [
    "CalibrationResult",
    "TuningDerived",
    "TuningReport",
    "calibrate_corpus",
    "load_tuning",
    "save_tuning",
    "tune",
]
