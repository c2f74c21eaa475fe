# settings.py
# Konfigurasi berbasis environment variable + setup logging.

import logging
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

MODEL_PATH = os.getenv("MODEL_PATH", "model/plant_disease_model.pt")
CONFIDENCE_THRESHOLD = float(os.getenv("CONFIDENCE_THRESHOLD", "0.1"))
INPUT_SIZE = int(os.getenv("INPUT_SIZE", "224"))
MIN_IMAGE_SIZE = int(os.getenv("MIN_IMAGE_SIZE", "32"))
FORCE_SIMULATION = os.getenv("FORCE_SIMULATION", "false").lower() in {"1", "true", "yes"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Pasang handler root sekali saja (Streamlit menjalankan ulang skrip tiap interaksi)."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)
