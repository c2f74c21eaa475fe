# disease_service.py
# Fasad di atas model_loader: pilih inferensi nyata atau mode simulasi,
# ubah file jadi gambar, lalu tempelkan info penyakit ke hasil prediksi.

import io
import logging
import random
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path

from PIL import Image

import settings
from disease_info import DISEASE_INFO, UNKNOWN, DiseaseInfo
from model_loader import ClassConfidence, PredictionResult, plant_disease_model

logger = logging.getLogger(__name__)

# Rentang confidence hasil simulasi
SIMULATED_MIN_CONFIDENCE = 0.5
SIMULATED_CONFIDENCE_SPAN = 0.4
SIMULATED_OTHER_MAX = 0.3


class ImageLoadError(Exception):
    """File tidak bisa didekode menjadi gambar."""


@dataclass
class DiagnosisResult:
    class_name: str
    original_class_name: str
    confidence: float
    disease_info: DiseaseInfo
    all_predictions: list[ClassConfidence] = field(default_factory=list)
    grouped_predictions: list[ClassConfidence] = field(default_factory=list)
    is_confident: bool = False
    error: str | None = None

    @classmethod
    def from_prediction(cls, prediction: PredictionResult, disease_info: DiseaseInfo) -> "DiagnosisResult":
        return cls(
            class_name=prediction.class_name or UNKNOWN,
            original_class_name=prediction.original_class_name,
            confidence=prediction.confidence,
            disease_info=disease_info,
            all_predictions=list(prediction.all_predictions),
            grouped_predictions=list(prediction.grouped_predictions),
            is_confident=prediction.is_confident,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def image_from_file(file) -> Image.Image:
    """bytes / file-like (mis. UploadedFile Streamlit) / path → PIL Image yang sudah termuat."""
    try:
        if isinstance(file, (bytes, bytearray)):
            file = io.BytesIO(file)
        image = Image.open(file)
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError("Gagal memuat gambar") from e
    return image


def _to_image(image_input) -> Image.Image:
    if isinstance(image_input, Image.Image):
        return image_input
    if isinstance(image_input, (bytes, bytearray, str, Path)) or hasattr(image_input, "read"):
        return image_from_file(image_input)
    raise TypeError("Input harus berupa gambar PIL atau file gambar")


class DiseaseService:
    """
    Uninitialized → real (model termuat) atau Uninitialized → simulation (gagal muat).
    Tidak ada transisi balik; kedua mode melayani diagnose().

    `model` cukup punya load() -> bool dan predict(image) -> PredictionResult.
    """

    def __init__(self, model=None, disease_info=None, rng: random.Random | None = None,
                 force_simulation: bool = settings.FORCE_SIMULATION):
        self.model = model if model is not None else plant_disease_model
        self.disease_info = dict(disease_info if disease_info is not None else DISEASE_INFO)
        self.rng = rng or random.Random()
        self.is_model_loaded = False
        self.simulation_mode = bool(force_simulation)
        # Sesi Streamlit berjalan di thread terpisah; service di-cache bersama
        self._init_lock = threading.Lock()
        if self.simulation_mode:
            logger.info("FORCE_SIMULATION aktif, model tidak akan dimuat")

    @property
    def mode(self) -> str:
        if self.is_model_loaded:
            return "real"
        if self.simulation_mode:
            return "simulation"
        return "uninitialized"

    def init_model(self) -> bool:
        """Idempoten. True bila inferensi nyata aktif."""
        with self._init_lock:
            if self.is_model_loaded:
                return True
            if self.simulation_mode:
                return False
            try:
                loaded = self.model.load()
            except Exception as e:
                logger.error("Gagal memuat model: %s", e)
                self.simulation_mode = True
                return False
            if not loaded:
                logger.warning("Model tidak dapat dimuat, menggunakan mode simulasi")
                self.simulation_mode = True
                return False
            self.is_model_loaded = True
            return True

    def _info_for(self, class_name: str | None) -> DiseaseInfo:
        info = self.disease_info.get(class_name or UNKNOWN) or self.disease_info.get(UNKNOWN)
        return info or DISEASE_INFO[UNKNOWN]

    def diagnose(self, image_input) -> DiagnosisResult:
        """Diagnosa satu gambar/file; tidak pernah raise, error dikembalikan di `error`."""
        try:
            if self.mode == "uninitialized":
                self.init_model()

            image = _to_image(image_input)

            if self.simulation_mode:
                prediction = self.simulated_prediction()
            else:
                prediction = self.model.predict(image)

            return DiagnosisResult.from_prediction(prediction, self._info_for(prediction.class_name))
        except Exception as e:
            logger.error("Gagal melakukan diagnosa: %s", e)
            unknown = DiagnosisResult.from_prediction(PredictionResult.unknown(), self._info_for(UNKNOWN))
            unknown.error = str(e)
            return unknown

    def simulated_prediction(self) -> PredictionResult:
        classes = [name for name in self.disease_info if name != UNKNOWN]
        class_name = self.rng.choice(classes)
        main_confidence = SIMULATED_MIN_CONFIDENCE + self.rng.random() * SIMULATED_CONFIDENCE_SPAN

        grouped = sorted(
            (ClassConfidence(cls, main_confidence if cls == class_name else self.rng.random() * SIMULATED_OTHER_MAX)
             for cls in classes),
            key=lambda c: c.confidence,
            reverse=True,
        )
        return PredictionResult(
            class_name=class_name,
            original_class_name=f"Sample {class_name}",
            confidence=main_confidence,
            all_predictions=[
                ClassConfidence(p.class_name, p.confidence, f"Sample {p.class_name}") for p in grouped
            ],
            grouped_predictions=grouped,
            is_confident=True,
        )
