# model_loader.py
# Loader model penyakit daun tomat: checkpoint (config diperbaiki) → model utuh → CNN fallback
# Tidak ada rendering Streamlit di file ini. Semua tampilan diatur dari pages/.

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

import numpy as np
import torch
import torch.nn as nn
import torchvision.transforms as transforms
from torchvision import models
from PIL import Image

import settings
from disease_info import UNKNOWN

logger = logging.getLogger(__name__)

# ================= Daftar kelas =================
# Nama kelas mentah keluaran model (urutan = indeks output)
ORIGINAL_CLASS_NAMES = [
    "Bacterial_spot",
    "Early_blight",
    "Late_blight",
    "Leaf_mold",
    "Yellow_leaf_curl_virus",
    "Mosaic_virus",
    "Target_spot",
    "Spider_mites",
    "Septoria_leaf_spot",
    "Healthy",
]

# Nama tampilan, 1:1 dengan ORIGINAL_CLASS_NAMES
CLASS_NAMES = [
    "Bacterial Spot",
    "Early Blight",
    "Late Blight",
    "Leaf Mold",
    "Yellow Leaf Curl Virus",
    "Mosaic Virus",
    "Target Spot",
    "Spider Mites",
    "Septoria Leaf Spot",
    "Healthy",
]

CLASS_MAPPING = dict(enumerate(CLASS_NAMES))


class InvalidImageError(ValueError):
    """Gambar tidak lolos validasi sebelum inferensi."""


# ================= Struktur hasil =================
@dataclass
class ClassConfidence:
    class_name: str
    confidence: float
    original_class_name: str | None = None


@dataclass
class PredictionResult:
    class_name: str
    original_class_name: str
    confidence: float
    all_predictions: list[ClassConfidence] = field(default_factory=list)
    grouped_predictions: list[ClassConfidence] = field(default_factory=list)
    is_confident: bool = False

    @classmethod
    def unknown(cls, confidence: float = 0.0) -> "PredictionResult":
        return cls(class_name=UNKNOWN, original_class_name=UNKNOWN, confidence=float(confidence))

    def to_dict(self) -> dict:
        return asdict(self)


# ================= Arsitektur =================
def ConvBlock(in_channels, out_channels, pool=False):
    layers = [
        nn.Conv2d(in_channels, out_channels, kernel_size=3, padding=1),
        nn.BatchNorm2d(out_channels),
        nn.ReLU(inplace=True)
    ]
    if pool:
        layers.append(nn.MaxPool2d(4))
    return nn.Sequential(*layers)


class ResNet9(nn.Module):
    def __init__(self, num_diseases=10, in_channels=3):
        super().__init__()
        self.conv1 = ConvBlock(in_channels, 64)               # 224
        self.conv2 = ConvBlock(64, 128, pool=True)            # 56
        self.res1  = nn.Sequential(ConvBlock(128, 128),
                                   ConvBlock(128, 128))
        self.conv3 = ConvBlock(128, 256, pool=True)           # 14
        self.conv4 = ConvBlock(256, 512, pool=True)           # 3
        self.res2  = nn.Sequential(ConvBlock(512, 512),
                                   ConvBlock(512, 512))
        self.classifier = nn.Sequential(
            nn.AdaptiveMaxPool2d(1),  # 3x3 -> 1x1
            nn.Flatten(),
            nn.Dropout(0.2),
            nn.Linear(512, num_diseases)
        )

    def forward(self, xb):
        out = self.conv1(xb)
        out = self.conv2(out)
        out = self.res1(out) + out
        out = self.conv3(out)
        out = self.conv4(out)
        out = self.res2(out) + out
        return self.classifier(out)


class SimpleCNN(nn.Module):
    """CNN kecil berbobot acak, dipakai saat checkpoint tidak bisa dimuat."""

    def __init__(self, num_classes=len(CLASS_NAMES), input_size=224):
        super().__init__()
        self.features = nn.Sequential(
            nn.Conv2d(3, 32, kernel_size=3),
            nn.ReLU(),
            nn.MaxPool2d(2),
            nn.Conv2d(32, 64, kernel_size=3),
            nn.ReLU(),
            nn.MaxPool2d(2),
        )
        side = ((input_size - 2) // 2 - 2) // 2   # 224 -> 54
        self.classifier = nn.Sequential(
            nn.Flatten(),
            nn.Linear(64 * side * side, 64),
            nn.ReLU(),
            nn.Linear(64, num_classes),
        )

    def forward(self, x):
        return self.classifier(self.features(x))


def build_model(arch: str, num_classes: int, input_size: int = settings.INPUT_SIZE) -> nn.Module:
    if arch == "resnet18":
        m = models.resnet18(weights=None)
        m.fc = nn.Linear(m.fc.in_features, num_classes)
        return m
    if arch == "resnet9":
        return ResNet9(num_diseases=num_classes, in_channels=3)
    if arch == "simple_cnn":
        return SimpleCNN(num_classes=num_classes, input_size=input_size)
    raise ValueError(f"Arsitektur tidak dikenal: {arch!r}")


# ================= Helper checkpoint =================
def _strip_module(sd: dict) -> dict:
    return { (k.replace("module.", "", 1) if k.startswith("module.") else k): v for k, v in sd.items() }


def _detect_arch(sd_keys: list[str]) -> str | None:
    # Ciri khas torchvision ResNet18: layer1/2/3/4 + fc
    if any(k.startswith("layer1.") for k in sd_keys) and any(k.startswith("layer2.") for k in sd_keys):
        return "resnet18"
    if any(k.startswith("res1.") for k in sd_keys):
        return "resnet9"
    if any(k.startswith("features.") for k in sd_keys):
        return "simple_cnn"
    return None


def _infer_num_classes_from_sd(sd: dict, fallback: int) -> int:
    # Cari bobot linear akhir (num_classes, in_features)
    for k in ["classifier.3.weight", "fc.weight"]:
        if k in sd and sd[k].ndim == 2:
            return int(sd[k].shape[0])
    linear_keys = [k for k in sd if k.endswith(".weight") and sd[k].ndim == 2]
    if linear_keys:
        return int(sd[linear_keys[-1]].shape[0])
    return int(fallback)


def _extract_state_dict(checkpoint: dict) -> dict:
    for key in ("model_state_dict", "state_dict"):
        if isinstance(checkpoint.get(key), dict):
            return checkpoint[key]
    if checkpoint and all(isinstance(v, torch.Tensor) for v in checkpoint.values()):
        return checkpoint
    return {}


def _normalize_input_shape(shape) -> list[int] | None:
    """[N,H,W,C] / [H,W,C] / [C,H,W] -> [C,H,W]; None jika tidak bisa dibaca."""
    try:
        dims = [int(d) for d in shape if d is not None]
    except (TypeError, ValueError):
        return None
    if len(dims) == 4:
        dims = dims[1:]
    if len(dims) != 3:
        return None
    if dims[-1] == 3 and dims[0] != 3:
        dims = [dims[2], dims[0], dims[1]]
    return dims


def repair_model_config(checkpoint: dict, notes: list[str] | None = None,
                        input_size: int = settings.INPUT_SIZE) -> dict:
    """
    Normalisasi checkpoint menjadi {"config": {...}, "state_dict": {...}, "class_names": [...]}.

    - state_dict diambil dari `model_state_dict` / `state_dict` / dict tensor langsung,
      prefix `module.` (DataParallel) dibuang
    - `config.input_shape` dipaksa ke [3, input_size, input_size] bila hilang,
      tidak terbaca, atau berbeda
    - `config.arch` dideteksi dari nama key bila kosong
    - `config.output` default "logits"
    - `class_names` dari checkpoint; default ORIGINAL_CLASS_NAMES bila tidak ada

    Tidak pernah raise; config rusak diganti default.
    """
    notes = notes if notes is not None else []
    fixed_shape = [3, input_size, input_size]
    try:
        sd = _strip_module(_extract_state_dict(checkpoint))
    except (AttributeError, TypeError) as e:
        notes.append(f"state_dict tidak terbaca: {e}")
        sd = {}

    config = checkpoint.get("config") if isinstance(checkpoint, dict) else None
    config = dict(config) if isinstance(config, dict) else {}

    declared = config.get("input_shape") or config.get("batch_input_shape")
    shape = _normalize_input_shape(declared) if declared else None
    if shape is None:
        notes.append(f"Config tanpa deklarasi input; dipaksa ke {fixed_shape}.")
    elif shape != fixed_shape:
        notes.append(f"Input {shape} diganti ke {fixed_shape}.")
    config.pop("batch_input_shape", None)
    config["input_shape"] = fixed_shape

    if not config.get("arch"):
        config["arch"] = _detect_arch(list(sd.keys()))
        if config["arch"]:
            notes.append(f"Autodetect arsitektur: {config['arch']}.")
    if config.get("output") not in ("logits", "probabilities"):
        config["output"] = "logits"

    class_names = checkpoint.get("class_names") if isinstance(checkpoint, dict) else None
    if class_names is None:
        class_names = list(ORIGINAL_CLASS_NAMES)
    elif isinstance(class_names, (list, tuple)):
        class_names = [str(c) for c in class_names]
    else:
        notes.append("class_names tidak terbaca; memakai daftar bawaan.")
        class_names = list(ORIGINAL_CLASS_NAMES)

    return {"config": config, "state_dict": sd, "class_names": class_names}


# ================= Model loader =================
class PlantDiseaseModel:
    """
    Siklus hidup model klasifikasi: cari checkpoint, perbaiki config, bangun
    jaringan, fallback ke CNN acak bila gagal, warm-up, lalu prediksi satu gambar.
    """

    def __init__(self, model_path: str = settings.MODEL_PATH,
                 confidence_threshold: float = settings.CONFIDENCE_THRESHOLD,
                 input_size: int = settings.INPUT_SIZE,
                 min_image_size: int = settings.MIN_IMAGE_SIZE):
        self.model: nn.Module | None = None
        self.fallback_model: nn.Module | None = None
        self.is_model_loaded = False
        self.model_path = model_path
        self.loaded_from: str | None = None
        self.confidence_threshold = confidence_threshold
        self.input_size = (input_size, input_size)
        self.input_shape = (1, 3, input_size, input_size)
        self.min_image_size = min_image_size
        self.config = {"input_shape": list(self.input_shape[1:]), "arch": "simple_cnn", "output": "logits"}
        self.load_notes: list[str] = []
        self.transform = transforms.Compose([
            transforms.Resize(self.input_size),
            transforms.ToTensor()
        ])

    def get_load_notes(self) -> list[str]:
        return list(self.load_notes)

    def candidate_paths(self) -> list[Path]:
        p = Path(self.model_path)
        paths = [p, settings.BASE_DIR / p, Path("dist") / p, settings.BASE_DIR / "dist" / p]
        return list(dict.fromkeys(paths))

    def check_model_exists(self) -> Path | None:
        for path in self.candidate_paths():
            if path.is_file():
                self.model_path = str(path)
                return path
        return None

    def create_fallback_model(self) -> nn.Module | None:
        try:
            model = SimpleCNN(num_classes=len(CLASS_NAMES), input_size=self.input_size[0])
            model.eval()
            return model
        except Exception as e:
            logger.error("Gagal membuat model fallback: %s", e)
            return None

    # ---------- metode pemuatan ----------
    def _load_checkpoint(self, path: Path):
        """Metode 1: dict checkpoint / state_dict + config yang diperbaiki."""
        obj = torch.load(str(path), map_location="cpu")
        if not isinstance(obj, dict):
            raise TypeError("Checkpoint bukan dict/state_dict.")
        repaired = repair_model_config(obj, notes=self.load_notes, input_size=self.input_size[0])
        sd, config = repaired["state_dict"], repaired["config"]
        if not sd:
            raise ValueError("Checkpoint tidak berisi state_dict.")
        if len(repaired["class_names"]) != len(CLASS_NAMES):
            raise ValueError(f"Checkpoint punya {len(repaired['class_names'])} class_names, dibutuhkan {len(CLASS_NAMES)}.")

        num_classes = _infer_num_classes_from_sd(sd, fallback=len(CLASS_NAMES))
        if num_classes != len(CLASS_NAMES):
            raise ValueError(f"Checkpoint punya {num_classes} kelas, dibutuhkan {len(CLASS_NAMES)}.")
        model = build_model(config["arch"], num_classes, input_size=self.input_size[0])

        # Coba strict=True; jika gagal, jatuhkan ke strict=False dan catat missing/unexpected
        try:
            model.load_state_dict(sd, strict=True)
        except RuntimeError:
            self.load_notes.append("strict=True gagal saat load_state_dict; mencoba strict=False.")
            missing, unexpected = model.load_state_dict(sd, strict=False)
            if missing:
                self.load_notes.append(f"Missing keys: {', '.join(missing[:10])}" + (" ..." if len(missing) > 10 else ""))
            if unexpected:
                self.load_notes.append(f"Unexpected keys: {', '.join(unexpected[:10])}" + (" ..." if len(unexpected) > 10 else ""))
        return model, config

    def _load_whole_model(self, path: Path):
        """Metode 2: model utuh (TorchScript atau nn.Module hasil pickle)."""
        try:
            model = torch.jit.load(str(path), map_location="cpu")
            self.load_notes.append("Checkpoint berupa TorchScript.")
        except RuntimeError:
            model = torch.load(str(path), map_location="cpu", weights_only=False)
            if not isinstance(model, nn.Module):
                raise TypeError("Format .pt tidak dikenal. Harus nn.Module/TorchScript atau dict checkpoint.")
            self.load_notes.append("Checkpoint berisi model utuh.")
        config = {"input_shape": list(self.input_shape[1:]), "arch": None, "output": "logits"}
        return model, config

    def _load_from_path(self, path: Path):
        try:
            model, config = self._load_checkpoint(path)
            self.load_notes.append(f"Model dimuat dari checkpoint: {path}")
            return model, config
        except Exception as e1:
            logger.warning("Metode 1 gagal (%s): %s", path, e1)
            self.load_notes.append(f"Metode 1 gagal: {e1}")
        model, config = self._load_whole_model(path)
        self.load_notes.append(f"Model dimuat langsung dari path: {path}")
        return model, config

    def _use_fallback(self):
        self.model = self.fallback_model
        self.config = {"input_shape": list(self.input_shape[1:]), "arch": "simple_cnn", "output": "logits"}
        self.loaded_from = None
        self.load_notes.append("Memakai model fallback (bobot acak).")

    def warm_up(self):
        with torch.no_grad():
            self.model(torch.zeros(self.input_shape))

    def load(self) -> bool:
        """Muat model; tidak pernah raise. False hanya jika fallback pun gagal dibuat."""
        self.load_notes.clear()
        try:
            # Buat fallback lebih dulu
            self.fallback_model = self.create_fallback_model()
            if self.fallback_model is None:
                raise RuntimeError("Gagal membuat model fallback.")

            path = self.check_model_exists()
            if path is None:
                logger.warning("File model tidak ditemukan: %s", self.model_path)
                self.load_notes.append(f"File model tidak ditemukan di: {self.model_path}")
                self._use_fallback()
            else:
                try:
                    model, config = self._load_from_path(path)
                    model.eval()
                    self.model, self.config, self.loaded_from = model, config, str(path)
                except Exception as e2:
                    logger.warning("Metode 2 gagal (%s): %s; memakai model fallback", path, e2)
                    self.load_notes.append(f"Metode 2 gagal: {e2}")
                    self._use_fallback()

            self.warm_up()
            self.is_model_loaded = True
            logger.info("Model siap (%s)", self.loaded_from or "fallback")
            return True
        except Exception as e:
            logger.error("Gagal memuat model penyakit tanaman: %s", e)
            if self.fallback_model is not None:
                logger.warning("Memakai model fallback karena error")
                self._use_fallback()
                self.is_model_loaded = True
                return True
            self.is_model_loaded = False
            return False

    # ---------- inferensi ----------
    def validate_image(self, image) -> bool:
        if image is None or not isinstance(image, Image.Image):
            raise InvalidImageError("Input gambar tidak valid.")
        width, height = image.size
        if width < self.min_image_size or height < self.min_image_size:
            raise InvalidImageError("Dimensi gambar terlalu kecil.")
        try:
            image.load()
        except OSError as e:
            raise InvalidImageError("Gambar belum termuat penuh.") from e
        return True

    def preprocess_image(self, image: Image.Image) -> torch.Tensor:
        x = self.transform(image.convert("RGB")).unsqueeze(0)
        if tuple(x.shape) != self.input_shape:
            logger.warning("Bentuk tensor input %s tidak cocok, reshape ke %s", tuple(x.shape), self.input_shape)
            x = x.reshape(self.input_shape)
        return x

    @torch.no_grad()
    def predict(self, image) -> PredictionResult:
        """Prediksi satu gambar; error apa pun menghasilkan PredictionResult.unknown()."""
        try:
            if self.model is None:
                raise RuntimeError("Model belum dimuat.")
            self.validate_image(image)
            x = self.preprocess_image(image)
            scores = self.model(x).reshape(-1).float()
            if self.config.get("output") != "probabilities":
                scores = torch.softmax(scores, dim=0)
            return interpret_probabilities(scores.cpu().numpy(), threshold=self.confidence_threshold)
        except Exception as e:
            logger.error("Gagal memprediksi penyakit tanaman: %s", e)
            return PredictionResult.unknown()


def _sorted_desc(items: list[ClassConfidence]) -> list[ClassConfidence]:
    return sorted(items, key=lambda c: c.confidence, reverse=True)


def interpret_probabilities(probs, threshold: float = settings.CONFIDENCE_THRESHOLD) -> PredictionResult:
    """
    Ubah vektor probabilitas (panjang = jumlah kelas) menjadi PredictionResult.

    Arg-max di bawah threshold → Unknown dengan list kosong. Selain itu semua
    kelas diurutkan menurun, plus versi yang dijumlahkan per nama tampilan.
    """
    probs = np.asarray(probs, dtype=np.float64).ravel()
    if probs.shape[0] != len(CLASS_NAMES):
        raise ValueError(f"Panjang output {probs.shape[0]} != {len(CLASS_NAMES)} kelas.")

    idx = int(np.argmax(probs))
    confidence = float(probs[idx])
    if not np.isfinite(confidence):
        return PredictionResult.unknown()
    if confidence < threshold:
        return PredictionResult.unknown(confidence)

    grouped = dict.fromkeys(CLASS_NAMES, 0.0)
    for i, p in enumerate(probs):
        grouped[CLASS_MAPPING[i]] += float(p)

    return PredictionResult(
        class_name=CLASS_MAPPING[idx],
        original_class_name=ORIGINAL_CLASS_NAMES[idx],
        confidence=confidence,
        all_predictions=_sorted_desc([
            ClassConfidence(CLASS_NAMES[i], float(p), ORIGINAL_CLASS_NAMES[i])
            for i, p in enumerate(probs)
        ]),
        grouped_predictions=_sorted_desc([ClassConfidence(name, conf) for name, conf in grouped.items()]),
        is_confident=True,
    )


plant_disease_model = PlantDiseaseModel()
