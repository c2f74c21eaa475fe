import random

import pytest
from PIL import Image

from conftest import StubModel
from disease_info import DISEASE_INFO, UNKNOWN
from disease_service import DiseaseService, ImageLoadError, image_from_file
from model_loader import CLASS_NAMES, PredictionResult, interpret_probabilities


def _service(model, **kwargs):
    kwargs.setdefault("force_simulation", False)
    return DiseaseService(model=model, rng=random.Random(1234), **kwargs)


def test_real_mode_attaches_disease_info(leaf_image):
    model = StubModel(loaded=True, prediction=interpret_probabilities([0.05] * 9 + [0.55]))
    service = _service(model)

    result = service.diagnose(leaf_image)

    assert service.mode == "real"
    assert model.predicted_images == [leaf_image]
    assert result.class_name == "Healthy"
    assert result.confidence == pytest.approx(0.55)
    assert result.is_confident
    assert result.disease_info == DISEASE_INFO["Healthy"]
    assert result.error is None


def test_init_model_is_idempotent():
    model = StubModel(loaded=True)
    service = _service(model)
    assert service.init_model() is True
    assert service.init_model() is True
    assert model.load_calls == 1


def test_load_failure_switches_to_simulation(leaf_image):
    model = StubModel(loaded=False)
    service = _service(model)

    for _ in range(5):
        result = service.diagnose(leaf_image)
        assert result.class_name != UNKNOWN
        assert result.is_confident
        assert result.error is None
        assert result.disease_info == DISEASE_INFO[result.class_name]

    assert service.mode == "simulation"
    assert model.load_calls == 1
    assert model.predicted_images == []


def test_load_exception_never_escapes(leaf_image):
    model = StubModel(raises=RuntimeError("runtime hilang"))
    service = _service(model)

    assert service.init_model() is False
    result = service.diagnose(leaf_image)
    assert service.mode == "simulation"
    assert result.class_name != UNKNOWN
    assert model.load_calls == 1


def test_force_simulation_skips_loading(leaf_image):
    model = StubModel(loaded=True)
    service = _service(model, force_simulation=True)
    result = service.diagnose(leaf_image)
    assert model.load_calls == 0
    assert service.mode == "simulation"
    assert result.is_confident


def test_unknown_prediction_gets_unknown_info(leaf_image):
    service = _service(StubModel(loaded=True, prediction=PredictionResult.unknown(0.07)))
    result = service.diagnose(leaf_image)
    assert result.class_name == UNKNOWN
    assert not result.is_confident
    assert result.disease_info == DISEASE_INFO[UNKNOWN]


def test_bytes_input_is_decoded(png_bytes):
    model = StubModel(loaded=True, prediction=interpret_probabilities([0.05] * 9 + [0.55]))
    service = _service(model)

    result = service.diagnose(png_bytes)

    assert result.class_name == "Healthy"
    image = model.predicted_images[0]
    assert isinstance(image, Image.Image)
    assert image.size == (64, 64)


def test_path_input_is_decoded(tmp_path, leaf_image):
    path = tmp_path / "daun.png"
    leaf_image.save(path)
    model = StubModel(loaded=True, prediction=interpret_probabilities([0.05] * 9 + [0.55]))
    result = _service(model).diagnose(str(path))
    assert result.class_name == "Healthy"
    assert model.predicted_images[0].size == (64, 64)


def test_corrupt_file_returns_unknown_with_error():
    service = _service(StubModel(loaded=True))
    result = service.diagnose(b"bukan gambar")
    assert result.class_name == UNKNOWN
    assert result.confidence == 0.0
    assert not result.is_confident
    assert result.error == "Gagal memuat gambar"
    assert result.disease_info == DISEASE_INFO[UNKNOWN]


def test_unsupported_input_returns_unknown_with_error():
    result = _service(StubModel(loaded=False)).diagnose(42)
    assert result.class_name == UNKNOWN
    assert result.error


def test_image_from_file_raises_load_error():
    with pytest.raises(ImageLoadError):
        image_from_file(b"\x89PNG rusak")


def test_oversized_image_raises_load_error(png_bytes, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    with pytest.raises(ImageLoadError):
        image_from_file(png_bytes)


def test_simulated_prediction_ranges():
    service = _service(StubModel(loaded=False))
    for _ in range(50):
        prediction = service.simulated_prediction()
        assert prediction.class_name in CLASS_NAMES
        assert prediction.is_confident
        assert 0.5 <= prediction.confidence < 0.9
        assert prediction.original_class_name == f"Sample {prediction.class_name}"

        confs = [p.confidence for p in prediction.grouped_predictions]
        assert confs == sorted(confs, reverse=True)
        assert sorted(p.class_name for p in prediction.all_predictions) == sorted(CLASS_NAMES)
        others = [p.confidence for p in prediction.grouped_predictions if p.class_name != prediction.class_name]
        assert all(0.0 <= c < 0.3 for c in others)


def test_to_dict_is_plain(leaf_image):
    result = _service(StubModel(loaded=False)).diagnose(leaf_image)
    data = result.to_dict()
    assert data["class_name"] == result.class_name
    assert set(data["disease_info"]) == {"description", "treatment", "prevention", "severity"}
    assert isinstance(data["all_predictions"][0], dict)
