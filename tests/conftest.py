import io

import numpy as np
import pytest
import torch
import torch.nn as nn
from PIL import Image


class FixedOutputNet(nn.Module):
    """Jaringan palsu: selalu mengembalikan vektor yang sama dan menghitung pemanggilan."""

    def __init__(self, output):
        super().__init__()
        self.output = torch.tensor(output, dtype=torch.float32)
        self.calls = 0

    def forward(self, x):
        self.calls += 1
        return self.output.unsqueeze(0)


class StubModel:
    def __init__(self, loaded=True, prediction=None, raises=None):
        self.loaded = loaded
        self.prediction = prediction
        self.raises = raises
        self.load_calls = 0
        self.predicted_images = []

    def load(self):
        self.load_calls += 1
        if self.raises is not None:
            raise self.raises
        return self.loaded

    def predict(self, image):
        self.predicted_images.append(image)
        return self.prediction


@pytest.fixture
def leaf_image():
    arr = np.zeros((64, 64, 3), dtype=np.uint8)
    arr[..., 1] = 160
    return Image.fromarray(arr)


@pytest.fixture
def png_bytes(leaf_image):
    buf = io.BytesIO()
    leaf_image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def noisy_png_bytes():
    rng = np.random.default_rng(0)
    arr = rng.integers(0, 256, size=(128, 128, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()
