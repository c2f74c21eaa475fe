import dataclasses

import pytest

from disease_info import DISEASE_INFO, UNKNOWN, get_disease_info
from model_loader import CLASS_NAMES


def test_every_display_class_has_info():
    for name in CLASS_NAMES:
        info = DISEASE_INFO[name]
        assert info.description and info.treatment and info.prevention


def test_lookup_falls_back_to_unknown():
    assert get_disease_info("Powdery Mildew") is DISEASE_INFO[UNKNOWN]
    assert get_disease_info(None) is DISEASE_INFO[UNKNOWN]


def test_reference_data_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DISEASE_INFO["Healthy"].description = "x"
    with pytest.raises(TypeError):
        DISEASE_INFO["Baru"] = DISEASE_INFO["Healthy"]
