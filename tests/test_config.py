import json

import pytest

from melbank.config import FilterBankConfig


def test_defaults_build_speech_front_end():
    config = FilterBankConfig()
    bank = config.build_filter_bank()
    spectrum = config.build_power_spectrum()

    assert config.energy_spectrum_size == 256
    assert len(bank) == 40
    assert bank.energy_spectrum_size == spectrum.energy_spectrum_size
    assert bank.step == pytest.approx(16000 / 512)
    assert spectrum.hop_length == 160


def test_from_dict_overrides_defaults():
    config = FilterBankConfig.from_dict({"filter_amount": 13, "lift_freq": 5.0})
    assert config.filter_amount == 13
    assert config.lift_freq == 5.0
    assert config.max_freq == 6800.0
    assert config.build_filter_bank().lift_freq == 5.0


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="num_mels"):
        FilterBankConfig.from_dict({"num_mels": 80})


def test_save_and_load(tmp_path):
    path = tmp_path / "parameter.json"
    config = FilterBankConfig(min_freq=0.0, max_freq=4000.0, sample_rate=8000, n_fft=256, win_length=200, hop_length=80)
    config.save(str(path))

    assert json.loads(path.read_text(encoding="utf-8"))["n_fft"] == 256
    assert FilterBankConfig.load(str(path)) == config


def test_invalid_values_fail_when_built():
    config = FilterBankConfig(min_freq=5000.0, max_freq=100.0)
    with pytest.raises(ValueError, match="must be smaller"):
        config.build_filter_bank()
