import json

import numpy as np
import pytest
import soundfile as sf

from melbank.cli import run

SR = 16000


@pytest.fixture
def wav_path(tmp_path):
    t = np.arange(SR) / SR
    audio = 0.5 * np.sin(2 * np.pi * 1000.0 * t)
    path = tmp_path / "tone.wav"
    sf.write(str(path), audio, SR)
    return path


def test_writes_filter_bank_energies(wav_path, tmp_path):
    out = tmp_path / "feats.npy"
    assert run(["--input", str(wav_path), "--output", str(out)]) == 0

    feats = np.load(out)
    assert feats.shape == (101, 40)
    assert feats.dtype == np.float32
    assert np.all(feats >= 0)


def test_log_energies_and_overrides(wav_path, tmp_path):
    out = tmp_path / "feats.npy"
    log_file = tmp_path / "run.log"
    run([
        "--input", str(wav_path), "--output", str(out),
        "--filters", "20", "--max-freq", "8000", "--log",
        "--log-file", str(log_file),
    ])

    feats = np.load(out)
    assert feats.shape == (101, 20)
    assert np.all(np.isfinite(feats))
    assert feats.min() >= np.log(np.float32(1e-5)) - 1e-3
    assert "Saved 101 frames" in log_file.read_text(encoding="utf-8")


def test_config_file(wav_path, tmp_path):
    config = tmp_path / "parameter.json"
    config.write_text(json.dumps({"filter_amount": 13, "n_fft": 1024, "win_length": 1024}), encoding="utf-8")
    out = tmp_path / "feats.npy"

    run(["--input", str(wav_path), "--output", str(out), "--config", str(config)])

    assert np.load(out).shape == (101, 13)


def test_stereo_is_mixed_to_mono(tmp_path):
    audio = np.random.default_rng(0).uniform(-0.5, 0.5, size=(SR // 2, 2))
    wav = tmp_path / "stereo.wav"
    sf.write(str(wav), audio, SR)
    out = tmp_path / "feats.npy"

    run(["--input", str(wav), "--output", str(out)])

    assert np.load(out).shape == (51, 40)


def test_bad_frequency_range_exits(wav_path, tmp_path):
    with pytest.raises(SystemExit) as exc:
        run(["--input", str(wav_path), "--output", str(tmp_path / "x.npy"),
             "--min-freq", "5000", "--max-freq", "100"])
    assert exc.value.code == 2


def test_unknown_config_key_exits(wav_path, tmp_path):
    config = tmp_path / "parameter.json"
    config.write_text(json.dumps({"num_mels": 80}), encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        run(["--input", str(wav_path), "--output", str(tmp_path / "x.npy"), "--config", str(config)])
    assert exc.value.code == 2
