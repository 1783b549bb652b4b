import json
import numpy as np
import pytest
import os
import sys

import matplotlib
matplotlib.use("Agg")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../apps')))

from run_modem import main
from tonemodem.codec.wav import read_wav, write_wav


def test_encode_then_decode(tmp_path, capsys):
    wav = tmp_path / "hi.wav"
    assert main(["encode", "Hi", "-o", str(wav)]) == 0
    out = capsys.readouterr().out
    assert "Encoded 2 chars" in out
    assert "15876 samples" in out

    samples, rate = read_wav(wav)
    assert rate == 44100
    assert len(samples) == 15876

    assert main(["decode", str(wav)]) == 0
    assert capsys.readouterr().out.strip() == "Hi"


def test_decode_failure_returns_nonzero(tmp_path, capsys):
    wav = tmp_path / "silence.wav"
    write_wav(wav, np.zeros(44100), 44100)
    assert main(["decode", str(wav)]) == 1
    assert capsys.readouterr().out == ""


def test_config_file_is_applied(tmp_path, capsys):
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"fec_redundancy": 3, "callsign": "N0CALL"}))
    wav = tmp_path / "ok.wav"

    assert main(["--config", str(settings), "encode", "OK", "-o", str(wav)]) == 0
    samples, _ = read_wav(wav)
    # 48 raw bits with triple redundancy
    assert len(samples) == int(np.floor((0.1 + 48 * 0.01 + 0.1) * 44100))
    capsys.readouterr()

    assert main(["--config", str(settings), "decode", str(wav)]) == 0
    assert capsys.readouterr().out.strip() == "OK"


@pytest.mark.parametrize("content", [None, "{not json", "[1, 2]"])
def test_unreadable_config_returns_nonzero(tmp_path, capsys, content):
    settings = tmp_path / "settings.json"
    if content is not None:
        settings.write_text(content)
    wav = tmp_path / "out.wav"
    assert main(["--config", str(settings), "encode", "Hi", "-o", str(wav)]) == 1
    assert not wav.exists()
    assert capsys.readouterr().out == ""


def test_decode_plot(tmp_path, capsys):
    wav = tmp_path / "hi.wav"
    png = tmp_path / "hi.png"
    main(["encode", "Hi", "-o", str(wav)])
    assert main(["decode", str(wav), "--plot", str(png)]) == 0
    assert png.exists() and png.stat().st_size > 0


def test_plot_is_written_when_decode_fails(tmp_path):
    wav = tmp_path / "silence.wav"
    png = tmp_path / "silence.png"
    write_wav(wav, np.zeros(8820), 44100)
    assert main(["decode", str(wav), "--plot", str(png)]) == 1
    assert png.exists()


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-q"]))
