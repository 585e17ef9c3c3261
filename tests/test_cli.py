import json
from pathlib import Path

import numpy as np
import pytest

from edgegnn.cli import main
from edgegnn.config import ConfigError


def _config(tmp_path: Path, **train) -> str:
    payload = {
        "device": "cpu",
        "data": {"num_graphs": 3, "eval_num_graphs": 2, "mean_nodes": 8, "std_nodes": 1},
        "model": {
            "hidden_sizes_1": [8],
            "hidden_sizes_2": [8],
            "hidden_sizes_mlp": [8],
            "output_node_attr_size": 4,
            "k": 2,
        },
        "train": {"num_epochs": 2, "lr": 0.01, "eval_every": 1, "ckpt_every": 1, **train},
    }
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_train_then_eval(tmp_path: Path, capsys):
    run_dir = tmp_path / "run"
    main(["train", "--config", _config(tmp_path), "--run-dir", str(run_dir)])

    out = capsys.readouterr().out
    assert "epoch:\t0" in out and "epoch:\t1" in out
    assert "Total CPU/GPU time:" in out

    records = [json.loads(line) for line in (run_dir / "metrics.jsonl").read_text().splitlines()]
    assert any("loss" in r and "metric" in r for r in records)
    assert (run_dir / "checkpoints" / "last.pt").exists()
    assert (run_dir / "checkpoints" / "epoch_00001.pt").exists()
    assert (run_dir / "config.json").exists()

    ckpt = run_dir / "checkpoints" / "last.pt"
    main(["eval", "--config", _config(tmp_path), "--checkpoint", str(ckpt)])
    metrics = json.loads((run_dir / "eval_metrics_last.json").read_text())["metrics"]
    assert metrics["mse"] >= 0.0
    preds = np.load(run_dir / "eval_predictions_last.npz")
    assert preds["pred"].shape == preds["true"].shape


def test_resume_continues_from_checkpoint(tmp_path: Path, capsys):
    run_dir = tmp_path / "run"
    main(["train", "--config", _config(tmp_path), "--run-dir", str(run_dir)])
    capsys.readouterr()
    ckpt = run_dir / "checkpoints" / "epoch_00000.pt"
    main(["train", "--config", _config(tmp_path), "--resume", str(ckpt), "--set", "train.num_epochs=3"])
    out = capsys.readouterr().out
    assert "at epoch=1" in out
    assert "epoch:\t0;" not in out


def test_bad_config_aborts_before_training(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"train": {"num_epochs": 2}}), encoding="utf-8")
    with pytest.raises(ConfigError):
        main(["train", "--config", str(path), "--run-dir", str(tmp_path / "run")])
    assert not (tmp_path / "run").exists()
