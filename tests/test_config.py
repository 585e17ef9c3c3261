import json
from pathlib import Path

import pytest

from edgegnn.config import Config, ConfigError, apply_overrides, load_config, save_config

SHIPPED = Path(__file__).resolve().parents[1] / "configs" / "training_parameters.json"


def _write(tmp_path: Path, payload) -> str:
    path = tmp_path / "cfg.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(path)


def test_shipped_config_loads():
    cfg = load_config(str(SHIPPED))
    assert cfg.train.num_epochs == 10
    assert cfg.train.lr == pytest.approx(1e-3)
    assert cfg.model.hidden_sizes_mlp == [80, 80]
    assert cfg.model.output_node_attr_size == 32


@pytest.mark.parametrize(
    "train",
    [
        {"lr": 1e-3},
        {"num_epochs": 3},
        {"num_epochs": 0, "lr": 1e-3},
        {"num_epochs": 2.5, "lr": 1e-3},
        {"num_epochs": "3", "lr": 1e-3},
        {"num_epochs": 3, "lr": 0.0},
        {"num_epochs": 3, "lr": "fast"},
    ],
)
def test_missing_or_malformed_training_keys_are_fatal(tmp_path, train):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, {"train": train}))


def test_invalid_json_and_unknown_keys_are_fatal(tmp_path):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, "{not json"))
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, {"train": {"num_epochs": 1, "lr": 0.1, "epochz": 3}}))


def test_overrides_parse_scalars_and_lists():
    cfg = apply_overrides(
        Config(),
        ["train.lr=1e-4", "model.k=3", "model.use_layer_norm=false", "model.hidden_sizes_1=[16, 8]"],
    )
    assert cfg.train.lr == pytest.approx(1e-4)
    assert cfg.model.k == 3
    assert cfg.model.use_layer_norm is False
    assert cfg.model.hidden_sizes_1 == [16, 8]


def test_overrides_are_validated():
    with pytest.raises(ConfigError):
        apply_overrides(Config(), ["train.num_epochs=-1"])
    with pytest.raises(ConfigError):
        apply_overrides(Config(), ["train.lr"])
    with pytest.raises(ConfigError):
        apply_overrides(Config(), ["train.log_every=0"])
    with pytest.raises(ConfigError):
        apply_overrides(Config(), ["train.log_every=true"])


def test_save_then_load_roundtrip(tmp_path):
    cfg = apply_overrides(Config(), ["model.k=2", "data.num_graphs=7"])
    path = tmp_path / "saved.json"
    save_config(cfg, str(path))
    assert load_config(str(path)) == cfg
