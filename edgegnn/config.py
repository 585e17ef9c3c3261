"""
Dataclass-based config with JSON load + CLI overrides.

Usage:
  cfg = load_config("configs/training_parameters.json")
  cfg = apply_overrides(cfg, ["train.lr=1e-4", "model.hidden_sizes_1=[128,128]"])

`train.num_epochs` and `train.lr` must be present in the file; everything else
falls back to the defaults below.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any
import json
import math


class ConfigError(ValueError):
    """Missing or malformed configuration. Fatal before training starts."""


@dataclass(frozen=True)
class DataConfig:
    dataset: str = "synthetic"
    num_graphs: int = 100
    eval_num_graphs: int = 20
    batch_size: int = 1
    shuffle: bool = False
    num_workers: int = 0
    mean_nodes: float = 30.0
    std_nodes: float = 3.0
    min_nodes: int = 2
    edge_threshold: float = 0.7


@dataclass(frozen=True)
class ModelConfig:
    node_attr_size: int = 3
    edge_attr_size: int = 3
    hidden_sizes_1: list[int] = field(default_factory=lambda: [64, 64])
    hidden_sizes_2: list[int] = field(default_factory=lambda: [64, 64])
    hidden_sizes_mlp: list[int] = field(default_factory=lambda: [80, 80])
    output_node_attr_size: int = 32
    k: int = 6
    dropout_prob: float = 0.0
    use_layer_norm: bool = True
    act: str = "relu"
    end_act: str = "identity"
    aggregation: str = "sum"


@dataclass(frozen=True)
class TrainConfig:
    num_epochs: int = 10
    lr: float = 1e-3
    weight_decay: float = 0.0
    grad_clip: float = 0.0
    log_every: int = 1
    eval_every: int = 0
    ckpt_every: int = 0
    amp: bool = False


@dataclass(frozen=True)
class LossConfig:
    kind: str = "mse"
    huber_delta: float = 1.0


@dataclass(frozen=True)
class EvalConfig:
    save_json: bool = True
    save_predictions: bool = True
    prediction_graphs: int = 8


@dataclass(frozen=True)
class Config:
    seed: int = 123
    device: str = "cpu"
    dtype: str = "float32"
    data: DataConfig = field(default_factory=DataConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    train: TrainConfig = field(default_factory=TrainConfig)
    loss: LossConfig = field(default_factory=LossConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)


REQUIRED_KEYS = ("train.num_epochs", "train.lr")


def load_config(path: str) -> Config:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config {path} is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config {path} must hold a JSON object, got {type(raw).__name__}")

    for key in REQUIRED_KEYS:
        section, name = key.split(".")
        if name not in (raw.get(section) or {}):
            raise ConfigError(f"Config {path} is missing required key '{key}'")

    return validate_config(_from_dict(raw))


def save_config(cfg: Config, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(cfg), f, indent=2)


def apply_overrides(cfg: Config, overrides: list[str]) -> Config:
    """
    Overrides are dot.path=value, e.g. train.lr=1e-4 or model.hidden_sizes_mlp=[80,80].
    """

    d = asdict(cfg)
    for item in overrides:
        key, value = _split_override(item)
        _set_by_dotpath(d, key, _parse_value(value))
    return validate_config(_from_dict(d))


def validate_config(cfg: Config) -> Config:
    epochs = cfg.train.num_epochs
    if isinstance(epochs, bool) or not isinstance(epochs, int) or epochs < 1:
        raise ConfigError(f"train.num_epochs must be a positive integer, got {epochs!r}")

    lr = cfg.train.lr
    if isinstance(lr, bool) or not isinstance(lr, (int, float)) or not math.isfinite(lr) or lr <= 0:
        raise ConfigError(f"train.lr must be a positive float, got {lr!r}")

    for name in ("hidden_sizes_1", "hidden_sizes_2", "hidden_sizes_mlp"):
        value = getattr(cfg.model, name)
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"model.{name} must be a list of integers, got {value!r}")

    if cfg.data.batch_size < 1:
        raise ConfigError(f"data.batch_size must be >= 1, got {cfg.data.batch_size}")

    log_every = cfg.train.log_every
    if isinstance(log_every, bool) or not isinstance(log_every, int) or log_every < 1:
        raise ConfigError(f"train.log_every must be a positive integer, got {log_every!r}")
    return cfg


# ----------------- internal helpers -----------------

def _section(cls, d: dict[str, Any], name: str):
    values = d.get(name) or {}
    if not isinstance(values, dict):
        raise ConfigError(f"Config section '{name}' must be an object, got {values!r}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {unknown}")
    return cls(**values)


def _from_dict(d: dict[str, Any]) -> Config:
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise ConfigError(f"Unknown top-level config keys: {unknown}")
    return Config(
        seed=d.get("seed", 123),
        device=d.get("device", "cpu"),
        dtype=d.get("dtype", "float32"),
        data=_section(DataConfig, d, "data"),
        model=_section(ModelConfig, d, "model"),
        train=_section(TrainConfig, d, "train"),
        loss=_section(LossConfig, d, "loss"),
        eval=_section(EvalConfig, d, "eval"),
    )


def _split_override(s: str) -> tuple[str, str]:
    if "=" not in s:
        raise ConfigError(f"Override must be key=value, got: {s}")
    key, value = s.split("=", 1)
    return key.strip(), value.strip()


def _set_by_dotpath(d: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    cur: Any = d
    for part in parts[:-1]:
        if part not in cur or not isinstance(cur[part], dict):
            cur[part] = {}
        cur = cur[part]
    cur[parts[-1]] = value


def _parse_value(v: str) -> Any:
    if v.startswith("["):
        try:
            return json.loads(v)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Cannot parse list override value {v!r}: {e}") from e
    return _parse_scalar(v)


def _parse_scalar(v: str) -> Any:
    if v.lower() in {"true", "false"}:
        return v.lower() == "true"

    try:
        if v.startswith("0") and len(v) > 1 and v[1].isdigit():
            raise ValueError
        return int(v)
    except ValueError:
        pass

    try:
        return float(v)
    except ValueError:
        pass

    return v.strip('"\'')
