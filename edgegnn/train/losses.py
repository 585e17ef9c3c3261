"""
Objectives and monitoring metrics for per-edge regression.

=== RESEARCH KNOB ===
- robust losses (Huber) vs plain MSE
- edge-weighted losses
"""

from __future__ import annotations

from dataclasses import dataclass

import torch
import torch.nn.functional as F


@dataclass(frozen=True)
class LossConfig:
    kind: str = "mse"
    huber_delta: float = 1.0


def edge_loss(pred: torch.Tensor, target: torch.Tensor, cfg: LossConfig) -> torch.Tensor:
    if pred.shape != target.shape:
        raise ValueError(f"pred and target must match, got {tuple(pred.shape)} vs {tuple(target.shape)}")
    if cfg.kind == "mse":
        return F.mse_loss(pred, target)
    if cfg.kind == "huber":
        return F.huber_loss(pred, target, delta=cfg.huber_delta)
    raise ValueError(f"Unknown loss kind: {cfg.kind}")


def edge_metric(pred: torch.Tensor, target: torch.Tensor) -> torch.Tensor:
    """Mean absolute error; reported alongside the loss, never differentiated."""
    return F.l1_loss(pred, target)
