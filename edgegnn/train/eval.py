"""
Evaluation metrics over many graphs.

Errors are accumulated as sums so that graphs of different sizes are weighted
by their edge count.
"""

from __future__ import annotations

import math

import torch


def regression_error_sums(pred: torch.Tensor, target: torch.Tensor) -> tuple[float, float, int]:
    """
    Args:
      pred: [E, 1]
      target: [E, 1]

    Returns:
      (sum of squared errors, sum of absolute errors, number of elements)
    """
    if pred.shape != target.shape:
        raise ValueError(f"pred and target must match, got {tuple(pred.shape)} vs {tuple(target.shape)}")
    diff = pred - target
    return float(diff.pow(2).sum().item()), float(diff.abs().sum().item()), int(diff.numel())


def regression_metrics_from_sums(sq_sum: float, abs_sum: float, count: int) -> dict[str, float]:
    if count <= 0:
        raise ValueError("no edges to evaluate")
    mse = sq_sum / count
    return {
        "mse": mse,
        "rmse": math.sqrt(mse),
        "mae": abs_sum / count,
        "num_edges": float(count),
    }


def regression_metrics(pred: torch.Tensor, target: torch.Tensor) -> dict[str, float]:
    return regression_metrics_from_sums(*regression_error_sums(pred, target))
