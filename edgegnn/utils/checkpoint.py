"""
Checkpointing utilities.

Saves:
- model/optim/scaler states
- epoch
- RNG state
- config snapshot (dict)
"""

from __future__ import annotations

import os
from typing import Any

import torch


def save_checkpoint(
    path: str,
    *,
    epoch: int,
    model: torch.nn.Module,
    optimizer: torch.optim.Optimizer,
    scaler: Any | None,
    cfg_dict: dict[str, Any],
    best_metric: float | None = None,
) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    payload: dict[str, Any] = {
        "epoch": epoch,
        "model": model.state_dict(),
        "optimizer": optimizer.state_dict(),
        "scaler": scaler.state_dict() if scaler is not None and hasattr(scaler, "state_dict") else None,
        "cfg": cfg_dict,
        "best_metric": best_metric,
        "rng_state": torch.get_rng_state(),
        "cuda_rng_state": torch.cuda.get_rng_state_all() if torch.cuda.is_available() else None,
    }
    torch.save(payload, path)


def load_checkpoint(
    path: str,
    *,
    model: torch.nn.Module,
    optimizer: torch.optim.Optimizer | None = None,
    scaler: Any | None = None,
    map_location: str | None = None,
) -> dict[str, Any]:
    payload = torch.load(path, map_location=map_location, weights_only=False)
    model.load_state_dict(payload["model"])
    if optimizer is not None and payload.get("optimizer") is not None:
        optimizer.load_state_dict(payload["optimizer"])
    if scaler is not None and payload.get("scaler") is not None and hasattr(scaler, "load_state_dict"):
        scaler.load_state_dict(payload["scaler"])

    if payload.get("rng_state") is not None:
        rng = payload["rng_state"]
        if not isinstance(rng, torch.ByteTensor):
            rng = rng.byte().cpu()
        torch.set_rng_state(rng)
    if torch.cuda.is_available() and payload.get("cuda_rng_state") is not None:
        states = payload["cuda_rng_state"]
        torch.cuda.set_rng_state_all([s.byte().cpu() for s in states])

    return payload
