"""
Minimal logging:
- console printing, one line per epoch
- JSONL metrics file in the run directory
- optional TensorBoard if installed
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Any


@dataclass
class Loggers:
    run_dir: str
    jsonl_path: str
    tb: Any | None = None

    def close(self) -> None:
        if self.tb is not None:
            self.tb.close()


def setup_loggers(run_dir: str, enable_tb: bool = True) -> Loggers:
    os.makedirs(run_dir, exist_ok=True)
    jsonl_path = os.path.join(run_dir, "metrics.jsonl")

    tb = None
    if enable_tb:
        try:
            from torch.utils.tensorboard import SummaryWriter  # type: ignore

            tb = SummaryWriter(log_dir=os.path.join(run_dir, "tb"))
        except ImportError:
            tb = None

    return Loggers(run_dir=run_dir, jsonl_path=jsonl_path, tb=tb)


def log_metrics(loggers: Loggers, epoch: int, metrics: dict[str, float]) -> None:
    rec = {"epoch": epoch, "time": time.time(), **metrics}
    msg = ";\t".join([f"{k}:\t{v:.6g}" for k, v in metrics.items()])
    print(f"epoch:\t{epoch};\t{msg}")

    with open(loggers.jsonl_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(rec) + "\n")

    if loggers.tb is not None:
        for k, v in metrics.items():
            loggers.tb.add_scalar(k, v, epoch)


def log_elapsed(loggers: Loggers, seconds: float) -> None:
    print(f"Total CPU/GPU time: {seconds:.3f} s.")
    with open(loggers.jsonl_path, "a", encoding="utf-8") as f:
        f.write(json.dumps({"time": time.time(), "elapsed_s": seconds}) + "\n")
