"""
CLI entrypoint.

Examples:
  python -m edgegnn train --config configs/training_parameters.json
  python -m edgegnn train --config configs/training_parameters.json --set train.lr=1e-4 --set model.k=3
  python -m edgegnn eval --config configs/training_parameters.json --checkpoint runs/<ts>/checkpoints/best.pt
"""

from __future__ import annotations

import argparse
import json
import os
import time
from typing import Any

import numpy as np

from edgegnn.config import apply_overrides, load_config, save_config
from edgegnn.data.loader import make_dataloader
from edgegnn.factory import build_dataset, build_model
from edgegnn.train.trainer import Trainer
from edgegnn.utils.logging import log_elapsed, log_metrics, setup_loggers
from edgegnn.utils.seed import set_seed


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("edgegnn")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_train = sub.add_parser("train", help="Train a model")
    p_train.add_argument("--config", type=str, required=True)
    p_train.add_argument("--set", dest="overrides", action="append", default=[])
    p_train.add_argument("--resume", type=str, default=None)
    p_train.add_argument("--run-dir", type=str, default=None)

    p_eval = sub.add_parser("eval", help="Evaluate a model on the eval split")
    p_eval.add_argument("--config", type=str, required=True)
    p_eval.add_argument("--set", dest="overrides", action="append", default=[])
    p_eval.add_argument("--checkpoint", type=str, default=None)
    p_eval.add_argument("--run-dir", type=str, default=None)

    args = parser.parse_args(argv)

    start = time.perf_counter()

    # Config errors abort here, before anything is built.
    cfg = load_config(args.config)
    cfg = apply_overrides(cfg, args.overrides)

    set_seed(cfg.seed, deterministic=False)

    ckpt = args.resume if args.cmd == "train" else args.checkpoint
    run_dir = args.run_dir or _resolve_run_dir(ckpt)
    os.makedirs(run_dir, exist_ok=True)
    loggers = setup_loggers(run_dir)

    train_dl = make_dataloader(
        build_dataset(cfg, split="train"),
        batch_size=cfg.data.batch_size,
        shuffle=cfg.data.shuffle,
        num_workers=cfg.data.num_workers,
    )
    eval_dl = make_dataloader(
        build_dataset(cfg, split="eval"),
        batch_size=cfg.data.batch_size,
        shuffle=False,
        num_workers=cfg.data.num_workers,
    )

    trainer = Trainer(cfg=cfg, model=build_model(cfg), run_dir=run_dir)

    try:
        if args.cmd == "train":
            save_config(cfg, os.path.join(run_dir, "config.json"))
            start_epoch = 0
            if args.resume:
                start_epoch = trainer.load_checkpoint(args.resume)
                print(f"Resumed from {args.resume} at epoch={start_epoch}")

            for epoch in range(start_epoch, cfg.train.num_epochs):
                metrics = trainer.train_epoch(train_dl)
                if epoch % cfg.train.log_every == 0:
                    log_metrics(loggers, epoch, metrics)

                if cfg.train.eval_every > 0 and epoch % cfg.train.eval_every == 0:
                    eval_metrics = trainer.evaluate(eval_dl)
                    log_metrics(loggers, epoch, {f"eval/{k}": v for k, v in eval_metrics.items()})
                    trainer.maybe_save_best(epoch, eval_metrics["mse"])

                trainer.maybe_save(epoch)

            trainer.save(os.path.join(run_dir, "checkpoints", "last.pt"), cfg.train.num_epochs - 1)

        elif args.cmd == "eval":
            if args.checkpoint:
                _ = trainer.load_checkpoint(args.checkpoint)
            metrics = trainer.evaluate(eval_dl)
            log_metrics(loggers, 0, {f"eval/{k}": v for k, v in metrics.items()})
            if cfg.eval.save_json:
                _save_eval_json(run_dir, metrics, args.checkpoint)
            if cfg.eval.save_predictions:
                examples = trainer.collect_predictions(
                    eval_dl, max_graphs=int(cfg.eval.prediction_graphs)
                )
                _save_eval_predictions_npz(run_dir, examples, args.checkpoint)

        log_elapsed(loggers, time.perf_counter() - start)
    finally:
        loggers.close()


def _resolve_run_dir(ckpt_path: str | None) -> str:
    if ckpt_path:
        ckpt_dir = os.path.dirname(os.path.abspath(ckpt_path))
        if os.path.basename(ckpt_dir) == "checkpoints":
            return os.path.dirname(ckpt_dir)
    return os.path.join("runs", time.strftime("%Y%m%d_%H%M%S"))


def _save_eval_json(run_dir: str, metrics: dict[str, float], checkpoint: str | None) -> None:
    base = _eval_artifact_base(checkpoint)
    name = f"eval_metrics_{base}.json" if base else "eval_metrics.json"
    payload = {"checkpoint": checkpoint, "metrics": metrics}
    with open(os.path.join(run_dir, name), "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)


def _save_eval_predictions_npz(
    run_dir: str,
    examples: dict[str, Any],
    checkpoint: str | None,
) -> None:
    base = _eval_artifact_base(checkpoint)
    name = f"eval_predictions_{base}.npz" if base else "eval_predictions.npz"
    np.savez_compressed(
        os.path.join(run_dir, name),
        pred=examples["pred"].float().numpy(),
        true=examples["true"].float().numpy(),
        offsets=examples["offsets"].numpy().astype(np.int64),
    )


def _eval_artifact_base(checkpoint: str | None) -> str:
    if checkpoint:
        return os.path.splitext(os.path.basename(checkpoint))[0]
    return ""
