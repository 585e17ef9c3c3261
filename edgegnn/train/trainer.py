"""
Minimal trainer.

Design goals:
- explicit train_step() / train_epoch() / evaluate()
- easy to read, easy to edit
- AMP friendly structure, but no heavy framework

Each optimizer step alternates strictly with a forward/backward pass:
zero_grad -> forward -> loss -> backward -> step.
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import asdict
from typing import Any

import os
import torch

from edgegnn.config import Config
from edgegnn.models.encoder import GraphEncoder
from edgegnn.train.eval import regression_error_sums, regression_metrics_from_sums
from edgegnn.train.losses import LossConfig, edge_loss, edge_metric
from edgegnn.typing import GraphSnapshot
from edgegnn.utils.checkpoint import load_checkpoint, save_checkpoint


class Trainer:
    def __init__(
        self,
        *,
        cfg: Config,
        model: GraphEncoder,
        run_dir: str,
    ):
        self.cfg = cfg
        self.run_dir = run_dir

        if cfg.device == "cuda":
            self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        else:
            self.device = torch.device(cfg.device)
        self.model = model.to(self.device)

        self.optim = torch.optim.AdamW(
            self.model.parameters(),
            lr=cfg.train.lr,
            weight_decay=cfg.train.weight_decay,
        )

        amp_enabled = cfg.train.amp and self.device.type == "cuda"
        self.scaler = _make_grad_scaler(amp_enabled) if amp_enabled else _NoopGradScaler()
        self.loss_cfg = LossConfig(kind=cfg.loss.kind, huber_delta=cfg.loss.huber_delta)
        self.best_metric = float("inf")

    def train_step(self, graph: GraphSnapshot) -> dict[str, float]:
        self.model.train()
        g = graph.to(self.device)
        if g.y is None:
            raise ValueError("train_step needs edge labels (graph.y is None)")

        self.optim.zero_grad(set_to_none=True)

        with _autocast(self.scaler.is_enabled()):
            pred = self.model.forward_graph(g)
            loss = edge_loss(pred.float(), g.y.float(), self.loss_cfg)

        self.scaler.scale(loss).backward()

        if self.cfg.train.grad_clip > 0:
            self.scaler.unscale_(self.optim)
            torch.nn.utils.clip_grad_norm_(self.model.parameters(), self.cfg.train.grad_clip)

        self.scaler.step(self.optim)
        self.scaler.update()

        with torch.no_grad():
            metric = edge_metric(pred.detach().float(), g.y.float())
        return {"loss": float(loss.item()), "metric": float(metric.item())}

    def train_epoch(self, dataloader) -> dict[str, float]:
        loss_sum = 0.0
        metric_sum = 0.0
        num_batches = 0
        num_skipped = 0

        for graph in dataloader:
            # MSE over zero edges is NaN; nothing to learn from an edgeless graph.
            if graph.num_edges == 0:
                num_skipped += 1
                continue
            out = self.train_step(graph)
            loss_sum += out["loss"]
            metric_sum += out["metric"]
            num_batches += 1

        if num_batches == 0:
            raise RuntimeError("Train dataloader produced no graphs with edges.")

        return {
            "loss": loss_sum / num_batches,
            "metric": metric_sum / num_batches,
            "num_batches": float(num_batches),
            "num_skipped": float(num_skipped),
        }

    @torch.no_grad()
    def predict(self, graph: GraphSnapshot) -> torch.Tensor:
        """
        Returns:
          pred: [num_edges, 1] on the trainer device
        """
        was_training = self.model.training
        self.model.eval()
        try:
            return self.model.forward_graph(graph.to(self.device))
        finally:
            self.model.train(was_training)

    @torch.no_grad()
    def evaluate(self, dataloader, max_batches: int = 0) -> dict[str, float]:
        sq_sum = 0.0
        abs_sum = 0.0
        count = 0
        num_graphs = 0

        for i, graph in enumerate(dataloader):
            if max_batches > 0 and i >= max_batches:
                break
            if graph.y is None:
                raise ValueError("evaluate needs edge labels (graph.y is None)")
            num_graphs += graph.num_graphs
            if graph.num_edges == 0:
                continue
            pred = self.predict(graph)
            s, a, n = regression_error_sums(pred.float(), graph.y.to(self.device).float())
            sq_sum += s
            abs_sum += a
            count += n

        if num_graphs == 0:
            raise RuntimeError("Eval dataloader produced no batches.")
        if count == 0:
            raise RuntimeError(f"Eval dataloader produced {num_graphs} graph(s) but no edges to score.")

        metrics = regression_metrics_from_sums(sq_sum, abs_sum, count)
        metrics["num_graphs"] = float(num_graphs)
        return metrics

    @torch.no_grad()
    def collect_predictions(self, dataloader, *, max_graphs: int) -> dict[str, Any]:
        """
        Returns flat [sum(E), 1] pred/true tensors on CPU plus per-graph edge offsets.

        Collated batches are split back into their graphs, so offsets has one entry
        per exported graph plus a leading 0, and at most max_graphs graphs are kept.
        """
        if max_graphs <= 0:
            raise ValueError(f"max_graphs must be >0, got {max_graphs}")

        pred_chunks: list[torch.Tensor] = []
        true_chunks: list[torch.Tensor] = []
        offsets = [0]

        for graph in dataloader:
            remaining = max_graphs - (len(offsets) - 1)
            if remaining <= 0:
                break
            pred = self.predict(graph).cpu()
            if graph.y is not None:
                true = graph.y.cpu()
            else:
                true = torch.full_like(pred, float("nan"))

            # collate_graphs keeps each graph's edges contiguous and in graph order.
            counts = _edges_per_graph(graph)[:remaining]
            take = int(counts.sum().item())
            pred_chunks.append(pred[:take])
            true_chunks.append(true[:take])
            for n in counts.tolist():
                offsets.append(offsets[-1] + int(n))

        if len(offsets) == 1:
            raise RuntimeError("No predictions collected.")

        return {
            "pred": torch.cat(pred_chunks, dim=0),
            "true": torch.cat(true_chunks, dim=0),
            "offsets": torch.tensor(offsets, dtype=torch.long),
        }

    def maybe_save(self, epoch: int) -> None:
        if self.cfg.train.ckpt_every <= 0 or epoch % self.cfg.train.ckpt_every != 0:
            return
        self.save(os.path.join(self.run_dir, "checkpoints", f"epoch_{epoch:05d}.pt"), epoch)

    def maybe_save_best(self, epoch: int, eval_metric: float) -> None:
        if eval_metric >= self.best_metric:
            return
        self.best_metric = eval_metric
        self.save(os.path.join(self.run_dir, "checkpoints", "best.pt"), epoch)
        print(f"[epoch {epoch}] New best model saved (eval={eval_metric:.6f})")

    def save(self, path: str, epoch: int) -> None:
        save_checkpoint(
            path,
            epoch=epoch,
            model=self.model,
            optimizer=self.optim,
            scaler=self.scaler,
            cfg_dict=asdict(self.cfg),
            best_metric=self.best_metric,
        )

    def load_checkpoint(self, path: str) -> int:
        """Restores model/optimizer state and returns the next epoch to run."""
        payload = load_checkpoint(
            path,
            model=self.model,
            optimizer=self.optim,
            scaler=self.scaler,
            map_location=str(self.device),
        )
        if payload.get("best_metric") is not None:
            self.best_metric = float(payload["best_metric"])
        return int(payload.get("epoch", -1)) + 1


def _make_grad_scaler(enabled: bool):
    return torch.amp.GradScaler("cuda", enabled=enabled)


def _autocast(enabled: bool):
    if enabled:
        return torch.amp.autocast(device_type="cuda", enabled=True)
    return nullcontext()


class _NoopGradScaler:
    def is_enabled(self) -> bool:
        return False

    def scale(self, loss: torch.Tensor) -> torch.Tensor:
        return loss

    def unscale_(self, optimizer) -> None:
        del optimizer

    def step(self, optimizer) -> None:
        optimizer.step()

    def update(self) -> None:
        return None

    def state_dict(self) -> dict[str, bool]:
        return {"enabled": False}

    def load_state_dict(self, state: dict[str, bool]) -> None:
        del state


def _edges_per_graph(graph: GraphSnapshot) -> torch.Tensor:
    """[num_graphs] edge counts, on CPU."""
    if graph.batch is None:
        return torch.tensor([graph.num_edges], dtype=torch.long)
    edge_graph = graph.batch.cpu()[graph.edge_index[0].cpu().to(torch.long)]
    return torch.bincount(edge_graph, minlength=graph.num_graphs)
