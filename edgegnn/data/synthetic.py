"""
Random directed graphs with random edge labels, for smoke-test training.

Per graph:
- num_nodes ~ round(Normal(mean_nodes, std_nodes)), clamped to min_nodes
- node_attr ~ U[0, 1)^(N x node_attr_size)
- edge (i, j) for i > j wherever U[0, 1) > edge_threshold (strict lower triangle)
- edge_attr = node_attr[src] - node_attr[dst]
- edge_weight = 1, y ~ U[0, 1)

The labels carry no signal; this only exercises shapes and the training loop.
"""

from __future__ import annotations

from dataclasses import dataclass

import torch
from torch.utils.data import Dataset

from edgegnn.typing import GraphSnapshot


@dataclass(frozen=True)
class SyntheticGraphConfig:
    num_graphs: int = 100
    node_attr_size: int = 3
    mean_nodes: float = 30.0
    std_nodes: float = 3.0
    min_nodes: int = 2
    edge_threshold: float = 0.7
    seed: int = 0
    dtype: torch.dtype = torch.float32


def random_graph(
    generator: torch.Generator,
    *,
    node_attr_size: int,
    mean_nodes: float,
    std_nodes: float,
    min_nodes: int,
    edge_threshold: float,
    dtype: torch.dtype = torch.float32,
) -> GraphSnapshot:
    draw = mean_nodes + std_nodes * torch.randn((), generator=generator).item()
    num_nodes = max(int(min_nodes), int(round(draw)))

    node_attr = torch.rand((num_nodes, node_attr_size), generator=generator, dtype=dtype)
    adjacency = torch.rand((num_nodes, num_nodes), generator=generator)
    edge_index = torch.argwhere(adjacency.tril(-1) > edge_threshold).t().contiguous()

    src, dst = edge_index[0], edge_index[1]
    edge_attr = node_attr.index_select(0, src) - node_attr.index_select(0, dst)
    num_edges = int(edge_index.size(1))
    y = torch.rand((num_edges, 1), generator=generator, dtype=dtype)
    edge_weight = torch.ones((num_edges, 1), dtype=dtype)

    return GraphSnapshot(
        node_attr=node_attr,
        edge_index=edge_index,
        edge_attr=edge_attr,
        edge_weight=edge_weight,
        y=y,
    )


class SyntheticGraphDataset(Dataset):
    """All graphs are sampled once at construction from a seeded generator."""

    def __init__(self, cfg: SyntheticGraphConfig):
        if cfg.num_graphs < 1:
            raise ValueError(f"num_graphs must be >= 1, got {cfg.num_graphs}")
        if not 0.0 <= cfg.edge_threshold < 1.0:
            raise ValueError(f"edge_threshold must be in [0, 1), got {cfg.edge_threshold}")
        self.cfg = cfg
        gen = torch.Generator().manual_seed(int(cfg.seed))
        self.graphs = [
            random_graph(
                gen,
                node_attr_size=cfg.node_attr_size,
                mean_nodes=cfg.mean_nodes,
                std_nodes=cfg.std_nodes,
                min_nodes=cfg.min_nodes,
                edge_threshold=cfg.edge_threshold,
                dtype=cfg.dtype,
            )
            for _ in range(cfg.num_graphs)
        ]

    def __len__(self) -> int:
        return len(self.graphs)

    def __getitem__(self, idx: int) -> GraphSnapshot:
        return self.graphs[idx]
