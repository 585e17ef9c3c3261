"""
Graph data contract shared by the models, the dataset and the trainer.

Tensors follow common graph-learning conventions (PyG-like) without depending on PyG.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence

import torch


@dataclass(frozen=True)
class GraphSnapshot:
    """
    One graph (or several graphs collated into a single disjoint graph).

    Attributes:
      node_attr: [num_nodes, node_attr_size]
      edge_index: [2, num_edges] (src, dst) indices into node_attr
      edge_attr: [num_edges, edge_attr_size]
      edge_weight: [num_edges, 1] (or [num_edges, W] broadcastable against messages)
      y: [num_edges, 1] edge labels, or None at inference time
      batch: [num_nodes] graph id per node (0..B-1), or None if single graph
    """

    node_attr: torch.Tensor
    edge_index: torch.Tensor
    edge_attr: torch.Tensor
    edge_weight: torch.Tensor
    y: Optional[torch.Tensor] = None
    batch: Optional[torch.Tensor] = None

    @property
    def num_nodes(self) -> int:
        return int(self.node_attr.size(0))

    @property
    def num_edges(self) -> int:
        return int(self.edge_index.size(1))

    @property
    def num_graphs(self) -> int:
        if self.batch is None or self.batch.numel() == 0:
            return 1
        return int(self.batch.max().item()) + 1

    def to(self, device: torch.device | str) -> "GraphSnapshot":
        return replace(
            self,
            node_attr=self.node_attr.to(device),
            edge_index=self.edge_index.to(device),
            edge_attr=self.edge_attr.to(device),
            edge_weight=self.edge_weight.to(device),
            y=self.y.to(device) if self.y is not None else None,
            batch=self.batch.to(device) if self.batch is not None else None,
        )

    def validate(
        self,
        node_attr_size: Optional[int] = None,
        edge_attr_size: Optional[int] = None,
    ) -> "GraphSnapshot":
        """Raise ValueError on any shape/index inconsistency; returns self for chaining."""
        check_graph_tensors(
            self.edge_index,
            self.node_attr,
            self.edge_attr,
            self.edge_weight,
            node_attr_size=node_attr_size,
            edge_attr_size=edge_attr_size,
        )
        if self.y is not None and int(self.y.size(0)) != self.num_edges:
            raise ValueError(
                f"y must have one row per edge ({self.num_edges}), got {tuple(self.y.shape)}"
            )
        if self.batch is not None and tuple(self.batch.shape) != (self.num_nodes,):
            raise ValueError(
                f"batch must be [{self.num_nodes}], got {tuple(self.batch.shape)}"
            )
        return self


def as_edge_weight(edge_weight: torch.Tensor) -> torch.Tensor:
    """[E] -> [E, 1]; anything already 2-D is returned unchanged."""
    if edge_weight.dim() == 1:
        return edge_weight.unsqueeze(-1)
    return edge_weight


def check_graph_tensors(
    edge_index: torch.Tensor,
    node_attr: torch.Tensor,
    edge_attr: torch.Tensor,
    edge_weight: torch.Tensor,
    *,
    node_attr_size: Optional[int] = None,
    edge_attr_size: Optional[int] = None,
) -> None:
    if edge_index.dim() != 2 or edge_index.size(0) != 2:
        raise ValueError(f"edge_index must be [2, E], got {tuple(edge_index.shape)}")
    if edge_index.dtype.is_floating_point or edge_index.dtype == torch.bool:
        raise ValueError(f"edge_index must be an integer tensor, got {edge_index.dtype}")
    if node_attr.dim() != 2:
        raise ValueError(f"node_attr must be [N, D], got {tuple(node_attr.shape)}")
    if edge_attr.dim() != 2:
        raise ValueError(f"edge_attr must be [E, D], got {tuple(edge_attr.shape)}")
    if edge_weight.dim() not in (1, 2):
        raise ValueError(f"edge_weight must be [E] or [E, W], got {tuple(edge_weight.shape)}")

    num_nodes = int(node_attr.size(0))
    num_edges = int(edge_index.size(1))
    if int(edge_attr.size(0)) != num_edges:
        raise ValueError(
            f"edge_attr has {edge_attr.size(0)} rows but edge_index has {num_edges} edges"
        )
    if int(edge_weight.size(0)) != num_edges:
        raise ValueError(
            f"edge_weight has {edge_weight.size(0)} rows but edge_index has {num_edges} edges"
        )
    if node_attr_size is not None and int(node_attr.size(1)) != node_attr_size:
        raise ValueError(
            f"node_attr width {node_attr.size(1)} does not match expected {node_attr_size}"
        )
    if edge_attr_size is not None and int(edge_attr.size(1)) != edge_attr_size:
        raise ValueError(
            f"edge_attr width {edge_attr.size(1)} does not match expected {edge_attr_size}"
        )
    if num_edges > 0:
        lo = int(edge_index.min().item())
        hi = int(edge_index.max().item())
        if lo < 0 or hi >= num_nodes:
            raise ValueError(
                f"edge_index entries must lie in [0, {num_nodes}), got range [{lo}, {hi}]"
            )


def collate_graphs(graphs: Sequence[GraphSnapshot]) -> GraphSnapshot:
    """
    Merge graphs into one disjoint graph: nodes are concatenated, edge indices are
    offset by the running node count, and `batch` records the source graph id.
    """
    if len(graphs) == 0:
        raise ValueError("collate_graphs needs at least one graph")

    node_chunks: list[torch.Tensor] = []
    index_chunks: list[torch.Tensor] = []
    attr_chunks: list[torch.Tensor] = []
    weight_chunks: list[torch.Tensor] = []
    label_chunks: list[torch.Tensor] = []
    batch_chunks: list[torch.Tensor] = []
    offset = 0
    has_labels = all(g.y is not None for g in graphs)
    for gid, g in enumerate(graphs):
        node_chunks.append(g.node_attr)
        index_chunks.append(g.edge_index + offset)
        attr_chunks.append(g.edge_attr)
        weight_chunks.append(as_edge_weight(g.edge_weight))
        if has_labels:
            label_chunks.append(g.y)
        batch_chunks.append(
            torch.full((g.num_nodes,), gid, dtype=torch.long, device=g.node_attr.device)
        )
        offset += g.num_nodes

    return GraphSnapshot(
        node_attr=torch.cat(node_chunks, dim=0),
        edge_index=torch.cat(index_chunks, dim=1),
        edge_attr=torch.cat(attr_chunks, dim=0),
        edge_weight=torch.cat(weight_chunks, dim=0),
        y=torch.cat(label_chunks, dim=0) if has_labels else None,
        batch=torch.cat(batch_chunks, dim=0),
    )
