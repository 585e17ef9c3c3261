"""
Edge-regression model: conv1 -> conv2 (repeated k-1 times, shared weights) -> edge MLP.

=== RESEARCH KNOB ===
- conv_cls (aggregation policy) in edgegnn/models/conv.py
- depth k (conv2 is the same module at every repetition)
- edge head input (currently [h_src, h_dst])
"""

from __future__ import annotations

from typing import Sequence

import torch
import torch.nn as nn

from edgegnn.models.conv import MessagePassingConv
from edgegnn.nn.activations import ActivationSpec
from edgegnn.nn.mlp import MLP
from edgegnn.typing import GraphSnapshot


class GraphEncoder(nn.Module):
    def __init__(
        self,
        node_attr_size: int,
        hidden_sizes_1: Sequence[int],
        hidden_sizes_2: Sequence[int],
        hidden_sizes_mlp: Sequence[int],
        output_node_attr_size: int,
        edge_attr_size: int,
        dropout_prob: float = 0.0,
        use_layer_norm: bool = True,
        k: int = 6,
        act: ActivationSpec = "tanh",
        end_act: ActivationSpec = "identity",
        conv_cls: type[MessagePassingConv] = MessagePassingConv,
    ):
        super().__init__()
        if int(k) < 1:
            raise ValueError(f"GraphEncoder: k cannot be less than one, got {k}.")
        self.k = int(k)

        common = dict(dropout_prob=dropout_prob, use_layer_norm=use_layer_norm, act=act, end_act=end_act)
        self.conv1 = conv_cls(
            node_attr_size,
            hidden_sizes_1,
            output_node_attr_size,
            node_attr_size,
            edge_attr_size,
            **common,
        )
        # Reused k-1 times; one parameter set for every repetition.
        self.conv2 = conv_cls(
            output_node_attr_size,
            hidden_sizes_2,
            output_node_attr_size,
            node_attr_size,
            edge_attr_size,
            **common,
        )
        self.edge_mlp = MLP(2 * output_node_attr_size, hidden_sizes_mlp, 1, **common)

    def embed_nodes(
        self,
        edge_index: torch.Tensor,
        node_attr: torch.Tensor,
        edge_attr: torch.Tensor,
        edge_weight: torch.Tensor,
    ) -> torch.Tensor:
        """
        Returns:
          h: [num_nodes, output_node_attr_size]
        """
        h = self.conv1(edge_index, node_attr, edge_attr, edge_weight, node_attr)
        for _ in range(self.k - 1):
            h = self.conv2(edge_index, h, edge_attr, edge_weight, node_attr)
        return h

    def forward(
        self,
        edge_index: torch.Tensor,
        node_attr: torch.Tensor,
        edge_attr: torch.Tensor,
        edge_weight: torch.Tensor,
    ) -> torch.Tensor:
        """
        Returns:
          pred: [num_edges, 1], ordered like the columns of edge_index
        """
        h = self.embed_nodes(edge_index, node_attr, edge_attr, edge_weight)
        edge_index = edge_index.to(torch.long)
        h_src = h.index_select(0, edge_index[0])
        h_dst = h.index_select(0, edge_index[1])
        return self.edge_mlp(torch.cat([h_src, h_dst], dim=-1))

    def forward_graph(self, g: GraphSnapshot) -> torch.Tensor:
        return self(g.edge_index, g.node_attr, g.edge_attr, g.edge_weight)
