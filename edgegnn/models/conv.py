"""
Directional two-hop message passing convolution.

Each call looks at a node from both edge directions and two hops deep:
- Message (hop 1):  m_ij = w_ij * [h_i, e_ij]
- Message (hop 2+): m_ij = w_ij * g_i       (g = aggregated hop-1 signal)
- Aggregate to dst: agg_j = sum_{i->j} m_ij
- Outgoing view:    same scheme on the flipped edge_index
- Update:           h_j' = MLP([x0_j, h_j, in1_j, out1_j, in2_j, out2_j])

Width of the update MLP input:
  initial + input + 2*(input + edge) + 2*(input + edge) = 5*input + initial + 4*edge
The hop-2 blocks keep the hop-1 width because they re-propagate the aggregated
hop-1 tensor. Change mlp_input_size() together with message().

=== RESEARCH KNOBS ===
- message(): drop the edge term, add attention coefficients, gate by edge_weight.
- aggregate(): mean / max / degree-normalized sum (see MeanMessagePassingConv).
- forward(): number of hops, residual connection to node_attr.
"""

from __future__ import annotations

from typing import Sequence

import torch
import torch.nn as nn

from edgegnn.nn.activations import ActivationSpec
from edgegnn.nn.mlp import MLP, check_dropout, check_hidden_sizes, check_positive_sizes
from edgegnn.typing import as_edge_weight, check_graph_tensors


class MessagePassingConv(nn.Module):
    """
    Sum-aggregating two-hop convolution over incoming and outgoing edges.

    Subclasses may override message(), aggregate() or propagate() independently.
    """

    def __init__(
        self,
        input_node_attr_size: int,
        hidden_sizes: Sequence[int],
        output_node_attr_size: int,
        initial_node_attr_size: int,
        edge_attr_size: int,
        dropout_prob: float = 0.0,
        use_layer_norm: bool = True,
        act: ActivationSpec = "tanh",
        end_act: ActivationSpec = "identity",
    ):
        super().__init__()
        owner = type(self).__name__
        check_positive_sizes(
            owner,
            input_node_attr_size=input_node_attr_size,
            output_node_attr_size=output_node_attr_size,
            initial_node_attr_size=initial_node_attr_size,
            edge_attr_size=edge_attr_size,
        )
        hidden = check_hidden_sizes(owner, hidden_sizes)
        check_dropout(owner, dropout_prob)

        self.input_node_attr_size = int(input_node_attr_size)
        self.output_node_attr_size = int(output_node_attr_size)
        self.initial_node_attr_size = int(initial_node_attr_size)
        self.edge_attr_size = int(edge_attr_size)

        self.mlp = MLP(
            self.mlp_input_size(
                self.input_node_attr_size,
                self.initial_node_attr_size,
                self.edge_attr_size,
            ),
            hidden,
            self.output_node_attr_size,
            dropout_prob=dropout_prob,
            use_layer_norm=use_layer_norm,
            act=act,
            end_act=end_act,
        )

    @staticmethod
    def mlp_input_size(input_node_attr_size: int, initial_node_attr_size: int, edge_attr_size: int) -> int:
        return 5 * input_node_attr_size + initial_node_attr_size + 4 * edge_attr_size

    def forward(
        self,
        edge_index: torch.Tensor,  # [2, E]
        node_attr: torch.Tensor,  # [N, input_node_attr_size]
        edge_attr: torch.Tensor,  # [E, edge_attr_size]
        edge_weight: torch.Tensor,  # [E, 1] or [E]
        initial_node_attr: torch.Tensor,  # [N, initial_node_attr_size]
    ) -> torch.Tensor:
        self._check_inputs(edge_index, node_attr, edge_attr, edge_weight, initial_node_attr)
        edge_index = edge_index.to(torch.long)
        edge_weight = as_edge_weight(edge_weight)

        reversed_edge_index = edge_index.flip(0)

        one_hop_incoming = self.propagate(edge_index, node_attr, edge_attr, edge_weight, hop=1)
        one_hop_outgoing = self.propagate(reversed_edge_index, node_attr, edge_attr, edge_weight, hop=1)

        two_hop_incoming = self.propagate(edge_index, one_hop_incoming, edge_attr, edge_weight, hop=2)
        two_hop_outgoing = self.propagate(reversed_edge_index, one_hop_outgoing, edge_attr, edge_weight, hop=2)

        combined = torch.cat(
            [
                initial_node_attr,
                node_attr,
                one_hop_incoming,
                one_hop_outgoing,
                two_hop_incoming,
                two_hop_outgoing,
            ],
            dim=-1,
        )
        return self.mlp(combined)

    def propagate(
        self,
        edge_index: torch.Tensor,
        node_attr: torch.Tensor,
        edge_attr: torch.Tensor,
        edge_weight: torch.Tensor,
        hop: int,
    ) -> torch.Tensor:
        messages = self.message(edge_index, node_attr, edge_attr, edge_weight, hop)
        return self.aggregate(edge_index, messages, num_nodes=int(node_attr.size(0)))

    def message(
        self,
        edge_index: torch.Tensor,
        node_attr: torch.Tensor,
        edge_attr: torch.Tensor,
        edge_weight: torch.Tensor,
        hop: int,
    ) -> torch.Tensor:
        src = edge_index[0]
        node_attr_j = node_attr.index_select(0, src)
        if hop == 1:
            return edge_weight * torch.cat([node_attr_j, edge_attr], dim=-1)
        # Edge features enter only on the first hop.
        return edge_weight * node_attr_j

    def aggregate(self, edge_index: torch.Tensor, messages: torch.Tensor, num_nodes: int) -> torch.Tensor:
        dst = edge_index[1]
        out = messages.new_zeros((num_nodes, int(messages.size(1))))
        return out.index_add(0, dst, messages)

    def _check_inputs(
        self,
        edge_index: torch.Tensor,
        node_attr: torch.Tensor,
        edge_attr: torch.Tensor,
        edge_weight: torch.Tensor,
        initial_node_attr: torch.Tensor,
    ) -> None:
        check_graph_tensors(
            edge_index,
            node_attr,
            edge_attr,
            edge_weight,
            node_attr_size=self.input_node_attr_size,
            edge_attr_size=self.edge_attr_size,
        )
        expected = (int(node_attr.size(0)), self.initial_node_attr_size)
        if initial_node_attr.dim() != 2 or tuple(initial_node_attr.shape) != expected:
            raise ValueError(
                f"initial_node_attr must be {list(expected)}, got {tuple(initial_node_attr.shape)}"
            )


class MeanMessagePassingConv(MessagePassingConv):
    """Same two-hop scheme, but each node averages its incoming messages."""

    def aggregate(self, edge_index: torch.Tensor, messages: torch.Tensor, num_nodes: int) -> torch.Tensor:
        summed = super().aggregate(edge_index, messages, num_nodes)
        dst = edge_index[1]
        deg = messages.new_zeros((num_nodes,)).index_add(
            0, dst, messages.new_ones((int(dst.numel()),))
        )
        return summed / deg.clamp(min=1.0).unsqueeze(-1)


CONV_TYPES: dict[str, type[MessagePassingConv]] = {
    "sum": MessagePassingConv,
    "mean": MeanMessagePassingConv,
}


def conv_class(aggregation: str) -> type[MessagePassingConv]:
    key = aggregation.lower().strip()
    if key not in CONV_TYPES:
        raise ValueError(f"Unknown aggregation: {aggregation!r} (choose from {sorted(CONV_TYPES)})")
    return CONV_TYPES[key]
