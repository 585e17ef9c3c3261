import pytest
import torch

from edgegnn.models.conv import MessagePassingConv
from edgegnn.utils.seed import set_seed


@pytest.fixture(autouse=True)
def _seed_every_test():
    set_seed(123, deterministic=False)
    yield


@pytest.fixture
def path_graph():
    """4 nodes, edges 0->1->2->3, uniform features of width 3."""
    edge_index = torch.tensor([[0, 1, 2], [1, 2, 3]], dtype=torch.long)
    node_attr = torch.ones(4, 3)
    edge_attr = torch.ones(3, 3)
    edge_weight = torch.ones(3, 1)
    return edge_index, node_attr, edge_attr, edge_weight


class SwappedDirectionConv(MessagePassingConv):
    """Concatenates outgoing blocks before incoming ones."""

    def forward(self, edge_index, node_attr, edge_attr, edge_weight, initial_node_attr):
        rev = edge_index.flip(0)
        in1 = self.propagate(edge_index, node_attr, edge_attr, edge_weight, hop=1)
        out1 = self.propagate(rev, node_attr, edge_attr, edge_weight, hop=1)
        in2 = self.propagate(edge_index, in1, edge_attr, edge_weight, hop=2)
        out2 = self.propagate(rev, out1, edge_attr, edge_weight, hop=2)
        return self.mlp(torch.cat([initial_node_attr, node_attr, out1, in1, out2, in2], dim=-1))


@pytest.fixture
def swapped_conv_cls():
    return SwappedDirectionConv
