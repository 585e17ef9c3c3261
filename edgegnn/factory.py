"""
Tiny factories to keep CLI clean and avoid a big registry.
"""

from __future__ import annotations

import torch

from edgegnn.config import Config
from edgegnn.data.synthetic import SyntheticGraphConfig, SyntheticGraphDataset
from edgegnn.models.conv import conv_class
from edgegnn.models.encoder import GraphEncoder

_DTYPES = {
    "float32": torch.float32,
    "float64": torch.float64,
}


def torch_dtype(cfg: Config) -> torch.dtype:
    if cfg.dtype not in _DTYPES:
        raise ValueError(f"Unknown dtype: {cfg.dtype} (choose from {sorted(_DTYPES)})")
    return _DTYPES[cfg.dtype]


def build_dataset(cfg: Config, split: str = "train"):
    if cfg.data.dataset == "synthetic":
        if cfg.model.edge_attr_size != cfg.model.node_attr_size:
            raise ValueError(
                "synthetic edge_attr is a node_attr difference, so model.edge_attr_size "
                f"({cfg.model.edge_attr_size}) must equal model.node_attr_size "
                f"({cfg.model.node_attr_size})"
            )
        if split == "train":
            num_graphs, seed = cfg.data.num_graphs, cfg.seed
        elif split == "eval":
            num_graphs, seed = cfg.data.eval_num_graphs, cfg.seed + 1
        else:
            raise ValueError(f"Unknown split: {split}")
        dcfg = SyntheticGraphConfig(
            num_graphs=num_graphs,
            node_attr_size=cfg.model.node_attr_size,
            mean_nodes=cfg.data.mean_nodes,
            std_nodes=cfg.data.std_nodes,
            min_nodes=cfg.data.min_nodes,
            edge_threshold=cfg.data.edge_threshold,
            seed=seed,
            dtype=torch_dtype(cfg),
        )
        return SyntheticGraphDataset(dcfg)
    raise ValueError(f"Unknown dataset: {cfg.data.dataset}")


def build_model(cfg: Config) -> GraphEncoder:
    m = cfg.model
    model = GraphEncoder(
        node_attr_size=m.node_attr_size,
        hidden_sizes_1=m.hidden_sizes_1,
        hidden_sizes_2=m.hidden_sizes_2,
        hidden_sizes_mlp=m.hidden_sizes_mlp,
        output_node_attr_size=m.output_node_attr_size,
        edge_attr_size=m.edge_attr_size,
        dropout_prob=m.dropout_prob,
        use_layer_norm=m.use_layer_norm,
        k=m.k,
        act=m.act,
        end_act=m.end_act,
        conv_cls=conv_class(m.aggregation),
    )
    return model.to(torch_dtype(cfg))
