"""
Edge-regression GNN: two-hop directional message passing + edge scorer.

Primary hack points:
- edgegnn/models/conv.py    (message / aggregate / propagate)
- edgegnn/models/encoder.py (depth-k weight-shared composition + edge head)
- edgegnn/nn/mlp.py         (MLP blocks, activation policy)
- edgegnn/data/synthetic.py (random graph generator for smoke training)
- edgegnn/train/losses.py   (training objectives)
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
