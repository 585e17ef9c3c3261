"""
Feed-forward block used by every learned component.

Layout:
  Linear(in, h0) -> [LayerNorm(h0)] -> act -> [Dropout]
  -> Linear(h0, h1) -> [LayerNorm(h1)] -> act -> [Dropout] -> ...
  -> Linear(h_last, out) -> [end_act, only if not identity]
"""

from __future__ import annotations

from typing import Sequence

import torch
import torch.nn as nn

from edgegnn.nn.activations import ActivationSpec, build_activation, is_identity


def check_positive_sizes(owner: str, **sizes: int) -> None:
    for name, value in sizes.items():
        if int(value) < 1:
            raise ValueError(f"{owner}: {name} cannot be less than one, got {value}.")


def check_hidden_sizes(owner: str, hidden_sizes: Sequence[int]) -> list[int]:
    hidden = [int(h) for h in hidden_sizes]
    if not hidden:
        raise ValueError(f"{owner}: hidden_sizes cannot be empty.")
    if any(h < 1 for h in hidden):
        raise ValueError(
            f"{owner}: all components of hidden_sizes must be greater than zero, got {hidden}."
        )
    return hidden


def check_dropout(owner: str, dropout_prob: float) -> None:
    if not 0.0 <= float(dropout_prob) < 1.0:
        raise ValueError(f"{owner}: dropout_prob must be in [0, 1), got {dropout_prob}.")


class MLP(nn.Module):
    def __init__(
        self,
        input_size: int,
        hidden_sizes: Sequence[int],
        output_size: int,
        dropout_prob: float = 0.0,
        use_layer_norm: bool = True,
        act: ActivationSpec = "tanh",
        end_act: ActivationSpec = "identity",
    ):
        super().__init__()
        check_positive_sizes("MLP", input_size=input_size, output_size=output_size)
        hidden = check_hidden_sizes("MLP", hidden_sizes)
        check_dropout("MLP", dropout_prob)

        self.input_size = int(input_size)
        self.output_size = int(output_size)
        self.hidden_sizes = tuple(hidden)

        layers: list[nn.Module] = []
        prev = self.input_size
        for h in hidden:
            layers.append(nn.Linear(prev, h))
            if use_layer_norm:
                layers.append(nn.LayerNorm(h))
            layers.append(build_activation(act))
            if dropout_prob > 0.0:
                layers.append(nn.Dropout(dropout_prob))
            prev = h
        layers.append(nn.Linear(prev, self.output_size))

        end = build_activation(end_act)
        if not is_identity(end):
            layers.append(end)

        self.model = nn.Sequential(*layers)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if x.size(-1) != self.input_size:
            raise ValueError(
                f"MLP expected last dim {self.input_size}, got {tuple(x.shape)}"
            )
        return self.model(x)
