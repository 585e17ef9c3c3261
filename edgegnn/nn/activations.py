"""
Activation policies selected by name from config.

An activation is just an nn.Module mapping a tensor to a tensor of the same shape.
"""

from __future__ import annotations

from typing import Callable, Union

import torch.nn as nn

ActivationSpec = Union[str, nn.Module, Callable[[], nn.Module]]

_ACTIVATIONS: dict[str, Callable[[], nn.Module]] = {
    "tanh": nn.Tanh,
    "relu": nn.ReLU,
    "identity": nn.Identity,
    "sigmoid": nn.Sigmoid,
    "gelu": nn.GELU,
    "silu": nn.SiLU,
    "leaky_relu": nn.LeakyReLU,
}


def available_activations() -> list[str]:
    return sorted(_ACTIVATIONS)


def build_activation(spec: ActivationSpec) -> nn.Module:
    """
    Accepts a registered name ("tanh", "relu", "identity", ...), a module instance,
    or a zero-arg factory such as `nn.ELU`.
    """
    if isinstance(spec, nn.Module):
        return spec
    if isinstance(spec, str):
        key = spec.lower().strip()
        if key not in _ACTIVATIONS:
            raise ValueError(
                f"Unknown activation: {spec!r} (choose from {available_activations()})"
            )
        return _ACTIVATIONS[key]()
    if callable(spec):
        module = spec()
        if not isinstance(module, nn.Module):
            raise ValueError(f"Activation factory must return an nn.Module, got {type(module)}")
        return module
    raise ValueError(f"Unsupported activation spec: {spec!r}")


def is_identity(module: nn.Module) -> bool:
    return isinstance(module, nn.Identity)
