"""Small fully connected network used to score positions.

Parameters travel as one flat sequence of floats. For each layer, for each
output neuron in order, the neuron's input weights (in input order) are
immediately followed by its bias:

    layer 0: w[0][0..cols-1], b[0], w[1][0..cols-1], b[1], ...
    layer 1: ...

so a layer of ``rows`` outputs and ``cols`` inputs occupies
``rows * (cols + 1)`` values.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from chessbot.core.errors import (
    ConfigurationError,
    NetworkNotLoadedError,
    ParameterCountMismatchError,
)

log = logging.getLogger(__name__)


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(x, 0.0)


@dataclass
class Layer:
    weights: np.ndarray  # (rows, cols)
    bias: np.ndarray     # (rows,)

    @property
    def rows(self) -> int:
        return self.weights.shape[0]

    @property
    def cols(self) -> int:
        return self.weights.shape[1]

    @property
    def parameter_count(self) -> int:
        return self.rows * (self.cols + 1)


class NeuralNet:
    def __init__(self, layer_sizes: Sequence[int], relu_output: bool = False):
        """
        layer_sizes: input width followed by each layer's output width,
                     e.g. (768, 32, 1) is two layers.
        relu_output: also clamp the final layer with ReLU. Off by default so
                     the network can score positions that favor Black.
        """
        sizes = [int(s) for s in layer_sizes]
        if len(sizes) < 2 or any(s < 1 for s in sizes):
            raise ConfigurationError(f"invalid layer sizes: {tuple(layer_sizes)}")
        self.layer_sizes = tuple(sizes)
        self.relu_output = relu_output
        self.layers: List[Layer] = [
            Layer(np.zeros((rows, cols), dtype=np.float64), np.zeros(rows, dtype=np.float64))
            for cols, rows in zip(sizes[:-1], sizes[1:])
        ]
        self.loaded = False

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    @property
    def parameter_count(self) -> int:
        return sum(layer.parameter_count for layer in self.layers)

    def load_parameters(self, values: Sequence[float]):
        flat = np.asarray(values, dtype=np.float64).ravel()
        if flat.size != self.parameter_count:
            # A partial load must never leave a half-initialised network usable.
            self.loaded = False
            raise ParameterCountMismatchError(self.parameter_count, int(flat.size))

        offset = 0
        for layer in self.layers:
            block = flat[offset:offset + layer.parameter_count].reshape(layer.rows, layer.cols + 1)
            layer.weights = block[:, :-1].copy()
            layer.bias = block[:, -1].copy()
            offset += layer.parameter_count
        self.loaded = True
        log.info("Loaded %d network parameters for layers %s", self.parameter_count, self.layer_sizes)

    def load_parameters_file(self, path: str):
        """Load a flat blob from ``.npy`` or whitespace/comma separated text."""
        if path.endswith(".npy"):
            values = np.load(path)
        else:
            with open(path, "r", encoding="utf-8") as f:
                values = np.array(f.read().replace(",", " ").split(), dtype=np.float64)
        self.load_parameters(values)

    def flatten_parameters(self) -> np.ndarray:
        """Inverse of load_parameters."""
        blocks = [np.column_stack([layer.weights, layer.bias]).ravel() for layer in self.layers]
        return np.concatenate(blocks)

    def get_outputs(self, inputs: Sequence[float]) -> np.ndarray:
        if not self.loaded:
            raise NetworkNotLoadedError("network parameters have not been loaded")
        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise ValueError(f"expected {self.input_size} inputs, got shape {x.shape}")

        last = len(self.layers) - 1
        for i, layer in enumerate(self.layers):
            x = layer.weights @ x + layer.bias
            if i < last or self.relu_output:
                x = relu(x)
        return x
