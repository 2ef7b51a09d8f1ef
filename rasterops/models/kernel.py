from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class Kernel:
    """
    Convolution weights plus the post-sum normalisation.
    Weights are (kernel_h, kernel_w) float64; need not be square or odd-sized.
    """
    weights: np.ndarray
    factor: float = 1.0
    bias: float = 0.0

    def __post_init__(self):
        weights = np.asarray(self.weights, dtype=np.float64)
        if weights.ndim != 2 or weights.shape[0] == 0 or weights.shape[1] == 0:
            raise ValueError(f"Kernel weights must be a non-empty 2D array, got shape {weights.shape}")
        self.weights = weights

    @property
    def width(self) -> int:
        return self.weights.shape[1]

    @property
    def height(self) -> int:
        return self.weights.shape[0]


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


# Diamond of 13 ones used by the resize blur pass.
BLUR_KERNEL = Kernel(
    weights=_frozen(np.array([
        [0, 0, 1, 0, 0],
        [0, 1, 1, 1, 0],
        [1, 1, 1, 1, 1],
        [0, 1, 1, 1, 0],
        [0, 0, 1, 0, 0],
    ], dtype=np.float64)),
    factor=1.0 / 13.0,
    bias=0.0,
)
