"""Linear algebra primitives."""

from pyeffectsize.core.compute.linalg.qr import (
    QRResult,
    qr_cpu,
    qr_solve,
    unscaled_covariance,
)

__all__ = [
    "QRResult",
    "qr_cpu",
    "qr_solve",
    "unscaled_covariance",
]
