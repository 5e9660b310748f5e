from enum import Enum
from typing import Optional

from upi_fraud.config import Config
from upi_fraud.models.network import DenseNetwork


class ModelType(str, Enum):
    LOGISTIC = "logistic"
    # Historical dashboard label; the model is a feed-forward neural
    # network, not an ensemble of decision trees.
    RANDOM_FOREST = "random_forest"


MODEL_PARAMS = {
    ModelType.LOGISTIC: Config.LOGISTIC_PARAMS,
    ModelType.RANDOM_FOREST: Config.RANDOM_FOREST_PARAMS,
}

MODEL_DESCRIPTIONS = {
    ModelType.LOGISTIC: "Logistic regression (single sigmoid unit)",
    ModelType.RANDOM_FOREST: "Feed-forward neural network 64-32-16-1 (labelled 'random_forest')",
}


def build_network(model_type, input_dim: int, seed: Optional[int] = None) -> DenseNetwork:
    """Create an untrained network for the given architecture tag"""
    model_type = ModelType(model_type)
    return DenseNetwork(input_dim, seed=seed, **MODEL_PARAMS[model_type])
