import math
from typing import Generic, List, Optional, Sequence, TypeVar

import numpy as np

from upi_fraud.config import Config
from upi_fraud.exceptions import InsufficientDataError

T = TypeVar("T")


class TrainTestSplit(Generic[T]):
    def __init__(self, train: List[T], test: List[T]):
        self.train = train
        self.test = test

    def __repr__(self):
        return f"TrainTestSplit(train={len(self.train)}, test={len(self.test)})"


def split_train_test(records: Sequence[T], test_ratio: float = None,
                     seed: Optional[int] = None) -> TrainTestSplit[T]:
    """
    Shuffle records uniformly and slice off a test set.

    The first max(1, floor(n * test_ratio)) shuffled records form the test
    set and the rest the training set. Pass a seed for a reproducible split.
    """
    if test_ratio is None:
        test_ratio = Config.TEST_SIZE
    if not 0 < test_ratio < 1:
        raise ValueError(f"test_ratio must be between 0 and 1, got {test_ratio}")

    n = len(records)
    if n < Config.MIN_LABELED_ROWS:
        raise InsufficientDataError(
            f"Not enough labeled data. Need at least {Config.MIN_LABELED_ROWS} rows with FraudLabel, got {n}."
        )

    # Generator.permutation is a Fisher-Yates shuffle
    order = np.random.default_rng(seed).permutation(n)
    shuffled = [records[i] for i in order]
    test_size = max(1, math.floor(n * test_ratio))

    return TrainTestSplit(train=shuffled[test_size:], test=shuffled[:test_size])
