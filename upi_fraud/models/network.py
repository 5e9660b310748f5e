import logging
from typing import Callable, List, Optional, Sequence

import numpy as np

from upi_fraud.exceptions import NumericDegenerateError, TrainingCancelledError

logger = logging.getLogger(__name__)

EPSILON = 1e-7


def sigmoid(z: np.ndarray) -> np.ndarray:
    return 0.5 * (1.0 + np.tanh(0.5 * z))


def binary_cross_entropy(y_true: np.ndarray, y_prob: np.ndarray) -> float:
    p = np.clip(y_prob, EPSILON, 1 - EPSILON)
    return float(-np.mean(y_true * np.log(p) + (1 - y_true) * np.log(1 - p)))


class DenseNetwork:
    """
    Fully connected binary classifier trained with mini-batch Adam.

    Hidden layers use ReLU with optional inverted dropout after each one;
    the output is a single sigmoid unit. With no hidden layers this is
    plain logistic regression.
    """

    def __init__(self, input_dim: int, hidden_units: Sequence[int] = (),
                 dropout_rates: Sequence[float] = (), learning_rate: float = 0.01,
                 epochs: int = 20, batch_size: int = 32, seed: Optional[int] = None,
                 beta1: float = 0.9, beta2: float = 0.999):
        if len(dropout_rates) not in (0, len(hidden_units)):
            raise ValueError("dropout_rates must match hidden_units")

        self.input_dim = input_dim
        self.hidden_units = tuple(hidden_units)
        self.dropout_rates = tuple(dropout_rates) or (0.0,) * len(self.hidden_units)
        self.learning_rate = learning_rate
        self.epochs = epochs
        self.batch_size = batch_size
        self.beta1 = beta1
        self.beta2 = beta2
        self.rng = np.random.default_rng(seed)

        self.weights: List[np.ndarray] = []
        self.biases: List[np.ndarray] = []
        sizes = [input_dim] + list(self.hidden_units) + [1]
        for fan_in, fan_out in zip(sizes[:-1], sizes[1:]):
            # Glorot uniform
            limit = np.sqrt(6.0 / (fan_in + fan_out))
            self.weights.append(self.rng.uniform(-limit, limit, size=(fan_in, fan_out)))
            self.biases.append(np.zeros(fan_out))

        self._m = [np.zeros_like(p) for p in self._params()]
        self._v = [np.zeros_like(p) for p in self._params()]
        self._step = 0
        self.history: List[float] = []

    def _params(self) -> List[np.ndarray]:
        return self.weights + self.biases

    def _forward(self, X: np.ndarray, training: bool = False):
        activations = [X]
        pre_activations = []
        masks = []
        a = X
        n_hidden = len(self.hidden_units)

        for i in range(n_hidden):
            z = a @ self.weights[i] + self.biases[i]
            a = np.maximum(z, 0.0)
            rate = self.dropout_rates[i]
            if training and rate > 0:
                mask = (self.rng.random(a.shape) >= rate) / (1.0 - rate)
                a = a * mask
            else:
                mask = None
            pre_activations.append(z)
            masks.append(mask)
            activations.append(a)

        z_out = a @ self.weights[n_hidden] + self.biases[n_hidden]
        return sigmoid(z_out), activations, pre_activations, masks

    def _backward(self, y: np.ndarray, probs: np.ndarray, activations, pre_activations, masks):
        n = len(y)
        n_hidden = len(self.hidden_units)
        grad_w = [None] * (n_hidden + 1)
        grad_b = [None] * (n_hidden + 1)

        # d(BCE)/dz for a sigmoid output
        delta = (probs - y) / n
        for layer in range(n_hidden, -1, -1):
            grad_w[layer] = activations[layer].T @ delta
            grad_b[layer] = delta.sum(axis=0)
            if layer == 0:
                break
            delta = delta @ self.weights[layer].T
            if masks[layer - 1] is not None:
                delta = delta * masks[layer - 1]
            delta = delta * (pre_activations[layer - 1] > 0)

        return grad_w + grad_b

    def _apply_gradients(self, grads: List[np.ndarray]):
        self._step += 1
        lr_t = self.learning_rate * np.sqrt(1 - self.beta2 ** self._step) / (1 - self.beta1 ** self._step)
        for param, grad, m, v in zip(self._params(), grads, self._m, self._v):
            m *= self.beta1
            m += (1 - self.beta1) * grad
            v *= self.beta2
            v += (1 - self.beta2) * grad * grad
            param -= lr_t * m / (np.sqrt(v) + EPSILON)

    def fit(self, X: np.ndarray, y: np.ndarray,
            should_stop: Optional[Callable[[], bool]] = None) -> List[float]:
        """
        Train on X, y for the configured number of epochs.

        Args:
            X: Feature matrix (n, input_dim)
            y: Labels in {0, 1}
            should_stop: Polled before every epoch; training stops with
                TrainingCancelledError when it returns True

        Returns:
            Mean training loss per epoch
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float).reshape(-1, 1)
        if X.ndim != 2 or X.shape[1] != self.input_dim:
            raise ValueError(f"Expected input of width {self.input_dim}, got shape {X.shape}")

        n = len(X)
        for epoch in range(self.epochs):
            if should_stop is not None and should_stop():
                raise TrainingCancelledError(f"Training cancelled at epoch {epoch + 1}/{self.epochs}")

            order = self.rng.permutation(n)
            epoch_loss = 0.0
            for start in range(0, n, self.batch_size):
                idx = order[start:start + self.batch_size]
                xb, yb = X[idx], y[idx]
                probs, activations, pre_activations, masks = self._forward(xb, training=True)
                epoch_loss += binary_cross_entropy(yb, probs) * len(idx)
                grads = self._backward(yb, probs, activations, pre_activations, masks)
                self._apply_gradients(grads)

            epoch_loss /= max(n, 1)
            if not np.isfinite(epoch_loss):
                raise NumericDegenerateError(f"Loss became non-finite at epoch {epoch + 1}")
            self.history.append(epoch_loss)

        if self.history:
            logger.info(f"Fit {self.epochs} epochs, final loss {self.history[-1]:.4f}")
        return self.history

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Fraud probability for each row of X (dropout disabled)"""
        X = np.atleast_2d(np.asarray(X, dtype=float))
        probs, _, _, _ = self._forward(X, training=False)
        return probs.ravel()
