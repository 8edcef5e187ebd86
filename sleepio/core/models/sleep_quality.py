import logging
import math
import time

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from sleepio.config import ConfigManager
from sleepio.core.data_processing.feature_engineering import build_feature_matrix, build_targets
from sleepio.utils.constants import FEATURE_NAMES, default_values
from sleepio.utils.errors import InsufficientDataError, TrainingCancelled, TrainingFailure

logger = logging.getLogger(__name__)


class SleepQualityNet(nn.Module):
    def __init__(self, input_size, hidden_sizes=(16, 8), dropout=0.2):
        super(SleepQualityNet, self).__init__()
        first_hidden, second_hidden = hidden_sizes
        self.model = nn.Sequential(
            nn.Linear(input_size, first_hidden),
            nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(first_hidden, second_hidden),
            nn.ReLU(),
            nn.Linear(second_hidden, 1),
            nn.Sigmoid()
        )

    def forward(self, x):
        return self.model(x)


class TrainedModel:
    """Fitted sleep quality network for a single prediction cycle.

    The network is put in evaluation mode and its parameters are frozen on
    construction, so running it any number of times gives the same outputs.
    Call ``close`` once the cycle is over to drop the weights.
    """

    def __init__(self, network, feature_names, train_losses=None):
        network.eval()
        for parameter in network.parameters():
            parameter.requires_grad_(False)

        self._network = network
        self.feature_names = tuple(feature_names)
        self.train_losses = tuple(train_losses or ())

    @property
    def input_size(self):
        return len(self.feature_names)

    @property
    def closed(self):
        return self._network is None

    def predict_raw(self, features):
        """
        Run the network on one feature vector or a batch of them.

        Args:
            features: array of shape (input_size,) or (n, input_size)

        Returns:
            np.ndarray: model outputs in [0, 1], one per input row
        """
        if self._network is None:
            raise ValueError("Model has been released")

        # Copy so the caller's array is never shared with the tensor
        batch = np.array(np.atleast_2d(features), dtype=np.float32, copy=True)
        if batch.shape[1] != self.input_size:
            raise ValueError(f"Expected {self.input_size} features, got {batch.shape[1]}")

        with torch.no_grad():
            outputs = self._network(torch.from_numpy(batch))
        return outputs.view(-1).numpy().copy()

    def close(self):
        """Release the network weights"""
        self._network = None


class SleepQualityTrainer:
    def __init__(self, config=None):
        """Initialize the trainer from the sleep_quality_model config section"""
        config = config or ConfigManager()
        self.config = config.section('sleep_quality_model')
        self.hyperparameters = self.config['hyperparameters']
        self.min_records = self.config.get('min_records', default_values['min_records'])
        self.timeout_seconds = self.config.get('timeout_seconds')
        self.seed = self.config.get('seed')

        features = self.config.get('features', FEATURE_NAMES)
        if list(features) != list(FEATURE_NAMES):
            raise ValueError(f"Configured features {features} do not match {FEATURE_NAMES}")

    def train(self, records, progress_callback=None, cancel_event=None, seed=None):
        """
        Fit a fresh network on the full record history.

        Args:
            records: sequence of SleepRecord, oldest first
            progress_callback: called with the percentage of epochs completed
                after every epoch; the last call receives 100
            cancel_event: threading.Event checked between epochs
            seed: fixes weight initialisation, shuffling and dropout

        Returns:
            TrainedModel
        """
        if len(records) < self.min_records:
            raise InsufficientDataError(len(records), self.min_records)

        X = build_feature_matrix(records)
        y = build_targets(records)

        seed = self.seed if seed is None else seed
        if seed is None:
            return self._fit(X, y, progress_callback, cancel_event)

        # Seeded runs must not disturb the process-wide generator
        with torch.random.fork_rng(devices=[]):
            torch.manual_seed(seed)
            return self._fit(X, y, progress_callback, cancel_event)

    def _fit(self, X, y, progress_callback, cancel_event):
        X_train = torch.from_numpy(X)
        y_train = torch.from_numpy(y).view(-1, 1)

        network = SleepQualityNet(
            input_size=X.shape[1],
            hidden_sizes=tuple(self.hyperparameters['hidden_sizes']),
            dropout=self.hyperparameters['dropout']
        )

        # Training parameters
        criterion = nn.MSELoss()
        optimizer = optim.Adam(network.parameters(), lr=self.hyperparameters['learning_rate'])
        batch_size = min(self.hyperparameters['batch_size'], len(X_train))
        num_epochs = self.hyperparameters['epochs']

        started = time.monotonic()
        train_losses = []

        try:
            for epoch in range(num_epochs):
                if cancel_event is not None and cancel_event.is_set():
                    raise TrainingCancelled(f"Training cancelled after {epoch} epochs")

                network.train()
                epoch_loss = 0.0
                permutation = torch.randperm(len(X_train))

                # Process in batches
                for i in range(0, len(X_train), batch_size):
                    indices = permutation[i:i + batch_size]
                    outputs = network(X_train[indices])
                    loss = criterion(outputs, y_train[indices])

                    if not torch.isfinite(loss):
                        raise TrainingFailure(f"Non-finite loss at epoch {epoch + 1}")

                    # Backward and optimize
                    optimizer.zero_grad()
                    loss.backward()
                    optimizer.step()

                    epoch_loss += loss.item() * len(indices)

                epoch_loss /= len(X_train)
                train_losses.append(epoch_loss)

                if (epoch + 1) % 20 == 0:
                    logger.debug(f"Epoch [{epoch + 1}/{num_epochs}], Train Loss: {epoch_loss:.4f}")

                if self.timeout_seconds is not None and time.monotonic() - started > self.timeout_seconds:
                    raise TrainingFailure(f"Training timed out after {epoch + 1} epochs")

                if progress_callback is not None:
                    progress_callback(int(round(100 * (epoch + 1) / num_epochs)))

            network.eval()
            with torch.no_grad():
                fitted = network(X_train)
            if not torch.isfinite(fitted).all():
                raise TrainingFailure("Model produced non-finite outputs")
        except (TrainingFailure, TrainingCancelled):
            raise
        except RuntimeError as e:
            raise TrainingFailure(f"Training failed: {e}") from e

        logger.info(f"Trained sleep quality model on {len(X_train)} records, final loss {train_losses[-1]:.4f}")
        return TrainedModel(network, FEATURE_NAMES, train_losses)


def predict_score(model, features):
    """
    Predict next night's sleep quality on a 0-100 scale.

    Args:
        model: TrainedModel
        features: feature vector of the most recent record

    Returns:
        int: score clamped to [0, 100]
    """
    raw = float(model.predict_raw(features)[0])
    if not math.isfinite(raw):
        # Only reachable when an extreme input overflows float32
        logger.warning("Model output was not finite, reporting the midpoint score")
        raw = 0.5
    score = int(round(raw * 100))
    return max(0, min(100, score))
