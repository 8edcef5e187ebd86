"""
Single-record permutation importance for the sleep quality model.
"""

import numpy as np

from sleepio.core.models.output_models import ImpactFactor
from sleepio.utils.constants import FACTOR_NAMES, default_values


def perturb_features(features):
    """
    Build one perturbed copy of the vector per feature.

    Row i equals the input with component i replaced by 1 - value: a flip for
    the 0/1 habit flags and a reflection around 0.5 for duration and bedtime.

    Args:
        features: feature vector of length len(FACTOR_NAMES)

    Returns:
        np.ndarray: (features, features) matrix, independent of the input
    """
    baseline = np.asarray(features, dtype=np.float32)
    perturbed = np.tile(baseline, (len(baseline), 1))
    diagonal = np.arange(len(baseline))
    perturbed[diagonal, diagonal] = 1.0 - baseline
    return perturbed


def analyze_feature_impact(model, features, top_k=None):
    """
    Rank the habits of the latest record by how much they move the prediction.

    Args:
        model: TrainedModel
        features: feature vector of the most recent record
        top_k: number of factors to return

    Returns:
        list: ImpactFactor objects, highest impact first. Equal impacts keep
        the order Duration, Bedtime, Caffeine, Exercise, Screens.
    """
    if top_k is None:
        top_k = default_values['top_factors']

    baseline_vector = np.array(features, dtype=np.float32, copy=True)
    perturbed = perturb_features(baseline_vector)

    outputs = model.predict_raw(np.vstack([baseline_vector, perturbed]))
    outputs = np.nan_to_num(outputs, nan=0.5)
    baseline = outputs[0]

    impacts = []
    for index, name in enumerate(FACTOR_NAMES):
        impact = int(round(abs(float(outputs[index + 1]) - float(baseline)) * 100))
        impacts.append((impact, index, name))

    # Sort by impact, ties fall back to the enumeration order
    impacts.sort(key=lambda item: (-item[0], item[1]))

    return [ImpactFactor(name=name, impact=impact) for impact, _, name in impacts[:top_k]]
