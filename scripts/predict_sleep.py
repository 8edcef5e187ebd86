#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Script to run one prediction cycle over a file of sleep records.

Usage:
    python scripts/predict_sleep.py --records data/sleep_log.csv [--config FILE] [--seed 42]

The records file may be CSV or JSON (a list of objects) with the columns
date, bedtime, wake, duration, quality, caffeine, exercise, screens.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd

from sleepio.config import ConfigManager
from sleepio.core.analysis.sleep_metrics import calculate_sleep_summary, records_to_dataframe
from sleepio.core.services.prediction_engine import PredictionEngine
from sleepio.utils.data_validation import validate_dataframe
from sleepio.utils.errors import MalformedRecordError

logger = logging.getLogger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Predict next night\'s sleep quality from logged records')

    parser.add_argument(
        '--records',
        type=str,
        required=True,
        help='CSV or JSON file with sleep records'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to model configuration file'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducible training'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write logs to this file'
    )

    return parser.parse_args()


def setup_logging(log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def load_records(path):
    """Load and validate sleep records from CSV or JSON."""
    path = Path(path)
    if path.suffix.lower() == '.json':
        df = pd.read_json(path, dtype={'bedtime': str, 'wake': str})
    else:
        df = pd.read_csv(path, dtype={'bedtime': str, 'wake': str})

    logger.info(f"Loaded {len(df)} sleep records from {path}")
    return validate_dataframe(df)


def main():
    args = parse_args()
    setup_logging(args.log_file)

    try:
        records = load_records(args.records)
    except (OSError, ValueError, MalformedRecordError) as e:
        logger.error(f"Could not load records: {e}")
        return 1

    config = ConfigManager(args.config)
    engine = PredictionEngine(config, seed=args.seed)
    engine.add_progress_listener(lambda progress: logger.debug(f"Training {progress}%"))

    state = engine.run_cycle(records)
    output = state.model_dump(mode='json')
    output['summary'] = calculate_sleep_summary(
        records_to_dataframe(records),
        config.get('summary.window_days', 7)
    )

    print(json.dumps(output, indent=2))
    return 1 if state.error else 0


if __name__ == "__main__":
    sys.exit(main())
