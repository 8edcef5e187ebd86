# sleepio/utils/data_validation.py

import logging

import pandas as pd
from pydantic import ValidationError

from sleepio.core.models.data_models import SleepRecord
from sleepio.utils.errors import MalformedRecordError

logger = logging.getLogger(__name__)


def validate_record(item):
    """
    Return a SleepRecord for a record or a mapping of record fields.

    Raises:
        MalformedRecordError: the item is missing fields or has invalid values
    """
    if isinstance(item, SleepRecord):
        return item

    if not isinstance(item, dict):
        raise MalformedRecordError(f"Expected a sleep record, got {type(item).__name__}")

    try:
        return SleepRecord.model_validate(item)
    except ValidationError as e:
        raise MalformedRecordError(f"Invalid sleep record: {e}") from e


def validate_records(items):
    """Validate every item, failing on the first malformed one"""
    records = []
    for i, item in enumerate(items):
        try:
            records.append(validate_record(item))
        except MalformedRecordError:
            logger.warning(f"Validation error in record {i}")
            raise
    return records


def validate_dataframe(df):
    """
    Validate the rows of a DataFrame loaded from CSV or JSON.

    Missing cells become None so optional fields fall back to their defaults
    and required ones fail validation.
    """
    cleaned = df.astype(object).where(pd.notna(df), None)
    rows = [{key: value for key, value in row.items() if value is not None}
            for row in cleaned.to_dict('records')]
    return validate_records(rows)
