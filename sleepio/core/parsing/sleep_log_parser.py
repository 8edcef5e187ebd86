"""
Extraction of sleep records from assistant replies.

The assistant is told to end any reply that reports a night of sleep with a
single-line marker such as

    SLEEP_LOG:{"date":"2026-02-26","bedtime":"02:00","wake":"09:00","duration":7,"quality":40,"caffeine":true,"exercise":false,"screens":true}
"""

import json
import logging
import re
from datetime import date

from pydantic import ValidationError

from sleepio.core.models.data_models import SleepRecord
from sleepio.utils.constants import SLEEP_LOG_PATTERN
from sleepio.utils.errors import MalformedRecordError

logger = logging.getLogger(__name__)

_SLEEP_LOG_RE = re.compile(SLEEP_LOG_PATTERN)

HABIT_FLAGS = ('caffeine', 'exercise', 'screens')


def parse_sleep_log(content, today=None):
    """
    Extract a sleep record from an assistant message.

    Args:
        content: assistant reply text
        today: date used when the marker has no date

    Returns:
        SleepRecord, or None when the message has no marker

    Raises:
        MalformedRecordError: the marker is present but cannot be decoded or
            is missing duration or quality
    """
    match = _SLEEP_LOG_RE.search(content or '')
    if match is None:
        return None

    try:
        log_data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"SLEEP_LOG is not valid JSON: {e}") from e

    if not isinstance(log_data, dict):
        raise MalformedRecordError("SLEEP_LOG must be a JSON object")

    for required in ('duration', 'quality'):
        if log_data.get(required) is None:
            raise MalformedRecordError(f"SLEEP_LOG is missing '{required}'")

    if not log_data.get('date'):
        log_data['date'] = (today or date.today()).isoformat()

    # The assistant only sets a habit flag when the user mentions it
    for flag in HABIT_FLAGS:
        if log_data.get(flag) is None:
            log_data[flag] = False

    try:
        record = SleepRecord.model_validate(log_data)
    except ValidationError as e:
        raise MalformedRecordError(f"Invalid SLEEP_LOG: {e}") from e

    logger.debug(f"Parsed sleep log for {record.date}")
    return record


def strip_sleep_log(content):
    """Return the message text without the SLEEP_LOG marker"""
    return _SLEEP_LOG_RE.sub('', content or '', count=1).strip()


def build_system_prompt(record_count, today=None):
    """System instructions for the assistant, including the marker format"""
    today = (today or date.today()).isoformat()

    if record_count > 0:
        sleep_context = f"The user has logged {record_count} sleep entries."
    else:
        sleep_context = "No sleep data logged yet."

    return (
        f"You are Sleep.io, a friendly sleep assistant. Current sleep data: {sleep_context}\n"
        "\n"
        "CRITICAL RULE: When a user provides sleep information (bedtime, wake time, quality), "
        "you MUST include a SLEEP_LOG at the end of your response in this EXACT format with no spaces:\n"
        f'SLEEP_LOG:{{"date":"{today}","bedtime":"23:00","wake":"07:00","duration":8,'
        '"quality":75,"caffeine":false,"exercise":true,"screens":false}\n'
        "\n"
        "Rules for the SLEEP_LOG:\n"
        "- date: the night's date in YYYY-MM-DD format\n"
        "- bedtime: 24-hour format (2:00 am = \"02:00\", 11:00 pm = \"23:00\")\n"
        "- wake: 24-hour format\n"
        "- duration: hours as a number\n"
        "- quality: 0-100 number\n"
        "- caffeine: true if they mention caffeine\n"
        "- exercise: true if they mention exercise\n"
        "- screens: true if they mention screens\n"
        "\n"
        "You MUST always append the SLEEP_LOG line. Never skip it when sleep data is provided."
    )
