from sleepio.core.parsing.sleep_log_parser import build_system_prompt, parse_sleep_log, strip_sleep_log

__all__ = ['build_system_prompt', 'parse_sleep_log', 'strip_sleep_log']
