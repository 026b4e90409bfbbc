# codification/base_utils.py


import json
import logging
import re


logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n"
)

logger = logging.getLogger("codification")


class BaseUtils():

    # -----------------------
    # General Utils
    # -----------------------

    def color_print(self, text, color=None, end_value=None):
        COLOR_CODES = {
            'black': '30', 'red': '31', 'green': '32', 'yellow': '33', 'blue': '34', 'magenta': '35',
            'cyan': '36', 'white': '37', 'bright_black': '90', 'bright_red': '91', 'bright_green': '92',
            'bright_yellow': '93', 'bright_blue': '94', 'bright_magenta': '95', 'bright_cyan': '96', 'bright_white': '97'
        }
        if color and color.lower() in COLOR_CODES:
            color_code = COLOR_CODES[color.lower()]
            start = f"\033[{color_code}m"
            end = "\033[0m"
            text = f"{start}{text}{end}"
        logger.info(str(text))
        return False


def coerce_field_to_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    try:
        return json.dumps(value)
    except TypeError:
        return str(value).strip()


def strip_code_fences(text: str) -> str:
    """
    Remove a leading ``` / ```json fence and a trailing ``` fence.
    Text that does not start with a fence is returned trimmed but otherwise untouched.
    """
    content = (text or "").strip()
    if content.startswith("```"):
        content = re.sub(r"^```(?:json)?\n?", "", content, flags=re.IGNORECASE)
        content = re.sub(r"\n?```$", "", content)
    return content


def unsafe_string_format(dest_string, print_unused_keys_report=True, **kwargs):
    """
    Formats a destination string by replacing placeholders with corresponding values from kwargs.

    it works differently from the standard "format" method as instead of looking for all the potential keys,
    looks only for the keys as passed in kwargs, so literal JSON braces inside a prompt are left alone.
    """
    # List to track keys that were not found
    missing_keys = []

    def replacer(match):
        key = match.group(1)
        if key in kwargs:
            return str(kwargs[key])
        else:
            missing_keys.append(key)
            return match.group(0)  # Leave the placeholder unchanged

    pattern = re.compile(r'\{(\w+)\}')
    result = pattern.sub(replacer, dest_string)
    if missing_keys and print_unused_keys_report:
        logger.info(f"\033[93m\033[3mMissing keys within string-to-format in unsafe_string_format: {', '.join(missing_keys)}\033[0m")
    return result
