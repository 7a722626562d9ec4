# reconstructor/base_utils.py


import logging
import re

logger = logging.getLogger("evoki_reconstructor")

# one fence around the whole payload, e.g. ```json\n{...}\n```
_WRAPPING_FENCE = re.compile(r'\A\s*```[a-zA-Z]*[ \t]*\n?(.*?)\n?[ \t]*```\s*\Z', re.DOTALL)


class BaseUtils():

    # -----------------------
    # General Utils
    # -----------------------

    def clean_triple_backticks(self, code) -> str:
        """Unwrap a fenced block; text that is not entirely fenced is returned as is."""
        match = _WRAPPING_FENCE.match(code)
        return match.group(1) if match else code

    def unsafe_string_format(self, dest_string, print_unused_keys_report=True, **kwargs):
        """
        Replaces {KEY} placeholders with the values passed in kwargs.

        Unlike str.format it only touches the keys actually passed, so literal braces
        (e.g. the JSON examples inside a prompt) survive untouched.
        Placeholders with no matching key are left as they are and reported in the log.
        """
        missing_keys = []

        def replacer(match):
            key = match.group(1)
            if key in kwargs:
                return str(kwargs[key])
            else:
                missing_keys.append(key)
                return match.group(0)

        pattern = re.compile(r'\{(\w+)\}')
        result = pattern.sub(replacer, dest_string)
        if missing_keys and print_unused_keys_report:
            logger.info(f"Missing keys within string-to-format in unsafe_string_format: {', '.join(missing_keys)}")
        return result

    def truncate_text(self, text: str, limit: int, marker: str) -> str:
        """Clip text to `limit` characters; clipped text is followed by `marker`."""
        text = text or ""
        if len(text) <= limit:
            return text
        return text[:limit] + marker
