# reconstructor/response_validator.py

import json
from typing import Any

from reconstructor.base_utils import BaseUtils
from reconstructor.entities import ZERO_STATS, ValidationResult
from reconstructor.errors import ResponseParseError
from reconstructor.rule_stats import compute_run_stats

TRUNCATION_HINT = (
    "Häufigste Ursache ist eine abgeschnittene Antwort, weil das Ausgabelimit des Modells erreicht wurde."
)


class ResponseValidator(BaseUtils):

    def parse(self, raw_text: str) -> Any:
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ResponseParseError("Leere Antwort des Modells")
        try:
            return json.loads(self.clean_triple_backticks(raw_text).strip())
        except ValueError as e:
            raise ResponseParseError(str(e)) from e

    def validate(self, raw_text: str) -> ValidationResult:
        """
        Parsed and pretty-printed payload plus statistics.
        If the text is not JSON, the raw text is kept verbatim for inspection and the statistics are zero.
        """
        try:
            data = self.parse(raw_text)
        except ResponseParseError as e:
            return ValidationResult(
                data=None,
                display_text=raw_text if isinstance(raw_text, str) else "",
                stats=ZERO_STATS,
                error=str(e),
            )

        return ValidationResult(
            data=data,
            display_text=json.dumps(data, indent=2, ensure_ascii=False),
            stats=compute_run_stats(data),
        )


def validate_response(raw_text: str) -> ValidationResult:
    return ResponseValidator().validate(raw_text)
