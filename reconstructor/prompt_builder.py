# reconstructor/prompt_builder.py

from typing import Optional

from reconstructor.base_utils import BaseUtils
from reconstructor.reconstruction_prompts import (
    INDEX_LED_STEPS,
    MISSING_FRAGMENT_PLACEHOLDER,
    PATTERN_LEARNED_STEPS,
    RECONSTRUCTION_PROMPT,
    TRUNCATION_MARKER,
)
from reconstructor.settings import (
    DENSE_CHAR_BUDGET,
    INDEX_CHAR_BUDGET,
    MAIN_CHAR_BUDGET,
    SKELETON_CHAR_BUDGET,
)


class ReconstructionPromptBuilder(BaseUtils):
    """
    Renders the single reconstruction prompt.
    Pure: the same fragments always give the same prompt (no timestamps, no randomness).
    """

    def _fragment(self, text: Optional[str], budget: int) -> str:
        if text is None:
            return MISSING_FRAGMENT_PLACEHOLDER
        return self.truncate_text(str(text), budget, TRUNCATION_MARKER)

    def build(
        self,
        main: str,
        skeleton: Optional[str] = None,
        dense: Optional[str] = None,
        index: Optional[str] = None,
    ) -> str:
        steps = INDEX_LED_STEPS if index is not None else PATTERN_LEARNED_STEPS
        return self.unsafe_string_format(
            RECONSTRUCTION_PROMPT,
            MAIN_CONTENT=self.truncate_text(str(main or ""), MAIN_CHAR_BUDGET, TRUNCATION_MARKER),
            SKELETON_CONTENT=self._fragment(skeleton, SKELETON_CHAR_BUDGET),
            DENSE_CONTENT=self._fragment(dense, DENSE_CHAR_BUDGET),
            INDEX_CONTENT=self._fragment(index, INDEX_CHAR_BUDGET),
            RECONSTRUCTION_STEPS=steps,
        )


def build_reconstruction_prompt(
    main: str,
    skeleton: Optional[str] = None,
    dense: Optional[str] = None,
    index: Optional[str] = None,
) -> str:
    return ReconstructionPromptBuilder().build(main, skeleton=skeleton, dense=dense, index=index)
