"""Parsing of a question's stored ``options_category`` blob.

Single place where the JSON blob is decoded into a typed variant. Any
malformed blob fails closed to ``NoOptions`` so one broken question cannot
stop the rest of a form from rendering.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from formflow.models.options import (
    ChoiceOptions,
    LinearScaleOptions,
    MultiSelectOptions,
    NoOptions,
    OptionsCategory,
)
from formflow.models.question_kind import QuestionKind
from formflow.models.records import Question

logger = logging.getLogger(__name__)

# Blob keys written by the authoring UI mapped to model field names
_KEY_ALIASES = {"minLabel": "min_label", "maxLabel": "max_label"}


def _decode_blob(raw: Any) -> Optional[dict]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or not raw.strip():
        return None
    decoded = json.loads(raw)
    if not isinstance(decoded, dict):
        raise ValueError("options_category must decode to an object")
    return decoded


def parse_options_category(question_type: str, raw: Any) -> OptionsCategory:
    """Return the typed options for ``question_type`` decoded from ``raw``.

    Types without options, missing blobs, and blobs that fail to decode or
    validate all return ``NoOptions``.
    """
    if question_type not in QuestionKind.CHOICE_BEARING:
        return NoOptions()
    try:
        blob = _decode_blob(raw)
        if blob is None:
            return NoOptions()
        data = {_KEY_ALIASES.get(k, k): v for k, v in blob.items()}
        if isinstance(data.get("choices"), list):
            data["choices"] = [str(c) for c in data["choices"]]
        if question_type == QuestionKind.MULTI_SELECT:
            if data.get("min") is None:
                data.pop("min", None)
            return MultiSelectOptions.model_validate(data)
        if question_type == QuestionKind.LINEAR_SCALE:
            return LinearScaleOptions.model_validate(data)
        return ChoiceOptions.model_validate({"choices": data.get("choices") or []})
    except (ValueError, TypeError, ValidationError):
        # json.JSONDecodeError is a ValueError
        logger.warning(
            "options_category_malformed question_type=%s raw=%r", question_type, raw, exc_info=True
        )
        return NoOptions()


def options_for(question: Question) -> OptionsCategory:
    return parse_options_category(question.question_type, question.options_category)


__all__ = ["parse_options_category", "options_for"]
