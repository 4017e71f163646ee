"""Option-list field types shared across profile models.

Older clients stored explicit opt-out answers ("Prefer not to say" /
"Prefer not to share") as ordinary option strings. They are translated here,
when documents enter the model layer: stripped from multi-select lists and
turned into ``None`` for single-choice fields. Nothing past this boundary
compares against the literal strings.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Optional

from pydantic.functional_validators import BeforeValidator

OPT_OUT_VALUES = frozenset({"Prefer not to say", "Prefer not to share"})


def _clean_choice(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text in OPT_OUT_VALUES:
        return None
    return text


def _clean_option_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    options: List[str] = []
    for entry in value:
        cleaned = _clean_choice(entry)
        if cleaned and cleaned not in options:
            options.append(cleaned)
    return options


Choice = Annotated[Optional[str], BeforeValidator(_clean_choice)]
OptionList = Annotated[List[str], BeforeValidator(_clean_option_list)]

__all__ = ["Choice", "OptionList", "OPT_OUT_VALUES"]
