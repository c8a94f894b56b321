from typing import Any
from pydantic import ValidationInfo


def field_label(info: ValidationInfo) -> str:
    return info.field_name.replace("_", " ").capitalize()


def reject_empty(v: Any, info: ValidationInfo) -> Any:
    """
    For partial updates of NOT NULL columns: the field may be left out, but an
    explicit null (or a blank string) is refused.
    """
    if v is None or (isinstance(v, str) and not v.strip()):
        raise ValueError(f"{field_label(info)} cannot be empty")
    return v
