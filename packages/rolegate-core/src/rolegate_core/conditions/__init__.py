from rolegate_core.conditions.evaluator import (
    SUPPORTED_OPERATORS,
    evaluate_condition,
    evaluate_conditions,
)
from rolegate_core.conditions.references import (
    resolve_field,
    resolve_reference,
    resolve_value,
)

__all__ = [
    "SUPPORTED_OPERATORS",
    "evaluate_condition",
    "evaluate_conditions",
    "resolve_field",
    "resolve_reference",
    "resolve_value",
]
