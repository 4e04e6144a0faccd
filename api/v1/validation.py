"""
Request validation helpers shared by the v1 views.
"""
from typing import Any, Dict, Type

from rest_framework import serializers

from core.domain.exceptions import ValidationError


def validate_request(serializer_class: Type[serializers.Serializer], data: Any) -> Dict[str, Any]:
    """
    Validate request data with a serializer.

    Args:
        serializer_class: Request serializer
        data: Request body or query parameters

    Returns:
        Validated data keyed by the serializers' ``source`` names

    Raises:
        ValidationError: With the first field error
    """
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        field, errors = next(iter(serializer.errors.items()))
        message = errors[0] if isinstance(errors, list) and errors else errors
        raise ValidationError(f"{field}: {message}")
    return serializer.validated_data
