from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import models


class QuantityField(models.DecimalField):
    """DecimalField for stock quantities.

    Values that cannot be read as a finite decimal raise ``ValidationError``
    rather than being coerced, so a bad quantity never reaches the ledger.
    Floats are converted through their ``str`` form to avoid binary noise.
    """

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("max_digits", 12)
        kwargs.setdefault("decimal_places", 3)
        super().__init__(*args, **kwargs)

    def _invalid(self, value):
        return ValidationError(
            self.error_messages["invalid"],
            code="invalid",
            params={"value": value},
        )

    def to_python(self, value):
        if value is None:
            return value
        if isinstance(value, bool):
            raise self._invalid(value)
        if isinstance(value, float):
            value = str(value)
        try:
            result = Decimal(value)
        except (TypeError, ValueError, InvalidOperation):
            raise self._invalid(value)
        if not result.is_finite():
            raise self._invalid(value)
        return result
