"""Validation utilities for records supplied by the external household roster."""

from typing import Any, Mapping, Optional, Type, Union

from .exceptions import ValidationError, ValidationTypeError, ValidationRangeError

class Validator:
    """Base validator class."""

    @staticmethod
    def validate_type(value: Any, expected_type: Union[Type, tuple]) -> None:
        """Validate value type."""
        if isinstance(value, bool) or not isinstance(value, expected_type):
            names = (
                expected_type.__name__ if isinstance(expected_type, type)
                else "/".join(t.__name__ for t in expected_type)
            )
            raise ValidationTypeError(
                f"Expected type {names}, got {type(value).__name__}"
            )

    @staticmethod
    def validate_range(
        value: Union[int, float],
        min_value: Optional[Union[int, float]] = None,
        max_value: Optional[Union[int, float]] = None
    ) -> None:
        """Validate numeric range."""
        if min_value is not None and value < min_value:
            raise ValidationRangeError(f"Value {value} is below minimum {min_value}")

        if max_value is not None and value > max_value:
            raise ValidationRangeError(f"Value {value} exceeds maximum {max_value}")

class HouseholdValidator(Validator):
    """Validator for household records."""

    @staticmethod
    def validate_id(household_id: int) -> None:
        """Validate household identity."""
        Validator.validate_type(household_id, int)
        Validator.validate_range(household_id, min_value=0)

    @staticmethod
    def validate_capacity(capacity: float) -> None:
        """Validate a solar (kW) or battery (kWh) capacity."""
        Validator.validate_type(capacity, (int, float))
        Validator.validate_range(capacity, min_value=0)

    @staticmethod
    def validate_battery_level(level: float) -> None:
        """Validate battery level expressed as percent of capacity."""
        Validator.validate_type(level, (int, float))
        Validator.validate_range(level, min_value=0, max_value=100)

    @classmethod
    def validate_record(cls, record: Mapping[str, Any]) -> None:
        """Validate a raw household record before conversion."""
        if "id" not in record:
            raise ValidationError("Household record requires an 'id'")
        cls.validate_id(record["id"])

        for key in ("solar_capacity", "battery_capacity"):
            if record.get(key) is not None:
                cls.validate_capacity(record[key])

        if record.get("battery_level") is not None:
            cls.validate_battery_level(record["battery_level"])

class WeatherValidator(Validator):
    """Validator for weather data."""

    @staticmethod
    def validate_temperature(temp: float) -> None:
        """Validate temperature value."""
        Validator.validate_type(temp, (int, float))
        Validator.validate_range(temp, min_value=-50, max_value=60)

    @staticmethod
    def validate_cloud_cover(cloud_cover: float) -> None:
        """Validate cloud cover percentage."""
        Validator.validate_type(cloud_cover, (int, float))
        Validator.validate_range(cloud_cover, min_value=0, max_value=100)

    @staticmethod
    def validate_wind_speed(speed: float) -> None:
        """Validate wind speed."""
        Validator.validate_type(speed, (int, float))
        Validator.validate_range(speed, min_value=0, max_value=200)

def validate_hour(hour: int) -> None:
    """Validate hour of day."""
    Validator.validate_type(hour, int)
    Validator.validate_range(hour, min_value=0, max_value=23)

def validate_day_of_week(day_of_week: int) -> None:
    """Validate day of week (0 = Sunday)."""
    Validator.validate_type(day_of_week, int)
    Validator.validate_range(day_of_week, min_value=0, max_value=6)
