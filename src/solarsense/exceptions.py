"""Custom exceptions for the SolarSense energy engine."""

class SolarSenseError(Exception):
    """Base exception for SolarSense errors."""
    pass

class ConfigurationError(SolarSenseError):
    """Exception raised for configuration errors."""
    pass

class ValidationError(SolarSenseError):
    """Base exception for validation errors."""
    pass

class ValidationTypeError(ValidationError):
    """Exception raised for type validation errors."""
    pass

class ValidationRangeError(ValidationError):
    """Exception raised for range validation errors."""
    pass

class UnknownWeatherConditionError(ValidationError):
    """Exception raised when a weather condition name is not recognised."""
    pass

class OptimizationError(SolarSenseError):
    """Exception raised for optimization-related errors."""
    pass

class SimulationError(SolarSenseError):
    """Exception raised for simulation errors."""
    pass
