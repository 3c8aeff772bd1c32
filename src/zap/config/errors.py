from __future__ import annotations

"""Exception types for configuration handling."""


class ConfigurationError(RuntimeError):
    """Raised when configuration values are missing or malformed."""

    @classmethod
    def invalid_value(cls, param_name: str, value, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg)

    @classmethod
    def invalid_choice(cls, param_name: str, value: str, choices) -> "ConfigurationError":
        """Create error for a value outside the allowed set."""
        allowed = ", ".join(sorted(choices))
        return cls(f"{param_name} must be one of {allowed} (got {value!r})")


__all__ = ["ConfigurationError"]
