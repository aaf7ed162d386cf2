"""
Synthesis Exception Classes

Custom exceptions raised while validating resource attributes and while
accumulating declarations into a synthesis document.
"""

from typing import Any


class SynthesisError(Exception):
    """Base exception for all synthesis errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg

    def get_recovery_hint(self) -> str:
        """Provide a generic hint for fixing the error."""
        return "Check the declaration that triggered this error"


class ValidationError(SynthesisError):
    """Raised when a raw attribute mapping does not satisfy its schema."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        schema: str | None = None,
        error_code: str = "VALIDATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        context = dict(context or {})
        if field_name:
            context["field_name"] = field_name
        if schema:
            context["schema"] = schema
        super().__init__(message, error_code, context)
        self.field_name = field_name
        self.schema = schema

    def get_recovery_hint(self) -> str:
        """Provide a helpful hint for fixing the validation error."""
        if self.field_name:
            return f"Check the value supplied for '{self.field_name}'"
        return "Check the input data format and required fields"


class MissingRequiredField(ValidationError):
    """Raised when a required attribute is absent from the input."""

    def __init__(self, field_name: str, schema: str | None = None) -> None:
        super().__init__(
            f"Missing required field: '{field_name}'",
            field_name=field_name,
            schema=schema,
            error_code="MISSING_REQUIRED_FIELD",
        )

    def get_recovery_hint(self) -> str:
        return f"Add '{self.field_name}' to the resource attributes"


class ConstraintViolation(ValidationError):
    """Raised when a present value breaks a format, range or enum rule."""

    def __init__(
        self,
        field_name: str,
        reason: str,
        schema: str | None = None,
        actual_value: Any = None,
    ) -> None:
        context = {}
        if actual_value is not None:
            context["actual_value"] = repr(actual_value)
        super().__init__(
            reason,
            field_name=field_name,
            schema=schema,
            error_code="CONSTRAINT_VIOLATION",
            context=context,
        )
        self.reason = reason
        self.actual_value = actual_value


class CrossFieldInvariantViolation(ValidationError):
    """Raised when individually valid fields conflict with each other."""

    def __init__(
        self,
        message: str,
        invariant: str | None = None,
        schema: str | None = None,
        field_name: str | None = None,
    ) -> None:
        context = {}
        if invariant:
            context["invariant"] = invariant
        super().__init__(
            message,
            field_name=field_name,
            schema=schema,
            error_code="CROSS_FIELD_INVARIANT",
            context=context,
        )
        self.invariant = invariant

    def get_recovery_hint(self) -> str:
        return "Review the combination of attributes named in the message"


class DSLUsageError(SynthesisError):
    """Raised when the block builder is driven incorrectly."""

    def __init__(self, message: str, block_name: str | None = None) -> None:
        context = {}
        if block_name:
            context["block_name"] = block_name
        super().__init__(message, "DSL_USAGE_ERROR", context)
        self.block_name = block_name

    def get_recovery_hint(self) -> str:
        return "Pass either values or a body to a block call, never both"


class StackFileError(SynthesisError):
    """Raised when a stack file cannot be read or has the wrong shape."""

    def __init__(self, message: str, path: str | None = None) -> None:
        context = {}
        if path:
            context["path"] = path
        super().__init__(message, "STACK_FILE_ERROR", context)
        self.path = path
