"""
Custom Exception Classes for the consent service

This module defines custom exceptions for better error handling and
consistent error responses across the application.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned alongside error messages"""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_POLICY_NOT_FOUND = "RESOURCE_POLICY_NOT_FOUND"
    RESOURCE_CATEGORY_NOT_FOUND = "RESOURCE_CATEGORY_NOT_FOUND"
    CONSENT_NO_ACTIVE_POLICY = "CONSENT_NO_ACTIVE_POLICY"
    POLICY_ACTIVE_DELETION = "POLICY_ACTIVE_DELETION"
    DATABASE_ERROR = "DATABASE_ERROR"


class ConsentError(Exception):
    """Base exception class for all consent-related exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(ConsentError):
    """Base class for resource not found errors"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any | None = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
            error_code=error_code,
        )


class PolicyNotFoundError(ResourceNotFoundError):
    """Raised when a cookie policy version does not exist"""

    def __init__(self, version: str | None = None):
        super().__init__(
            resource_type="Cookie policy",
            resource_id=version,
            error_code=ErrorCode.RESOURCE_POLICY_NOT_FOUND,
        )


class CategoryNotFoundError(ResourceNotFoundError):
    """Raised when a cookie category is not part of the active policy"""

    def __init__(self, identifier: str | None = None):
        super().__init__(
            resource_type="Category",
            resource_id=identifier,
            error_code=ErrorCode.RESOURCE_CATEGORY_NOT_FOUND,
        )


# ============================================================================
# Consent & Policy Exceptions
# ============================================================================


class NoActivePolicyError(ConsentError):
    """Raised when a consent transition needs a policy and none is active"""

    def __init__(self, message: str = "No active cookie policy found"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=ErrorCode.CONSENT_NO_ACTIVE_POLICY,
        )


class ActivePolicyDeletionError(ConsentError):
    """Raised when deleting the policy that is currently active"""

    def __init__(self, version: str):
        super().__init__(
            message=f"Cookie policy '{version}' is active and cannot be deleted; deactivate it first",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"version": version},
            error_code=ErrorCode.POLICY_ACTIVE_DELETION,
        )


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(ConsentError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=error_details,
            error_code=ErrorCode.VALIDATION_FAILED,
        )


class DuplicateResourceError(ConsentError):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
            error_code=ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
        )


# ============================================================================
# Database Exceptions
# ============================================================================


class DatabaseError(ConsentError):
    """Raised when a database operation fails"""

    def __init__(self, message: str = "A database error occurred", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=ErrorCode.DATABASE_ERROR,
        )
