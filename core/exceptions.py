"""
Custom exceptions for the Beanstalk deployer
Fatal errors raised while bootstrapping a deployment session
"""
from typing import Any, Dict, List, Optional


class DeployerError(Exception):
    """Base exception for all deployer errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logs"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class CredentialsError(DeployerError):
    """Raised when the credentials file is missing, malformed or incomplete"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        missing_keys: Optional[List[str]] = None,
    ):
        details: Dict[str, Any] = {}
        if path:
            details["path"] = path
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message=message, error_code="CREDENTIALS_ERROR", details=details)
        self.missing_keys = missing_keys or []


class InsufficientPrivilegesError(DeployerError):
    """Raised when the credentials are not allowed to deploy"""

    def __init__(self, operation: Optional[str] = None):
        super().__init__(
            message="Insufficient privileges to deploy application.",
            error_code="INSUFFICIENT_PRIVILEGES",
            details={"operation": operation} if operation else {},
        )


class StorageLocationError(DeployerError):
    """Raised when the source bundle bucket cannot be created"""

    def __init__(self, message: str = "S3 Bucket could not be created. Cannot proceed."):
        super().__init__(message=message, error_code="STORAGE_LOCATION_ERROR")


class ExternalAPIError(DeployerError):
    """Raised when a provider call fails during bootstrap"""

    def __init__(
        self,
        provider: str,
        message: str,
        operation: Optional[str] = None,
        provider_error_code: Optional[str] = None,
        **details,
    ):
        super().__init__(
            message=f"{provider} API error: {message}",
            error_code="EXTERNAL_API_ERROR",
            details={
                "provider": provider,
                "operation": operation,
                "provider_error_code": provider_error_code,
                **details,
            },
        )

