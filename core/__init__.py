"""Core configuration, logging and errors for the Beanstalk deployer"""
from core.config import settings
from core.exceptions import CredentialsError, DeployerError, ExternalAPIError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "DeployerError",
    "CredentialsError",
    "ExternalAPIError",
]
