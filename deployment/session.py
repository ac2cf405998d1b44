"""
Deployment session bootstrap.

Signs into AWS with the local credentials, negotiates a unique application
name with the operator and makes sure the Elastic Beanstalk storage bucket
exists. Every failure here is fatal and raised as a ``DeployerError``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import boto3
import click
from botocore.exceptions import BotoCoreError, ClientError

from core.config import Settings
from core.exceptions import ExternalAPIError, InsufficientPrivilegesError, StorageLocationError
from core.logging import get_logger
from deployment.checksum import directory_checksum
from deployment.credentials import AWSCredentials, load_credentials

logger = get_logger(__name__, stage="bootstrap")

Prompt = Callable[[str], str]

FIRST_PROMPT = "Please select an app name: "
RETRY_PROMPT = "That app name has already been chosen. Please try another: "


@dataclass
class DeploymentSession:
    """Everything one deployment run needs, passed explicitly to each stage."""

    folder: Path
    credentials: AWSCredentials
    elasticbeanstalk: Any
    s3: Any
    sha_hash: str
    app_name: Optional[str] = None
    bucket_name: Optional[str] = None
    zipfile_name: Optional[str] = None
    endpoint_url: Optional[str] = None

    @property
    def region(self) -> str:
        return self.credentials.region


def default_prompt(message: str) -> str:
    """Ask the operator on the terminal; an empty answer is returned as-is."""
    return click.prompt(message, default="", show_default=False, prompt_suffix="").strip()


def _bootstrap_call(operation: str, func: Callable[..., Dict[str, Any]], **kwargs) -> Dict[str, Any]:
    """Run a bootstrap provider call, turning provider failures into fatal errors."""
    try:
        return func(**kwargs)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        if code == "InsufficientPrivilegesException":
            raise InsufficientPrivilegesError(operation) from e
        raise ExternalAPIError("ElasticBeanstalk", str(e), operation=operation, provider_error_code=code) from e
    except BotoCoreError as e:
        raise ExternalAPIError("ElasticBeanstalk", str(e), operation=operation) from e


def create_clients(credentials: AWSCredentials) -> Tuple[Any, Any]:
    """Build the Elastic Beanstalk and S3 clients for the credential region."""
    session = boto3.session.Session(
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key.get_secret_value(),
        region_name=credentials.region,
    )
    return session.client("elasticbeanstalk"), session.client("s3")


def _is_available(response: Optional[Dict[str, Any]]) -> bool:
    return bool(response) and response.get("Available") is True


def _ask(prompt: Prompt, message: str) -> str:
    name = ""
    while not name:
        name = (prompt(message) or "").strip()
    return name


def negotiate_app_name(eb_client: Any, prompt: Prompt = default_prompt) -> str:
    """Prompt until the operator picks a CNAME prefix the provider reports as available."""
    app_name = _ask(prompt, FIRST_PROMPT)
    response = _bootstrap_call("check_dns_availability", eb_client.check_dns_availability, CNAMEPrefix=app_name)

    while not _is_available(response):
        logger.info(f"CNAME prefix {app_name} is taken")
        app_name = _ask(prompt, RETRY_PROMPT)
        response = _bootstrap_call("check_dns_availability", eb_client.check_dns_availability, CNAMEPrefix=app_name)

    return app_name


def create_storage_location(eb_client: Any) -> str:
    """Create (or fetch, when it already exists) the source bundle bucket."""
    response = _bootstrap_call("create_storage_location", eb_client.create_storage_location)
    bucket = (response or {}).get("S3Bucket")
    if not bucket:
        raise StorageLocationError()
    return bucket


def bootstrap_session(
    settings: Settings,
    prompt: Prompt = default_prompt,
    client_factory: Callable[[AWSCredentials], Tuple[Any, Any]] = create_clients,
) -> DeploymentSession:
    """Hash the project folder, sign in, pick an app name and get a bucket."""
    folder = Path(settings.project_dir).resolve()
    sha_hash = directory_checksum(folder)
    logger.info(f"Project {folder} hashed to {sha_hash}")

    credentials = load_credentials(settings.credentials_path)
    elasticbeanstalk, s3 = client_factory(credentials)

    session = DeploymentSession(
        folder=folder,
        credentials=credentials,
        elasticbeanstalk=elasticbeanstalk,
        s3=s3,
        sha_hash=sha_hash,
    )
    session.app_name = negotiate_app_name(elasticbeanstalk, prompt)
    session.bucket_name = create_storage_location(elasticbeanstalk)
    logger.info(f"Using bucket {session.bucket_name} for {session.app_name}")
    return session
