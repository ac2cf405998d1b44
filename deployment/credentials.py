"""
Credential loading for Elastic Beanstalk deployments.

Reads the local ``credentials.json`` once per run and validates that the
access keys are present and that the region hosts Elastic Beanstalk.
"""

import json
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from core.exceptions import CredentialsError
from core.logging import get_logger

logger = get_logger(__name__, stage="bootstrap")

REQUIRED_KEYS = ("access_key_id", "secret_access_key", "region")

ELASTIC_BEANSTALK_REGIONS = frozenset(
    {
        "us-east-1",
        "us-west-1",
        "us-west-2",
        "ap-south-1",
        "ap-northeast-2",
        "ap-southeast-1",
        "ap-southeast-2",
        "ap-northeast-1",
        "eu-central-1",
        "eu-west-1",
        "sa-east-1",
    }
)

REGION_ERROR = "Region not in list of regions that support Elastic Beanstalk"


class AWSCredentials(BaseModel):
    """Access keys and region used for every provider client."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(..., min_length=1, description="AWS access key id")
    secret_access_key: SecretStr = Field(..., description="AWS secret access key")
    region: str = Field(..., description="Region hosting the application")

    @field_validator("region")
    @classmethod
    def validate_region(cls, v):
        if v not in ELASTIC_BEANSTALK_REGIONS:
            raise ValueError(REGION_ERROR)
        return v


def parse_credentials(payload: Union[str, bytes], source: str = "<string>") -> AWSCredentials:
    """Parse and validate a credentials JSON document."""
    try:
        data = json.loads(payload)
    except ValueError as e:
        logger.error(f"Invalid JSON in {source}: {e}")
        raise CredentialsError("Invalid JSON in credentials file. Exiting.", path=source) from e

    if not isinstance(data, dict):
        raise CredentialsError("Invalid JSON in credentials file. Exiting.", path=source)

    missing = [key for key in REQUIRED_KEYS if not data.get(key)]
    if missing:
        raise CredentialsError(
            f"Missing required keys from json file: {', '.join(missing)}. Exiting.",
            path=source,
            missing_keys=missing,
        )

    try:
        return AWSCredentials(
            access_key_id=str(data["access_key_id"]),
            secret_access_key=str(data["secret_access_key"]),
            region=str(data["region"]),
        )
    except ValidationError as e:
        raise CredentialsError(REGION_ERROR, path=source) from e


def load_credentials(path: Union[str, Path]) -> AWSCredentials:
    """Load credentials from a local JSON file, failing fatally on any problem."""
    path = Path(path)
    try:
        payload = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Could not read credentials file {path}: {e}")
        raise CredentialsError("Credentials file not found. Exiting.", path=str(path)) from e

    credentials = parse_credentials(payload, source=str(path))
    logger.info(f"Loaded credentials for region {credentials.region}")
    return credentials
