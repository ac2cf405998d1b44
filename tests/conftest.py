"""
Root conftest.py for all tests
Provides common fixtures and configuration
"""
import os
import sys

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Settings and logging are built on import, so the environment goes first
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Dummy credentials so boto3 and moto never look for real ones
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from core.config import Settings, get_settings
from deployment.credentials import AWSCredentials
from deployment.session import DeploymentSession

TEST_REGION = "us-east-1"


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line("markers", "unit: fast tests without network access")
    config.addinivalue_line("markers", "integration: tests that run several stages together")
    config.addinivalue_line("markers", "critical: tests for behavior every deployment relies on")


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the settings cache before each test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A small project tree with app files and files the bundle must leave out."""
    root = tmp_path / "project"
    (root / "web").mkdir(parents=True)
    (root / "core").mkdir()
    (root / ".idea").mkdir()

    (root / "Dockerrun.aws.json").write_text('{"AWSEBDockerrunVersion": 2}')
    (root / "web" / "index.html").write_text("<html><body><h1>Automation for the People</h1></body></html>")
    (root / "web" / "Dockerfile").write_text("FROM nginx:alpine\nCOPY index.html /usr/share/nginx/html/\n")
    (root / "core" / "cli.py").write_text("print('deployer source')\n")
    (root / ".idea" / "workspace.xml").write_text("<project/>")
    (root / ".gitignore").write_text("credentials.json\n")
    (root / "docker-compose.yml").write_text("services: {}\n")
    (root / "credentials.json").write_text(
        json.dumps({"access_key_id": "AKIATEST", "secret_access_key": "secret", "region": TEST_REGION})
    )
    return root


@pytest.fixture
def test_settings(project_dir: Path) -> Settings:
    """Settings pointed at the test project with a fast poll interval."""
    return Settings(
        _env_file=None,
        environment="test",
        project_dir=project_dir,
        health_poll_interval=0.01,
        health_poll_timeout=5,
        request_timeout=1,
    )


@pytest.fixture
def credentials() -> AWSCredentials:
    return AWSCredentials(access_key_id="AKIATEST", secret_access_key="secret", region=TEST_REGION)


@pytest.fixture
def eb_client() -> MagicMock:
    """Elastic Beanstalk client that succeeds at every call."""
    client = MagicMock(name="elasticbeanstalk")
    client.check_dns_availability.return_value = {"Available": True, "FullyQualifiedCNAME": "demo.elasticbeanstalk.com"}
    client.create_storage_location.return_value = {"S3Bucket": "elasticbeanstalk-us-east-1-123456789012"}
    client.create_application_version.side_effect = lambda **kwargs: {
        "ApplicationVersion": {
            "ApplicationName": kwargs["ApplicationName"],
            "VersionLabel": kwargs["VersionLabel"],
            "Status": "UNPROCESSED",
        }
    }
    client.create_environment.side_effect = lambda **kwargs: {
        "EnvironmentName": kwargs["EnvironmentName"],
        "Status": "Launching",
        "CNAME": f"{kwargs['CNAMEPrefix']}.us-east-1.elasticbeanstalk.com",
    }
    client.describe_environments.return_value = {
        "Environments": [{"EnvironmentName": "demo", "Status": "Ready", "HealthStatus": "Ok", "Health": "Green"}]
    }
    client.describe_events.return_value = {"Events": []}
    return client


@pytest.fixture
def deployment_session(project_dir: Path, credentials: AWSCredentials, eb_client: MagicMock) -> DeploymentSession:
    """A bootstrapped session with a mocked S3 client."""
    return DeploymentSession(
        folder=project_dir,
        credentials=credentials,
        elasticbeanstalk=eb_client,
        s3=MagicMock(name="s3"),
        sha_hash="0123456789abcdef0123456789abcdef",
        app_name="demo",
        bucket_name="elasticbeanstalk-us-east-1-123456789012",
    )
