"""
Elastic Beanstalk deployment modules.

This package bootstraps a deployment session, packages and uploads the
project, creates the application version and environment, polls its
health and verifies the deployed page.
"""

from .checksum import directory_checksum
from .content_verifier import verify_page_contents
from .credentials import AWSCredentials, load_credentials
from .deployer import ElasticBeanstalkDeployer, EnvironmentTemplate
from .health_checker import EnvironmentHealthPoller, HealthPollResult, PollState
from .pipeline import PipelineResult, run_pipeline
from .session import DeploymentSession, bootstrap_session

__all__ = [
    "AWSCredentials",
    "load_credentials",
    "directory_checksum",
    "DeploymentSession",
    "bootstrap_session",
    "ElasticBeanstalkDeployer",
    "EnvironmentTemplate",
    "EnvironmentHealthPoller",
    "HealthPollResult",
    "PollState",
    "verify_page_contents",
    "PipelineResult",
    "run_pipeline",
]
