"""
Deployment pipeline.

Runs the stages of an ``ElasticBeanstalkDeployer`` in order and stops at the
first one that reports failure. Nothing already created in the cloud is
rolled back.
"""

from typing import Callable, List, NamedTuple, Optional

import click
from pydantic import BaseModel, Field

from core.logging import get_logger
from deployment.deployer import ElasticBeanstalkDeployer

logger = get_logger(__name__, stage="pipeline")


class Stage(NamedTuple):
    name: str
    announce: str
    run: Callable[[], bool]
    failure: str


class PipelineResult(BaseModel):
    """What happened during one pipeline run."""

    success: bool = Field(..., description="Whether every stage succeeded")
    completed_stages: List[str] = Field(default_factory=list)
    failed_stage: Optional[str] = Field(None, description="Name of the stage that failed")
    endpoint_url: Optional[str] = Field(None, description="Hostname of the new environment")


def build_stages(deployer: ElasticBeanstalkDeployer) -> List[Stage]:
    expected = deployer.settings.expected_page_text
    return [
        Stage(
            "upload",
            "Uploading Source Bundle to S3...",
            deployer.upload_source_bundle,
            "Could not upload Source Bundle.",
        ),
        Stage(
            "application_version",
            "Source bundle Uploaded. Creating Application and Application Version...",
            deployer.create_application_version,
            "Could not create Application or Application Version.",
        ),
        Stage(
            "environment",
            "Application and Application Version Created. Creating Environment...",
            deployer.create_environment,
            "Could not create Environment.",
        ),
        Stage(
            "health",
            "Environment Launching, please wait...",
            deployer.check_health,
            "Could not check Environment Health.",
        ),
        Stage(
            "verify",
            "Environment healthy and ready. Checking page content...",
            deployer.verify_page_contents,
            f'Page contents don\'t match "{expected}"',
        ),
    ]


def run_pipeline(
    deployer: ElasticBeanstalkDeployer,
    report: Callable[[str], None] = click.echo,
) -> PipelineResult:
    """Run every stage in order, printing progress and the first failure."""
    completed: List[str] = []

    for stage in build_stages(deployer):
        report(stage.announce)
        if not stage.run():
            logger.error(f"Stage {stage.name} failed")
            report(stage.failure)
            return PipelineResult(
                success=False,
                completed_stages=completed,
                failed_stage=stage.name,
                endpoint_url=deployer.endpoint_url,
            )
        completed.append(stage.name)

    report(f'"{deployer.settings.expected_page_text}" found!')
    report(f"Go to {deployer.endpoint_url} to see for yourself!")
    return PipelineResult(success=True, completed_stages=completed, endpoint_url=deployer.endpoint_url)
