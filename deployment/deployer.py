"""
Elastic Beanstalk deployment stages.

Each stage makes one direct call into the provider and returns a success
flag; provider errors are logged and reported as ``False`` so the pipeline
can stop at the first failed stage.
"""

import threading
from typing import Callable, Dict, List, Optional

import click
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

from core.config import Settings
from core.logging import get_logger
from deployment.bundle import build_source_bundle
from deployment.content_verifier import verify_page_contents
from deployment.health_checker import EnvironmentHealthPoller, HealthPollResult
from deployment.session import DeploymentSession

logger = get_logger(__name__, stage="deploy")

LAUNCHING_STATUS = "Launching"


class EnvironmentTemplate(BaseModel):
    """Infrastructure settings for a new environment."""

    solution_stack_name: str = Field(..., description="Platform the environment runs")
    environment_type: str = Field(default="SingleInstance")
    service_role: str = Field(default="aws-elasticbeanstalk-service-role")
    iam_instance_profile: str = Field(default="aws-elasticbeanstalk-ec2-role")
    instance_type: str = Field(default="t2.nano")
    vpc_id: Optional[str] = Field(None, description="VPC to launch into")
    subnets: Optional[str] = Field(None, description="Comma separated subnet ids")
    security_groups: Optional[str] = Field(None, description="Comma separated security group ids")
    associate_public_ip: bool = Field(default=True)
    ec2_key_name: Optional[str] = Field(None, description="Key pair for SSH access")
    notification_endpoint: Optional[str] = Field(None, description="Email for SNS notifications")
    health_check_success_threshold: str = Field(default="Ok")

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnvironmentTemplate":
        return cls(
            solution_stack_name=settings.solution_stack_name,
            environment_type=settings.environment_type,
            service_role=settings.service_role,
            iam_instance_profile=settings.iam_instance_profile,
            instance_type=settings.instance_type,
            vpc_id=settings.vpc_id,
            subnets=settings.subnets,
            security_groups=settings.security_groups,
            associate_public_ip=settings.associate_public_ip,
            ec2_key_name=settings.ec2_key_name,
            notification_endpoint=settings.notification_endpoint,
            health_check_success_threshold=settings.health_check_success_threshold,
        )

    def option_settings(self) -> List[Dict[str, str]]:
        """Render the template as ``OptionSettings``; unset optional values are left out."""
        options = [
            ("aws:elasticbeanstalk:sns:topics", "Notification Endpoint", self.notification_endpoint),
            ("aws:elasticbeanstalk:environment", "ServiceRole", self.service_role),
            ("aws:elasticbeanstalk:environment", "EnvironmentType", self.environment_type),
            ("aws:elasticbeanstalk:healthreporting:system", "SystemType", "enhanced"),
            (
                "aws:elasticbeanstalk:healthreporting:system",
                "HealthCheckSuccessThreshold",
                self.health_check_success_threshold,
            ),
            ("aws:ec2:vpc", "Subnets", self.subnets),
            ("aws:ec2:vpc", "VPCId", self.vpc_id),
            ("aws:ec2:vpc", "AssociatePublicIpAddress", "true" if self.associate_public_ip else "false"),
            ("aws:autoscaling:launchconfiguration", "SecurityGroups", self.security_groups),
            ("aws:autoscaling:launchconfiguration", "IamInstanceProfile", self.iam_instance_profile),
            ("aws:autoscaling:launchconfiguration", "InstanceType", self.instance_type),
            ("aws:autoscaling:launchconfiguration", "EC2KeyName", self.ec2_key_name),
        ]
        return [
            {"Namespace": namespace, "OptionName": name, "Value": value}
            for namespace, name, value in options
            if value
        ]


class ElasticBeanstalkDeployer:
    """Runs the provider-facing stages of one deployment session."""

    def __init__(
        self,
        session: DeploymentSession,
        settings: Settings,
        report: Callable[[str], None] = click.echo,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.session = session
        self.settings = settings
        self.template = EnvironmentTemplate.from_settings(settings)
        self.report = report
        self.cancel_event = cancel_event or threading.Event()
        self.last_poll: Optional[HealthPollResult] = None

    @property
    def endpoint_url(self) -> Optional[str]:
        return self.session.endpoint_url

    def upload_source_bundle(self) -> bool:
        """Zip the project, upload it to the bucket and confirm it arrived."""
        session = self.session
        session.zipfile_name = f"{session.sha_hash}.zip"
        archive_path = session.folder / session.zipfile_name

        try:
            build_source_bundle(session.folder, archive_path, self.settings.bundle_excludes)

            with open(archive_path, "rb") as body:
                session.s3.put_object(Bucket=session.bucket_name, Key=session.zipfile_name, Body=body)

            session.s3.get_object_acl(Bucket=session.bucket_name, Key=session.zipfile_name)
            logger.info(f"Source bundle s3://{session.bucket_name}/{session.zipfile_name} uploaded")
            return True

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Source bundle upload failed: {e}")
            return False
        except OSError as e:
            logger.error(f"Source bundle could not be written: {e}")
            return False

        finally:
            archive_path.unlink(missing_ok=True)

    def create_application_version(self) -> bool:
        """Register the uploaded bundle as a version, creating the application if needed."""
        session = self.session
        try:
            response = session.elasticbeanstalk.create_application_version(
                ApplicationName=session.app_name,
                AutoCreateApplication=True,
                Description=f"{session.app_name} version {session.sha_hash}",
                SourceBundle={"S3Bucket": session.bucket_name, "S3Key": session.zipfile_name},
                VersionLabel=session.sha_hash,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"create_application_version failed: {e}")
            return False

        version = (response or {}).get("ApplicationVersion") or {}
        if version.get("ApplicationName") == session.app_name and version.get("VersionLabel") == session.sha_hash:
            return True

        logger.error(f"Unexpected application version in response: {version}")
        return False

    def create_environment(self) -> bool:
        """Launch the environment and remember its hostname."""
        session = self.session
        try:
            response = session.elasticbeanstalk.create_environment(
                ApplicationName=session.app_name,
                EnvironmentName=session.app_name,
                SolutionStackName=self.template.solution_stack_name,
                VersionLabel=session.sha_hash,
                CNAMEPrefix=session.app_name,
                OptionSettings=self.template.option_settings(),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"create_environment failed: {e}")
            return False

        if response and response.get("Status") == LAUNCHING_STATUS:
            session.endpoint_url = response.get("CNAME")
            return True

        logger.error(f"Environment not launching: {(response or {}).get('Status')}")
        return False

    def check_health(self) -> bool:
        """Block until the environment is Ready/Ok; False on error, timeout or cancel."""
        poller = EnvironmentHealthPoller(
            self.session.elasticbeanstalk,
            self.session.app_name,
            interval=self.settings.health_poll_interval,
            timeout=self.settings.health_poll_timeout,
            report=self.report,
            cancel_event=self.cancel_event,
        )
        self.last_poll = poller.poll()
        return self.last_poll.healthy

    def verify_page_contents(self) -> bool:
        """Check the deployed page for the expected heading."""
        return verify_page_contents(
            self.session.endpoint_url,
            expected_text=self.settings.expected_page_text,
            selector=self.settings.page_selector,
            timeout=self.settings.request_timeout,
            report=self.report,
        )
