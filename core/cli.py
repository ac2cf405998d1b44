"""
Command-line interface for the Beanstalk deployer
"""
import sys

import click

from core.config import get_settings
from core.exceptions import DeployerError
from core.logging import get_logger
from deployment.checksum import directory_checksum
from deployment.deployer import ElasticBeanstalkDeployer
from deployment.pipeline import run_pipeline
from deployment.session import bootstrap_session

logger = get_logger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(version=get_settings().app_version)
@click.pass_context
def cli(ctx):
    """Deploy the current project to AWS Elastic Beanstalk"""
    if ctx.invoked_subcommand is None:
        ctx.invoke(deploy)


@cli.command()
def deploy():
    """Upload, launch, health-check and verify the project"""
    settings = get_settings()

    try:
        session = bootstrap_session(settings)
        deployer = ElasticBeanstalkDeployer(session, settings)
        result = run_pipeline(deployer)
    except DeployerError as e:
        logger.error(f"Deployment aborted: {e.to_dict()}")
        click.echo(e.message, err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nDeployment interrupted.", err=True)
        sys.exit(130)

    if not result.success:
        sys.exit(1)


@cli.command()
def checksum():
    """Print the content hash used as the version label"""
    settings = get_settings()
    click.echo(directory_checksum(settings.project_dir))


@cli.command()
def env_info():
    """Display the effective configuration"""
    settings = get_settings()
    click.echo(f"{settings.app_name} v{settings.app_version}")
    for key, value in settings.model_dump().items():
        click.echo(f"{key}: {value}")


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
