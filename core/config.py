"""
Configuration management using Pydantic Settings
Handles environment variables and validation
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

# Paths never shipped in a source bundle. A leading "/" anchors a pattern at
# the project root; bare names match at any depth.
DEFAULT_EXCLUDES: List[str] = [
    ".git",
    ".gitignore",
    ".idea",
    "/docker-compose.yml",
    "/setup.py",
    "/requirements.txt",
    "/requirements-dev.txt",
    "/core",
    "/deployment",
    "/tests",
    "*.egg-info",
    "__pycache__",
    ".DS_Store",
    "*.zip",
    "/.env",
    "/credentials.json",
    "/credentials.json.template",
]


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    environment: str = Field(default="development")

    # Application
    app_name: str = "beanstalk-deployer"
    app_version: str = "0.1.0"

    # Project layout
    project_dir: Path = Field(default_factory=Path.cwd, description="Folder that gets hashed, zipped and deployed")
    credentials_file: str = Field(default="credentials.json", description="Relative to project_dir unless absolute")
    bundle_excludes: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDES))

    # Environment template
    solution_stack_name: str = Field(default="64bit Amazon Linux 2 v3.6.0 running ECS")
    environment_type: str = Field(default="SingleInstance")
    service_role: str = Field(default="aws-elasticbeanstalk-service-role")
    iam_instance_profile: str = Field(default="aws-elasticbeanstalk-ec2-role")
    instance_type: str = Field(default="t2.nano")
    vpc_id: Optional[str] = Field(default=None)
    subnets: Optional[str] = Field(default=None, description="Comma separated subnet ids")
    security_groups: Optional[str] = Field(default=None, description="Comma separated security group ids")
    associate_public_ip: bool = Field(default=True)
    ec2_key_name: Optional[str] = Field(default=None)
    notification_endpoint: Optional[str] = Field(default=None)
    health_check_success_threshold: str = Field(default="Ok")

    # Health polling
    health_poll_interval: float = Field(default=5.0)
    health_poll_timeout: float = Field(default=3600.0, ge=0, description="0 disables the timeout")

    # Content verification
    request_timeout: int = Field(default=30)
    expected_page_text: str = Field(default="Automation for the People")
    page_selector: str = Field(default="body h1")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")  # json or text

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        allowed = ["json", "text"]
        if v not in allowed:
            raise ValueError(f"Log format must be one of: {allowed}")
        return v

    @field_validator("health_poll_interval")
    @classmethod
    def validate_poll_interval(cls, v):
        if v <= 0:
            raise ValueError("Health poll interval must be positive")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Production environments must pin their network placement"""
        if self.environment == "production":
            missing = [name for name in ("vpc_id", "subnets", "security_groups") if not getattr(self, name)]
            if missing:
                raise ValueError(f"Production deployments require: {', '.join(missing)}")
        return self

    @property
    def credentials_path(self) -> Path:
        """Resolve the credentials file against the project folder"""
        path = Path(self.credentials_file)
        if path.is_absolute():
            return path
        return Path(self.project_dir) / path

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    def model_dump(self, **kwargs):
        """Override to mask sensitive fields when serializing"""
        data = super().model_dump(**kwargs)

        sensitive_fields = ["notification_endpoint", "ec2_key_name"]

        for field in sensitive_fields:
            if field in data and data[field]:
                value = str(data[field])
                # Keep first 4 chars for identification
                if len(value) > 4:
                    data[field] = value[:4] + "*" * (len(value) - 4)
                else:
                    data[field] = "*" * len(value)

        return data


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
