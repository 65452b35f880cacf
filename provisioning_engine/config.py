#provisioning_engine\config.py

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from provisioning_engine.core.models import DeploymentParameters, ReadinessPolicy


class CoordinatorSettings(BaseSettings):
    """Coordinator configuration from PROVISION_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROVISION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Resource (normally supplied by terraform)
    resource_id: Optional[str] = None
    public_address: Optional[str] = None
    private_address: Optional[str] = None
    generation: Optional[str] = None
    terraform_dir: Optional[Path] = None

    # SSH access
    ssh_user: str = "ubuntu"
    ssh_key_path: Optional[str] = None

    # Deployment parameters
    deploy_user: str = "deploy"
    domain_name: Optional[str] = None
    repo_url: Optional[str] = None
    app_dir: Optional[str] = None

    # Handoff
    inventory_path: Path = Path("inventory.yml")
    trigger_path: Optional[Path] = None
    playbook_path: Path = Path("playbook.yml")
    ansible_extra_args: List[str] = Field(default_factory=list)

    # Readiness policy
    max_attempts: int = Field(default=30, ge=1)
    per_attempt_timeout: float = Field(default=5.0, gt=0)
    backoff_interval: float = Field(default=10.0, ge=0)

    # Executables
    ssh_bin: str = "ssh"
    ansible_playbook_bin: str = "ansible-playbook"
    terraform_bin: str = "terraform"

    log_level: str = "INFO"

    @property
    def policy(self) -> ReadinessPolicy:
        return ReadinessPolicy(
            max_attempts=self.max_attempts,
            per_attempt_timeout=self.per_attempt_timeout,
            backoff_interval=self.backoff_interval,
        )

    @property
    def deployment_parameters(self) -> DeploymentParameters:
        return DeploymentParameters(
            domain=self.domain_name,
            repository_url=self.repo_url,
            deploy_principal=self.deploy_user,
            working_directory=self.app_dir,
        )
