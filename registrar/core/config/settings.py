# (c) Copyright Datacraft, 2026
"""Application settings configuration."""
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	db_url: str = "sqlite+aiosqlite:///./registrar.db"
	db_ssl: bool = False
	db_echo: bool = False
	log_config: Path | None = Path("/etc/registrar/logging.yaml")
	api_prefix: str = ''

	# Role tags resolved by the identity layer
	verifier_roles: set[str] = Field(
		default_factory=lambda: {"admin", "registry", "verifier"}
	)
	router_roles: set[str] = Field(default_factory=lambda: {"admin", "registry"})
	rule_admin_roles: set[str] = Field(
		default_factory=lambda: {"admin", "department_admin"}
	)
	# Roles that are not scoped to the actor's own department
	global_roles: set[str] = Field(default_factory=lambda: {"admin"})

	# Append a `*.transition_denied` entry when a transition is refused
	audit_denied_transitions: bool = False
	verification_code_length: int = Field(gt=3, le=64, default=8)

	# Remote user config
	remote_user_header: str = "X-Forwarded-User"
	remote_roles_header: str = "X-Forwarded-Roles"
	remote_department_header: str = "X-Forwarded-Department"

	@computed_field
	@property
	def async_db_url(self) -> str:
		url = str(self.db_url)
		if "postgresql+psycopg://" in url:
			return url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
		elif "postgresql://" in url:
			return url.replace("postgresql://", "postgresql+asyncpg://", 1)
		return url

	model_config = SettingsConfigDict(
		env_prefix='rg_',
		env_file='.env',
		env_file_encoding='utf-8',
		extra='ignore',
	)


_settings: Settings | None = None


def get_settings() -> Settings:
	global _settings
	if _settings is None:
		_settings = Settings()
	return _settings
