"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ConfigurationError


class DefaultsConfig(BaseModel):
    """Default values for scheduling requests."""
    session_duration_minutes: int = 60
    sessions_needed: int = 1
    min_days_between: int = 1
    max_days_between: int = 14
    distribute_evenly: bool = False
    alternating_roles: bool = False
    preferred_days: List[str] = Field(default_factory=list)
    preferred_times: List[str] = Field(default_factory=list)

    @field_validator("session_duration_minutes", "sessions_needed")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and counts are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_spacing(self) -> "DefaultsConfig":
        """Ensure the spacing bounds are ordered."""
        if self.min_days_between < 0:
            raise ValueError("min_days_between must not be negative")
        if self.max_days_between < self.min_days_between:
            raise ValueError("max_days_between must not be smaller than min_days_between")
        return self


class EngineConfig(BaseModel):
    """Tuning knobs of the scheduling engine."""
    conflict_buffer_minutes: int = 15
    lead_time_hours: int = 2
    slot_spacing_minutes: int = 30
    min_search_weeks: int = 4
    reschedule_search_weeks: int = 12
    tolerate_minor_conflicts: bool = False

    @field_validator("conflict_buffer_minutes", "lead_time_hours", "slot_spacing_minutes")
    @classmethod
    def validate_not_negative(cls, value: int) -> int:
        """Offsets may be zero but never negative."""
        if value < 0:
            raise ValueError("value must not be negative")
        return value

    @field_validator("min_search_weeks", "reschedule_search_weeks")
    @classmethod
    def validate_weeks(cls, value: int) -> int:
        """Search horizons need at least one week."""
        if value <= 0:
            raise ValueError("search horizon must be at least one week")
        return value


class Party(BaseModel):
    """A schedulable party with a short alias."""
    name: str  # Used as alias
    id: str

    def display_name(self) -> str:
        """Get display name."""
        return self.name


class StoreConfig(BaseModel):
    """Where commitment snapshots come from."""
    appointments_file: Optional[Path] = None
    api_url: Optional[str] = None
    api_token: Optional[str] = None
    timeout_seconds: float = 30.0

    @model_validator(mode="after")
    def validate_single_source(self) -> "StoreConfig":
        """Only one commitment source may be configured."""
        if self.appointments_file and self.api_url:
            raise ValueError("Configure either appointments_file or api_url, not both")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    parties: List[Party] = Field(default_factory=list)
    store: StoreConfig = Field(default_factory=StoreConfig)

    @field_validator("parties")
    @classmethod
    def validate_parties(cls, value: List[Party]) -> List[Party]:
        """Ensure party aliases and ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for party in value:
            name_key = party.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate party name detected: {party.name}")
            if party.id in seen_ids:
                raise ValueError(f"Duplicate party id detected: {party.id}")
            seen_names.add(name_key)
            seen_ids.add(party.id)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``store.appointments_file`` paths are resolved against the
        directory of the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        try:
            config = cls(**data)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc

        appointments_file = config.store.appointments_file
        if appointments_file and not appointments_file.is_absolute():
            config.store.appointments_file = config_path.parent / appointments_file

        return config

    def find_party_by_name(self, name: str) -> Party | None:
        """Find a party by its name (alias)."""
        for party in self.parties:
            if party.name.lower() == name.lower():
                return party
        return None

    def resolve_party(self, identifier: str) -> str:
        """
        Resolve a party alias or id to a party id.

        Unknown identifiers are passed through unchanged, so ids that are
        not configured can still be used directly.
        """
        party = self.find_party_by_name(identifier)
        if party:
            return party.id
        return identifier


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
