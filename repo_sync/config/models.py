"""
Config Models — Pydantic schemas for config.yaml.

    repos:
      - name: example-repo
        public: https://github.com/org/example-repo.git
        private: git@private.company.com:vendor/example-repo.git
        mark_source: false      # prepend a "mirrored from" README notice
        prune: false            # delete refs on private that were removed upstream
    workers: 1                  # repositories processed concurrently
    git_timeout: 30             # seconds, ancestry/inventory queries
    transport_timeout: 600      # seconds, clone/fetch/push
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..validation import ValidationError, validate_repo_name


class RepoConfig(BaseModel):
    """One public → private mirror pair."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    public: str
    private: str
    mark_source: bool = Field(default=False, alias="markSource")
    prune: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        try:
            return validate_repo_name(value)
        except ValidationError as e:
            raise ValueError(e.message)

    @field_validator("public", "private")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("URL must be a non-empty string")
        return value.strip()


class SyncConfig(BaseModel):
    """The config.yaml schema."""

    repos: List[RepoConfig] = Field(min_length=1)
    workers: int = Field(default=1, ge=1)
    git_timeout: int = Field(default=30, ge=1)
    transport_timeout: int = Field(default=600, ge=1)
    cache_dir: Optional[Path] = None

    @model_validator(mode="after")
    def _unique_names(self) -> "SyncConfig":
        seen = set()
        for repo in self.repos:
            if repo.name in seen:
                raise ValueError(f"Duplicate repo name: {repo.name}")
            seen.add(repo.name)
        return self

    def get_repo(self, name: str) -> Optional[RepoConfig]:
        for repo in self.repos:
            if repo.name == name:
                return repo
        return None

    @property
    def repo_names(self) -> List[str]:
        return [r.name for r in self.repos]
