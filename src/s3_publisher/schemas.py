"""Publisher configuration schema for s3-publisher."""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from s3_publisher.core.exceptions import ConfigError


class PublisherConfig(BaseModel):
    """Immutable upload parameters for a publisher.

    Field names are snake_case; the camelCase spellings (``keyPrefix``,
    ``preserveSourceDir``) are accepted as aliases so parameter dicts written
    for other tooling can be passed through unchanged.

    Example:
        config = PublisherConfig.from_params(
            {"bucket": "my-site", "keyPrefix": "docs", "exclusions": [".map"]}
        )
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    bucket: str = Field(..., description="Target bucket name")
    key_prefix: str = Field(
        "", alias="keyPrefix", description="Prefix prepended to every remote key"
    )
    exclusions: frozenset[str] = Field(
        default_factory=frozenset,
        description="File extensions (with leading dot) that are never uploaded",
    )
    preserve_source_dir: bool = Field(
        False,
        alias="preserveSourceDir",
        description="Mirror the full source directory path into remote keys",
    )

    @field_validator("bucket")
    @classmethod
    def _bucket_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("bucket must be a non-empty string")
        return value

    @field_validator("key_prefix", mode="before")
    @classmethod
    def _prefix_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("exclusions", mode="before")
    @classmethod
    def _exclusions_default(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset([value])
        return value

    @field_validator("preserve_source_dir", mode="before")
    @classmethod
    def _preserve_default(cls, value: Any) -> Any:
        return False if value is None else value

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]]) -> "PublisherConfig":
        """Build a config from a parameter mapping.

        Raises:
            ConfigError: If params is missing, bucket is missing or empty, or
                any parameter fails validation
        """
        if params is None:
            raise ConfigError("Publisher must be created with a params mapping")
        if "bucket" not in params or params["bucket"] is None:
            raise ConfigError("Publisher must be created with a bucket parameter")

        try:
            return cls.model_validate(dict(params))
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid publisher parameters: {e}") from e
