"""Canonical Pydantic models shared across all lwcli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig`, :class:`RequestConfig`, :class:`GlobalConfig`,
    and :class:`Profile`.

**API models** -- payloads exchanged with the Lacework and GitHub REST APIs:
    :class:`AccessToken`, :class:`Integration`, :class:`LQLQuery`, and
    :class:`GitRelease`.

**Generator input** -- :class:`AwsGenerateConfig`, the answers collected by
``lwcli generate aws`` and consumed by :mod:`lwcli.generate.aws`.

All models use Pydantic v2. Lacework API payloads use upper-case keys on the
wire; the API models declare them as aliases and accept either spelling.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich, csv"
    )


class RequestConfig(BaseModel):
    """HTTP request settings applied to every API call in a profile."""

    timeout: int = Field(default=60, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/lwcli/config.json``.

    Loaded and saved by :func:`~lwcli.config.load_global_config` and
    :func:`~lwcli.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or
    CLI flags. See :func:`~lwcli.config.resolve_config`.
    """

    default_profile: str = "default"
    noninteractive: bool = Field(
        default=False, description="Never prompt; use flags and saved values only"
    )
    check_updates: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """Credentials and connection settings for one Lacework account.

    Stored as JSON under the ``profiles/`` config directory and created with
    ``lwcli configure``. ``api_secret`` holds a credential *source*
    (``env:VAR``, ``file:/path``, ``prompt``) or the literal secret; see
    :func:`~lwcli.config.resolve_credential`.
    """

    model_config = ConfigDict(extra="allow")

    name: str = "default"
    account: str = Field(description="Account name, e.g. 'mycompany' for mycompany.lacework.net")
    subaccount: Optional[str] = None
    api_key: str = Field(description="Access key ID")
    api_secret: str = Field(default="prompt", description="Secret key or credential source")
    request: RequestConfig = Field(default_factory=RequestConfig)

    @property
    def base_url(self) -> str:
        """API root URL derived from the account name."""
        account = self.account.strip()
        if account.startswith(("http://", "https://")):
            return account.rstrip("/")
        domain = account if "." in account else f"{account}.lacework.net"
        return f"https://{domain}"


# --- Lacework API ---


class AccessToken(BaseModel):
    """A bearer token returned by ``POST /api/v1/access/tokens``."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    # Formatted by the server, e.g. "Apr 01 2020 16:38"; kept verbatim.
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")


class Integration(BaseModel):
    """A cloud account, container registry, or alert channel integration.

    Mirrors the objects under ``/api/v1/external/integrations``. The
    integration-specific settings (role ARNs, queue URLs, ...) live in the
    free-form :attr:`data` mapping.
    """

    model_config = ConfigDict(populate_by_name=True)

    intg_guid: str = Field(default="", alias="INTG_GUID")
    name: str = Field(alias="NAME")
    type: str = Field(alias="TYPE")
    enabled: int = Field(default=1, alias="ENABLED")
    is_org: int = Field(default=0, alias="IS_ORG")
    created_or_updated_by: Optional[str] = Field(default=None, alias="CREATED_OR_UPDATED_BY")
    created_or_updated_time: Optional[str] = Field(default=None, alias="CREATED_OR_UPDATED_TIME")
    type_name: Optional[str] = Field(default=None, alias="TYPE_NAME")
    state: Optional[dict[str, Any]] = Field(default=None, alias="STATE")
    data: dict[str, Any] = Field(default_factory=dict, alias="DATA")

    @property
    def status(self) -> str:
        return "Enabled" if self.enabled == 1 else "Disabled"

    @property
    def state_string(self) -> str:
        if self.state and self.state.get("ok"):
            return "Ok"
        return "Pending" if self.state is None else "Check"

    def to_payload(self) -> dict[str, Any]:
        """Serialise for a create/update request (upper-case keys, no server fields)."""
        return self.model_dump(
            by_alias=True,
            include={"name", "type", "enabled", "is_org", "data"},
        )


class LQLQuery(BaseModel):
    """A Lacework Query Language query as stored or run by ``/api/v1/external/lql``.

    The time range bounds are RFC 3339 timestamps or epoch milliseconds.
    :func:`lwcli.lql.prepare_query` fills :attr:`query_text` from the text the
    operator supplied.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", alias="LQL_ID")
    start_time_range: str = Field(default="", alias="START_TIME_RANGE")
    end_time_range: str = Field(default="", alias="END_TIME_RANGE")
    query_text: str = Field(default="", alias="QUERY_TEXT")

    def to_payload(self) -> dict[str, Any]:
        """Serialise for a request; ``QUERY_TEXT`` is always sent, empty fields are not."""
        payload = self.model_dump(by_alias=True)
        return {
            key: value
            for key, value in payload.items()
            if value or key == "QUERY_TEXT"
        }


class GitRelease(BaseModel):
    """The subset of a GitHub release used by :mod:`lwcli.updater`."""

    tag_name: str
    name: Optional[str] = None
    html_url: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    published_at: Optional[datetime] = None


# --- Generator input ---


class AwsGenerateConfig(BaseModel):
    """Answers that drive AWS Terraform generation.

    Created empty, filled in field by field by
    :func:`~lwcli.commands.generate.collect_aws_configuration` (from flags,
    prompts, or both), then read by the factories in
    :mod:`lwcli.generate.aws`.

    The ``*_cli`` flags record that an integration was requested on the
    command line, in which case the matching prompt is skipped.
    """

    # Integrations to configure
    configure_cloudtrail: bool = False
    configure_config: bool = False
    configure_cloudtrail_cli: bool = False
    configure_config_cli: bool = False

    # Region for the CloudTrail, SNS, and S3 resources
    aws_region: str = ""

    # Main account profile, only used with sub-accounts
    aws_profile: str = ""

    # Existing trail
    use_existing_cloudtrail: bool = False
    existing_bucket_arn: str = ""

    # Existing IAM role
    use_existing_iam_role: bool = False
    existing_iam_role_name: str = ""
    existing_iam_role_arn: str = ""
    existing_iam_role_external_id: str = ""

    existing_sns_topic_arn: str = ""

    use_consolidated_cloudtrail: bool = False

    # Only applies to a bucket created by the generated code
    force_destroy_s3_bucket: bool = False

    # Sub-account profile name -> region
    profiles: dict[str, str] = Field(default_factory=dict)
    configure_sub_accounts: bool = False

    # Lacework CLI profile for the lacework provider block
    lacework_profile: str = ""

    @property
    def multi_account(self) -> bool:
        """True once sub-accounts were accepted, by prompt or by ``--aws-subaccount``.

        ``profiles`` is ignored unless the operator agreed to sub-accounts.
        """
        return self.configure_sub_accounts
