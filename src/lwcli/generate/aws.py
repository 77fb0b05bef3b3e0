"""Terraform for integrating an AWS environment with Lacework.

Each ``create_*`` function is a pure function of an
:class:`~lwcli.models.AwsGenerateConfig` returning a block, a list of
blocks, or ``None``.  :func:`generate_aws_tf_configuration` calls them in a
fixed order and renders the result:

1. ``terraform { required_providers { lacework = ... } }``
2. ``provider "aws"`` blocks (main account and sub-accounts)
3. ``provider "lacework"``
4. ``module "aws_config"`` (plus one per sub-account)
5. ``module "main_cloudtrail"``

Sub-accounts are always emitted sorted by profile name so identical answers
produce byte-identical files.
"""

from __future__ import annotations

from typing import Any, Optional

from lwcli.generate.hcl import (
    Block,
    Module,
    Provider,
    RequiredProvider,
    Traversal,
    combine_blocks,
    create_module,
    create_provider,
    create_required_providers,
    create_simple_traversal,
    render_blocks,
)
from lwcli.models import AwsGenerateConfig

LACEWORK_PROVIDER_SOURCE = "lacework/lacework"
LACEWORK_PROVIDER_VERSION = "~> 0.3"

CONFIG_MODULE_NAME = "aws_config"
CONFIG_MODULE_SOURCE = "lacework/config/aws"
CONFIG_MODULE_VERSION = "~> 0.1"

CLOUDTRAIL_MODULE_NAME = "main_cloudtrail"
CLOUDTRAIL_MODULE_SOURCE = "lacework/cloudtrail/aws"
CLOUDTRAIL_MODULE_VERSION = "~> 0.1"

MAIN_PROVIDER_ALIAS = "main"


def generate_aws_tf_configuration(config: AwsGenerateConfig) -> str:
    """Render the complete Terraform document for *config*."""
    blocks = combine_blocks(
        create_required_providers_block(config),
        create_aws_provider_blocks(config),
        create_lacework_provider_block(config),
        create_config_blocks(config),
        create_cloudtrail_block(config),
    )
    return render_blocks(blocks)


def create_required_providers_block(config: AwsGenerateConfig) -> Block:
    return create_required_providers(
        [
            RequiredProvider(
                name="lacework",
                source=LACEWORK_PROVIDER_SOURCE,
                version=LACEWORK_PROVIDER_VERSION,
            )
        ]
    )


def create_aws_provider_blocks(config: AwsGenerateConfig) -> list[Block]:
    """AWS provider for the main account, then one aliased provider per sub-account.

    The main provider is only needed when a region was given or when
    sub-accounts require it to be aliased ``main``.
    """
    blocks: list[Block] = []
    if config.aws_region or config.multi_account:
        attributes: dict[str, Any] = {}
        if config.aws_region:
            attributes["region"] = config.aws_region
        if config.multi_account:
            attributes["alias"] = MAIN_PROVIDER_ALIAS
            attributes["profile"] = config.aws_profile
        blocks.append(create_provider(Provider(name="aws", attributes=attributes)))

    if config.multi_account:
        for profile in sorted(config.profiles):
            blocks.append(
                create_provider(
                    Provider(
                        name="aws",
                        attributes={
                            "alias": profile,
                            "profile": profile,
                            "region": config.profiles[profile],
                        },
                    )
                )
            )
    return blocks


def create_lacework_provider_block(config: AwsGenerateConfig) -> Optional[Block]:
    if not config.lacework_profile:
        return None
    return create_provider(
        Provider(name="lacework", attributes={"profile": config.lacework_profile})
    )


def create_config_blocks(config: AwsGenerateConfig) -> list[Block]:
    """Config integration modules, one for the main account and one per sub-account."""
    if not config.configure_config:
        return []

    main = Module(
        name=CONFIG_MODULE_NAME,
        source=CONFIG_MODULE_SOURCE,
        version=CONFIG_MODULE_VERSION,
    )
    if config.multi_account:
        main.provider_details = {"aws": f"aws.{MAIN_PROVIDER_ALIAS}"}
    blocks = [create_module(main)]

    if config.multi_account:
        for profile in sorted(config.profiles):
            blocks.append(
                create_module(
                    Module(
                        name=f"{CONFIG_MODULE_NAME}_{profile}",
                        source=CONFIG_MODULE_SOURCE,
                        version=CONFIG_MODULE_VERSION,
                        provider_details={"aws": f"aws.{profile}"},
                    )
                )
            )
    return blocks


def create_cloudtrail_block(config: AwsGenerateConfig) -> Optional[Block]:
    """CloudTrail integration module.

    When the Config integration is generated alongside and no existing IAM
    role was supplied, the trail reuses the role created by the
    ``aws_config`` module through references to its outputs.  An existing
    role is written as literal strings instead.  Exactly one of the two
    applies.
    """
    if not config.configure_cloudtrail:
        return None

    attributes: dict[str, Any] = {}
    if config.force_destroy_s3_bucket and not config.use_existing_cloudtrail:
        attributes["bucket_force_destroy"] = True

    if config.use_consolidated_cloudtrail:
        attributes["consolidated_trail"] = True

    if config.existing_sns_topic_arn:
        attributes["use_existing_sns_topic"] = True
        attributes["sns_topic_arn"] = config.existing_sns_topic_arn

    if not config.use_existing_iam_role and config.configure_config:
        attributes["use_existing_iam_role"] = True
        attributes["iam_role_name"] = _config_output("iam_role_name")
        attributes["iam_role_arn"] = _config_output("iam_role_arn")
        attributes["iam_role_external_id"] = _config_output("external_id")
    elif config.use_existing_iam_role:
        attributes["use_existing_iam_role"] = True
        attributes["iam_role_name"] = config.existing_iam_role_name
        attributes["iam_role_arn"] = config.existing_iam_role_arn
        attributes["iam_role_external_id"] = config.existing_iam_role_external_id

    if config.use_existing_cloudtrail:
        attributes["use_existing_cloudtrail"] = True
        attributes["bucket_arn"] = config.existing_bucket_arn

    module = Module(
        name=CLOUDTRAIL_MODULE_NAME,
        source=CLOUDTRAIL_MODULE_SOURCE,
        version=CLOUDTRAIL_MODULE_VERSION,
        attributes=attributes,
    )
    if config.multi_account:
        module.provider_details = {"aws": f"aws.{MAIN_PROVIDER_ALIAS}"}
    return create_module(module)


def _config_output(output: str) -> Traversal:
    return create_simple_traversal(["module", CONFIG_MODULE_NAME, output])
