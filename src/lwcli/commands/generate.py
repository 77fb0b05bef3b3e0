"""Generate commands -- collect answers and write Terraform for an AWS integration.

``lwcli generate aws`` walks a fixed decision tree to fill an
:class:`~lwcli.models.AwsGenerateConfig`, validates it, renders it with
:func:`~lwcli.generate.aws.generate_aws_tf_configuration`, and writes
``main.tf`` (``~/lacework/`` by default).

The decision tree is data, not code: each step is a :class:`Question` with a
visibility predicate, and :func:`ask_questions` is the only place that talks
to the operator. Answers can come from flags, from prompts, or both; with
``--noninteractive`` no prompt is issued and the flag values are validated
as-is.

Order of the steps:

1. core toggles (Config, then CloudTrail)
2. trail details (consolidated, region, existing trail and bucket, SNS topic)
3. existing IAM role
4. force destroy of a bucket created by the generated code
5. sub-accounts (consolidated trails only)

All checks run after collection in :func:`validate_aws_config`, so values
may arrive in any order across flags and prompts. Nothing is written unless
every step and check succeeds.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import typer

from lwcli.exceptions import (
    GenerateValidationError,
    InvalidUsageError,
    LwcliError,
    PromptAbortedError,
)
from lwcli.models import AwsGenerateConfig
from lwcli.output import debug, error, progress, success, suggest

OUTPUT_FILENAME = "main.tf"

CONFIRM = "confirm"
INPUT = "input"


# ------------------------------------------------------------------ #
# Prompting
# ------------------------------------------------------------------ #


class Prompter(ABC):
    """Asks the operator one question at a time."""

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def ask(self, message: str, default: str = "", required: bool = False) -> str:
        """Ask for free text. A required answer is never empty."""


class TyperPrompter(Prompter):
    """Prompts on the terminal with :func:`typer.confirm` and :func:`typer.prompt`.

    Closing the input stream or pressing Ctrl-C raises
    :class:`~lwcli.exceptions.PromptAbortedError`.
    """

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return typer.confirm(message, default=default)
        except typer.Abort:
            raise PromptAbortedError("Prompt aborted, no code was generated") from None

    def ask(self, message: str, default: str = "", required: bool = False) -> str:
        while True:
            try:
                # With no default typer.prompt keeps asking until the answer is non-empty.
                answer = typer.prompt(
                    message,
                    default=default if (default or not required) else None,
                    show_default=bool(default),
                )
            except typer.Abort:
                raise PromptAbortedError("Prompt aborted, no code was generated") from None
            answer = answer.strip()
            if answer or not required:
                return answer


@dataclass(frozen=True)
class Question:
    """One step of the decision tree.

    Attributes:
        field: :class:`~lwcli.models.AwsGenerateConfig` attribute that
            receives the answer.
        message: Text shown to the operator.
        kind: ``confirm`` for booleans, ``input`` for strings.
        when: Visibility predicate; the question is skipped when it
            returns ``False``.
        cli_flag: Attribute recording that the value came from the command
            line. When set, the prompt is skipped and *field* is forced to
            ``True``.
        required: Re-prompt until the answer is non-empty.
    """

    field: str
    message: str
    kind: str = CONFIRM
    when: Callable[[AwsGenerateConfig], bool] = lambda config: True
    cli_flag: Optional[str] = None
    required: bool = False


def ask_questions(
    questions: list[Question],
    config: AwsGenerateConfig,
    prompter: Prompter,
    interactive: bool,
) -> None:
    """Walk *questions* in order, storing each answer on *config*.

    The current value of a field is offered as the default, so values
    supplied by flags only need to be confirmed. In non-interactive mode no
    prompt is issued and fields keep their pre-populated values.
    """
    for question in questions:
        if question.cli_flag and getattr(config, question.cli_flag):
            setattr(config, question.field, True)
            continue
        if not interactive or not question.when(config):
            continue

        current = getattr(config, question.field)
        if question.kind == CONFIRM:
            answer: object = prompter.confirm(question.message, default=bool(current))
        else:
            answer = prompter.ask(
                question.message, default=current or "", required=question.required
            )
        setattr(config, question.field, answer)


# ------------------------------------------------------------------ #
# Decision tree
# ------------------------------------------------------------------ #


def _cloudtrail(config: AwsGenerateConfig) -> bool:
    return config.configure_cloudtrail


def _any_integration(config: AwsGenerateConfig) -> bool:
    return config.configure_cloudtrail or config.configure_config


CORE_QUESTIONS = [
    Question(
        field="configure_config",
        message="Enable Config Integration?",
        cli_flag="configure_config_cli",
    ),
    Question(
        field="configure_cloudtrail",
        message="Enable Cloudtrail Integration?",
        cli_flag="configure_cloudtrail_cli",
    ),
]

TRAIL_QUESTIONS = [
    Question(
        field="use_consolidated_cloudtrail",
        message="Use consolidated Cloudtrail?",
        when=_cloudtrail,
    ),
    Question(
        field="aws_region",
        message="Specify the AWS region Cloudtrail, SNS, and S3 resources should use",
        kind=INPUT,
        when=_any_integration,
        required=True,
    ),
    Question(
        field="use_existing_cloudtrail",
        message="(Optional) Use an existing Cloudtrail?",
        when=_cloudtrail,
    ),
    Question(
        field="existing_bucket_arn",
        message="Specify the existing bucket ARN used for Cloudtrail logs",
        kind=INPUT,
        when=lambda config: config.configure_cloudtrail and config.use_existing_cloudtrail,
        required=True,
    ),
    Question(
        field="existing_sns_topic_arn",
        message="(Optional) Specify an existing SNS topic ARN",
        kind=INPUT,
        when=_cloudtrail,
    ),
]

IAM_QUESTIONS = [
    Question(
        field="use_existing_iam_role",
        message="(Optional) Use an existing IAM Role?",
        when=_cloudtrail,
    ),
    Question(
        field="existing_iam_role_name",
        message="Specify an existing IAM role name for Cloudtrail access",
        kind=INPUT,
        when=lambda config: config.use_existing_iam_role,
        required=True,
    ),
    Question(
        field="existing_iam_role_arn",
        message="Specify an existing IAM role ARN for Cloudtrail access",
        kind=INPUT,
        when=lambda config: config.use_existing_iam_role,
        required=True,
    ),
    Question(
        field="existing_iam_role_external_id",
        message="Specify the external ID to be used with the existing IAM role",
        kind=INPUT,
        when=lambda config: config.use_existing_iam_role,
        required=True,
    ),
]

FORCE_DESTROY_QUESTIONS = [
    Question(
        field="force_destroy_s3_bucket",
        message="Should the new S3 bucket have force destroy enabled?",
        when=lambda config: (
            config.configure_cloudtrail
            and not config.use_existing_cloudtrail
            and not config.existing_bucket_arn
        ),
    ),
]

SUB_ACCOUNT_QUESTIONS = [
    Question(
        field="configure_sub_accounts",
        message="Are there additional AWS accounts to integrate for Configuration?",
        when=lambda config: config.use_consolidated_cloudtrail,
    ),
    Question(
        field="aws_profile",
        message="What is the AWS profile name for the main account?",
        kind=INPUT,
        when=lambda config: config.configure_sub_accounts,
        required=True,
    ),
]


def infer_existing_iam_role(config: AwsGenerateConfig) -> None:
    """Any role detail supplied up front means an existing role is wanted."""
    if (
        config.existing_iam_role_name
        or config.existing_iam_role_arn
        or config.existing_iam_role_external_id
    ):
        config.use_existing_iam_role = True


def ask_sub_accounts(config: AwsGenerateConfig, prompter: Prompter, interactive: bool) -> None:
    """Collect ``profile -> region`` pairs until the operator stops.

    Skipped when sub-accounts were declined or already supplied by flags.
    Entering the same profile twice keeps the last region.
    """
    if not interactive or not config.configure_sub_accounts or config.profiles:
        return

    while True:
        profile = prompter.ask("Supply the profile name for the AWS account", required=True)
        region = prompter.ask("What region should be used for this account?", required=True)
        config.profiles[profile] = region
        debug(f"Added sub-account {profile} ({region})")
        if not prompter.confirm("Add another AWS account?", default=False):
            break


def collect_aws_configuration(
    config: AwsGenerateConfig,
    prompter: Prompter,
    interactive: bool,
) -> AwsGenerateConfig:
    """Run the whole decision tree on *config*, then validate it.

    Raises:
        PromptAbortedError: If the operator aborts a prompt.
        GenerateValidationError: If the collected answers are incomplete.
    """
    ask_questions(CORE_QUESTIONS, config, prompter, interactive)
    ask_questions(TRAIL_QUESTIONS, config, prompter, interactive)

    infer_existing_iam_role(config)
    ask_questions(IAM_QUESTIONS, config, prompter, interactive)

    ask_questions(FORCE_DESTROY_QUESTIONS, config, prompter, interactive)

    ask_questions(SUB_ACCOUNT_QUESTIONS, config, prompter, interactive)
    ask_sub_accounts(config, prompter, interactive)

    validate_aws_config(config)
    return config


def validate_aws_config(config: AwsGenerateConfig) -> None:
    """Run the deferred checks; the first failing one is raised.

    Raises:
        GenerateValidationError: With a message naming what is missing.
    """
    if not (config.configure_cloudtrail or config.configure_config):
        raise GenerateValidationError("must enable cloudtrail or config")

    if not config.aws_region:
        raise GenerateValidationError("must supply an AWS region")

    if config.use_existing_cloudtrail and not config.existing_bucket_arn:
        raise GenerateValidationError(
            "must supply bucket ARN when using an existing cloudtrail"
        )

    if config.use_existing_iam_role:
        missing = [
            label
            for label, value in (
                ("name", config.existing_iam_role_name),
                ("ARN", config.existing_iam_role_arn),
                ("external ID", config.existing_iam_role_external_id),
            )
            if not value
        ]
        if missing:
            raise GenerateValidationError(
                "must supply the name, ARN and external ID when using an existing "
                f"IAM role (missing: {', '.join(missing)})"
            )

    if config.multi_account and not config.aws_profile:
        raise GenerateValidationError(
            "must supply the AWS profile of the main account when configuring sub-accounts"
        )


# ------------------------------------------------------------------ #
# Output
# ------------------------------------------------------------------ #


def write_hcl_output(hcl: str, directory: Optional[Path] = None) -> Path:
    """Write *hcl* to ``<directory>/main.tf`` and return the file path.

    The directory defaults to :func:`~lwcli.config.get_generate_dir` and
    is created with mode ``0700`` when missing. An existing ``main.tf`` is
    overwritten.
    """
    from lwcli.config import get_generate_dir

    directory = Path(directory) if directory is not None else get_generate_dir()
    if not directory.exists():
        directory.mkdir(mode=0o700, parents=True)

    location = directory / OUTPUT_FILENAME
    location.write_text(hcl, encoding="utf-8")
    return location


def prompt_aws_generate(
    config: AwsGenerateConfig,
    prompter: Prompter,
    interactive: bool,
    output_dir: Optional[Path] = None,
) -> Path:
    """Collect, validate, generate, and write. Returns the written file.

    Nothing touches the file system before the configuration is complete.
    """
    from lwcli.generate import generate_aws_tf_configuration

    collect_aws_configuration(config, prompter, interactive)

    progress("Generating Terraform Code...")
    hcl = generate_aws_tf_configuration(config)
    return write_hcl_output(hcl, output_dir)


# ------------------------------------------------------------------ #
# CLI
# ------------------------------------------------------------------ #


generate_app = typer.Typer(
    no_args_is_help=True,
    help="Create IaC content for various different cloud environments and configurations.",
)


def parse_subaccounts(values: list[str]) -> dict[str, str]:
    """Parse repeated ``PROFILE:REGION`` flag values; later duplicates win.

    Raises:
        InvalidUsageError: If a value is not of the form ``PROFILE:REGION``.
    """
    profiles: dict[str, str] = {}
    for value in values:
        profile, sep, region = value.partition(":")
        profile, region = profile.strip(), region.strip()
        if not sep or not profile or not region:
            raise InvalidUsageError(
                f"invalid --aws-subaccount '{value}', expected PROFILE:REGION"
            )
        profiles[profile] = region
    return profiles


@generate_app.command("aws")
def generate_aws(
    ctx: typer.Context,
    cloudtrail: bool = typer.Option(
        False, "--cloudtrail", help="Enable the CloudTrail integration."
    ),
    config_integration: bool = typer.Option(
        False, "--config", help="Enable the Config integration."
    ),
    aws_region: str = typer.Option(
        "", "--aws-region", help="Region for the CloudTrail, SNS, and S3 resources."
    ),
    aws_profile: str = typer.Option(
        "", "--aws-profile", help="AWS profile of the main account (with sub-accounts)."
    ),
    consolidated_cloudtrail: bool = typer.Option(
        False, "--consolidated-cloudtrail", help="Use a consolidated CloudTrail."
    ),
    existing_cloudtrail: bool = typer.Option(
        False, "--existing-cloudtrail", help="Use an existing CloudTrail."
    ),
    existing_bucket_arn: str = typer.Option(
        "", "--existing-bucket-arn", help="Bucket ARN of the existing CloudTrail."
    ),
    existing_iam_role_name: str = typer.Option(
        "", "--existing-iam-role-name", help="Name of an existing IAM role."
    ),
    existing_iam_role_arn: str = typer.Option(
        "", "--existing-iam-role-arn", help="ARN of an existing IAM role."
    ),
    existing_iam_role_externalid: str = typer.Option(
        "", "--existing-iam-role-externalid", help="External ID of the existing IAM role."
    ),
    existing_sns_topic_arn: str = typer.Option(
        "", "--existing-sns-topic-arn", help="ARN of an existing SNS topic."
    ),
    force_destroy_s3: bool = typer.Option(
        False, "--force-destroy-s3", help="Enable force destroy on the new S3 bucket."
    ),
    aws_subaccount: Optional[list[str]] = typer.Option(
        None,
        "--aws-subaccount",
        help="Sub-account as PROFILE:REGION. Repeat for more accounts.",
    ),
    lacework_profile: str = typer.Option(
        "", "--lacework-profile", help="Lacework CLI profile for the lacework provider."
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", help="Where to write main.tf (default: ~/lacework)."
    ),
) -> None:
    """Generate Terraform code for integrating an AWS environment.

    Example::

        lwcli generate aws
        lwcli --noninteractive generate aws --cloudtrail --config --aws-region us-east-2
        lwcli generate aws --consolidated-cloudtrail --aws-profile main \\
            --aws-subaccount dev:us-east-1 --aws-subaccount prod:us-west-2
    """
    obj = ctx.obj or {}
    interactive = not obj.get("noninteractive", False)

    try:
        profiles = parse_subaccounts(aws_subaccount or [])
        config = AwsGenerateConfig(
            configure_cloudtrail=cloudtrail,
            configure_cloudtrail_cli=cloudtrail,
            configure_config=config_integration,
            configure_config_cli=config_integration,
            aws_region=aws_region,
            aws_profile=aws_profile,
            use_consolidated_cloudtrail=consolidated_cloudtrail,
            use_existing_cloudtrail=existing_cloudtrail or bool(existing_bucket_arn),
            existing_bucket_arn=existing_bucket_arn,
            existing_iam_role_name=existing_iam_role_name,
            existing_iam_role_arn=existing_iam_role_arn,
            existing_iam_role_external_id=existing_iam_role_externalid,
            existing_sns_topic_arn=existing_sns_topic_arn,
            force_destroy_s3_bucket=force_destroy_s3,
            profiles=profiles,
            configure_sub_accounts=bool(profiles),
            lacework_profile=lacework_profile,
        )
        location = prompt_aws_generate(config, TyperPrompter(), interactive, output_dir)
    except LwcliError as exc:
        error(f"unable to create iac code: {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    success(f"Terraform code generated at {location}")
    suggest(f"cd {location.parent} && terraform init && terraform plan")
