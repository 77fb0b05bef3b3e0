"""Tests for lwcli.commands.generate -- the answer collection engine and ``generate aws``."""

from __future__ import annotations

import stat
from pathlib import Path
from typing import Union

import pytest
import typer
from typer.testing import CliRunner

from lwcli.app import app
from lwcli.commands.generate import (
    CONFIRM,
    INPUT,
    Prompter,
    Question,
    TyperPrompter,
    ask_questions,
    collect_aws_configuration,
    parse_subaccounts,
    prompt_aws_generate,
    validate_aws_config,
    write_hcl_output,
)
from lwcli.exceptions import (
    GenerateValidationError,
    InvalidUsageError,
    PromptAbortedError,
)
from lwcli.exit_codes import (
    EXIT_CANCELLED,
    EXIT_INVALID_USAGE,
    EXIT_VALIDATION_FAILURE,
)
from lwcli.generate import generate_aws_tf_configuration
from lwcli.models import AwsGenerateConfig


Answer = Union[bool, str, Exception]


class ScriptedPrompter(Prompter):
    """Replays canned answers in order and records every question asked.

    An empty string answer to ``ask`` means "accept the default". An
    exception in the script is raised instead of answering.
    """

    def __init__(self, answers: list[Answer]) -> None:
        self.answers = list(answers)
        self.asked: list[str] = []

    def _next(self, message: str) -> Answer:
        self.asked.append(message)
        assert self.answers, f"unexpected question: {message}"
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def confirm(self, message: str, default: bool = False) -> bool:
        answer = self._next(message)
        assert isinstance(answer, bool), f"expected a yes/no answer for: {message}"
        return answer

    def ask(self, message: str, default: str = "", required: bool = False) -> str:
        answer = self._next(message)
        assert isinstance(answer, str), f"expected text for: {message}"
        return answer or default


def _valid_config(**overrides) -> AwsGenerateConfig:
    values = {"configure_cloudtrail": True, "aws_region": "us-east-2"}
    values.update(overrides)
    return AwsGenerateConfig(**values)


# ---------------------------------------------------------------------------
# Generic driver
# ---------------------------------------------------------------------------


class TestAskQuestions:
    def test_confirm_and_input(self) -> None:
        config = AwsGenerateConfig()
        questions = [
            Question(field="configure_config", message="config?"),
            Question(field="aws_region", message="region?", kind=INPUT),
        ]
        prompter = ScriptedPrompter([True, "eu-west-1"])

        ask_questions(questions, config, prompter, interactive=True)

        assert config.configure_config is True
        assert config.aws_region == "eu-west-1"
        assert prompter.asked == ["config?", "region?"]

    def test_cli_flag_skips_prompt_and_forces_true(self) -> None:
        config = AwsGenerateConfig(configure_config_cli=True)
        questions = [
            Question(field="configure_config", message="config?", cli_flag="configure_config_cli")
        ]
        prompter = ScriptedPrompter([])

        ask_questions(questions, config, prompter, interactive=True)

        assert config.configure_config is True
        assert prompter.asked == []

    def test_cli_flag_applies_in_noninteractive_mode(self) -> None:
        config = AwsGenerateConfig(configure_cloudtrail_cli=True)
        questions = [
            Question(
                field="configure_cloudtrail",
                message="ct?",
                cli_flag="configure_cloudtrail_cli",
            )
        ]
        ask_questions(questions, config, ScriptedPrompter([]), interactive=False)
        assert config.configure_cloudtrail is True

    def test_hidden_question_not_asked(self) -> None:
        config = AwsGenerateConfig()
        questions = [Question(field="configure_config", message="hidden", when=lambda c: False)]
        prompter = ScriptedPrompter([])

        ask_questions(questions, config, prompter, interactive=True)

        assert prompter.asked == []

    def test_noninteractive_keeps_prepopulated_values(self) -> None:
        config = AwsGenerateConfig(aws_region="us-west-1")
        questions = [Question(field="aws_region", message="region?", kind=INPUT)]

        ask_questions(questions, config, ScriptedPrompter([]), interactive=False)

        assert config.aws_region == "us-west-1"

    def test_current_value_is_default(self) -> None:
        config = AwsGenerateConfig(aws_region="us-west-1")
        questions = [Question(field="aws_region", message="region?", kind=INPUT)]

        ask_questions(questions, config, ScriptedPrompter([""]), interactive=True)

        assert config.aws_region == "us-west-1"

    def test_question_kinds(self) -> None:
        assert Question(field="x", message="m").kind == CONFIRM


class TestTyperPrompter:
    @staticmethod
    def _abort(*args, **kwargs):
        raise typer.Abort()

    def test_confirm_abort(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("lwcli.commands.generate.typer.confirm", self._abort)
        with pytest.raises(PromptAbortedError) as exc_info:
            TyperPrompter().confirm("Enable Config Integration?")
        assert exc_info.value.exit_code == EXIT_CANCELLED

    def test_ask_abort(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("lwcli.commands.generate.typer.prompt", self._abort)
        with pytest.raises(PromptAbortedError):
            TyperPrompter().ask("region?", required=True)

    def test_ask_repeats_blank_required_answer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        answers = iter(["  ", "us-east-2"])
        monkeypatch.setattr(
            "lwcli.commands.generate.typer.prompt", lambda *args, **kwargs: next(answers)
        )
        assert TyperPrompter().ask("region?", required=True) == "us-east-2"


# ---------------------------------------------------------------------------
# Decision tree
# ---------------------------------------------------------------------------


class TestCollectAwsConfiguration:
    def test_full_interactive_flow(self) -> None:
        prompter = ScriptedPrompter(
            [
                True,  # Config
                True,  # CloudTrail
                True,  # consolidated
                "us-east-2",
                False,  # existing trail
                "",  # SNS topic
                False,  # existing IAM role
                True,  # force destroy
                True,  # sub-accounts
                "main",
                "sub1",
                "us-east-1",
                True,  # add another
                "sub1",
                "us-west-2",
                False,  # add another
            ]
        )

        config = collect_aws_configuration(AwsGenerateConfig(), prompter, interactive=True)

        assert config.configure_config and config.configure_cloudtrail
        assert config.use_consolidated_cloudtrail
        assert config.aws_region == "us-east-2"
        assert config.force_destroy_s3_bucket
        assert config.aws_profile == "main"
        assert config.profiles == {"sub1": "us-west-2"}
        assert prompter.answers == []

    def test_config_only_skips_trail_questions(self) -> None:
        prompter = ScriptedPrompter([True, False, "us-east-2"])

        config = collect_aws_configuration(AwsGenerateConfig(), prompter, interactive=True)

        assert config.configure_config and not config.configure_cloudtrail
        assert prompter.asked == [
            "Enable Config Integration?",
            "Enable Cloudtrail Integration?",
            "Specify the AWS region Cloudtrail, SNS, and S3 resources should use",
        ]

    def test_existing_trail_asks_bucket_and_skips_force_destroy(self) -> None:
        prompter = ScriptedPrompter(
            [False, True, False, "us-east-2", True, "arn:aws:s3:::bucket", "", False]
        )

        config = collect_aws_configuration(AwsGenerateConfig(), prompter, interactive=True)

        assert config.existing_bucket_arn == "arn:aws:s3:::bucket"
        assert "Should the new S3 bucket have force destroy enabled?" not in prompter.asked

    def test_existing_role_details_collected(self) -> None:
        prompter = ScriptedPrompter(
            [False, True, False, "us-east-2", False, "", True, "role", "arn:role", "ext", False]
        )

        config = collect_aws_configuration(AwsGenerateConfig(), prompter, interactive=True)

        assert config.use_existing_iam_role
        assert (
            config.existing_iam_role_name,
            config.existing_iam_role_arn,
            config.existing_iam_role_external_id,
        ) == ("role", "arn:role", "ext")

    def test_sub_accounts_not_offered_without_consolidated_trail(self) -> None:
        prompter = ScriptedPrompter([False, True, False, "us-east-2", False, "", False, False])

        collect_aws_configuration(AwsGenerateConfig(), prompter, interactive=True)

        assert not any("additional AWS accounts" in q for q in prompter.asked)

    def test_flag_supplied_sub_accounts_skip_loop(self) -> None:
        config = AwsGenerateConfig(
            configure_config_cli=True,
            configure_cloudtrail_cli=True,
            use_consolidated_cloudtrail=True,
            configure_sub_accounts=True,
            profiles={"dev": "us-east-1"},
        )
        prompter = ScriptedPrompter(
            [True, "us-east-2", False, "", False, False, True, "main"]
        )

        collect_aws_configuration(config, prompter, interactive=True)

        assert config.profiles == {"dev": "us-east-1"}
        assert "Supply the profile name for the AWS account" not in prompter.asked

    def test_declining_sub_accounts_drops_flag_profiles(self) -> None:
        config = AwsGenerateConfig(
            configure_config_cli=True,
            configure_cloudtrail_cli=True,
            use_consolidated_cloudtrail=True,
            configure_sub_accounts=True,
            profiles={"dev": "us-east-1"},
        )
        # consolidated yes, region, existing trail no, sns, existing role no,
        # force destroy no, additional accounts no
        prompter = ScriptedPrompter([True, "us-east-2", False, "", False, False, False])

        collect_aws_configuration(config, prompter, interactive=True)
        hcl = generate_aws_tf_configuration(config)

        assert not config.multi_account
        assert 'module "aws_config_dev"' not in hcl
        assert "alias" not in hcl

    def test_supplied_bucket_arn_skips_force_destroy(self) -> None:
        config = AwsGenerateConfig(
            configure_cloudtrail_cli=True, existing_bucket_arn="arn:aws:s3:::bucket"
        )
        # config no, consolidated no, region, existing trail no, sns, existing role no
        prompter = ScriptedPrompter([False, False, "us-east-2", False, "", False])

        collect_aws_configuration(config, prompter, interactive=True)

        assert "Should the new S3 bucket have force destroy enabled?" not in prompter.asked
        assert prompter.answers == []

    def test_role_field_infers_existing_role(self) -> None:
        config = _valid_config(existing_iam_role_arn="arn:aws:iam::1:role/x")

        with pytest.raises(GenerateValidationError, match="existing IAM role"):
            collect_aws_configuration(config, ScriptedPrompter([]), interactive=False)

        assert config.use_existing_iam_role is True

    def test_noninteractive_issues_no_prompts(self) -> None:
        config = AwsGenerateConfig(configure_cloudtrail_cli=True, aws_region="us-east-2")
        prompter = ScriptedPrompter([])

        collect_aws_configuration(config, prompter, interactive=False)

        assert prompter.asked == []
        assert config.configure_cloudtrail

    def test_abort_propagates(self) -> None:
        prompter = ScriptedPrompter([True, PromptAbortedError("aborted")])

        with pytest.raises(PromptAbortedError):
            collect_aws_configuration(AwsGenerateConfig(), prompter, interactive=True)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateAwsConfig:
    def test_valid(self) -> None:
        validate_aws_config(_valid_config())

    def test_requires_an_integration(self) -> None:
        with pytest.raises(GenerateValidationError, match="must enable cloudtrail or config"):
            validate_aws_config(AwsGenerateConfig(aws_region="us-east-2"))

    def test_integration_checked_before_region(self) -> None:
        with pytest.raises(GenerateValidationError, match="must enable cloudtrail or config"):
            validate_aws_config(AwsGenerateConfig())

    def test_requires_region(self) -> None:
        with pytest.raises(GenerateValidationError, match="region"):
            validate_aws_config(AwsGenerateConfig(configure_config=True))

    def test_existing_trail_requires_bucket(self) -> None:
        with pytest.raises(
            GenerateValidationError,
            match="must supply bucket ARN when using an existing cloudtrail",
        ):
            validate_aws_config(_valid_config(use_existing_cloudtrail=True))

    def test_incomplete_role_lists_missing_fields(self) -> None:
        config = _valid_config(use_existing_iam_role=True, existing_iam_role_name="role")

        with pytest.raises(GenerateValidationError) as exc_info:
            validate_aws_config(config)

        assert "ARN, external ID" in str(exc_info.value)

    def test_complete_role_passes(self) -> None:
        validate_aws_config(
            _valid_config(
                use_existing_iam_role=True,
                existing_iam_role_name="role",
                existing_iam_role_arn="arn",
                existing_iam_role_external_id="ext",
            )
        )

    def test_sub_accounts_require_main_profile(self) -> None:
        with pytest.raises(GenerateValidationError, match="main account"):
            validate_aws_config(
                _valid_config(configure_sub_accounts=True, profiles={"dev": "us-east-1"})
            )

    def test_exit_code(self) -> None:
        with pytest.raises(GenerateValidationError) as exc_info:
            validate_aws_config(AwsGenerateConfig())
        assert exc_info.value.exit_code == EXIT_VALIDATION_FAILURE


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class TestWriteHclOutput:
    def test_creates_private_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "lacework"
        location = write_hcl_output("terraform {}\n", target)

        assert location == target / "main.tf"
        assert location.read_text() == "terraform {}\n"
        assert stat.S_IMODE(target.stat().st_mode) & 0o077 == 0

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        write_hcl_output("old", tmp_path)
        write_hcl_output("new", tmp_path)
        assert (tmp_path / "main.tf").read_text() == "new"

    def test_defaults_to_home_lacework(self, isolated_config: Path) -> None:
        location = write_hcl_output("x")
        assert location == isolated_config / "home" / "lacework" / "main.tf"


class TestPromptAwsGenerate:
    def test_writes_generated_code(self, tmp_path: Path, quiet_output) -> None:
        config = AwsGenerateConfig(configure_config_cli=True, aws_region="us-east-2")

        location = prompt_aws_generate(config, ScriptedPrompter([]), False, tmp_path)

        content = location.read_text()
        assert 'module "aws_config"' in content
        assert 'region = "us-east-2"' in content

    def test_validation_failure_writes_nothing(self, tmp_path: Path) -> None:
        with pytest.raises(GenerateValidationError):
            prompt_aws_generate(AwsGenerateConfig(), ScriptedPrompter([]), False, tmp_path / "out")
        assert not (tmp_path / "out").exists()

    def test_abort_writes_nothing(self, tmp_path: Path) -> None:
        prompter = ScriptedPrompter([PromptAbortedError("aborted")])
        with pytest.raises(PromptAbortedError):
            prompt_aws_generate(AwsGenerateConfig(), prompter, True, tmp_path / "out")
        assert not (tmp_path / "out").exists()


class TestParseSubaccounts:
    def test_pairs(self) -> None:
        assert parse_subaccounts(["dev:us-east-1", "prod:us-west-2"]) == {
            "dev": "us-east-1",
            "prod": "us-west-2",
        }

    def test_last_duplicate_wins(self) -> None:
        assert parse_subaccounts(["dev:us-east-1", "dev:eu-west-1"]) == {"dev": "eu-west-1"}

    @pytest.mark.parametrize("value", ["dev", "dev:", ":us-east-1"])
    def test_malformed(self, value: str) -> None:
        with pytest.raises(InvalidUsageError):
            parse_subaccounts([value])


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


EXPECTED_CLOUDTRAIL_ONLY = """terraform {
  required_providers {
    lacework = {
      source  = "lacework/lacework"
      version = "~> 0.3"
    }
  }
}

provider "aws" {
  region = "us-east-2"
}

module "main_cloudtrail" {
  source  = "lacework/cloudtrail/aws"
  version = "~> 0.1"
}

"""


class TestGenerateAwsCommand:
    def test_noninteractive_flags(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        out = isolated_config / "out"
        result = cli_runner.invoke(
            app,
            [
                "--noninteractive",
                "generate",
                "aws",
                "--cloudtrail",
                "--aws-region",
                "us-east-2",
                "--output-dir",
                str(out),
            ],
        )

        assert result.exit_code == 0, result.output
        assert (out / "main.tf").read_text() == EXPECTED_CLOUDTRAIL_ONLY

    def test_interactive_prompts(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        out = isolated_config / "out"
        # config no, cloudtrail yes, consolidated no, region, existing trail no,
        # sns (empty), existing role no, force destroy no
        answers = "n\ny\nn\nus-east-2\nn\n\nn\nn\n"
        result = cli_runner.invoke(
            app, ["generate", "aws", "--output-dir", str(out)], input=answers
        )

        assert result.exit_code == 0, result.output
        assert (out / "main.tf").read_text() == EXPECTED_CLOUDTRAIL_ONLY

    def test_alias(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        out = isolated_config / "out"
        result = cli_runner.invoke(
            app,
            [
                "--noninteractive",
                "iac",
                "aws",
                "--config",
                "--aws-region",
                "us-east-2",
                "--output-dir",
                str(out),
            ],
        )

        assert result.exit_code == 0, result.output
        assert 'module "aws_config"' in (out / "main.tf").read_text()

    def test_env_disables_prompts(
        self, cli_runner: CliRunner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LW_NONINTERACTIVE", "true")
        result = cli_runner.invoke(
            app,
            ["generate", "aws", "--config", "--output-dir", str(isolated_config / "out")],
        )

        assert result.exit_code == EXIT_VALIDATION_FAILURE
        assert not (isolated_config / "out").exists()

    def test_validation_failure_exit_code(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        result = cli_runner.invoke(
            app,
            [
                "--no-color",
                "--noninteractive",
                "generate",
                "aws",
                "--cloudtrail",
                "--aws-region",
                "us-east-2",
                "--existing-cloudtrail",
                "--output-dir",
                str(isolated_config / "out"),
            ],
        )

        assert result.exit_code == EXIT_VALIDATION_FAILURE
        assert "bucket ARN" in result.output
        assert not (isolated_config / "out").exists()

    def test_subaccount_flags(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        out = isolated_config / "out"
        result = cli_runner.invoke(
            app,
            [
                "--noninteractive",
                "generate",
                "aws",
                "--config",
                "--cloudtrail",
                "--consolidated-cloudtrail",
                "--aws-region",
                "us-east-2",
                "--aws-profile",
                "main",
                "--aws-subaccount",
                "dev:us-east-1",
                "--output-dir",
                str(out),
            ],
        )

        assert result.exit_code == 0, result.output
        content = (out / "main.tf").read_text().replace(" ", "").replace("\n", "")
        assert 'module"aws_config_dev"' in content
        assert "providers={aws=aws.dev}" in content

    def test_malformed_subaccount(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(
            app,
            ["--noninteractive", "generate", "aws", "--config", "--aws-subaccount", "dev"],
        )
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_closed_input_aborts(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        out = isolated_config / "out"
        result = cli_runner.invoke(
            app, ["generate", "aws", "--output-dir", str(out)], input="y\n"
        )

        assert result.exit_code == EXIT_CANCELLED
        assert not out.exists()
