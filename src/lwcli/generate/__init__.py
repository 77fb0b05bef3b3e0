"""Terraform code generation.

This sub-package turns collected answers into Terraform (HCL) text:

* :mod:`~lwcli.generate.hcl` -- a small block IR, attribute value encoding,
  and a ``terraform fmt`` style writer.
* :mod:`~lwcli.generate.aws` -- factories for the Lacework AWS
  integration (providers, Config and CloudTrail modules).

Typical usage::

    from lwcli.generate import generate_aws_tf_configuration
    from lwcli.models import AwsGenerateConfig

    hcl = generate_aws_tf_configuration(
        AwsGenerateConfig(configure_config=True, aws_region="us-east-2")
    )
"""

from lwcli.generate.aws import generate_aws_tf_configuration
from lwcli.generate.hcl import (
    Block,
    Module,
    Provider,
    RequiredProvider,
    Traversal,
    build_block,
    combine_blocks,
    render_blocks,
)

__all__ = [
    "Block",
    "Module",
    "Provider",
    "RequiredProvider",
    "Traversal",
    "build_block",
    "combine_blocks",
    "generate_aws_tf_configuration",
    "render_blocks",
]
