"""lwcli: a Lacework command-line tool and Terraform generator.

Talks to the Lacework REST API to manage cloud account integrations, and
writes the Terraform that integrates an AWS environment (CloudTrail and
Config) with Lacework::

    lwcli configure --account mycompany --api-key KEY --api-secret env:LW_API_SECRET
    lwcli integration list
    lwcli generate aws                  # answer the prompts
    lwcli --noninteractive generate aws --config --aws-region us-east-2
"""

__version__ = "0.4.0"
