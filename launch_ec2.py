#!/usr/bin/env python3
"""
Launch a single EC2 instance: make sure the AWS CLI is installed, create the
instance and wait until it is running
"""

import sys
import time

from botocore.exceptions import BotoCoreError, ClientError

from ec2.custom_ec2 import (
    EC2InstanceCreator,
    InstanceCreationError,
    InstanceStateError,
    InstanceWaitTimeout,
)
from ec2.instance_config import InstanceConfig
from installer.aws_cli import AWSCLIInstaller, CLIInstallError

USAGE = """Usage: python launch_ec2.py [method] [instance_id]
Methods:
  launch                 check/install the AWS CLI, create the instance, wait for it (default)
  check-cli              report whether the AWS CLI is installed
  install-cli            install the AWS CLI if it is missing
  status <instance_id>   print the current state of an instance
  wait <instance_id>     wait for an existing instance to be running"""

# exit code for every failure the launcher handles itself
EXIT_FAILURE = 1


def ensure_aws_cli(installer):
    """Install the AWS CLI when the presence check fails"""
    if installer.check_cli_installed():
        print(f"✅ AWS CLI found: {installer.get_cli_version()}")
        return False

    print("AWS CLI is not installed, installing it now...")
    installer.install_cli()
    return True


def launch_instance(config, installer, creator, sleep=time.sleep):
    """Run the whole launch and return the summary of the running instance"""
    print("=== Launching EC2 instance ===")

    print("\n1. Checking for the AWS CLI...")
    ensure_aws_cli(installer)

    print("\n2. Creating instance...")
    instance_id = creator.create_ec2_instance(config)

    print("\n3. Waiting for instance to start...")
    creator.wait_for_instance_running(
        instance_id,
        poll_interval=config.poll_interval,
        max_attempts=config.max_attempts,
        sleep=sleep,
    )

    summary = creator.describe_instance(instance_id)
    print("\n=== Instance is running ===")
    print(f"Instance ID: {summary['instance_id']}")
    print(f"Instance type: {summary['instance_type']}")
    print(f"Availability zone: {summary['availability_zone']}")
    print(f"Private IP: {summary['private_ip']}")
    print(f"Public IP: {summary['public_ip']}")
    print(f"\nTo terminate: aws ec2 terminate-instances --instance-ids {instance_id}")
    return summary


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    method = argv[0] if argv else "launch"
    instance_id = argv[1] if len(argv) > 1 else None

    if method in ("status", "wait") and not instance_id:
        print(USAGE, file=sys.stderr)
        return EXIT_FAILURE

    installer = AWSCLIInstaller()

    try:
        if method == "check-cli":
            if not installer.check_cli_installed():
                return EXIT_FAILURE
            print(f"✅ AWS CLI found: {installer.get_cli_version()}")

        elif method == "install-cli":
            ensure_aws_cli(installer)

        elif method == "launch":
            config = InstanceConfig.from_env().validate()
            print("🚀 Launching EC2 instance...")
            launch_instance(config, installer, EC2InstanceCreator())
            print("\n✅ Instance launched successfully!")

        elif method == "status":
            print(f"📊 {instance_id}: {EC2InstanceCreator().get_instance_state(instance_id)}")

        elif method == "wait":
            config = InstanceConfig.from_env().validate_polling()
            EC2InstanceCreator().wait_for_instance_running(
                instance_id,
                poll_interval=config.poll_interval,
                max_attempts=config.max_attempts,
            )

        else:
            print(f"Unknown method: {method}", file=sys.stderr)
            print(USAGE, file=sys.stderr)
            return EXIT_FAILURE

    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILURE
    except CLIInstallError as e:
        print(f"❌ AWS CLI installation failed: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except InstanceCreationError as e:
        print(f"❌ Failed to create instance: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except (InstanceStateError, InstanceWaitTimeout) as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILURE
    except (ClientError, BotoCoreError) as e:
        print(f"❌ AWS error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return 0


if __name__ == "__main__":
    sys.exit(main())
