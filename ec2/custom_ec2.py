import sys
import time

import boto3
from botocore.exceptions import ClientError


class InstanceCreationError(Exception):
    """RunInstances did not hand back an instance id"""


class InstanceStateError(Exception):
    """The instance reached a state it will not leave on its own"""

    def __init__(self, instance_id, state):
        super().__init__(f"Instance {instance_id} entered terminal state '{state}'")
        self.instance_id = instance_id
        self.state = state


class InstanceWaitTimeout(Exception):
    """The instance was not running after the allowed number of polls"""

    def __init__(self, instance_id, attempts, last_state):
        super().__init__(
            f"Instance {instance_id} not running after {attempts} checks (last state: '{last_state}')"
        )
        self.instance_id = instance_id
        self.attempts = attempts
        self.last_state = last_state


class EC2InstanceCreator:
    """
    Create a single EC2 instance and wait for it to run.
    - 1. Instance Setup
        def create_ec2_instance: launch one instance from an InstanceConfig, return its id.
    - 2. State
        def get_instance_state: one DescribeInstances call, return State.Name.
        def wait_for_instance_running: poll the state until 'running'.
        def describe_instance: summary of the instance (type, IPs, AZ).
    """

    RUNNING_STATE = "running"
    TERMINAL_STATES = ("shutting-down", "terminated", "stopping", "stopped")
    NOT_FOUND_CODE = "InvalidInstanceID.NotFound"
    NOT_FOUND_STATE = "not-found"

    def __init__(self, ec2_client=None):
        self.ec2_client = ec2_client or boto3.client("ec2")

    def create_ec2_instance(self, config):
        """Launch one instance and return its id"""
        try:
            response = self.ec2_client.run_instances(
                ImageId=config.image_id,
                InstanceType=config.instance_type,
                KeyName=config.key_name,
                SubnetId=config.subnet_id,
                SecurityGroupIds=[config.security_group_id],
                MinCount=1,
                MaxCount=1,
                TagSpecifications=[
                    {
                        'ResourceType': 'instance',
                        'Tags': [
                            {'Key': 'Name', 'Value': config.instance_name},
                            {'Key': 'CreatedBy', 'Value': 'EC2InstanceCreator'}
                        ]
                    }
                ]
            )
        except ClientError as e:
            print(f"Error creating EC2 instance: {e.response['Error']['Message']}", file=sys.stderr)
            raise

        instances = response.get('Instances') or [{}]
        instance_id = instances[0].get('InstanceId')
        if not instance_id:
            raise InstanceCreationError(
                f"RunInstances returned no instance id for '{config.instance_name}'"
            )

        # DescribeInstances can miss a brand new instance for a few seconds
        self.ec2_client.get_waiter('instance_exists').wait(InstanceIds=[instance_id])

        print(f"Created instance: {instance_id}")
        print(f"Instance type: {config.instance_type}")
        return instance_id

    def get_instance_state(self, instance_id):
        response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
        return response['Reservations'][0]['Instances'][0]['State']['Name']

    def wait_for_instance_running(self, instance_id, poll_interval=10, max_attempts=60, sleep=time.sleep):
        """
        Poll the instance state until it is 'running'.

        Each attempt issues exactly one state query and the wait only happens
        between attempts, so N non-running answers before 'running' cost N
        sleeps. An instance EC2 does not know about yet counts as not running.
        A terminal state raises InstanceStateError, running out of
        attempts raises InstanceWaitTimeout. With max_attempts=None the loop
        has no bound and does not return until the instance runs.
        """
        print(f"⏳ Waiting for instance '{instance_id}' to be running...")
        attempts = 0

        while True:
            try:
                state = self.get_instance_state(instance_id)
            except ClientError as e:
                if e.response['Error']['Code'] != self.NOT_FOUND_CODE:
                    raise
                state = self.NOT_FOUND_STATE
            attempts += 1

            if state == self.RUNNING_STATE:
                print(f"✅ Instance {instance_id} is running!")
                return state
            if state in self.TERMINAL_STATES:
                print(f"❌ Instance {instance_id} is in state: {state}")
                raise InstanceStateError(instance_id, state)
            if max_attempts is not None and attempts >= max_attempts:
                print(f"⏰ Timeout: instance {instance_id} still '{state}' after {attempts} checks")
                raise InstanceWaitTimeout(instance_id, attempts, state)

            print(f"📊 Status: {state} (check {attempts}, next in {poll_interval}s)")
            sleep(poll_interval)

    def describe_instance(self, instance_id):
        """Summary of an instance: state, type, addresses and placement"""
        response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
        instance = response['Reservations'][0]['Instances'][0]

        return {
            'instance_id': instance['InstanceId'],
            'state': instance['State']['Name'],
            'instance_type': instance.get('InstanceType', 'N/A'),
            'private_ip': instance.get('PrivateIpAddress', 'N/A'),
            'public_ip': instance.get('PublicIpAddress', 'N/A'),
            'availability_zone': instance.get('Placement', {}).get('AvailabilityZone', 'N/A'),
        }
