import os
from dataclasses import dataclass, fields
from typing import Optional


@dataclass
class InstanceConfig:
    """
    Parameters for launching a single EC2 instance.

    Defaults are the values the launcher has always used; every field can be
    overridden from the environment with from_env().
    """
    image_id: str = "ami-0023921b4fcd5382b"
    instance_type: str = "t2.micro"
    key_name: str = "ec2-launcher-key"
    subnet_id: str = "subnet-0bb1c79de3EXAMPLE"
    security_group_id: str = "sg-0a1b2c3d4e5f6a7b8"
    instance_name: str = "ec2-launcher-instance"
    poll_interval: int = 10
    max_attempts: Optional[int] = 60

    ENV_PREFIX = "EC2_"

    @classmethod
    def from_env(cls, environ=None):
        """Build a config, taking EC2_<FIELD> environment variables over the defaults"""
        if environ is None:
            environ = os.environ

        overrides = {}
        for field in fields(cls):
            value = environ.get(f"{cls.ENV_PREFIX}{field.name.upper()}")
            if value is None:
                continue
            if field.name in ("poll_interval", "max_attempts"):
                # an empty max attempts means poll until running
                if field.name == "max_attempts" and value.strip() == "":
                    overrides[field.name] = None
                    continue
                try:
                    overrides[field.name] = int(value)
                except ValueError:
                    raise ValueError(f"{cls.ENV_PREFIX}{field.name.upper()} must be an integer, got '{value}'")
            else:
                overrides[field.name] = value.strip()
        return cls(**overrides)

    def validate(self):
        """Raise ValueError describing every invalid field"""
        errors = []

        for name in ("image_id", "instance_type", "key_name", "subnet_id",
                     "security_group_id", "instance_name"):
            if not getattr(self, name):
                errors.append(f"{name} must not be empty")

        prefixes = {
            "image_id": "ami-",
            "subnet_id": "subnet-",
            "security_group_id": "sg-",
        }
        for name, prefix in prefixes.items():
            value = getattr(self, name)
            if value and not value.startswith(prefix):
                errors.append(f"{name} must start with '{prefix}', got '{value}'")

        errors.extend(self._polling_errors())

        if errors:
            raise ValueError("Invalid instance configuration: " + "; ".join(errors))
        return self

    def validate_polling(self):
        """Check only poll_interval and max_attempts, for waiting on an existing instance"""
        errors = self._polling_errors()
        if errors:
            raise ValueError("Invalid polling configuration: " + "; ".join(errors))
        return self

    def _polling_errors(self):
        errors = []
        if self.poll_interval <= 0:
            errors.append("poll_interval must be positive")
        if self.max_attempts is not None and self.max_attempts <= 0:
            errors.append("max_attempts must be positive")
        return errors
