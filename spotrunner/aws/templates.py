"""Launch template management.

A launch template is created per provisioning attempt under a random name,
so concurrent jobs never collide, and deleted again during teardown.
"""

from __future__ import annotations

import base64
import uuid
from typing import Any

from loguru import logger

from ..bootstrap import render, user_data
from ..config import ProvisioningConfig
from ..constants import RunnerTag
from ..exceptions import ConfigurationError, LaunchTemplateError
from .clients import EC2ClientFactory

log = logger.bind(component="launch-template")


def _tags(label: str) -> list[dict[str, str]]:
    return [
        {"Key": "Name", "Value": f"spotrunner-{label}"},
        {"Key": RunnerTag.MANAGED, "Value": "true"},
        {"Key": RunnerTag.LABEL, "Value": label},
    ]


class LaunchTemplates:
    """Creates and deletes the launch template used by the fleet request.

    ``config`` is only needed to create a template; teardown can run
    without it.
    """

    def __init__(self, ec2: EC2ClientFactory, config: ProvisioningConfig | None = None) -> None:
        self.ec2 = ec2
        self.config = config

    def template_data(self, label: str, token: str) -> dict[str, Any]:
        """Build ``LaunchTemplateData`` with the encoded runner boot script."""
        if self.config is None:
            raise ConfigurationError("Provisioning configuration is required to create a launch template")

        script = render(user_data(token, label, self.config))
        return {
            "ImageId": self.config.image_id,
            "UserData": base64.b64encode(script.encode()).decode(),
            "SecurityGroupIds": [self.config.security_group_id],
            "IamInstanceProfile": {"Name": self.config.iam_role_name},
            "TagSpecifications": [{"ResourceType": "instance", "Tags": _tags(label)}],
        }

    async def create(self, label: str, token: str) -> str:
        """Create a launch template and return its id.

        Raises:
            LaunchTemplateError: If the response carries no template id.
        """
        name = str(uuid.uuid4())
        data = self.template_data(label, token)

        async with self.ec2() as ec2:
            try:
                response = await ec2.create_launch_template(
                    LaunchTemplateName=name,
                    LaunchTemplateData=data,
                    TagSpecifications=[{"ResourceType": "launch-template", "Tags": _tags(label)}],
                )
            except Exception:
                log.error("Failed to create launch template {name}", name=name)
                raise

        template_id = (response.get("LaunchTemplate") or {}).get("LaunchTemplateId")
        if not template_id:
            log.error("Launch template {name} returned no id", name=name)
            raise LaunchTemplateError(f"Failed to create launch template {name}")

        log.info("Created launch template {template_id} ({name})", template_id=template_id, name=name)
        return template_id

    async def delete(self, template_id: str | None) -> None:
        """Delete a launch template. A missing id is a no-op."""
        if not template_id:
            log.info("No launch template id, nothing to delete")
            return

        async with self.ec2() as ec2:
            try:
                await ec2.delete_launch_template(LaunchTemplateId=template_id)
            except Exception:
                log.error("Failed to delete launch template {template_id}", template_id=template_id)
                raise

        log.info("Deleted launch template {template_id}", template_id=template_id)
