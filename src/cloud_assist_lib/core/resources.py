"""Validation of resource references attached to observations."""

import re
from typing import Iterable, List

from cloud_assist_lib.errors import InvalidArgumentError

RESOURCE_URI_PATTERN = re.compile(r"^//[a-z0-9][a-z0-9.-]*\.googleapis\.com/\S+$")

RESOURCE_URI_EXAMPLE = (
    "//compute.googleapis.com/projects/my-gcp-project/zones/us-central1-a/instances/my-vm-instance"
)


def validate_resources(resources: Iterable[str]) -> List[str]:
    """Return the entries that are not well-formed resource URIs."""
    return [
        resource
        for resource in resources
        if not isinstance(resource, str) or not RESOURCE_URI_PATTERN.match(resource)
    ]


def ensure_valid_resources(resources: Iterable[str]) -> None:
    """Raise InvalidArgumentError listing every malformed resource URI."""
    invalid = validate_resources(resources)
    if not invalid:
        return

    lines = ["Invalid resource format for the following resources:"]
    lines.extend(f'- "{resource}"' for resource in invalid)
    lines.append(
        "Resources must be a fully-qualified GCP Resource URI, "
        f"for example: '{RESOURCE_URI_EXAMPLE}'"
    )
    raise InvalidArgumentError("\n".join(lines))
