"""
NLP External Configuration
==========================

Loads the role/intent access policy from a YAML file.

The policy is read once at startup and is immutable afterwards; a change
to the file takes effect on the next start.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from core import ConfigurationException
from nlp.domain import AccessPolicy
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class AccessPolicyLoader:
    """
    Reads an AccessPolicy from YAML.

    A missing file yields the built-in default policy. A file that exists
    but is malformed is a configuration error.
    """

    def load(self, path: Optional[Path]) -> AccessPolicy:
        """Load the access policy from ``path``, or defaults when absent."""
        if path is None or not Path(path).exists():
            logger.warning(f"Access policy file not found: {path}, using defaults")
            return AccessPolicy()
        return self._load_from_file(Path(path))

    def _load_from_file(self, path: Path) -> AccessPolicy:
        """Load and parse YAML policy file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(
                f"Access policy file is not valid YAML: {path}",
                {"path": str(path), "error": str(e)},
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationException(
                f"Access policy file must contain a mapping: {path}",
                {"path": str(path)},
            )

        try:
            policy = AccessPolicy(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid access policy in {path}",
                {"path": str(path), "errors": e.errors(include_url=False)},
            ) from e

        logger.info(
            "Access policy loaded",
            extra={"path": str(path), "roles": sorted(policy.roles)},
        )
        return policy
