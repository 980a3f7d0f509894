"""
Configuration for Custodian registries
Reads environment variables (optionally from a .env file) for storage, clock and logging
"""

import os
import logging
from typing import Dict, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


REGISTRY_DATABASES = {
    'identity': 'custodian_identity.db',
    'access': 'custodian_access.db',
    'usage_types': 'custodian_usage_types.db',
    'anonymization_methods': 'custodian_anonymization_methods.db',
    'provenance': 'custodian_provenance.db'
}


class Settings:
    """Environment-driven configuration manager"""

    def __init__(self, env: Optional[Dict[str, str]] = None):
        env = os.environ if env is None else env
        self.data_dir = env.get('CUSTODIAN_DATA_DIR', '.')
        self.admin = env.get('CUSTODIAN_ADMIN')
        self.clock = env.get('CUSTODIAN_CLOCK', 'system')
        self.log_level = env.get('CUSTODIAN_LOG_LEVEL', 'INFO').upper()

        if self.clock not in ('system', 'logical'):
            raise ValueError(f"CUSTODIAN_CLOCK must be 'system' or 'logical', got '{self.clock}'")

    def get_db_path(self, registry: str) -> str:
        """Get the SQLite file path for a registry"""
        if registry not in REGISTRY_DATABASES:
            raise ValueError(f"Unknown registry: {registry}")
        return os.path.join(self.data_dir, REGISTRY_DATABASES[registry])

    def get_db_paths(self) -> Dict[str, str]:
        return {name: self.get_db_path(name) for name in REGISTRY_DATABASES}

    def require_admin(self) -> str:
        """Get the initial admin principal, failing if it is not configured"""
        if not self.admin:
            raise ValueError("CUSTODIAN_ADMIN not set")
        return self.admin


def get_settings() -> Settings:
    """Load settings from the current environment"""
    return Settings()
