"""
rds-replica - Provision an RDS primary instance with a same- or cross-region read replica
"""

__version__ = "0.1.0"

from .core import ReplicaProvisioner
from .errors import ProvisioningError

__all__ = ["ReplicaProvisioner", "ProvisioningError"]
