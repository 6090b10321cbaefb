"""
Cangkul ZK - commitment and proof suite for fair two-party Cangkulan play.

Schema Version: cangkul-zk/v1
"""

__version__ = "0.1.0"
__schema__ = "cangkul-zk/v1"

# Supported schema versions for persisted secrets
SUPPORTED_SCHEMAS = [
    "cangkul-zk/v1",
]
