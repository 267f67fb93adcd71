# =============================================================================
# File: app/utils/uuid_utils.py - Identifier Utilities
# =============================================================================
# Message ids, event correlation ids and request correlation ids are random
# UUIDv4 strings.
# =============================================================================

import uuid


def generate_uuid_str() -> str:
    """
    Generate a new UUIDv4 as string.

    Returns:
        String representation of UUID
    """
    return str(uuid.uuid4())
