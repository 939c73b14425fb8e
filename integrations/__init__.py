"""
External service integrations.
"""

from integrations.customs_api import (
    CustomsApiClient,
    PollPolicy,
    prepare_api_key,
)

__all__ = [
    "CustomsApiClient",
    "PollPolicy",
    "prepare_api_key",
]
