"""Email integration package"""
from integrations.email.protocols import (
    IMailProvider,
    IngestionResult,
    MimePart,
    ParsedMessage,
    ProviderTokens,
)

__all__ = ['IMailProvider', 'IngestionResult', 'MimePart', 'ParsedMessage', 'ProviderTokens']
