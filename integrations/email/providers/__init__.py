"""Email provider implementations"""
from integrations.email.providers.gmail_provider import GmailClient

__all__ = ['GmailClient']
