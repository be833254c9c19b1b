class ProviderNotConfigured(Exception):
    """An optional integration (OpenAI, Retell, SMTP) has no credentials."""


class ProviderError(Exception):
    """An upstream provider answered with an error or an unusable payload."""
