# provisioning_engine/core/errors.py

# -----------------------------
# Base Errors
# -----------------------------

class ProvisioningError(Exception):
    """Base class for all provisioning engine errors."""
    pass


# -----------------------------
# Rendering
# -----------------------------

class RenderError(ProvisioningError):
    """A required inventory field is absent."""
    pass


# -----------------------------
# Coordinator Outcomes
# -----------------------------

class UnreachableTarget(ProvisioningError):
    """Readiness polling exhausted its attempts."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class ConfigurationRunFailed(ProvisioningError):
    """Configuration runner exited non-zero."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


# -----------------------------
# Collaborators / Persistence
# -----------------------------

class ResourceProviderError(ProvisioningError):
    """Resource provider outputs missing or unreadable."""
    pass


class TriggerStoreError(ProvisioningError):
    pass
