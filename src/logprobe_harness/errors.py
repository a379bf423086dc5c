from __future__ import annotations
from typing import Optional


class IntegrationError(Exception):
    """Terminal failure of an integration run.

    `phase` names the pipeline step that failed; the runner fills it in.
    """

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{self.phase}: {msg}" if self.phase else msg


class ConfigurationError(IntegrationError):
    """The parameters ask for something the harness does not support."""


class ProtocolViolation(IntegrationError):
    """The log behaved in a way a verifiable log must not."""


class ServiceError(IntegrationError):
    """A log call that is not retried failed outright."""


class IntegrationTimeout(IntegrationError):
    """The log was too slow; distinct from incorrect behaviour."""


class SequencingTimeout(IntegrationTimeout):
    pass


class DeadlineExceeded(IntegrationTimeout):
    pass


class ProofVerificationError(Exception):
    """Raised by oracles when a proof does not verify."""
