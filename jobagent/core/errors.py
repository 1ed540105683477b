"""Error taxonomy for the job-discovery agent.

Every error raised on purpose by the pipeline derives from ``AgentError`` and
carries a message that is safe to show to the end user. Anything else that
escapes a run is reported with a generic message (see ``describe_error``).
"""

GENERIC_ERROR_MESSAGE = "Error while searching for job offers"


class AgentError(Exception):
    """Base class for errors whose message is client-facing."""

    @property
    def user_message(self) -> str:
        return str(self)


class ConfigurationError(AgentError):
    """A required setting or credential is missing. Raised before any resource opens."""


class AuthenticationError(AgentError):
    """Login did not reach an authenticated page. Never retried automatically."""


class LoginChallengeError(AuthenticationError):
    """The site asked for two-factor or bot verification."""


class InvalidCredentialsError(AuthenticationError):
    """The site rejected the credentials, or the login sequence itself failed."""


class BlockedError(AgentError):
    """The first result page redirected to a block/verification page."""


class SessionNotFoundError(AgentError):
    """A browser primitive was called on a session that was never launched."""


def describe_error(exc: BaseException) -> str:
    """Return the message to surface to the caller for ``exc`` (never a traceback)."""
    if isinstance(exc, AgentError):
        return exc.user_message
    return GENERIC_ERROR_MESSAGE
