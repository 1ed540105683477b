"""Login state machine: NOT_STARTED → SUBMITTED → {SUCCESS, CHALLENGE, FAILURE}.

The post-submit URL path decides the outcome (first match wins):
  success prefixes   → SUCCESS
  challenge prefixes → CHALLENGE (two-factor / bot verification)
  failure prefixes   → FAILURE (invalid credentials)
  anything else      → SUCCESS, logged as a warning: the landing route may
                       have moved, and the result pages will show a block
                       signature if the session is not really authenticated.

This is the only credential gate of the pipeline.
"""

import logging
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict

from jobagent.core.errors import InvalidCredentialsError, LoginChallengeError
from jobagent.platforms.linkedin.site import LINKEDIN_CONFIG, SiteConfig

logger = logging.getLogger(__name__)

SETTLE_AFTER_SUBMIT_MS = 3000

CHALLENGE_MESSAGE = (
    "LinkedIn asks for two-step verification. Log in to LinkedIn manually in a "
    "browser to approve this device, then run the search again."
)
INVALID_CREDENTIALS_MESSAGE = (
    "Invalid LinkedIn credentials. Check the email and password stored in your profile."
)


class LoginState(str, Enum):
    NOT_STARTED = "not_started"
    SUBMITTED = "submitted"
    SUCCESS = "success"
    CHALLENGE = "challenge"
    FAILURE = "failure"


class LoginOutcome(BaseModel):
    """Terminal result of one login attempt."""

    model_config = ConfigDict(frozen=True)

    state: LoginState
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.state is LoginState.SUCCESS

    def raise_for_state(self) -> None:
        """Raise the matching AuthenticationError unless the login succeeded."""
        if self.state is LoginState.CHALLENGE:
            raise LoginChallengeError(self.message or CHALLENGE_MESSAGE)
        if self.state is not LoginState.SUCCESS:
            raise InvalidCredentialsError(self.message or INVALID_CREDENTIALS_MESSAGE)


def classify_login_url(url: str, site: SiteConfig = LINKEDIN_CONFIG) -> LoginOutcome:
    """Classify the URL reached after submitting the login form. Pure."""
    path = urlparse(url).path.lower()

    if path.startswith(site.login_success_prefixes):
        return LoginOutcome(state=LoginState.SUCCESS)
    if path.startswith(site.login_challenge_prefixes):
        return LoginOutcome(state=LoginState.CHALLENGE, message=CHALLENGE_MESSAGE)
    if path.startswith(site.login_failure_prefixes):
        return LoginOutcome(state=LoginState.FAILURE, message=INVALID_CREDENTIALS_MESSAGE)

    logger.warning("Unexpected post-login path '%s', assuming success", path)
    return LoginOutcome(state=LoginState.SUCCESS)


class LinkedInAuthenticator:
    """Drives the login form of one browser session.

    ``sessions`` is a BrowserSessionManager (or any object with the same
    navigate/fill/click/wait/get_url coroutines).
    """

    def __init__(self, sessions: Any, session_name: str, site: SiteConfig = LINKEDIN_CONFIG) -> None:
        self._sessions = sessions
        self._name = session_name
        self._site = site
        self.state = LoginState.NOT_STARTED

    async def login(self, email: str, password: str) -> LoginOutcome:
        """Submit the login form and classify where it lands.

        Never raises: exceptions in the sequence become a FAILURE outcome.
        """
        if self.state is not LoginState.NOT_STARTED:
            msg = f"login already attempted (state: {self.state.value})"
            raise RuntimeError(msg)

        try:
            logger.info("Opening login page %s", self._site.login_url)
            await self._sessions.navigate(self._name, self._site.login_url)
            await self._sessions.fill(self._name, self._site.email_input, email)
            await self._sessions.fill(self._name, self._site.password_input, password)
            await self._sessions.click(self._name, self._site.submit_button)
            self.state = LoginState.SUBMITTED

            await self._sessions.wait(self._name, SETTLE_AFTER_SUBMIT_MS)
            current_url = await self._sessions.get_url(self._name)
            logger.info("URL after login: %s", current_url)
            outcome = classify_login_url(current_url, self._site)
        except Exception as e:
            logger.error("Login sequence failed: %s", e)
            outcome = LoginOutcome(
                state=LoginState.FAILURE,
                message=f"Error while logging in to LinkedIn: {e}",
            )

        self.state = outcome.state
        if outcome.is_success:
            logger.info("Logged in to %s", self._site.name)
        else:
            logger.warning("Login ended in state '%s'", outcome.state.value)
        return outcome
