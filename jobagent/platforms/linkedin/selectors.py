"""LinkedIn DOM selector constants with fallbacks.

Login form fields are single selectors. Job link selectors are a tuple
tried in order until one matches; the URL prefix and marker tuples are
matched against page URLs.
"""

# --- Login form (/login) ---
LOGIN_EMAIL_INPUT: str = "#username"
LOGIN_PASSWORD_INPUT: str = "#password"
LOGIN_SUBMIT_BUTTON: str = 'button[type="submit"]'

# --- Job links on an authenticated result page ---
JOB_LINK_SELECTORS: tuple[str, ...] = (
    "a.job-card-list__title--link",
    "a.job-card-container__link",
    'a[href*="/jobs/view/"]',
)

# --- Post-login URL path prefixes ---
LOGIN_SUCCESS_PREFIXES: tuple[str, ...] = ("/feed", "/mynetwork", "/jobs")
LOGIN_CHALLENGE_PREFIXES: tuple[str, ...] = ("/checkpoint", "/challenge")
LOGIN_FAILURE_PREFIXES: tuple[str, ...] = ("/login", "/uas/login")

# --- Substrings of a result-page URL that mean we were redirected to a block page ---
BLOCK_URL_INDICATORS: tuple[str, ...] = ("captcha", "challenge", "/checkpoint", "verify")
