"""Session state for the external identity provider.

Login and logout are redirects to the provider; the only thing kept
locally is the access token it hands back, stored in the CLI config.
"""

import logging
import webbrowser
from typing import Optional

from readtrack.cli_config import CLIConfig
from readtrack.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth.access_token"


class AuthenticationRequired(Exception):
    pass


class AuthSession:
    def __init__(self, config: CLIConfig, settings: Optional[Settings] = None) -> None:
        self.config = config
        self.settings = settings or default_settings

    @property
    def token(self) -> Optional[str]:
        return self.config.get(TOKEN_KEY) or None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def open_login_page(self) -> bool:
        """Send the user to the provider's login page; False when none is configured."""
        return self._redirect(self.settings.auth_login_url)

    def login(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            raise ValueError("Access token cannot be empty.")
        self.config.set(TOKEN_KEY, token)
        logger.info("Stored access token")

    def logout(self) -> None:
        self.config.set(TOKEN_KEY, None)
        self._redirect(self.settings.auth_logout_url)
        logger.info("Cleared access token")

    def require(self) -> None:
        """Block data views until the session reports authenticated."""
        if self.settings.require_auth and not self.is_authenticated:
            raise AuthenticationRequired("You need to log in first. Run 'readtrack login'.")

    @staticmethod
    def _redirect(url: Optional[str]) -> bool:
        if not url:
            return False
        try:
            return webbrowser.open(url)
        except webbrowser.Error:
            logger.warning("Could not open browser for %s", url)
            return False
