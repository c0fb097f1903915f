import logging
from typing import Callable, List, Optional

from .service import AuthService, Identity

logger = logging.getLogger(__name__)

IdentityCallback = Callable[[Optional[Identity]], None]


class IdentityClient:
    """
    Client-side view of the identity service for one front-end session
    (a Streamlit browser session or a CLI run).

    Holds the current identity and token and notifies listeners on every
    auth transition. A new listener is called once right away with the
    current state, which counts as the initial resolution.
    """

    def __init__(self, service: AuthService, token: str = None):
        self.service = service
        self.token = token
        self.identity: Optional[Identity] = service.resolve(token) if token else None
        self._listeners: List[IdentityCallback] = []

    def _set(self, identity: Optional[Identity], token: Optional[str]):
        self.identity, self.token = identity, token
        for callback in list(self._listeners):
            callback(identity)

    def on_identity_change(self, callback: IdentityCallback) -> Callable[[], None]:
        self._listeners.append(callback)
        callback(self.identity)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def sign_up(self, email: str, password: str, display_name: str) -> Identity:
        identity, token = self.service.sign_up(email, password, display_name)
        self._set(identity, token)
        return identity

    def sign_in(self, email: str, password: str) -> Identity:
        identity, token = self.service.sign_in(email, password)
        self._set(identity, token)
        return identity

    def sign_out(self):
        if self.token:
            self.service.sign_out(self.token)
        self._set(None, None)
