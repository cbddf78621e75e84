"""
Session store: per-slot OAuth token lifecycle.

ensure_valid() is the gate every remote call goes through: a still-valid
token is returned untouched, an expired one is refreshed (at most one refresh
in flight per slot), and a missing or unrefreshable one starts the
authorization redirect and raises AuthRequiredError. authorized() wraps a
remote call so that a token the server rejects is refreshed and the call
retried once.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

from playlist_bridge.catalog import CatalogClient
from playlist_bridge.errors import AuthExpiredError, AuthRequiredError, BridgeError, RemoteApiError
from playlist_bridge.models.session import Session, Slot
from playlist_bridge.storage import TokenStorage

logger = logging.getLogger(__name__)

RedirectHandler = Callable[[Slot, str], None]
LogoutHandler = Callable[[Slot], None]
T = TypeVar("T")


def log_redirect(slot: Slot, url: str) -> None:
    logger.info(f"Authorize the {slot} slot at {url}")


class SessionStore:
    def __init__(
        self,
        catalog: CatalogClient,
        storage: Optional[TokenStorage] = None,
        redirect: Optional[RedirectHandler] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._catalog = catalog
        self._storage = storage or TokenStorage()
        self._redirect = redirect or log_redirect
        self._clock = clock
        self._refreshing: dict[Slot, asyncio.Task[Session]] = {}
        self._logout_handlers: list[LogoutHandler] = []

    def now(self) -> int:
        return int(self._clock())

    def get_token(self, slot: Slot) -> Optional[Session]:
        return self._storage.read(slot)

    def set_token(self, slot: Slot, session: Session) -> None:
        self._storage.write(slot, session)
        self._catalog.http.set_token(slot, session.access_token)

    def remove_token(self, slot: Slot) -> None:
        self._storage.clear(slot)
        self._catalog.http.set_token(slot, None)

    def is_expired(self, session: Session) -> bool:
        return session.is_expired(self._clock())

    def is_authenticated(self, slot: Slot) -> bool:
        session = self.get_token(slot)
        return session is not None and not self.is_expired(session)

    def add_logout_handler(self, handler: LogoutHandler) -> Callable[[], None]:
        """Register a callback run on logout. Returns a cleanup function."""
        self._logout_handlers.append(handler)
        def remove() -> None:
            try:
                self._logout_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def logout(self, slot: Slot) -> None:
        self.remove_token(slot)
        logger.info(f"Logged out of {slot} slot")
        for handler in list(self._logout_handlers):
            handler(slot)

    async def ensure_valid(self, slot: Slot, force: bool = False) -> Session:
        """Return a usable session for slot. With force, refresh it even if it
        has not expired yet, e.g. after the server rejected it."""
        session = self.get_token(slot)
        if session is None:
            await self.authorize(slot)
        if not force and not self.is_expired(session):
            self._catalog.http.set_token(slot, session.access_token)
            return session

        task = self._refreshing.get(slot)
        if task is None:
            task = asyncio.ensure_future(self._refresh(slot, session))
            self._refreshing[slot] = task
            task.add_done_callback(lambda t: self._forget_refresh(slot, t))
        # Shield so one caller's cancellation does not abort the shared refresh
        return await asyncio.shield(task)

    async def authorized(self, slot: Slot, call: Callable[[], Awaitable[T]]) -> T:
        """Run call with a valid credential. A 401 forces one refresh and a single retry."""
        session = await self.ensure_valid(slot)
        try:
            return await call()
        except AuthExpiredError as e:
            logger.info(f"{slot} token rejected ({e}), refreshing and retrying once")
        # Another caller may already have replaced the rejected token
        current = self.get_token(slot)
        await self.ensure_valid(slot, force=current is not None and current.access_token == session.access_token)
        return await call()

    def _forget_refresh(self, slot: Slot, task: asyncio.Task) -> None:
        if self._refreshing.get(slot) is task:
            del self._refreshing[slot]

    async def _refresh(self, slot: Slot, session: Session) -> Session:
        if not session.refresh_token:
            self.remove_token(slot)
            await self.authorize(slot)
        try:
            refreshed = await self._catalog.refresh(slot, session.refresh_token)
        except BridgeError as e:
            logger.warning(f"Token refresh failed for {slot} slot: {e}")
            self.remove_token(slot)
            await self.authorize(slot)
        refreshed = refreshed.model_copy(update={
            "created_at": self.now(),
            "refresh_token": refreshed.refresh_token or session.refresh_token,
        })
        self.set_token(slot, refreshed)
        logger.info(f"Refreshed {slot} token, valid for {refreshed.expires_in}s")
        return refreshed

    async def exchange(self, slot: Slot, authorization_code: str) -> Session:
        """Complete the redirect flow: store the session obtained for the code."""
        session = await self._catalog.exchange_code(slot, authorization_code)
        session = session.model_copy(update={"created_at": self.now()})
        self.set_token(slot, session)
        logger.info(f"Authorized {slot} slot")
        return session

    async def authorize(self, slot: Slot) -> NoReturn:
        """Start the redirect flow. Always raises AuthRequiredError."""
        try:
            url = await self._catalog.authorize(slot)
        except RemoteApiError as e:
            raise AuthRequiredError(slot, f"Authorization required for {slot} slot ({e})") from e
        self._redirect(slot, url)
        raise AuthRequiredError(slot, url=url)
