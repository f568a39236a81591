"""Current user identity and network origin."""

from collections.abc import Callable

from pydantic import BaseModel, Field

from chronicle.audit.errors import ConfigurationError
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)


class Principal(BaseModel):
    """The acting user as seen by the host application."""

    name: str | None = Field(default=None, description="User identifier")
    roles: list[str] = Field(default_factory=list, description="Granted roles")


PrincipalAccessor = Callable[[], Principal | None]
IPAccessor = Callable[[], str | None]


class ActorResolver:
    """Resolves the acting user and their network origin.

    The host application registers its accessors once at startup with
    ``initialize()``. Asking for identity before that is a configuration
    error; accessor failures only yield ``None``.
    """

    def __init__(self) -> None:
        self._get_principal: PrincipalAccessor | None = None
        self._get_ip: IPAccessor | None = None

    def initialize(self, get_principal: PrincipalAccessor, get_ip: IPAccessor) -> None:
        self._get_principal = get_principal
        self._get_ip = get_ip

    @property
    def is_initialized(self) -> bool:
        return self._get_principal is not None and self._get_ip is not None

    def current_user_ip(self) -> str | None:
        """Network origin of the current caller."""
        if self._get_ip is None:
            raise ConfigurationError("The user info accessors are not set.")

        try:
            return self._get_ip()
        except Exception as e:
            logger.debug("current_user_ip_unavailable", error=str(e))
            return None

    def user_id_of(self, principal: Principal | None) -> str | None:
        if principal is None:
            return None
        return principal.name

    def current_user_id(self) -> str | None:
        """Identifier of the current user."""
        if self._get_principal is None:
            raise ConfigurationError("The user info accessors are not set.")

        try:
            return self.user_id_of(self._get_principal())
        except Exception as e:
            logger.debug("current_user_id_unavailable", error=str(e))
            return None
