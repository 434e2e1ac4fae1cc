"""A miniature HTTP-style router mapping (verb, exact path) to actions."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from proctree.errors import UnsupportedVerb

logger = logging.getLogger(__name__)

NOT_FOUND = "404 Not Found"

Action = Callable[[], str]


class Verb(Enum):
    """Supported request verbs."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: "Verb | str") -> "Verb":
        """Return the Verb for ``value``, ignoring case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                pass
        raise UnsupportedVerb(value)


@dataclass(slots=True, frozen=True)
class Route:
    """A registered action for one verb and path."""

    verb: Verb
    path: str
    action: Action


class RouteTable:
    """
    Two-level lookup table: verb, then exact path.

    Paths are compared as plain strings; there is no normalization, no
    trailing-slash handling and no pattern syntax. Registering the same verb
    and path twice replaces the earlier action.
    """

    def __init__(self) -> None:
        self._routes: dict[Verb, dict[str, Action]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(paths) for paths in self._routes.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        verb, path = key
        try:
            return self.lookup(verb, path) is not None
        except UnsupportedVerb:
            return False

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def register(self, verb: Verb | str, path: str, action: Action) -> None:
        """Register ``action`` for ``verb`` and ``path``, replacing any previous one."""
        verb = Verb.parse(verb)
        logger.info("Registering %s %s", verb.value, path)
        with self._lock:
            paths = self._routes.get(verb)
            if paths is None:
                paths = self._routes[verb] = {}
            paths[path] = action

    def route(self, verb: Verb | str, path: str) -> Callable[[Action], Action]:
        """Decorator form of :meth:`register`."""
        verb = Verb.parse(verb)

        def decorator(action: Action) -> Action:
            self.register(verb, path, action)
            return action

        return decorator

    def lookup(self, verb: Verb | str, path: str) -> Route | None:
        """Return the route for ``verb`` and ``path``, or None."""
        verb = Verb.parse(verb)
        with self._lock:
            action = self._routes.get(verb, {}).get(path)
        if action is None:
            return None
        return Route(verb, path, action)

    def routes(self) -> list[Route]:
        """All registered routes, ordered by verb then path."""
        order = list(Verb)
        with self._lock:
            routes = [
                Route(verb, path, action)
                for verb, paths in self._routes.items()
                for path, action in paths.items()
            ]
        return sorted(routes, key=lambda r: (order.index(r.verb), r.path))

    def dispatch(self, verb: Verb | str, path: str) -> str:
        """
        Invoke the action registered for ``verb`` and ``path``.

        The verb is matched case-insensitively and the path exactly. An
        unknown verb or unregistered path returns NOT_FOUND.
        """
        try:
            route = self.lookup(verb, path)
        except UnsupportedVerb:
            route = None

        if route is None:
            logger.debug("No route matched: %s %s", verb, path)
            return NOT_FOUND

        logger.debug("Matched route: %s %s", route.verb.value, path)
        return route.action()


def demo_table() -> RouteTable:
    """Build the demonstration route table."""
    table = RouteTable()
    table.register(Verb.GET, "/", lambda: "Hello from the home page!")
    table.register(Verb.GET, "/about", lambda: "This is the about page.")
    table.register(Verb.POST, "/submit", lambda: "Data received successfully via POST!")
    table.register(Verb.DELETE, "/item/1", lambda: "Item 1 deleted successfully.")
    table.register(Verb.GET, "/status", lambda: "Current status: All systems nominal (GET request).")
    table.register(Verb.POST, "/status", lambda: "Attempting to update status... (POST request).")
    return table


# PUT / is never registered and falls through to NOT_FOUND.
DEMO_REQUESTS: list[tuple[str, str]] = [
    ("GET", "/"),
    ("GET", "/about"),
    ("POST", "/submit"),
    ("DELETE", "/item/1"),
    ("GET", "/status"),
    ("POST", "/status"),
    ("GET", "/contact"),
    ("PUT", "/"),
]
