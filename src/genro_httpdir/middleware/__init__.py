# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Middleware wrapped around ``DirectoryServer.dispatch``.

Each middleware class registers itself under ``middleware_name`` when it is
defined. ``middleware_chain`` switches registered classes on or off from the
``middleware`` config section and wraps them around the dispatcher, lowest
``middleware_order`` outermost:

    ======  ========  =======  ==========================================
    order   name      default  module
    ======  ========  =======  ==========================================
    50      logging   off      access log with reason phrase and mount
    100     errors    on       exceptions to plain-text responses
    ======  ========  =======  ==========================================

config.yaml::

    middleware:
      logging: on

    errors_middleware:
      debug: true
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

MIDDLEWARE_REGISTRY: dict[str, type[BaseMiddleware]] = {}

SWITCH_ON = frozenset({"on", "true", "yes", "1"})


class BaseMiddleware:
    """ASGI middleware wrapping the next app of the chain.

    Subclasses set ``middleware_name``, ``middleware_order`` and
    ``middleware_default`` and implement ``__call__``. Keyword options come
    from the ``<name>_middleware`` config section.
    """

    middleware_name: ClassVar[str] = ""
    middleware_order: ClassVar[int] = 500
    middleware_default: ClassVar[bool] = False

    __slots__ = ("app",)

    def __init__(self, app: ASGIApp, **options: Any) -> None:
        self.app = app

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        name = cls.middleware_name or cls.__name__
        if name in MIDDLEWARE_REGISTRY:
            raise ValueError(f"Middleware name '{name}' already registered")
        cls.middleware_name = name
        MIDDLEWARE_REGISTRY[name] = cls

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        raise NotImplementedError


def _is_on(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() in SWITCH_ON
    return bool(value)


def _switches(middleware_config: Any) -> dict[str, bool]:
    """Normalize the middleware section to ``{name: enabled}``."""
    if not middleware_config:
        return {}
    if hasattr(middleware_config, "as_dict"):
        middleware_config = middleware_config.as_dict()
    if isinstance(middleware_config, str):
        names: Iterable[str] = (n.strip() for n in middleware_config.split(","))
        return {name: True for name in names if name}
    if isinstance(middleware_config, Mapping):
        return {name: _is_on(value) for name, value in middleware_config.items()}
    return {name: True for name in middleware_config}


def _options(name: str, full_config: Any) -> dict[str, Any]:
    """Return the ``<name>_middleware`` section as keyword options."""
    if full_config is None:
        return {}
    key = f"{name}_middleware"
    section = full_config.get(key) if isinstance(full_config, Mapping) else full_config[key]
    if section is None:
        return {}
    if hasattr(section, "as_dict"):
        section = section.as_dict()
    return dict(section)


def middleware_chain(middleware_config: Any, app: ASGIApp, full_config: Any = None) -> ASGIApp:
    """
    Wrap app with the enabled middleware.

    Args:
        middleware_config: ``{name: on/off}`` mapping (or SmartOptions), list
            of names, comma-separated string, or None for the defaults.
        app: Innermost ASGI app, usually ``DirectoryServer.dispatch``.
        full_config: Mapping or ServerConfig holding ``<name>_middleware``
            option sections.

    Raises:
        ValueError: A configured name is not registered.
    """
    switches = _switches(middleware_config)
    unknown = sorted(set(switches) - set(MIDDLEWARE_REGISTRY))
    if unknown:
        raise ValueError(f"Unknown middleware: {', '.join(unknown)}")

    enabled = [
        cls
        for name, cls in MIDDLEWARE_REGISTRY.items()
        if switches.get(name, cls.middleware_default)
    ]
    # innermost first, so the lowest order ends up outermost
    for cls in sorted(enabled, key=lambda c: c.middleware_order, reverse=True):
        app = cls(app, **_options(cls.middleware_name, full_config))
    return app


from .errors import ErrorMiddleware  # noqa: E402
from .logging import AccessLogMiddleware  # noqa: E402

__all__ = [
    "AccessLogMiddleware",
    "BaseMiddleware",
    "ErrorMiddleware",
    "MIDDLEWARE_REGISTRY",
    "middleware_chain",
]
