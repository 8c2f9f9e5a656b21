"""Request-scoped native gate helpers for FastAPI and Starlette.

Usage::

    @app.get("/dashboard")
    def dashboard(gate: NativeRequestGate = Depends(native_request_gate)):
        if gate.native_feature("bottom_tabs"):
            ...
"""

from __future__ import annotations

from typing import Any, Hashable, Optional

from fastapi import Request

from native_gate.extractor import Platform
from native_gate.gates import GateRegistry, get_gate_registry
from native_gate.versioning import VersionLike


class NativeRequestGate:
    """Native gate checks bound to one request's User-Agent.

    Args:
        user_agent: Identification string for the request, or None.
        registry: Gate registry (defaults to the process-wide one).
        context: Object whose methods back delegate rules.
    """

    def __init__(
        self,
        user_agent: Optional[str],
        registry: Optional[GateRegistry] = None,
        context: Any = None,
    ) -> None:
        self.user_agent = user_agent
        self.registry = registry if registry is not None else get_gate_registry()
        self.context = context

    @classmethod
    def from_request(
        cls,
        request: Request,
        registry: Optional[GateRegistry] = None,
        context: Any = None,
    ) -> "NativeRequestGate":
        return cls(request.headers.get("user-agent"), registry=registry, context=context)

    @property
    def platform(self) -> Platform:
        return self.registry.platform_of(self.user_agent)

    def native_feature(self, name: Hashable) -> Any:
        """Check whether ``name`` is enabled for this request."""
        return self.registry.is_enabled(name, self.user_agent, context=self.context)

    def native_ios(self, min_version: Optional[VersionLike] = None) -> bool:
        return self.registry.is_ios(self.user_agent, min_version)

    def native_android(self, min_version: Optional[VersionLike] = None) -> bool:
        return self.registry.is_android(self.user_agent, min_version)


def native_request_gate(request: Request) -> NativeRequestGate:
    """FastAPI dependency returning a gate for the current request.

    Delegate rules resolve against ``request.state.native_gate_context``
    when set, otherwise against predicates on the registry.
    """
    context = getattr(request.state, "native_gate_context", None)
    return NativeRequestGate.from_request(request, context=context)
