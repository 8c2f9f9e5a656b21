"""Web framework integrations."""

from native_gate.integrations.fastapi import NativeRequestGate, native_request_gate

__all__ = ["NativeRequestGate", "native_request_gate"]
