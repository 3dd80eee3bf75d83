"""
Studio Telemetry
================
Process-wide emitter that fans structured stage events (keyword research,
listing copy, scene images, video polling) out to every connected
``/ws/telemetry`` WebSocket so the browser can show live progress.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional
import asyncio


class TelemetryEmitter:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(TelemetryEmitter, cls).__new__(cls)
            cls._instance.queues = []
        return cls._instance

    def subscribe(self) -> asyncio.Queue:
        """Called by the WebSocket handler to start receiving events."""
        q = asyncio.Queue()
        self.queues.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue):
        if q in self.queues:
            self.queues.remove(q)

    def emit(self, agent: str, action: str, data: Optional[Dict[str, Any]] = None):
        """Broadcast an event to all subscribers. Never raises."""
        if not self.queues:
            return

        msg = json.dumps({
            "type": "studio_telemetry",
            "agent": agent,
            "action": action,
            "data": data or {},
            "timestamp": datetime.now().isoformat(),
        }, default=str)
        for q in list(self.queues):
            try:
                q.put_nowait(msg)
            except asyncio.QueueFull:
                pass


# Global singleton instance
emitter = TelemetryEmitter()


def emit_telemetry(agent: str, action: str, data: Optional[Dict[str, Any]] = None):
    """Convenience function for agents to fire events."""
    emitter.emit(agent, action, data)
