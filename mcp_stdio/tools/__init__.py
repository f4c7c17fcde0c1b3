"""Builtin system tools."""
from typing import List

from ..mcp_handler import ToolRegistration
from .cpu import CPU_DEFINITION, cpu_status
from .echo import ECHO_DEFINITION, echo


def default_tools() -> List[ToolRegistration]:
    """Builtin tool registrations, in listing order."""
    return [
        ToolRegistration(definition=ECHO_DEFINITION, handler=echo),
        ToolRegistration(definition=CPU_DEFINITION, handler=cpu_status),
    ]


__all__ = ["default_tools", "echo", "cpu_status"]
