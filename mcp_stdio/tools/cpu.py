"""cpu_status: load averages and sampled CPU utilization from /proc."""
import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Tuple

from ..mcp_handler import ToolDefinition
from ..mcp_types import CallToolResult, text_content
from ..utils.errors import ToolExecutionError

logger = logging.getLogger(__name__)

CPU_SAMPLE_WINDOW = 0.25  # seconds

LOADAVG_PATH = Path("/proc/loadavg")
STAT_PATH = Path("/proc/stat")

CPU_DEFINITION = ToolDefinition(
    name="cpu_status",
    description="Report CPU load averages and recent utilization.",
    input_schema={
        "type": "object",
        "description": "Optional parameters (currently unused).",
        "additionalProperties": False,
    },
)


def ensure_no_arguments(arguments: Any) -> None:
    """Accept absent, null or empty-object arguments only."""
    if arguments is None:
        return
    if not isinstance(arguments, dict):
        raise ToolExecutionError("invalid arguments: expected an object")
    if arguments:
        raise ToolExecutionError("cpu_status does not accept arguments")


def read_load_averages(path: Path = LOADAVG_PATH) -> Tuple[float, float, float]:
    try:
        data = path.read_text()
    except OSError as e:
        raise ToolExecutionError(f"read {path}: {e}") from e

    fields = data.split()
    if len(fields) < 3:
        raise ToolExecutionError(f"unexpected {path} format")

    try:
        return float(fields[0]), float(fields[1]), float(fields[2])
    except ValueError as e:
        raise ToolExecutionError(f"parse load average: {e}") from e


def read_cpu_times(path: Path = STAT_PATH) -> Tuple[int, int]:
    """Return (idle, total) jiffies from the aggregate ``cpu`` line."""
    try:
        data = path.read_text()
    except OSError as e:
        raise ToolExecutionError(f"read {path}: {e}") from e

    fields = data.split("\n", 1)[0].split()
    if len(fields) < 5 or fields[0] != "cpu":
        raise ToolExecutionError(f"unexpected {path} format")

    total = 0
    idle = 0
    for idx, value in enumerate(fields[1:]):
        try:
            parsed = int(value)
        except ValueError as e:
            raise ToolExecutionError(f"parse {path} field: {e}") from e
        total += parsed
        # idle and iowait
        if idx in (3, 4):
            idle += parsed

    return idle, total


async def sample_cpu_usage(window: float = CPU_SAMPLE_WINDOW) -> float:
    """Utilization in [0, 1] over ``window`` seconds.

    The wait is an ordinary await, so cancelling the calling task ends the
    sample immediately.
    """
    idle1, total1 = read_cpu_times()

    if window <= 0:
        window = CPU_SAMPLE_WINDOW
    await asyncio.sleep(window)

    idle2, total2 = read_cpu_times()

    total_delta = total2 - total1
    idle_delta = idle2 - idle1
    if total_delta == 0:
        return 0.0

    usage = 1 - idle_delta / total_delta
    return min(max(usage, 0.0), 1.0)


async def cpu_status(arguments: Any) -> CallToolResult:
    ensure_no_arguments(arguments)

    load_avg = read_load_averages()
    usage = await sample_cpu_usage(CPU_SAMPLE_WINDOW)
    logger.debug(f"Sampled CPU utilization: {usage:.4f}")

    text = (
        f"CPU cores: {os.cpu_count()}\n"
        f"Load average (1m, 5m, 15m): {load_avg[0]:.2f} {load_avg[1]:.2f} {load_avg[2]:.2f}\n"
        f"Sampled utilization: {usage * 100:.2f}% over {int(CPU_SAMPLE_WINDOW * 1000)}ms"
    )
    return CallToolResult(content=[text_content(text)])
