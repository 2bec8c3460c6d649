"""Route animation and video export package."""

from .config import AspectRatio, ExportConfig, ExportDocument, VehicleType, Waypoint, load_config
from .exporter import Completed, ExportJob, ExportOrchestrator, Failed, Idle, Rendering

__all__ = [
    "AspectRatio",
    "Completed",
    "ExportConfig",
    "ExportDocument",
    "ExportJob",
    "ExportOrchestrator",
    "Failed",
    "Idle",
    "Rendering",
    "VehicleType",
    "Waypoint",
    "load_config",
]
