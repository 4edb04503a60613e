"""Resume point kept on the remote"""
from .resume import ResumePointStore, marker_path

__all__ = ["ResumePointStore", "marker_path"]
