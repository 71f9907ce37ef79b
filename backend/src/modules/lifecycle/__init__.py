from .controller import DocumentLifecycleController
from .dispatcher import AnalysisDispatcher

__all__ = ["AnalysisDispatcher", "DocumentLifecycleController"]
