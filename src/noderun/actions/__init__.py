"""
Action planning and execution.

Exports the public API:
- RuleContext, BuildConfiguration, ExecutableBinding, File, Label
- ActionSubmission, RecordingEngine, LocalEngine
- run_node
"""
from .context import Actions, BuildConfiguration, ExecutableBinding, File, Label, RuleContext
from .engine import ActionSubmission, ExecutionEngine, RecordingEngine
from .local import LocalEngine
from .run_node import run_node
