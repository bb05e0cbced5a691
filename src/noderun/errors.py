from __future__ import annotations

from typing import Iterable, Optional


class BuildConfigurationError(ValueError):
    """Analysis-time error: the target is misconfigured, nothing has run."""


class ExecutableReferenceError(BuildConfigurationError, TypeError):
    pass


class ModuleRootConflictError(BuildConfigurationError):
    def __init__(self, first: str, second: str) -> None:
        self.roots = (first, second)
        super().__init__(
            "All npm dependencies need to come from a single workspace. "
            f"Found '{first}' and '{second}'."
        )


class ModuleMappingConflictError(BuildConfigurationError):
    def __init__(self, name: str, existing: str, conflicting: str) -> None:
        self.name = name
        super().__init__(
            f"Conflicting module mapping for '{name}': "
            f"'{existing}' and '{conflicting}'."
        )


class ActionFailedError(RuntimeError):
    """Raised by the local engine when an action exits non-zero or drops outputs."""

    def __init__(
        self,
        mnemonic: str,
        returncode: int,
        missing_outputs: Optional[Iterable[str]] = None,
    ) -> None:
        self.mnemonic = mnemonic
        self.returncode = returncode
        self.missing_outputs = list(missing_outputs or [])

        msg = f"{mnemonic} failed with exit code {returncode}"
        if self.missing_outputs:
            msg += f"; missing outputs: {', '.join(self.missing_outputs)}"
        super().__init__(msg)
