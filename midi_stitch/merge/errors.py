from __future__ import annotations


class CombineError(ValueError):
    """Base class for every error that aborts a merge run."""


class EmptyInputError(CombineError):
    def __init__(self) -> None:
        super().__init__("No MIDI files to combine!")


class MalformedResolutionError(CombineError):
    def __init__(self, ppq: int, input_name: str | None = None) -> None:
        self.ppq = ppq
        self.input_name = input_name
        where = f" for file: {input_name}" if input_name else ""
        super().__init__(f"resolution must be > 0, got {ppq}{where}")


class NoAdvancingEventsError(CombineError):
    def __init__(self, input_name: str) -> None:
        self.input_name = input_name
        super().__init__(f"No notes found in file or could not advance ticks for file: {input_name}")
