from typing import Any, Optional, Protocol


class AppHooks(Protocol):
    """
    Protocol for application hooks receiving progress from long computations.

    Methods:
        report_step(info, target, reset_counter, plus_step) -> None:
            Report progress of a batch computation.
        update_key_value(key, value) -> None:
            Report a summary value once a computation finishes.
    """
    def report_step(self, info: Optional[str] = None, target: Optional[int] = None, reset_counter: bool = False, plus_step: int = 1) -> None:
        """
        Report progress of a batch computation.

        Args:
            info (str): Progress message.
            target (int): Total number of steps, when starting a batch.
            reset_counter (bool): Start counting from zero.
            plus_step (int): Steps completed since the last report.
        """
        pass

    def update_key_value(self, key: str, value: Any) -> None:
        """
        Report a status update with a key-value pair.

        Args:
            key (str): Status key.
            value: Status value.
        """
        pass
