"""Execution result containing captured output and its receipt."""

from pydantic import BaseModel, ConfigDict

from plasm.kernel.receipt import Receipt


class Result(BaseModel):
    """Captured output of one execution plus the receipt that proves it."""
    stdout: str
    stderr: str
    receipt: Receipt

    model_config = ConfigDict(frozen=True)

    @property
    def exit_code(self) -> int:
        return self.receipt.exit_code

    @property
    def success(self) -> bool:
        return self.receipt.is_success
