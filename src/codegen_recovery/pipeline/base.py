"""Base protocol for pipeline handlers."""

from typing import Protocol, TypeVar

from codegen_recovery.core.types import Result
from codegen_recovery.exceptions import CodegenRecoveryError

# Contravariant input (handlers can accept supertypes), invariant output
T_In = TypeVar("T_In", contravariant=True)
T_Out = TypeVar("T_Out")
T_Error = TypeVar("T_Error", bound=CodegenRecoveryError)


class BaseHandler(Protocol[T_In, T_Out, T_Error]):
    """Protocol for synchronous pipeline handlers.

    Each handler performs a single transformation and reports expected
    failures as a `Failure` value rather than raising.
    """

    def handle(self, command: T_In) -> Result[T_Out, T_Error]:
        """Process one input.

        Args:
            command: The input for this stage.

        Returns:
            A Result object containing either the output or an error.
        """
        ...
