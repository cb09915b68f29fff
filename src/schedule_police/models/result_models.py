import typing

import pydantic

DataT = typing.TypeVar("DataT")


class OperationResult(pydantic.BaseModel, typing.Generic[DataT]):
    """Uniform outcome of a command or API operation."""

    success: bool
    message: str
    data: typing.Optional[DataT] = None

    @classmethod
    def ok(cls, message: str, data: typing.Optional[DataT] = None) -> "OperationResult[DataT]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str) -> "OperationResult[DataT]":
        return cls(success=False, message=message)
