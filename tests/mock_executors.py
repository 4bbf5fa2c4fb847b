import inspect
import logging
from collections import deque
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Iterable,
    NamedTuple,
    Optional,
    Tuple,
    TypeAlias,
)

from citrex_sdk.executors import ChainExecutor, HttpExecutor
from citrex_sdk.executors.interface import HttpResponse

log = logging.getLogger(__name__)

TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class MockExecutorException(Exception):
    pass


class InputPack(NamedTuple):
    function_name: str
    arg_pack: Tuple


class MockOutput:
    pass


class MockValidationFailure(MockExecutorException):
    input_pack: InputPack
    message: str


class MockOutputExhausted(MockExecutorException):
    input_pack: InputPack


class MockOutputNotExhausted(MockExecutorException):
    remaining_staged_outputs: deque[MockOutput]


# returns false or raises MockValidationFailure on error
InputValidation: TypeAlias = Callable[[InputPack], bool]


@dataclass
class MockExceptionOutput(MockOutput):
    exception: Exception
    call_validation: InputValidation | None = None


@dataclass
class MockSuccessfulOutput(MockOutput):
    output: Any
    call_validation: InputValidation | None = None


class _StagedMock:
    def __init__(self):
        self.call_log: list[InputPack] = []
        self.staged_outputs: deque[MockOutput] = deque()

    def stage_output(self, output: MockOutput | Iterable[MockOutput]) -> None:
        """Stage an output to be returned by the next call."""
        if isinstance(output, Iterable):
            self.staged_outputs.extend(output)
        else:
            self.staged_outputs.append(output)

    def _execute_mock(self, input_pack: InputPack) -> Any:
        """Execute a mock operation with the given input pack."""
        self.call_log.append(input_pack)
        if not self.staged_outputs:
            raise MockOutputExhausted(input_pack)
        output = self.staged_outputs.popleft()
        if output.call_validation is not None and not output.call_validation(
            input_pack
        ):
            raise MockValidationFailure(input_pack, "Validation failed")
        if isinstance(output, MockExceptionOutput):
            raise output.exception
        elif isinstance(output, MockSuccessfulOutput):
            return output.output
        raise MockExecutorException(f"Unexpected staged mock {output=}")


class MockHttpExecutor(_StagedMock, HttpExecutor):
    def __init__(self):
        super().__init__()
        self.api_url = "https://api.gaierror.xyz/v1"
        self.closed = False

    async def send_request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
    ) -> HttpResponse:
        input_pack = InputPack(inspect.stack()[0].function, (method, path, json))
        return self._execute_mock(input_pack)

    async def close(self) -> None:
        self.closed = True


class MockChainExecutor(_StagedMock, ChainExecutor):
    def __init__(self, address: str = TEST_ADDRESS):
        super().__init__()
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        input_pack = InputPack(inspect.stack()[0].function, (token, owner, spender))
        return self._execute_mock(input_pack)

    async def approve(self, token: str, spender: str, amount: int) -> str:
        input_pack = InputPack(inspect.stack()[0].function, (token, spender, amount))
        return self._execute_mock(input_pack)

    async def deposit(
        self,
        vault: str,
        account: str,
        sub_account_id: int,
        amount: int,
        asset: str,
    ) -> str:
        input_pack = InputPack(
            inspect.stack()[0].function,
            (vault, account, sub_account_id, amount, asset),
        )
        return self._execute_mock(input_pack)

    async def get_transaction_receipt(self, transaction_hash: str) -> dict[str, Any]:
        input_pack = InputPack(inspect.stack()[0].function, (transaction_hash,))
        return self._execute_mock(input_pack)
