"""Error codes and exception type for the live API surface."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class LiveErrorCode(str, Enum):
    E_VALIDATION = "E_VALIDATION"
    E_NO_SESSION = "E_NO_SESSION"
    E_STORE_UNAVAILABLE = "E_STORE_UNAVAILABLE"
    E_INTERNAL = "E_INTERNAL"


class LiveStatusCode(IntEnum):
    # Game clients treat anything but 200 as a transport failure.
    OK = 200
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500


class LiveError(Exception):
    """Raised by handlers that cannot build a success envelope.

    The exception handler answers with an error envelope at `status_code`
    (200 on the live surface) and logs `errmesg` together with the caller
    captured at raise time.
    """

    def __init__(
        self,
        errcode: LiveErrorCode | str = LiveErrorCode.E_INTERNAL,
        errmesg: str = "We are sorry, an error occurred.",
        *,
        status_code: int = LiveStatusCode.OK,
    ):
        self.errcode = errcode.value if isinstance(errcode, LiveErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.erresid = uuid4().hex[:10]
        self.status_code = int(status_code)

        caller_frame = inspect.stack()[1]
        module = inspect.getmodule(caller_frame.frame)
        module_name = module.__name__ if module else caller_frame.filename
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

        super().__init__(f"{self.errcode}: {errmesg}")


class StoreUnavailable(Exception):
    """Connection or query failure inside the persistence adapter."""
