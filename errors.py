from typing import Optional

import grpc
from google.api_core.exceptions import GoogleAPICallError

NOT_FOUND = grpc.StatusCode.NOT_FOUND.value[0]  # 5


class MisuseError(ValueError):
    """
    Raised synchronously when the API is called with arguments that can never
    produce a valid request (e.g. a subscription without a name).
    """


def status_code(err: BaseException) -> Optional[int]:
    if isinstance(err, GoogleAPICallError) and err.grpc_status_code is not None:
        return err.grpc_status_code.value[0]
    return None


def is_not_found(err: BaseException) -> bool:
    return status_code(err) == NOT_FOUND
