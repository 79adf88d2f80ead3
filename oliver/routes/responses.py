from fastapi import Response, status

from oliver.schemas.operations import OperationResult


def respond(result: OperationResult, response: Response) -> OperationResult:
    """Failed operations keep their notification body but answer 400."""
    if not result.success:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return result
