from typing import Any, Optional

from oliver.schemas.operations import Notification, NotificationVariant, OperationResult


def succeeded(title: str, description: str, data: Optional[dict[str, Any]] = None) -> OperationResult:
    return OperationResult(
        success=True,
        notification=Notification(title=title, description=description),
        data=data,
    )


def failed(title: str, description: str, data: Optional[dict[str, Any]] = None) -> OperationResult:
    return OperationResult(
        success=False,
        notification=Notification(title=title, description=description, variant=NotificationVariant.ERROR),
        data=data,
    )
