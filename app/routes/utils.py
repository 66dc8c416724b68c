from uuid import UUID

from fastapi import HTTPException, status


def validate_id(value: str, label: str) -> str:
    """ Normalized UUID string, or a 400 naming the offending id """
    try:
        return str(UUID(str(value)))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label} ID")


def ensure_owner(owner_id: str, user_id: str, detail: str) -> None:
    if str(owner_id) != str(user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def success(data=None, **extra) -> dict:
    response = {"success": True}
    if data is not None:
        response["data"] = data
    response.update(extra)
    return response
