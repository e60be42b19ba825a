from typing import Any


def ok_data(data: Any, message: str = "success"):
    return {"code": "OK", "message": message, "data": data}
