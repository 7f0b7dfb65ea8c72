from typing import Any, Dict, List


def paginated_response(items: List[Any], pagination: Dict[str, int], message: str = "Success") -> Dict[str, Any]:
    """
    Standard paginated response envelope.
    """
    return {
        "message": message,
        "data": items,
        "meta": {
            "total": pagination["total"],
            "page": pagination["page"],
            "size": pagination["size"],
            "total_pages": pagination["total_pages"],
        },
    }
