from starlette.responses import Response

RSS_MEDIA_TYPE = "application/rss+xml"
INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def rss_response(document: str) -> Response:
    return Response(content=document, media_type=RSS_MEDIA_TYPE)


def error_response(code: str, message: str, trace_id: str, status: int = 400, details: dict | None = None) -> tuple[dict, int]:
    return (
        {
            "data": None,
            "error": {
                "code": code,
                "message": message,
                "trace_id": trace_id,
                "details": details or {},
            },
            "meta": {},
        },
        status,
    )
