from fastapi import APIRouter, BackgroundTasks, Request, Response

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{file_path:path}")
async def get_file(
    request: Request,
    file_path: str,
    background_tasks: BackgroundTasks,
) -> Response:
    """Serve a report PDF by its logical path, from cache or from the file host.

    Args:
        request (Request): FastAPI request (provides app.state.file_proxy_service).
        file_path (str): The logical file path below /files/, percent-decoded once by the router.
        background_tasks (BackgroundTasks): Runs the cache recency refresh after the response.

    Returns:
        Response: The PDF, a 302 redirect to the share link, or a plain-text error.
    """
    proxy_service = request.app.state.file_proxy_service
    result = await proxy_service.do_serve(file_path)
    if result.from_cache:
        background_tasks.add_task(proxy_service.do_refresh_cache, file_path, result.content)
    return Response(
        content=result.content,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )
