from fastapi import APIRouter, Request, Response

router = APIRouter(tags=["sitemap"])


@router.get("/sitemap.xml")
async def get_sitemap(request: Request) -> Response:
    """Serve the sitemap of locale pages and report files.

    Args:
        request (Request): FastAPI request (provides app.state.sitemap_service).

    Returns:
        Response: The sitemap XML, cacheable for one hour.
    """
    sitemap_service = request.app.state.sitemap_service
    sitemap = await sitemap_service.do_build_sitemap()
    return Response(
        content=sitemap,
        media_type="application/xml",
        headers={"Cache-Control": "public, max-age=3600, s-maxage=3600"},
    )
