from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from finvision.resolution.orchestrator import AssetResolver
from finvision.resolution.session import get_resolver
from finvision.schemas.asset import AssetIdentity
from finvision.schemas.dashboard import AssetOption, DashboardState, SelectRequest

router = APIRouter()


def _require_image(upload: UploadFile) -> str:
    mime_type = (upload.content_type or "").strip().lower()
    if not mime_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Upload must be an image file."},
        )
    return mime_type


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/assets", response_model=list[AssetOption])
def list_assets() -> list[AssetOption]:
    return [
        AssetOption(identity=identity, label=identity.value, standard=identity.is_standard)
        for identity in AssetIdentity
    ]


@router.get("/dashboard", response_model=DashboardState)
async def get_dashboard(resolver: AssetResolver = Depends(get_resolver)) -> DashboardState:
    return resolver.state()


@router.post("/dashboard/select", response_model=DashboardState)
async def select_asset(
    payload: SelectRequest, resolver: AssetResolver = Depends(get_resolver)
) -> DashboardState:
    resolver.select(payload.identity)
    return await resolver.resolve()


@router.post("/dashboard/refresh", response_model=DashboardState)
async def refresh_asset(resolver: AssetResolver = Depends(get_resolver)) -> DashboardState:
    if resolver.is_fetching(resolver.selection):
        # Already refreshing; report the pending state instead of queueing more work.
        return resolver.state()
    return await resolver.refresh()


@router.post("/dashboard/analyze", response_model=DashboardState)
async def analyze_chart(
    file: UploadFile = File(...), resolver: AssetResolver = Depends(get_resolver)
) -> DashboardState:
    mime_type = _require_image(file)
    data = await file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Uploaded file is empty."},
        )
    return await resolver.analyze_image(data, mime_type)
