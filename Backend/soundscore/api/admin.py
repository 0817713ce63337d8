import logging
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.exceptions import NotFoundException
from soundscore.core.rate_limit import rate_limit
from soundscore.core.security import csrf_protect, get_admin_user
from soundscore.models.release import ReleaseType
from soundscore.models.report import ReportStatus
from soundscore.models.user import User
from soundscore.schemas.collection import CollectionResponse
from soundscore.schemas.import_log import DeezerImportRequest, ImportLogResponse, ImportResult, ImportStats
from soundscore.schemas.release import ReleasePage
from soundscore.schemas.report import AdminReportResponse, ReportResponse, ReportStatusUpdate
from soundscore.services.collection_service import CollectionService
from soundscore.services.comment_service import CommentService
from soundscore.services.database import get_db
from soundscore.services.deezer import DeezerService, get_deezer_service
from soundscore.services.import_service import ImportService
from soundscore.services.release_service import ReleaseService
from soundscore.services.report_service import ReportService

logger = logging.getLogger(__name__)

# Every admin route needs an admin session and, for writes, a CSRF token
router = APIRouter(dependencies=[Depends(get_admin_user), Depends(csrf_protect)])


@router.get("/releases", response_model=ReleasePage)
async def admin_list_releases(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    type: Optional[ReleaseType] = None,
    artist: Optional[str] = Query(None, max_length=100),
    sort_by: Literal["created_at", "title", "artist", "release_date", "rating"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    show_test_data: bool = True,
    db: AsyncSession = Depends(get_db)
):
    return await ReleaseService(db).list_admin(
        page=page,
        limit=limit,
        search=search,
        release_type=type.value if type else None,
        artist=artist,
        sort_by=sort_by,
        sort_order=sort_order,
        show_test_data=show_test_data
    )

@router.get("/reports", response_model=List[AdminReportResponse])
async def admin_list_reports(
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db)
):
    return await ReportService(db).list_reports(report_status)

@router.put("/reports/{report_id}", response_model=ReportResponse)
async def admin_update_report(
    report_id: int,
    status_update: ReportStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    return await ReportService(db).set_status(report_id, status_update.status, admin)

@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def admin_delete_comment(comment_id: int, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    await CommentService(db).delete_comment(comment_id, admin)

@router.get("/collections", response_model=List[CollectionResponse])
async def admin_list_collections(db: AsyncSession = Depends(get_db)):
    return await CollectionService(db).list_collections(active_only=False)

# Metadata import
@router.get("/import/deezer/search", dependencies=[Depends(rate_limit("search"))])
async def admin_search_deezer(
    q: str = Query(..., min_length=1, max_length=100),
    deezer_service: DeezerService = Depends(get_deezer_service)
) -> Dict:
    """Search Deezer albums to find the id to import"""
    return await deezer_service.search_albums(q.strip())

@router.post(
    "/import/deezer",
    response_model=ImportResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("import"))]
)
async def admin_import_deezer_album(
    import_request: DeezerImportRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user),
    deezer_service: DeezerService = Depends(get_deezer_service)
):
    log, release = await ImportService(db).import_deezer_album(import_request.album_id, admin, deezer_service)
    release = await ReleaseService(db).get_release(release.id)
    return {"log": log, "release": release}

@router.get("/import/stats", response_model=ImportStats)
async def admin_import_stats(db: AsyncSession = Depends(get_db)):
    return await ImportService(db).get_stats()

@router.get("/import/logs", response_model=List[ImportLogResponse])
async def admin_import_logs(limit: int = Query(20, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    return await ImportService(db).list_logs(limit)

@router.get("/import/logs/latest", response_model=ImportLogResponse)
async def admin_latest_import_log(db: AsyncSession = Depends(get_db)):
    log = await ImportService(db).get_latest_log()
    if log is None:
        raise NotFoundException("Import log", "latest")
    return log
