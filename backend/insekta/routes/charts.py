import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from insekta.database import get_db
from insekta.models.chart import Chart
from insekta.schemas import ChartIn, ChartUpdateIn, PreviewIn
from insekta.services.sheet_service import SheetError, sheet_service
from insekta.utils.jwt_auth import require_admin
from insekta.utils.pagination import contains, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/charts", tags=["charts"])


def serialize_chart(chart: Chart) -> dict:
    config = chart.config or {}
    return {
        "id": chart.id,
        "title": chart.title,
        "type": chart.type,
        "sheetUrl": chart.sheet_url,
        "description": chart.description or "",
        "config": {
            "xAxisKey": config.get("xAxisKey") or "",
            "dataKeys": list(config.get("dataKeys") or []),
        },
        "createdAt": chart.created_at.isoformat() if chart.created_at else None,
        "updatedAt": chart.updated_at.isoformat() if chart.updated_at else None,
    }


def _get_chart(db: Session, chart_id: int) -> Chart:
    chart = db.query(Chart).filter(Chart.id == chart_id).first()
    if not chart:
        raise HTTPException(status_code=404, detail="Chart tidak ditemukan")
    return chart


@router.get("")
async def list_charts(
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
    search: str = Query(""),
    page: int = Query(1),
    limit: int = Query(6),
):
    query = db.query(Chart)
    if search:
        query = query.filter(contains(Chart.title, search))

    charts, pagination = paginate(
        query.order_by(Chart.created_at.desc(), Chart.id.desc()), page, limit, default_limit=6
    )
    return {"data": [serialize_chart(c) for c in charts], "pagination": pagination}


@router.post("/preview")
async def preview_sheet(data: PreviewIn, current_user=Depends(require_admin)):
    """Fetch a sheet and suggest the axis columns, without saving anything"""
    try:
        return await run_in_threadpool(sheet_service.preview, data.url.strip())
    except SheetError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", status_code=201)
async def create_chart(data: ChartIn, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    try:
        chart = Chart(
            title=data.title.strip(),
            type=data.type,
            sheet_url=data.sheet_url.strip(),
            description=data.description,
            config=data.config.to_dict(),
            created_by=current_user.id,
        )
        db.add(chart)
        db.commit()
        db.refresh(chart)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] POST /charts")
        raise HTTPException(status_code=500, detail=f"Gagal menyimpan chart: {e}")

    return serialize_chart(chart)


@router.get("/{chart_id}/data")
async def chart_data(chart_id: int, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    """Live render of a stored chart; sheet rows are never persisted"""
    chart = _get_chart(db, chart_id)
    try:
        rendered = await run_in_threadpool(
            sheet_service.render_from_sheet, chart.type, chart.sheet_url, chart.config or {}
        )
    except SheetError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"chart": serialize_chart(chart), **rendered}


@router.put("/{chart_id}")
async def update_chart(
    chart_id: int,
    data: ChartUpdateIn,
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    chart = _get_chart(db, chart_id)
    try:
        if data.title is not None:
            chart.title = data.title.strip()
        if data.type is not None:
            chart.type = data.type
        if data.sheet_url is not None:
            chart.sheet_url = data.sheet_url.strip()
        if data.description is not None:
            chart.description = data.description
        if data.config is not None:
            chart.config = data.config.to_dict()
        db.commit()
        db.refresh(chart)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] PUT /charts/%s", chart_id)
        raise HTTPException(status_code=500, detail=str(e))

    return serialize_chart(chart)


@router.delete("/{chart_id}")
async def delete_chart(chart_id: int, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    chart = _get_chart(db, chart_id)
    try:
        db.delete(chart)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] DELETE /charts/%s", chart_id)
        raise HTTPException(status_code=500, detail=str(e))

    return {"message": "Chart berhasil dihapus"}
