from fastapi import APIRouter, Response

from app.tillsync.core.metrics import metrics

router = APIRouter()


@router.get("/tillsync/ops/metrics")
def get_metrics():
    snapshot = metrics.render()
    return Response(content=snapshot.content, media_type=snapshot.content_type)
